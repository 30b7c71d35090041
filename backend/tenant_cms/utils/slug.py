from slugify import slugify


def unique_slug(value, exists, max_length=200):
    """
    Slugify `value` and append -1, -2, ... until `exists(candidate)` is False.
    """
    base = slugify(value or "", max_length=max_length) or "item"
    candidate = base
    counter = 1
    while exists(candidate):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate
