from .section import normalize_section, isoformat


def normalize_page(page, admin=False, include_sections=True):
    sections = sorted(page.sections, key=lambda s: s.order)
    if not admin:
        sections = [s for s in sections if s.is_visible]

    data = {
        "id": page.id,
        "title": page.title,
        "slug": page.slug,
        "order": page.order,
        "meta": {
            "title": page.meta_title,
            "description": page.meta_description,
            "keywords": page.meta_keywords,
            "og_image": page.og_image,
        },
        "published_at": isoformat(page.published_at),
    }

    if admin:
        data["status"] = page.status
        data["scheduled_at"] = isoformat(page.scheduled_at)
        data["created_at"] = isoformat(page.created_at)
        data["updated_at"] = isoformat(page.updated_at)

    if include_sections:
        data["sections"] = [
            normalize_section(s, admin=admin, render=not admin)
            for s in sections
        ]

    return data
