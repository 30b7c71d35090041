from tenant_cms.domain.section_content import parse_section_content

SECTION_STYLE_DEFAULTS = {
    "background_color": None,
    "text_color": None,
    "heading_color": None,
    "font_size": "base",
    "padding_top": "lg",
    "padding_bottom": "lg",
    "container_width": "default",
    "custom_css_class": "",
}


def normalize_styles(styles):
    """Exactly the fixed style keys: stored values win, unknown keys are dropped."""
    styles = styles if isinstance(styles, dict) else {}
    return {
        key: styles[key] if key in styles else default
        for key, default in SECTION_STYLE_DEFAULTS.items()
    }


def clean_styles(styles):
    """Only the known style keys that were actually supplied."""
    styles = styles if isinstance(styles, dict) else {}
    return {key: value for key, value in styles.items() if key in SECTION_STYLE_DEFAULTS}


def isoformat(value):
    return value.isoformat() if value is not None else None


def normalize_section(section, admin=False, render=False):
    content = parse_section_content(section.component_type, section.content)

    data = {
        "id": section.id,
        "page_id": section.page_id,
        "component_type": section.component_type,
        "content_kind": content.kind,
        "order": section.order,
        "is_visible": bool(section.is_visible),
        "content": content.rendered() if render else content.to_dict(),
        "styles": normalize_styles(section.styles),
        "settings": section.settings or {},
    }

    if admin:
        data["created_at"] = isoformat(section.created_at)
        data["updated_at"] = isoformat(section.updated_at)

    return data
