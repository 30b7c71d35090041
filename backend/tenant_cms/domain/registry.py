# tenant_cms/domain/registry.py
"""
Section type registry.

Static, process-lifetime catalog of section component types: display
metadata, a field schema and default content for each. Consulted by the
admin API and by section content validation. Lookups of unknown types
return None / empty values and never raise.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

CONTENT_FIELDS = "fields"
CONTENT_BLOCKS = "blocks"

_CTA_FIELDS = {
    "text": {"type": "string", "label": "Button Text"},
    "url": {"type": "string", "label": "Button URL"},
}


class SectionTypeRegistry:
    def __init__(self, register_defaults: bool = True):
        self._types: Dict[str, Dict[str, Any]] = {}
        if register_defaults:
            self._register_default_types()

    def register(self, type_name: str, config: Dict[str, Any]) -> None:
        self._types[type_name] = {
            "name": type_name,
            "description": "",
            "icon": "square",
            "category": "general",
            "content_kind": CONTENT_FIELDS,
            "schema": {},
            "defaults": {},
            **config,
        }

    def is_valid_type(self, type_name: str) -> bool:
        return type_name in self._types

    def get_all_types(self) -> List[str]:
        return list(self._types)

    def get_all_types_with_schema(self) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self._types)

    def get_types_by_category(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        grouped: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for type_name, config in self._types.items():
            grouped.setdefault(config.get("category", "general"), {})[type_name] = copy.deepcopy(config)
        return grouped

    def get_type_schema(self, type_name: str) -> Optional[Dict[str, Any]]:
        config = self._types.get(type_name)
        return copy.deepcopy(config) if config is not None else None

    def get_default_content(self, type_name: str) -> Dict[str, Any]:
        config = self._types.get(type_name)
        if config is None:
            return {}
        return copy.deepcopy(config.get("defaults") or {})

    def content_kind(self, type_name: str) -> Optional[str]:
        config = self._types.get(type_name)
        return config["content_kind"] if config else None

    def validate_content(self, type_name: str, content: Dict[str, Any]) -> Dict[str, str]:
        """
        Shallow required-field check. Empty dict means valid.

        Only presence is checked (a None value counts as missing); values are
        not type-coerced.
        """
        errors: Dict[str, str] = {}
        config = self._types.get(type_name)
        if config is None:
            return errors

        content = content or {}
        for field, rules in (config.get("schema") or {}).items():
            if rules.get("required") and content.get(field) is None:
                errors[field] = f"The {field} field is required."

        return errors

    def _register_default_types(self) -> None:
        self.register("hero", {
            "name": "Hero Section",
            "description": "Full-width hero banner with title, description, and CTA",
            "icon": "layout-template",
            "category": "headers",
            "schema": {
                "pre_title": {"type": "string", "label": "Pre-title", "required": False},
                "title": {"type": "string", "label": "Title", "required": True},
                "title_highlight": {"type": "string", "label": "Highlighted Word", "required": False},
                "description": {"type": "text", "label": "Description", "required": False},
                "background_image": {"type": "image", "label": "Background Image", "required": False},
                "cta_primary": {"type": "object", "label": "Primary CTA", "fields": _CTA_FIELDS},
                "cta_secondary": {"type": "object", "label": "Secondary CTA", "fields": _CTA_FIELDS},
            },
            "defaults": {
                "pre_title": "Welcome",
                "title": "Your Title Here",
                "description": "Add your description text here.",
                "cta_primary": {"text": "Get Started", "url": "/contact"},
            },
        })

        self.register("services_grid", {
            "name": "Services Grid",
            "description": "Grid display of service categories",
            "icon": "grid-3x3",
            "category": "content",
            "schema": {
                "title": {"type": "string", "label": "Section Title", "required": False},
                "description": {"type": "text", "label": "Section Description", "required": False},
                "show_categories": {"type": "boolean", "label": "Show Categories", "default": True},
                "columns": {"type": "select", "label": "Columns", "options": [2, 3, 4], "default": 3},
            },
            "defaults": {"title": "Our Services", "show_categories": True, "columns": 3},
        })

        self.register("team", {
            "name": "Team Section",
            "description": "Display team members with photos and bios",
            "icon": "users",
            "category": "content",
            "schema": {
                "pre_title": {"type": "string", "label": "Pre-title", "required": False},
                "title": {"type": "string", "label": "Section Title", "required": False},
                "title_highlight": {"type": "string", "label": "Highlighted Word", "required": False},
                "description": {"type": "text", "label": "Section Description", "required": False},
                "show_bio": {"type": "boolean", "label": "Show Bio", "default": True},
                "max_members": {"type": "number", "label": "Max Members to Show", "default": 6},
            },
            "defaults": {"pre_title": "Our Team", "title": "Meet Our Experts", "show_bio": True, "max_members": 6},
        })

        self.register("testimonials", {
            "name": "Testimonials",
            "description": "Customer testimonials carousel or grid",
            "icon": "message-square-quote",
            "category": "social-proof",
            "schema": {
                "title": {"type": "string", "label": "Section Title", "required": False},
                "layout": {"type": "select", "label": "Layout", "options": ["carousel", "grid"], "default": "carousel"},
                "show_rating": {"type": "boolean", "label": "Show Rating", "default": True},
                "show_photo": {"type": "boolean", "label": "Show Photo", "default": True},
            },
            "defaults": {
                "title": "What Our Clients Say",
                "layout": "carousel",
                "show_rating": True,
                "show_photo": True,
            },
        })

        self.register("faq", {
            "name": "FAQ Section",
            "description": "Frequently asked questions accordion",
            "icon": "help-circle",
            "category": "content",
            "schema": {
                "pre_title": {"type": "string", "label": "Pre-title", "required": False},
                "title": {"type": "string", "label": "Section Title", "required": False},
                "title_highlight": {"type": "string", "label": "Highlighted Word", "required": False},
                "items": {
                    "type": "array",
                    "label": "FAQ Items",
                    "item_schema": {
                        "question": {"type": "string", "label": "Question", "required": True},
                        "answer": {"type": "text", "label": "Answer", "required": True},
                    },
                },
            },
            "defaults": {"pre_title": "FAQ", "title": "Frequently Asked Questions", "items": []},
        })

        self.register("contact", {
            "name": "Contact Section",
            "description": "Contact form with info",
            "icon": "mail",
            "category": "forms",
            "schema": {
                "pre_title": {"type": "string", "label": "Pre-title", "required": False},
                "title": {"type": "string", "label": "Section Title", "required": False},
                "title_highlight": {"type": "string", "label": "Highlighted Word", "required": False},
                "description": {"type": "text", "label": "Description", "required": False},
                "show_form": {"type": "boolean", "label": "Show Contact Form", "default": True},
                "show_map": {"type": "boolean", "label": "Show Map", "default": False},
                "show_info": {"type": "boolean", "label": "Show Contact Info", "default": True},
            },
            "defaults": {"pre_title": "Contact", "title": "Get In Touch", "show_form": True, "show_info": True},
        })

        self.register("cta", {
            "name": "Call to Action",
            "description": "Prominent call-to-action banner",
            "icon": "megaphone",
            "category": "conversion",
            "schema": {
                "title": {"type": "string", "label": "Title", "required": True},
                "description": {"type": "text", "label": "Description", "required": False},
                "button_text": {"type": "string", "label": "Button Text", "required": True},
                "button_url": {"type": "string", "label": "Button URL", "required": True},
                "background_color": {"type": "color", "label": "Background Color", "default": "#3d3d3d"},
            },
            "defaults": {
                "title": "Ready to Get Started?",
                "description": "Take the first step today.",
                "button_text": "Contact Us",
                "button_url": "/contact",
            },
        })

        self.register("text_block", {
            "name": "Text Block",
            "description": "Rich text content block",
            "icon": "type",
            "category": "content",
            "schema": {
                "title": {"type": "string", "label": "Title", "required": False},
                "content": {"type": "richtext", "label": "Content", "required": True},
                "alignment": {"type": "select", "label": "Alignment", "options": ["left", "center", "right"], "default": "left"},
            },
            "defaults": {"content": "<p>Your content here...</p>", "alignment": "left"},
        })

        self.register("gallery", {
            "name": "Image Gallery",
            "description": "Grid of images with lightbox",
            "icon": "images",
            "category": "media",
            "schema": {
                "title": {"type": "string", "label": "Section Title", "required": False},
                "images": {
                    "type": "array",
                    "label": "Images",
                    "item_schema": {
                        "url": {"type": "image", "label": "Image", "required": True},
                        "alt": {"type": "string", "label": "Alt Text", "required": False},
                        "caption": {"type": "string", "label": "Caption", "required": False},
                    },
                },
                "columns": {"type": "select", "label": "Columns", "options": [2, 3, 4], "default": 3},
            },
            "defaults": {"images": [], "columns": 3},
        })

        self.register("stats", {
            "name": "Statistics",
            "description": "Display key numbers and statistics",
            "icon": "bar-chart-2",
            "category": "social-proof",
            "schema": {
                "title": {"type": "string", "label": "Section Title", "required": False},
                "items": {
                    "type": "array",
                    "label": "Stats",
                    "item_schema": {
                        "value": {"type": "string", "label": "Value", "required": True},
                        "label": {"type": "string", "label": "Label", "required": True},
                        "icon": {"type": "string", "label": "Icon", "required": False},
                    },
                },
            },
            "defaults": {
                "items": [
                    {"value": "1000+", "label": "Happy Clients"},
                    {"value": "50+", "label": "Services"},
                    {"value": "10+", "label": "Years Experience"},
                ],
            },
        })

        self.register("pricing", {
            "name": "Pricing Table",
            "description": "Display pricing plans",
            "icon": "credit-card",
            "category": "conversion",
            "schema": {
                "title": {"type": "string", "label": "Section Title", "required": False},
                "plans": {
                    "type": "array",
                    "label": "Pricing Plans",
                    "item_schema": {
                        "name": {"type": "string", "label": "Plan Name", "required": True},
                        "price": {"type": "string", "label": "Price", "required": True},
                        "period": {"type": "string", "label": "Period", "required": False},
                        "features": {"type": "array", "label": "Features"},
                        "is_popular": {"type": "boolean", "label": "Popular Badge", "default": False},
                        "cta_text": {"type": "string", "label": "Button Text"},
                        "cta_url": {"type": "string", "label": "Button URL"},
                    },
                },
            },
            "defaults": {"title": "Choose Your Plan", "plans": []},
        })

        self.register("newsletter", {
            "name": "Newsletter Signup",
            "description": "Email subscription form with incentive",
            "icon": "mail",
            "category": "conversion",
            "schema": {
                "pre_title": {"type": "string", "label": "Pre-title", "required": False},
                "title": {"type": "string", "label": "Title", "required": False},
                "description": {"type": "text", "label": "Description", "required": False},
                "placeholder": {"type": "string", "label": "Email Placeholder", "default": "Enter your email address"},
                "button_text": {"type": "string", "label": "Button Text", "default": "Subscribe"},
                "success_message": {"type": "text", "label": "Success Message"},
                "incentive_text": {"type": "string", "label": "Incentive Text"},
                "variant": {
                    "type": "select",
                    "label": "Layout Variant",
                    "options": ["default", "compact", "banner", "card"],
                    "default": "default",
                },
            },
            "defaults": {
                "pre_title": "STAY UPDATED",
                "title": "Subscribe to Our Newsletter",
                "description": "Get the latest news and exclusive offers.",
                "button_text": "Subscribe",
                "variant": "default",
            },
        })

        self.register("blocks", {
            "name": "Custom Blocks",
            "description": "Free-form section assembled from content blocks",
            "icon": "layers",
            "category": "layout",
            "content_kind": CONTENT_BLOCKS,
            "schema": {
                "blocks": {"type": "blocks", "label": "Blocks", "required": True},
            },
            "defaults": {"blocks": []},
        })


registry = SectionTypeRegistry()
