# tenant_cms/domain/blocks.py
"""
Block list operations for block-based section content.

A block is a plain dict:

    {"id": "block_...", "type": "heading", "data": {...},
     "settings": {"visibility": "visible", "animation": "none", "customClass": ""}}

Every operation takes a block list and returns a new list; the input is
never mutated. Hidden blocks stay in the list and are only dropped by
`visible_blocks` at render time.
"""
from __future__ import annotations

import copy
import random
import string
import time
from typing import Any, Dict, List, Optional, Tuple

from .invariants.exceptions import InvariantViolation, NotFoundError, ValidationError

VISIBLE = "visible"
HIDDEN = "hidden"

DEFAULT_BLOCK_SETTINGS = {
    "visibility": VISIBLE,
    "animation": "none",
    "customClass": "",
}

BLOCK_CATEGORIES = ("content", "media", "layout", "interactive", "advanced")

BLOCK_DEFINITIONS: Dict[str, Dict[str, Any]] = {
    # Content
    "heading": {
        "name": "Heading",
        "category": "content",
        "required": ("text",),
        "defaults": {"text": "Enter heading...", "level": "h2"},
    },
    "text": {
        "name": "Text",
        "category": "content",
        "required": ("content",),
        "defaults": {"content": "Enter your text here...", "alignment": "left"},
    },
    "list": {
        "name": "List",
        "category": "content",
        "defaults": {"items": [{"title": "Item 1", "content": ""}], "style": "bullet"},
    },
    "stats": {
        "name": "Stats",
        "category": "content",
        "defaults": {"items": [{"value": "100", "label": "Stat Label"}], "columns": 4},
    },
    "values_cards": {
        "name": "Values Cards",
        "category": "content",
        "defaults": {"preTitle": "OUR VALUES", "title": "What Drives Us", "items": []},
    },
    "process_steps": {
        "name": "Process Steps",
        "category": "content",
        "defaults": {"preTitle": "HOW IT WORKS", "title": "Our Process", "steps": []},
    },
    "legal_content": {
        "name": "Legal Content",
        "category": "content",
        "defaults": {"lastUpdated": "", "sections": []},
    },
    # Media
    "image": {
        "name": "Image",
        "category": "media",
        "required": ("src",),
        "defaults": {"src": "", "alt": "Image description"},
    },
    "image_gallery": {
        "name": "Gallery",
        "category": "media",
        "defaults": {"images": [], "columns": 3},
    },
    "slider": {
        "name": "Slider",
        "category": "media",
        "defaults": {"items": [], "autoPlay": True, "interval": 4000, "showDots": True},
    },
    "video": {
        "name": "Video",
        "category": "media",
        "required": ("url",),
        "defaults": {"url": "", "autoPlay": False},
    },
    "services_carousel": {
        "name": "Services Carousel",
        "category": "media",
        "defaults": {"categories": [], "showCategoryImages": True, "showServicesList": True, "columns": 4},
    },
    # Layout
    "button": {
        "name": "Button",
        "category": "layout",
        "required": ("text", "link"),
        "defaults": {"text": "Click Me", "link": "/", "style": "primary"},
    },
    "button_group": {
        "name": "Button Group",
        "category": "layout",
        "defaults": {"buttons": [], "alignment": "left"},
    },
    "cards": {
        "name": "Cards",
        "category": "layout",
        "defaults": {"items": [], "columns": 3, "style": "default"},
    },
    "spacer": {
        "name": "Spacer",
        "category": "layout",
        "defaults": {"height": "medium"},
    },
    "divider": {
        "name": "Divider",
        "category": "layout",
        "defaults": {"style": "solid", "width": "full"},
    },
    "cta_section": {
        "name": "CTA Section",
        "category": "layout",
        "defaults": {
            "preTitle": "",
            "title": "Ready to Get Started?",
            "description": "",
            "primaryCtaText": "Get Started",
            "primaryCtaLink": "/contact",
        },
    },
    # Interactive
    "testimonials_carousel": {
        "name": "Testimonials",
        "category": "interactive",
        "defaults": {"testimonials": [], "autoPlay": True, "interval": 5000, "showDots": True, "showRating": True},
    },
    "faq_list": {
        "name": "FAQ List",
        "category": "interactive",
        "defaults": {
            "items": [],
            "preTitle": "GOT QUESTIONS?",
            "title": "Frequently Asked Questions",
            "description": "Find answers to common questions.",
            "ctaTitle": "Still have questions?",
            "ctaDescription": "Our support team is here to help.",
            "ctaText": "Contact Support",
            "ctaLink": "/contact",
        },
    },
    "contact_info": {
        "name": "Contact Info",
        "category": "interactive",
        "defaults": {
            "preTitle": "GET IN TOUCH",
            "title": "We Would Love To Hear From You",
            "phone": "",
            "email": "",
            "hours": "",
        },
    },
    "form": {
        "name": "Form",
        "category": "interactive",
        "defaults": {"fields": [], "submitText": "Submit"},
    },
    # Advanced
    "html": {
        "name": "HTML",
        "category": "advanced",
        "required": ("content",),
        "defaults": {"content": ""},
    },
    "icon": {
        "name": "Icon",
        "category": "advanced",
        "defaults": {"name": "star", "size": "medium"},
    },
}


def is_valid_block_type(block_type: str) -> bool:
    return block_type in BLOCK_DEFINITIONS


def get_block_definitions(category: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    return {
        block_type: copy.deepcopy(definition)
        for block_type, definition in BLOCK_DEFINITIONS.items()
        if category is None or definition["category"] == category
    }


def generate_block_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"block_{int(time.time() * 1000)}_{suffix}"


def create_block(block_type: str, data: Optional[dict] = None, settings: Optional[dict] = None) -> Dict[str, Any]:
    """New block with a fresh id, the type's default data and default settings."""
    definition = BLOCK_DEFINITIONS.get(block_type)
    if definition is None:
        raise ValidationError({"type": f"Unknown block type '{block_type}'."})

    return {
        "id": generate_block_id(),
        "type": block_type,
        "data": {**copy.deepcopy(definition["defaults"]), **copy.deepcopy(data or {})},
        "settings": {**DEFAULT_BLOCK_SETTINGS, **copy.deepcopy(settings or {})},
    }


def normalize_block(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Fills in a missing id and default settings; keeps data untouched."""
    block = copy.deepcopy(raw)
    block.setdefault("id", generate_block_id())
    block["data"] = block.get("data") or {}
    block["settings"] = {**DEFAULT_BLOCK_SETTINGS, **(block.get("settings") or {})}
    return block


def find_block_index(blocks: List[dict], block_id: str) -> int:
    for index, block in enumerate(blocks):
        if block.get("id") == block_id:
            return index
    raise NotFoundError(f"Block '{block_id}' not found")


def move_block(blocks: List[dict], source_index: int, target_index: int) -> List[dict]:
    """
    Splice-move: the block at source_index ends up at target_index and every
    other block keeps its relative order.
    """
    size = len(blocks)
    if not (0 <= source_index < size) or not (0 <= target_index < size):
        raise InvariantViolation(
            f"Block move out of range: {source_index} -> {target_index} (size {size})"
        )

    result = copy.deepcopy(blocks)
    block = result.pop(source_index)
    result.insert(target_index, block)
    return result


def move_block_to(blocks: List[dict], block_id: str, target_index: int) -> List[dict]:
    return move_block(blocks, find_block_index(blocks, block_id), target_index)


def duplicate_block(blocks: List[dict], block_id: str) -> Tuple[List[dict], Dict[str, Any]]:
    index = find_block_index(blocks, block_id)
    clone = copy.deepcopy(blocks[index])
    clone["id"] = generate_block_id()

    result = copy.deepcopy(blocks)
    result.insert(index + 1, clone)
    return result, clone


def toggle_visibility(blocks: List[dict], block_id: str) -> List[dict]:
    index = find_block_index(blocks, block_id)
    result = copy.deepcopy(blocks)
    settings = {**DEFAULT_BLOCK_SETTINGS, **(result[index].get("settings") or {})}
    settings["visibility"] = VISIBLE if settings["visibility"] == HIDDEN else HIDDEN
    result[index]["settings"] = settings
    return result


def remove_block(blocks: List[dict], block_id: str) -> List[dict]:
    index = find_block_index(blocks, block_id)
    result = copy.deepcopy(blocks)
    del result[index]
    return result


def upsert_block(blocks: List[dict], block: Dict[str, Any]) -> List[dict]:
    """Replaces the block with the same id in place, or appends it."""
    result = copy.deepcopy(blocks)
    saved = copy.deepcopy(block)
    for index, existing in enumerate(result):
        if existing.get("id") == saved.get("id"):
            result[index] = saved
            return result
    result.append(saved)
    return result


def visible_blocks(blocks: List[dict]) -> List[dict]:
    return [
        block for block in blocks
        if (block.get("settings") or {}).get("visibility", VISIBLE) != HIDDEN
    ]


def validate_block(block: Any, prefix: str = "") -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not isinstance(block, dict):
        errors[prefix.rstrip(".") or "block"] = "Each block must be an object."
        return errors

    if not block.get("id"):
        errors[f"{prefix}id"] = "The id field is required."

    definition = BLOCK_DEFINITIONS.get(block.get("type"))
    if definition is None:
        errors[f"{prefix}type"] = f"Unknown block type '{block.get('type')}'."
        return errors

    data = block.get("data")
    if data is not None and not isinstance(data, dict):
        errors[f"{prefix}data"] = "The data field must be an object."
        return errors

    data = data or {}
    for field in definition.get("required", ()):
        if data.get(field) is None:
            errors[f"{prefix}data.{field}"] = f"The {field} field is required."

    settings = block.get("settings") or {}
    if settings.get("visibility", VISIBLE) not in (VISIBLE, HIDDEN):
        errors[f"{prefix}settings.visibility"] = "Visibility must be 'visible' or 'hidden'."

    return errors


def validate_blocks(blocks: Any) -> Dict[str, str]:
    if not isinstance(blocks, list):
        return {"blocks": "The blocks field must be a list."}

    errors: Dict[str, str] = {}
    seen = set()
    for index, block in enumerate(blocks):
        errors.update(validate_block(block, prefix=f"blocks.{index}."))
        block_id = block.get("id") if isinstance(block, dict) else None
        if block_id and block_id in seen:
            errors[f"blocks.{index}.id"] = f"Duplicate block id '{block_id}'."
        seen.add(block_id)
    return errors


class BlockDraft:
    """
    Unsaved working copy of one block.

    Edits only touch the draft. `commit` writes the whole block back into a
    block list (last write wins); `cancel` throws the edits away.
    """

    def __init__(self, block: Dict[str, Any]):
        self._original = normalize_block(block)
        self.block = copy.deepcopy(self._original)
        self.state = "draft"

    @classmethod
    def new(cls, block_type: str) -> "BlockDraft":
        return cls(create_block(block_type))

    @property
    def is_dirty(self) -> bool:
        return self.block != self._original

    def set_field(self, field: str, value: Any) -> "BlockDraft":
        self._ensure_open()
        self.block["data"][field] = copy.deepcopy(value)
        return self

    def patch(self, data: Optional[dict] = None, settings: Optional[dict] = None) -> "BlockDraft":
        self._ensure_open()
        if data:
            self.block["data"].update(copy.deepcopy(data))
        if settings:
            self.block["settings"].update(copy.deepcopy(settings))
        return self

    def commit(self, blocks: List[dict]) -> List[dict]:
        self._ensure_open()
        errors = validate_block(self.block)
        if errors:
            raise ValidationError(errors)
        self.state = "saved"
        return upsert_block(blocks, self.block)

    def cancel(self) -> Dict[str, Any]:
        self._ensure_open()
        self.state = "discarded"
        self.block = copy.deepcopy(self._original)
        return self.block

    def _ensure_open(self):
        if self.state != "draft":
            raise InvariantViolation(f"Block draft already {self.state}")
