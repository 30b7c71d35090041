# tenant_cms/domain/section_content.py
"""
Section content as a tagged union keyed by component_type.

Block-kind component types (see the registry's ``content_kind``) store
``{"blocks": [...]}``; every other type stores a flat field object.
Legacy rows of a field type whose content was rebuilt in the block editor
are recognised by a top-level ``blocks`` list the type's schema does not
declare.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from .blocks import normalize_block, validate_blocks, visible_blocks
from .registry import CONTENT_BLOCKS, SectionTypeRegistry, registry as default_registry


@dataclass
class BlockContent:
    component_type: str
    blocks: List[Dict[str, Any]] = field(default_factory=list)

    kind = CONTENT_BLOCKS

    def to_dict(self) -> Dict[str, Any]:
        return {"blocks": copy.deepcopy(self.blocks)}

    def rendered(self) -> Dict[str, Any]:
        return {"blocks": copy.deepcopy(visible_blocks(self.blocks))}


@dataclass
class FieldContent:
    component_type: str
    fields: Dict[str, Any] = field(default_factory=dict)

    kind = "fields"

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.fields)

    def rendered(self) -> Dict[str, Any]:
        return self.to_dict()


SectionContent = Union[BlockContent, FieldContent]


def is_block_content(component_type: str, raw: Any, registry: SectionTypeRegistry = default_registry) -> bool:
    if registry.content_kind(component_type) == CONTENT_BLOCKS:
        return True
    if not isinstance(raw, dict) or not isinstance(raw.get("blocks"), list):
        return False
    schema = (registry.get_type_schema(component_type) or {}).get("schema") or {}
    return "blocks" not in schema


def parse_section_content(
    component_type: str,
    raw: Any,
    registry: SectionTypeRegistry = default_registry,
) -> SectionContent:
    raw = raw if isinstance(raw, dict) else {}
    if is_block_content(component_type, raw, registry):
        return BlockContent(
            component_type=component_type,
            blocks=[normalize_block(b) for b in raw.get("blocks") or [] if isinstance(b, dict)],
        )
    return FieldContent(component_type=component_type, fields=copy.deepcopy(raw))


def validate_section_content(
    component_type: str,
    raw: Any,
    registry: SectionTypeRegistry = default_registry,
) -> Dict[str, str]:
    """Per-field errors for a section's content; empty when valid."""
    if not isinstance(raw, dict):
        return {"content": "The content field must be an object."}

    if is_block_content(component_type, raw, registry):
        if "blocks" not in raw:
            return {"blocks": "The blocks field is required."}
        return validate_blocks(raw["blocks"])

    return registry.validate_content(component_type, raw)


def prepare_section_content(
    component_type: str,
    raw: Any,
    registry: SectionTypeRegistry = default_registry,
) -> Any:
    """
    Assigns ids and default settings to block entries before validation.
    Non-dict entries are left as-is so validation can report them.
    """
    if not isinstance(raw, dict) or not is_block_content(component_type, raw, registry):
        return copy.deepcopy(raw)

    prepared = copy.deepcopy(raw)
    blocks = prepared.get("blocks")
    if isinstance(blocks, list):
        prepared["blocks"] = [normalize_block(b) if isinstance(b, dict) else b for b in blocks]
    return prepared
