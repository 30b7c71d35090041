# tenant_cms/application/sections.py
from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Sequence

from tenant_cms.domain import blocks as block_ops
from tenant_cms.domain.invariants.exceptions import InvariantViolation, ValidationError
from tenant_cms.domain.registry import registry
from tenant_cms.domain.section_content import (
    BlockContent,
    parse_section_content,
    prepare_section_content,
    validate_section_content,
)
from tenant_cms.models.page import Page
from tenant_cms.models.section import Section
from tenant_cms.normalizers.section import clean_styles
from tenant_cms.utils.order import apply_sequence
from tenant_cms.utils.transaction import transactional

from .base import TenantScopedService


class SectionService(TenantScopedService):
    """
    Sections of a page, kept in a dense 0..n-1 order per page.

    Content is either a block list or a flat field object depending on the
    component type; it is validated against the section type registry on
    every write.
    """

    model = Section
    resource_type = "section"
    fields = ("page_id", "component_type", "order", "is_visible", "content", "styles", "settings")
    required_on_create = ("page_id", "component_type")
    filter_columns = ("page_id", "component_type", "is_visible")
    boolean_columns = ("is_visible",)
    ordered = True
    order_scope = ("page_id",)

    def get_by_page(self, page_id: str, visible_only: bool = False) -> List[Section]:
        filters = {"page_id": page_id}
        if visible_only:
            filters["is_visible"] = True
        return self.get_all(filters)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def prepare(self, data: Dict[str, Any], entity=None) -> Dict[str, Any]:
        component_type = data.get("component_type") or data.get("type")
        if component_type:
            data["component_type"] = component_type
        component_type = component_type or (entity.component_type if entity else None)

        if entity is None:
            if "content" not in data or data["content"] is None:
                data["content"] = registry.get_default_content(component_type) if component_type else {}
            data.setdefault("is_visible", True)
            data.setdefault("settings", {})

        if "content" in data and component_type:
            data["content"] = prepare_section_content(component_type, data["content"])

        if "styles" in data:
            base = dict(entity.styles or {}) if entity is not None else {}
            base.update(clean_styles(data["styles"]))
            data["styles"] = base

        return data

    def validate(self, data: Dict[str, Any], entity=None) -> Dict[str, str]:
        errors: Dict[str, str] = {}

        if entity is None and data.get("page_id"):
            exists = Page.query.filter_by(id=data["page_id"], tenant_id=self.tenant_id).first()
            if exists is None:
                errors["page_id"] = "The selected page is invalid."
        elif entity is not None and "page_id" in data and data["page_id"] != entity.page_id:
            errors["page_id"] = "Sections cannot be moved to another page."

        component_type = data.get("component_type") or (entity.component_type if entity else None)
        if "component_type" in data and data["component_type"] and not registry.is_valid_type(data["component_type"]):
            errors["component_type"] = "The selected component type is invalid."
            return errors

        if "settings" in data and not isinstance(data["settings"], dict):
            errors["settings"] = "The settings field must be an object."

        if component_type and "content" in data:
            for field, message in validate_section_content(component_type, data["content"]).items():
                errors[f"content.{field}"] = message

        return errors

    def build(self, page: Page, data: Dict[str, Any], order: int) -> Section:
        """
        Validated, unsaved section for `page`; used when a page and its
        sections are written in one transaction.
        """
        data = dict(data or {})
        data["page_id"] = page.id
        data = self.prepare(data)
        errors = {}
        if not data.get("component_type"):
            errors["component_type"] = "The component_type field is required."
        elif not registry.is_valid_type(data["component_type"]):
            errors["component_type"] = "The selected component type is invalid."
        elif "content" in data:
            for field, message in validate_section_content(data["component_type"], data["content"]).items():
                errors[f"content.{field}"] = message
        if errors:
            raise ValidationError(errors)

        section = Section()
        section.tenant_id = self.tenant_id
        self._assign(section, data)
        section.page = page
        section.order = order
        return section

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def reorder_sections(self, page_id: str, items: Sequence[Any]) -> List[Section]:
        """
        Accepts either a list of ids in their new order or the
        `[{"id": ..., "order": ...}]` form; orders are applied by rank.
        """
        if items and isinstance(items[0], dict):
            ranked = sorted(enumerate(items), key=lambda pair: (pair[1].get("order", pair[0]), pair[0]))
            ordered_ids = [item["id"] for _, item in ranked]
        else:
            ordered_ids = list(items)
        return self.reorder(ordered_ids, scope={"page_id": page_id})

    def move_up(self, section: Section) -> Section:
        return self._swap(section, -1)

    def move_down(self, section: Section) -> Section:
        return self._swap(section, 1)

    def _swap(self, section: Section, step: int) -> Section:
        siblings = self._order_query(section).order_by(Section.order.asc(), Section.created_at.asc()).all()
        index = next(i for i, s in enumerate(siblings) if s.id == section.id)
        target = index + step
        if not 0 <= target < len(siblings):
            return section

        siblings[index], siblings[target] = siblings[target], siblings[index]
        with transactional():
            apply_sequence(siblings)
            self._log("reorder", section, {"step": step})

        self._notify(section, "reordered")
        return section

    def toggle_visibility(self, section: Section) -> Section:
        return self.toggle(section, "is_visible")

    # ------------------------------------------------------------------
    # Block-list operations on a section
    # ------------------------------------------------------------------

    def get_blocks(self, section: Section) -> List[Dict[str, Any]]:
        content = parse_section_content(section.component_type, section.content)
        if not isinstance(content, BlockContent):
            raise InvariantViolation(
                f"Section {section.id} ({section.component_type}) does not hold block content"
            )
        return content.blocks

    def _save_blocks(self, section: Section, blocks: List[Dict[str, Any]], action: str, block_id: Optional[str]) -> Section:
        errors = block_ops.validate_blocks(blocks)
        if errors:
            raise ValidationError({f"content.{field}": message for field, message in errors.items()})

        content = copy.deepcopy(section.content or {})
        content["blocks"] = blocks

        with transactional():
            section.content = content
            self._log(f"block_{action}", section, {"block_id": block_id})

        self._notify(section, "updated")
        return section

    def add_block(
        self,
        section: Section,
        block_type: str,
        data: Optional[dict] = None,
        settings: Optional[dict] = None,
        position: Optional[int] = None,
    ) -> Dict[str, Any]:
        blocks = self.get_blocks(section)
        block = block_ops.create_block(block_type, data=data, settings=settings)
        if position is None or position >= len(blocks):
            blocks.append(block)
        else:
            blocks.insert(max(position, 0), block)
        self._save_blocks(section, blocks, "add", block["id"])
        return block

    def save_block(self, section: Section, block: Dict[str, Any]) -> Dict[str, Any]:
        """Commits a whole block (new or edited) into the section; last write wins."""
        draft = block_ops.BlockDraft(block)
        blocks = draft.commit(self.get_blocks(section))
        self._save_blocks(section, blocks, "save", draft.block["id"])
        return draft.block

    def update_block(self, section: Section, block_id: str, data: Optional[dict] = None, settings: Optional[dict] = None) -> Dict[str, Any]:
        blocks = self.get_blocks(section)
        draft = block_ops.BlockDraft(blocks[block_ops.find_block_index(blocks, block_id)])
        draft.patch(data=data, settings=settings)
        blocks = draft.commit(blocks)
        self._save_blocks(section, blocks, "save", block_id)
        return draft.block

    def delete_block(self, section: Section, block_id: str) -> Section:
        blocks = block_ops.remove_block(self.get_blocks(section), block_id)
        return self._save_blocks(section, blocks, "delete", block_id)

    def move_block(self, section: Section, block_id: str, target_index: int) -> Section:
        blocks = block_ops.move_block_to(self.get_blocks(section), block_id, target_index)
        return self._save_blocks(section, blocks, "move", block_id)

    def duplicate_block(self, section: Section, block_id: str) -> Dict[str, Any]:
        blocks, clone = block_ops.duplicate_block(self.get_blocks(section), block_id)
        self._save_blocks(section, blocks, "duplicate", clone["id"])
        return clone

    def toggle_block_visibility(self, section: Section, block_id: str) -> Section:
        blocks = block_ops.toggle_visibility(self.get_blocks(section), block_id)
        return self._save_blocks(section, blocks, "toggle", block_id)

    def count_for_page(self, page_id: str) -> int:
        return self.query().filter(Section.page_id == page_id).count()


def delete_sections_for_page(tenant_id: str, page_id: str) -> int:
    """Bulk removal used when a page's sections are replaced wholesale (no compaction needed)."""
    return (
        Section.query
        .filter(Section.tenant_id == tenant_id, Section.page_id == page_id)
        .delete(synchronize_session="fetch")
    )

