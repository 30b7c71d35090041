# tenant_cms/application/faqs.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from tenant_cms.extensions import db
from tenant_cms.models.faq import Faq

from .base import TenantScopedService


class FaqService(TenantScopedService):
    model = Faq
    resource_type = "faq"
    fields = ("question", "answer", "category", "order", "is_published")
    required_on_create = ("question", "answer")
    search_columns = ("question", "answer")
    filter_columns = ("category", "is_published")
    boolean_columns = ("is_published",)
    ordered = True

    def prepare(self, data: Dict[str, Any], entity=None) -> Dict[str, Any]:
        if entity is None and data.get("is_published") is None:
            data["is_published"] = True
        return data

    def get_published(self) -> List[Faq]:
        return self.get_all({"is_published": True})

    def get_categories(self) -> List[str]:
        rows = (
            db.session.query(Faq.category)
            .filter(Faq.tenant_id == self.tenant_id, Faq.category.isnot(None))
            .distinct()
            .order_by(Faq.category.asc())
            .all()
        )
        return [category for (category,) in rows if category]

    def get_grouped_by_category(self, published_only: bool = True) -> Dict[str, List[Faq]]:
        grouped: Dict[str, List[Faq]] = {}
        faqs = self.get_published() if published_only else self.get_all()
        for faq in faqs:
            grouped.setdefault(faq.category or "General", []).append(faq)
        return grouped

    def duplicate(self, entity: Faq, overrides: Optional[Dict[str, Any]] = None) -> Faq:
        values = {"question": f"{entity.question} (Copy)", "is_published": False}
        values.update(overrides or {})
        return super().duplicate(entity, values)

    def toggle_published(self, faq: Faq) -> Faq:
        return self.toggle(faq, "is_published")
