# tenant_cms/application/testimonials.py
from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import func

from tenant_cms.extensions import db
from tenant_cms.models.testimonial import Testimonial

from .base import TenantScopedService

MIN_RATING = 1
MAX_RATING = 5


class TestimonialService(TenantScopedService):
    model = Testimonial
    resource_type = "testimonial"
    fields = (
        "author_name", "author_title", "author_image", "content",
        "rating", "is_featured", "is_published", "order",
    )
    required_on_create = ("author_name", "content")
    search_columns = ("author_name", "content")
    filter_columns = ("is_featured", "is_published")
    boolean_columns = ("is_featured", "is_published")
    ordered = True

    def prepare(self, data: Dict[str, Any], entity=None) -> Dict[str, Any]:
        if entity is None:
            for field, default in (("is_featured", False), ("is_published", True), ("rating", MAX_RATING)):
                if data.get(field) is None:
                    data[field] = default
        return data

    def validate(self, data: Dict[str, Any], entity=None) -> Dict[str, str]:
        if "rating" not in data:
            return {}
        try:
            rating = int(data["rating"])
        except (TypeError, ValueError):
            return {"rating": "The rating must be an integer."}
        if not MIN_RATING <= rating <= MAX_RATING:
            return {"rating": f"The rating must be between {MIN_RATING} and {MAX_RATING}."}
        data["rating"] = rating
        return {}

    def get_published(self) -> List[Testimonial]:
        return self.get_all({"is_published": True})

    def get_featured(self, limit: int = 6) -> List[Testimonial]:
        return (
            self.query()
            .filter(Testimonial.is_featured.is_(True), Testimonial.is_published.is_(True))
            .order_by(Testimonial.order.asc())
            .limit(limit)
            .all()
        )

    def get_average_rating(self) -> float:
        value = (
            db.session.query(func.avg(Testimonial.rating))
            .filter(Testimonial.tenant_id == self.tenant_id, Testimonial.is_published.is_(True))
            .scalar()
        )
        return round(float(value), 1) if value is not None else 0.0

    def toggle_featured(self, testimonial: Testimonial) -> Testimonial:
        return self.toggle(testimonial, "is_featured")

    def toggle_published(self, testimonial: Testimonial) -> Testimonial:
        return self.toggle(testimonial, "is_published")

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "total": self.count(),
            "published": self.query().filter(Testimonial.is_published.is_(True)).count(),
            "featured": self.query().filter(Testimonial.is_featured.is_(True)).count(),
            "average_rating": self.get_average_rating(),
        }
