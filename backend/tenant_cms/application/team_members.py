# tenant_cms/application/team_members.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from tenant_cms.models.team_member import TeamMember

from .base import TenantScopedService


class TeamMemberService(TenantScopedService):
    model = TeamMember
    resource_type = "team_member"
    fields = ("name", "title", "bio", "image", "credentials", "social_links", "order", "is_published")
    required_on_create = ("name",)
    search_columns = ("name", "title")
    filter_columns = ("is_published",)
    boolean_columns = ("is_published",)
    ordered = True

    def validate(self, data: Dict[str, Any], entity=None) -> Dict[str, str]:
        links = data.get("social_links")
        if links is not None and not isinstance(links, dict):
            return {"social_links": "The social_links field must be an object."}
        return {}

    def get_published(self) -> List[TeamMember]:
        return self.get_all({"is_published": True})

    def duplicate(self, entity: TeamMember, overrides: Optional[Dict[str, Any]] = None) -> TeamMember:
        # The copy must not share the original's image file
        values = {"name": f"{entity.name} (Copy)", "image": None, "is_published": False}
        values.update(overrides or {})
        return super().duplicate(entity, values)

    def toggle_published(self, member: TeamMember) -> TeamMember:
        return self.toggle(member, "is_published")

    def get_statistics(self) -> Dict[str, int]:
        total = self.count()
        published = self.query().filter(TeamMember.is_published.is_(True)).count()
        return {"total": total, "published": published, "draft": total - published}
