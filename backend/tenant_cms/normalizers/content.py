# tenant_cms/normalizers/content.py
"""
API shapes for the tenant content types other than pages and sections.
"""
from __future__ import annotations

from typing import Any, Dict

from .section import isoformat


def _timestamps(entity) -> Dict[str, Any]:
    return {
        "created_at": isoformat(entity.created_at),
        "updated_at": isoformat(entity.updated_at),
    }


def normalize_service_category(category, include_services: bool = False) -> Dict[str, Any]:
    data = {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "image": category.image,
        "order": category.order,
        "is_active": category.is_active,
        **_timestamps(category),
    }
    if include_services:
        data["services"] = [normalize_service(s) for s in sorted(category.services, key=lambda s: s.order)]
    return data


def normalize_service(service) -> Dict[str, Any]:
    return {
        "id": service.id,
        "category_id": service.category_id,
        "name": service.name,
        "slug": service.slug,
        "description": service.description,
        "short_description": service.short_description,
        "headline": service.headline,
        "pricing": service.pricing,
        "get_started_url": service.get_started_url,
        "image": service.image,
        "secondary_image": service.secondary_image,
        "is_popular": service.is_popular,
        "is_published": service.is_published,
        "scheduled_at": isoformat(service.scheduled_at),
        "order": service.order,
        "content": service.content or {},
        "stats": service.stats or [],
        "benefits": service.benefits or [],
        **_timestamps(service),
    }


def normalize_faq(faq) -> Dict[str, Any]:
    return {
        "id": faq.id,
        "question": faq.question,
        "answer": faq.answer,
        "category": faq.category,
        "order": faq.order,
        "is_published": faq.is_published,
        **_timestamps(faq),
    }


def normalize_testimonial(testimonial) -> Dict[str, Any]:
    return {
        "id": testimonial.id,
        "author_name": testimonial.author_name,
        "author_title": testimonial.author_title,
        "author_image": testimonial.author_image,
        "content": testimonial.content,
        "rating": testimonial.rating,
        "is_featured": testimonial.is_featured,
        "is_published": testimonial.is_published,
        "order": testimonial.order,
        **_timestamps(testimonial),
    }


def normalize_team_member(member) -> Dict[str, Any]:
    return {
        "id": member.id,
        "name": member.name,
        "title": member.title,
        "bio": member.bio,
        "image": member.image,
        "credentials": member.credentials,
        "social_links": member.social_links or {},
        "order": member.order,
        "is_published": member.is_published,
        **_timestamps(member),
    }


def normalize_menu(menu) -> Dict[str, Any]:
    return {
        "id": menu.id,
        "name": menu.name,
        "location": menu.location,
        "items": menu.items or [],
        "is_active": menu.is_active,
        **_timestamps(menu),
    }


def normalize_setting(setting) -> Dict[str, Any]:
    return {
        "id": setting.id,
        "group": setting.group,
        "key": setting.key,
        "value": setting.value,
        "updated_at": isoformat(setting.updated_at),
    }


def normalize_media(media) -> Dict[str, Any]:
    return {
        "id": media.id,
        "filename": media.filename,
        "original_filename": media.original_filename,
        "path": media.path,
        "url": media.url,
        "disk": media.disk,
        "mime_type": media.mime_type,
        "size": media.size,
        "type": media.type,
        "alt_text": media.alt_text,
        "caption": media.caption,
        "folder": media.folder,
        "meta": media.meta or {},
        **_timestamps(media),
    }


def normalize_template(template, tenant_count: int = None) -> Dict[str, Any]:
    data = {
        "id": template.id,
        "name": template.name,
        "slug": template.slug,
        "description": template.description,
        "preview_image": template.preview_image,
        "version": template.version,
        "category": template.category,
        "is_active": template.is_active,
        "is_premium": template.is_premium,
        "supported_components": template.supported_components or [],
        "default_settings": template.default_settings or {},
        "default_colors": template.default_colors or {},
        **_timestamps(template),
    }
    if tenant_count is not None:
        data["tenant_count"] = tenant_count
    return data


def normalize_user(user) -> Dict[str, Any]:
    # Never expose password_hash
    return {
        "id": user.id,
        "tenant_id": user.tenant_id,
        "name": user.name,
        "email": user.email,
        "avatar": user.avatar,
        "role": user.role,
        "is_active": user.is_active,
        **_timestamps(user),
    }


def normalize_tenant(tenant, admin: bool = True) -> Dict[str, Any]:
    data = {
        "id": tenant.id,
        "name": tenant.name,
        "slug": tenant.slug,
        "logo": tenant.logo,
        "favicon": tenant.favicon,
        "domain": tenant.domain,
        "frontend_url": tenant.frontend_url,
    }
    if not admin:
        return data

    data.update({
        "is_active": tenant.is_active,
        "contact_email": tenant.contact_email,
        "contact_phone": tenant.contact_phone,
        "additional_domains": tenant.additional_domains or [],
        "active_template_id": tenant.active_template_id,
        "settings": tenant.settings or {},
        "enable_cms": tenant.enable_cms,
        "features": tenant.features or {},
        "deployment_status": tenant.deployment_status,
        "deployed_at": isoformat(tenant.deployed_at),
        "nginx_status": tenant.nginx_status,
        "ssl_status": tenant.ssl_status,
        "ssl_expires_at": isoformat(tenant.ssl_expires_at),
        **_timestamps(tenant),
    })
    return data


def normalize_webhook(webhook, include_secret: bool = False) -> Dict[str, Any]:
    data = {
        "id": webhook.id,
        "tenant_id": webhook.tenant_id,
        "name": webhook.name,
        "url": webhook.url,
        "events": webhook.events or [],
        "is_active": webhook.is_active,
        "last_triggered_at": isoformat(webhook.last_triggered_at),
        "last_status": webhook.last_status,
        "last_error": webhook.last_error,
        **_timestamps(webhook),
    }
    # The secret is shown once, when the webhook is registered
    if include_secret:
        data["secret"] = webhook.secret
    return data


def normalize_page_version(version) -> Dict[str, Any]:
    return {
        "id": version.id,
        "page_id": version.page_id,
        "version": version.version,
        "status": version.status,
        "created_by": version.created_by,
        "created_at": isoformat(version.created_at),
    }


def normalize_contact_submission(submission) -> Dict[str, Any]:
    return {
        "id": submission.id,
        "name": submission.name,
        "email": submission.email,
        "phone": submission.phone,
        "subject": submission.subject,
        "message": submission.message,
        "source": submission.source,
        "status": submission.status,
        "notes": submission.notes,
        "read_at": isoformat(submission.read_at),
        "replied_at": isoformat(submission.replied_at),
        **_timestamps(submission),
    }
