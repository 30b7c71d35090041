# tenant_cms/application/media.py
from __future__ import annotations

import posixpath
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from tenant_cms.domain.invariants.exceptions import ValidationError
from tenant_cms.extensions import db
from tenant_cms.models.media import Media
from tenant_cms.utils import media as storage
from tenant_cms.utils.transaction import transactional

from .base import TenantScopedService

MEDIA_PER_PAGE = 24
EXTERNAL_DISK = "external"


class MediaService(TenantScopedService):
    """Media library entries; uploaded files live under the tenant's own storage folder."""

    model = Media
    resource_type = "media"
    fields = ("alt_text", "caption", "folder", "meta")
    search_columns = ("original_filename", "alt_text")
    filter_columns = ("type", "folder")

    def upload(self, file, data: Optional[Dict[str, Any]] = None) -> Media:
        data = data or {}
        try:
            stored = storage.save_file(file, tenant_id=self.tenant_id, folder=data.get("folder") or "uploads")
        except ValueError as exc:
            raise ValidationError({"file": str(exc)}) from exc

        media = Media()
        media.tenant_id = self.tenant_id
        for field, value in stored.items():
            setattr(media, field, value)
        media.disk = "local"
        media.alt_text = data.get("alt_text")
        media.caption = data.get("caption")

        with transactional():
            db.session.add(media)
            db.session.flush()
            self._log("upload", media, {"path": media.path, "size": media.size})

        self._notify(media, "created")
        return media

    def create_from_url(self, url: str, data: Optional[Dict[str, Any]] = None) -> Media:
        data = data or {}
        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError({"url": "The url must be a valid http(s) URL."})

        basename = posixpath.basename(parsed.path) or parsed.netloc
        media = Media()
        media.tenant_id = self.tenant_id
        media.filename = basename
        media.original_filename = data.get("original_filename") or basename
        media.path = None
        media.url = url
        media.disk = EXTERNAL_DISK
        media.size = 0
        media.type = storage.determine_media_type(None, basename)
        media.alt_text = data.get("alt_text")
        media.caption = data.get("caption")
        media.folder = storage.clean_folder(data.get("folder") or EXTERNAL_DISK)
        media.meta = data.get("meta") or {}

        with transactional():
            db.session.add(media)
            db.session.flush()
            self._log("create", media, {"url": url})

        self._notify(media, "created")
        return media

    def prepare(self, data: Dict[str, Any], entity=None) -> Dict[str, Any]:
        # Folder changes go through move_to_folder so the stored file follows
        data.pop("folder", None)
        return data

    def before_delete(self, entity: Media) -> None:
        if entity.path and entity.disk != EXTERNAL_DISK:
            storage.delete_file(entity.path)

    def get_folders(self) -> List[str]:
        rows = (
            db.session.query(Media.folder)
            .filter(Media.tenant_id == self.tenant_id)
            .distinct()
            .order_by(Media.folder.asc())
            .all()
        )
        return [folder for (folder,) in rows]

    def move_to_folder(self, media: Media, folder: str) -> Media:
        folder = storage.clean_folder(folder)
        with transactional():
            if media.path and media.disk != EXTERNAL_DISK:
                media.path, media.url = storage.move_file(media.path, tenant_id=self.tenant_id, folder=folder)
            media.folder = folder
            self._log("move", media, {"folder": folder})

        self._notify(media, "updated")
        return media
