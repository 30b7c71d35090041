import io
import os

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

from tenant_cms.application.media import MediaService
from tenant_cms.application.settings import DEFAULTS, SettingService, settings_cache_key
from tenant_cms.domain.invariants.exceptions import ValidationError
from tenant_cms.extensions import cache, db
from tenant_cms.models import Media, Setting

from conftest import make_tenant


def _png(filename="photo.png", size=(3, 2)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 10, 10)).save(buffer, format="PNG")
    buffer.seek(0)
    return FileStorage(stream=buffer, filename=filename, content_type="image/png")


def _stored_path(app, media):
    return os.path.join(app.config["UPLOAD_FOLDER"], *media.path.split("/"))


# ------------------------
# Settings
# ------------------------

def test_set_and_get(tenant):
    settings = SettingService(tenant.id)
    settings.set("site_name", "Blue Fern")
    settings.set("site_name", "Blue Fern Spa", group="general")
    settings.set("opening", {"mon": "9-5"}, group="contact")

    assert settings.get("site_name") == "Blue Fern Spa"
    assert settings.get("missing", "fallback") == "fallback"
    assert settings.get("opening") == {"mon": "9-5"}
    assert Setting.query.filter_by(tenant_id=tenant.id).count() == 2
    assert [s.key for s in settings.get_by_group("contact")] == ["opening"]

    with pytest.raises(ValidationError):
        settings.set("  ", "x")


def test_settings_are_tenant_scoped(tenant):
    other = make_tenant("Other Co")
    SettingService(tenant.id).set("site_name", "Blue Fern")
    SettingService(other.id).set("site_name", "Other Co")

    assert SettingService(tenant.id).get_all_as_dict() == {"site_name": "Blue Fern"}
    assert SettingService(other.id).get_all_as_dict() == {"site_name": "Other Co"}


def test_writes_invalidate_the_cached_map(tenant):
    settings = SettingService(tenant.id)
    settings.set("site_name", "Blue Fern")
    assert settings.get_all_as_dict() == {"site_name": "Blue Fern"}
    assert cache.get(settings_cache_key(tenant.id)) == {"site_name": "Blue Fern"}

    # a row written behind the service's back is not seen until the next write
    db.session.add(Setting(tenant_id=tenant.id, key="site_tagline", value="Calm", group="general"))
    db.session.commit()
    assert "site_tagline" not in settings.get_all_as_dict()

    settings.bulk_update([{"key": "contact_email", "value": "hi@bluefern.example.com"}])
    assert settings.get_all_as_dict() == {
        "site_name": "Blue Fern",
        "site_tagline": "Calm",
        "contact_email": "hi@bluefern.example.com",
    }

    settings.delete_key("site_tagline")
    assert "site_tagline" not in settings.get_all_as_dict()
    assert settings.delete_key("site_tagline") is False


def test_bulk_update_validates_every_key(tenant):
    settings = SettingService(tenant.id)
    with pytest.raises(ValidationError) as exc:
        settings.bulk_update([{"key": "ok", "value": 1}, {"value": 2}, "nope"])
    assert set(exc.value.errors) == {"settings.1.key", "settings.2.key"}
    assert settings.get("ok") is None


def test_initialize_defaults_keeps_existing_values(tenant):
    settings = SettingService(tenant.id)
    settings.set("site_name", "Blue Fern")

    written = settings.initialize_defaults()
    assert written == len(DEFAULTS) - 1
    assert settings.get("site_name") == "Blue Fern"
    assert settings.get("primary_color") == "#9a8b7a"
    assert settings.initialize_defaults() == 0

    assert settings.initialize_defaults(overwrite=True) == len(DEFAULTS)
    assert settings.get("site_name") == "My Website"


def test_reset_to_defaults_drops_custom_keys(tenant):
    settings = SettingService(tenant.id)
    settings.set("custom_key", "value")
    settings.set("site_name", "Blue Fern")

    assert settings.reset_to_defaults() == len(DEFAULTS)
    values = settings.get_all_as_dict()
    assert "custom_key" not in values
    assert values["site_name"] == "My Website"
    assert set(settings.get_grouped()) == set(SettingService.get_groups())


# ------------------------
# Media
# ------------------------

def test_upload_stores_file_under_tenant_folder(app, tenant):
    media = MediaService(tenant.id).upload(_png(), {"alt_text": "Red", "folder": "gallery"})

    assert media.path.startswith(f"tenants/{tenant.id}/gallery/")
    assert media.path.endswith(".png")
    assert media.url == f"/uploads/{media.path}"
    assert media.original_filename == "photo.png"
    assert media.type == "image"
    assert media.mime_type == "image/png"
    assert media.meta == {"width": 3, "height": 2}
    assert media.alt_text == "Red"
    assert os.path.exists(_stored_path(app, media))


def test_upload_rejects_disallowed_files(tenant):
    bad = FileStorage(stream=io.BytesIO(b"MZ"), filename="setup.exe", content_type="application/octet-stream")
    with pytest.raises(ValidationError) as exc:
        MediaService(tenant.id).upload(bad)
    assert "file" in exc.value.errors
    assert Media.query.count() == 0


def test_create_from_url(tenant):
    media_service = MediaService(tenant.id)
    media = media_service.create_from_url("https://cdn.example.com/images/banner.jpg", {"alt_text": "Banner"})

    assert media.disk == "external"
    assert media.path is None
    assert media.filename == "banner.jpg"
    assert media.type == "image"
    assert media.folder == "external"

    with pytest.raises(ValidationError):
        media_service.create_from_url("ftp://cdn.example.com/file.txt")
    with pytest.raises(ValidationError):
        media_service.create_from_url("not a url")


def test_move_to_folder_moves_the_file(app, tenant):
    media_service = MediaService(tenant.id)
    media = media_service.upload(_png())
    old_path = _stored_path(app, media)

    media_service.move_to_folder(media, "../banners")
    assert media.folder == "banners"
    assert media.path.startswith(f"tenants/{tenant.id}/banners/")
    assert not os.path.exists(old_path)
    assert os.path.exists(_stored_path(app, media))
    assert media_service.get_folders() == ["banners"]


def test_update_ignores_folder(tenant):
    media_service = MediaService(tenant.id)
    media = media_service.upload(_png())
    media_service.update(media, {"caption": "Hello", "folder": "elsewhere"})
    assert media.caption == "Hello"
    assert media.folder == "uploads"


def test_delete_removes_the_file(app, tenant):
    media_service = MediaService(tenant.id)
    media = media_service.upload(_png())
    stored = _stored_path(app, media)

    media_service.delete(media)
    assert not os.path.exists(stored)
    assert Media.query.count() == 0


def test_media_filters(tenant):
    media_service = MediaService(tenant.id)
    media_service.upload(_png("one.png"))
    media_service.create_from_url("https://cdn.example.com/docs/guide.pdf")

    assert [m.type for m in media_service.get_all({"type": "document"})] == ["document"]
    assert [m.original_filename for m in media_service.get_all({"search": "one"})] == ["one.png"]
    assert MediaService(make_tenant("Other Co").id).get_all() == []
