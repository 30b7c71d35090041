import mimetypes
import os
import uuid
from werkzeug.utils import secure_filename
from flask import current_app
from PIL import Image, UnidentifiedImageError

IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'svg', 'ico'}
VIDEO_EXTENSIONS = {'mp4', 'mov', 'avi', 'webm'}
AUDIO_EXTENSIONS = {'mp3', 'wav', 'ogg', 'm4a'}
DOCUMENT_EXTENSIONS = {'pdf', 'doc', 'docx', 'xls', 'xlsx', 'ppt', 'pptx', 'txt', 'csv'}
ALLOWED_EXTENSIONS = IMAGE_EXTENSIONS | VIDEO_EXTENSIONS | AUDIO_EXTENSIONS | DOCUMENT_EXTENSIONS


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def determine_media_type(mime_type, filename=None):
    """Buckets a MIME type (falling back to the extension) into image|video|audio|document."""
    mime_type = mime_type or ""
    for prefix in ("image", "video", "audio"):
        if mime_type.startswith(f"{prefix}/"):
            return prefix

    ext = filename.rsplit('.', 1)[1].lower() if filename and '.' in filename else ""
    if ext in IMAGE_EXTENSIONS:
        return "image"
    if ext in VIDEO_EXTENSIONS:
        return "video"
    if ext in AUDIO_EXTENSIONS:
        return "audio"
    return "document"


def upload_root():
    folder = current_app.config.get('UPLOAD_FOLDER', 'uploads')
    if not os.path.isabs(folder):
        folder = os.path.join(current_app.root_path, folder)
    return folder


def clean_folder(folder):
    parts = [secure_filename(part) for part in (folder or "uploads").split("/")]
    return "/".join(p for p in parts if p) or "uploads"


def public_url(relative_path):
    prefix = current_app.config.get('MEDIA_URL_PREFIX', '/uploads').rstrip('/')
    return f"{prefix}/{relative_path}"


def image_dimensions(file_path):
    try:
        with Image.open(file_path) as img:
            return {"width": img.width, "height": img.height}
    except (UnidentifiedImageError, OSError):
        return {}


def save_file(file, *, tenant_id, folder="uploads"):
    """
    Stores an uploaded werkzeug FileStorage under
    tenants/<tenant_id>/<folder>/<uuid>.<ext> and returns its metadata.
    """
    if not file or not file.filename or not allowed_file(file.filename):
        raise ValueError("File type not allowed")

    filename = secure_filename(file.filename)
    ext = filename.rsplit('.', 1)[1].lower()
    unique_filename = f"{uuid.uuid4().hex}.{ext}"

    folder = clean_folder(folder)
    relative_path = f"tenants/{tenant_id}/{folder}/{unique_filename}"
    file_path = os.path.join(upload_root(), *relative_path.split("/"))
    os.makedirs(os.path.dirname(file_path), exist_ok=True)

    file.save(file_path)

    mime_type = file.mimetype or mimetypes.guess_type(filename)[0] or "application/octet-stream"
    media_type = determine_media_type(mime_type, filename)

    return {
        "filename": unique_filename,
        "original_filename": file.filename,
        "path": relative_path,
        "url": public_url(relative_path),
        "mime_type": mime_type,
        "size": os.path.getsize(file_path),
        "type": media_type,
        "folder": folder,
        "meta": image_dimensions(file_path) if media_type == "image" else {},
    }


def move_file(relative_path, *, tenant_id, folder):
    """Moves a stored file into another tenant folder; returns (new_path, new_url)."""
    folder = clean_folder(folder)
    filename = relative_path.rsplit("/", 1)[-1]
    new_relative = f"tenants/{tenant_id}/{folder}/{filename}"

    source = os.path.join(upload_root(), *relative_path.split("/"))
    target = os.path.join(upload_root(), *new_relative.split("/"))
    if os.path.exists(source):
        os.makedirs(os.path.dirname(target), exist_ok=True)
        os.replace(source, target)

    return new_relative, public_url(new_relative)


def delete_file(relative_path):
    """
    Deletes a stored file given its storage-relative path.
    """
    if not relative_path:
        return False

    file_path = os.path.join(upload_root(), *relative_path.lstrip('/').split('/'))

    if os.path.exists(file_path):
        try:
            os.remove(file_path)
            return True
        except OSError as e:
            current_app.logger.error(f"Failed to delete file {file_path}: {e}")
            return False
    return False
