from flask import request, jsonify
from flask_jwt_extended import jwt_required
from tenant_cms.application.media import MediaService, MEDIA_PER_PAGE
from tenant_cms.domain.invariants.exceptions import ValidationError
from tenant_cms.normalizers.content import normalize_media
from tenant_cms.normalizers.pagination import normalize_pagination
from tenant_cms.utils.decorators import tenant_required, roles_required
from .common import tenant_service, json_body, id_list, list_filters
from . import v1_bp

MEDIA_ROLES = ("admin", "editor")


@v1_bp.route("/media", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*MEDIA_ROLES)
def list_media():
    pagination = tenant_service(MediaService).get_paginated(
        per_page=request.args.get("per_page", MEDIA_PER_PAGE),
        filters=list_filters("type", "folder"),
        page=request.args.get("page", 1, type=int),
    )
    return jsonify(normalize_pagination(pagination, normalize_media))


@v1_bp.route("/media", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*MEDIA_ROLES)
def upload_media():
    media = tenant_service(MediaService)

    # Multipart upload, or a JSON body registering an external URL
    if "file" in request.files:
        item = media.upload(request.files["file"], request.form.to_dict())
    elif request.is_json and json_body().get("url"):
        data = json_body()
        item = media.create_from_url(data["url"], data)
    else:
        raise ValidationError({"file": "The file field is required."})

    return jsonify(normalize_media(item)), 201


@v1_bp.route("/media/folders", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*MEDIA_ROLES)
def media_folders():
    return jsonify(tenant_service(MediaService).get_folders())


@v1_bp.route("/media/<media_id>", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*MEDIA_ROLES)
def get_media(media_id):
    return jsonify(normalize_media(tenant_service(MediaService).get_or_fail(media_id)))


@v1_bp.route("/media/<media_id>", methods=["PUT"])
@jwt_required()
@tenant_required
@roles_required(*MEDIA_ROLES)
def update_media(media_id):
    media = tenant_service(MediaService)
    data = json_body()
    item = media.get_or_fail(media_id)
    if data.get("folder") and data["folder"] != item.folder:
        item = media.move_to_folder(item, data["folder"])
    return jsonify(normalize_media(media.update(item, data)))


@v1_bp.route("/media/<media_id>/move", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*MEDIA_ROLES)
def move_media(media_id):
    folder = json_body().get("folder")
    if not folder:
        raise ValidationError({"folder": "The folder field is required."})
    media = tenant_service(MediaService)
    return jsonify(normalize_media(media.move_to_folder(media.get_or_fail(media_id), folder)))


@v1_bp.route("/media/<media_id>", methods=["DELETE"])
@jwt_required()
@tenant_required
@roles_required(*MEDIA_ROLES)
def delete_media(media_id):
    media = tenant_service(MediaService)
    media.delete(media.get_or_fail(media_id))
    return jsonify({"message": "Media deleted successfully"}), 200


@v1_bp.route("/media/bulk-delete", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*MEDIA_ROLES)
def bulk_delete_media():
    deleted = tenant_service(MediaService).bulk_delete(id_list(json_body()))
    return jsonify({"deleted": deleted})
