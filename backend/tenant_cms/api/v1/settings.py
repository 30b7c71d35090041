from flask import request, jsonify
from flask_jwt_extended import jwt_required
from tenant_cms.application.settings import SettingService
from tenant_cms.domain.invariants.exceptions import NotFoundError, ValidationError
from tenant_cms.normalizers.content import normalize_setting
from tenant_cms.utils.decorators import tenant_required, roles_required
from .common import tenant_service, json_body
from . import v1_bp


@v1_bp.route("/settings", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required("admin")
def list_settings():
    settings = tenant_service(SettingService)
    if request.args.get("format") == "flat":
        return jsonify(settings.get_all_as_dict())
    return jsonify({
        group: [normalize_setting(s) for s in items]
        for group, items in settings.get_grouped().items()
    })


@v1_bp.route("/settings/groups", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required("admin")
def setting_groups():
    return jsonify(SettingService.get_groups())


@v1_bp.route("/settings", methods=["PUT"])
@jwt_required()
@tenant_required
@roles_required("admin")
def bulk_update_settings():
    items = json_body().get("settings")
    if not isinstance(items, list):
        raise ValidationError({"settings": "The settings field must be a list."})
    updated = tenant_service(SettingService).bulk_update(items)
    return jsonify({"updated": updated})


@v1_bp.route("/settings/<key>", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required("admin")
def get_setting(key):
    setting = tenant_service(SettingService).get_by_key(key)
    if setting is None:
        raise NotFoundError("Setting not found")
    return jsonify(normalize_setting(setting))


@v1_bp.route("/settings/<key>", methods=["PUT"])
@jwt_required()
@tenant_required
@roles_required("admin")
def set_setting(key):
    data = json_body()
    setting = tenant_service(SettingService).set(key, data.get("value"), data.get("group"))
    return jsonify(normalize_setting(setting))


@v1_bp.route("/settings/<key>", methods=["DELETE"])
@jwt_required()
@tenant_required
@roles_required("admin")
def delete_setting(key):
    if not tenant_service(SettingService).delete_key(key):
        raise NotFoundError("Setting not found")
    return jsonify({"message": "Setting deleted successfully"}), 200


@v1_bp.route("/settings/initialize", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required("admin")
def initialize_settings():
    overwrite = bool(json_body().get("overwrite", False))
    written = tenant_service(SettingService).initialize_defaults(overwrite=overwrite)
    return jsonify({"written": written})


@v1_bp.route("/settings/reset", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required("admin")
def reset_settings():
    return jsonify({"written": tenant_service(SettingService).reset_to_defaults()})
