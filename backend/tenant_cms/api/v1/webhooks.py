from flask import g, jsonify
from flask_jwt_extended import jwt_required
from tenant_cms.application.webhooks import WebhookService
from tenant_cms.normalizers.content import normalize_webhook
from tenant_cms.utils.decorators import tenant_required, roles_required
from .common import json_body
from . import v1_bp


def _webhooks():
    return WebhookService(g.current_tenant.id)


@v1_bp.route("/webhooks", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required("admin")
def list_webhooks():
    return jsonify([normalize_webhook(w) for w in _webhooks().list()])


@v1_bp.route("/webhooks", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required("admin")
def register_webhook():
    webhook = _webhooks().register(json_body())
    return jsonify(normalize_webhook(webhook, include_secret=True)), 201


@v1_bp.route("/webhooks/<webhook_id>", methods=["PUT"])
@jwt_required()
@tenant_required
@roles_required("admin")
def update_webhook(webhook_id):
    webhooks = _webhooks()
    return jsonify(normalize_webhook(webhooks.update(webhooks.get_or_fail(webhook_id), json_body())))


@v1_bp.route("/webhooks/<webhook_id>", methods=["DELETE"])
@jwt_required()
@tenant_required
@roles_required("admin")
def delete_webhook(webhook_id):
    webhooks = _webhooks()
    webhooks.delete(webhooks.get_or_fail(webhook_id))
    return jsonify({"message": "Webhook deleted successfully"}), 200


@v1_bp.route("/webhooks/<webhook_id>/test", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required("admin")
def test_webhook(webhook_id):
    webhooks = _webhooks()
    webhook = webhooks.get_or_fail(webhook_id)
    status = webhooks.send_test(webhook)
    return jsonify({"status_code": status, "webhook": normalize_webhook(webhook)})
