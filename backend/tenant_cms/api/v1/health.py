from flask import jsonify
from tenant_cms.utils.decorators import tenant_optional
from . import v1_bp


@v1_bp.route('/health', methods=['GET'])
@tenant_optional
def health_check():
    return jsonify({
        "status": "ok",
        "service": "tenant-cms"
    })
