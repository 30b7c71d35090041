# tenant_cms/api/v1/contact.py
"""
Contact form and newsletter intake (public) and the submissions inbox
(admin/editor).
"""
from flask import jsonify
from flask_jwt_extended import jwt_required
from tenant_cms.application.contact_submissions import ContactSubmissionService
from tenant_cms.normalizers.content import normalize_contact_submission
from tenant_cms.utils.decorators import tenant_required, roles_required, feature_enabled
from .common import tenant_service, public_service, json_body, paginated
from . import v1_bp

INBOX_ROLES = ("admin", "editor")


@v1_bp.route("/public/contact", methods=["POST"])
def submit_contact_form():
    submission = public_service(ContactSubmissionService).submit(json_body())
    return jsonify({
        "message": "Your message has been sent successfully. We will get back to you soon!",
        "id": submission.id,
    }), 201


@v1_bp.route("/public/newsletter", methods=["POST"])
def subscribe_newsletter():
    data = json_body()
    _, created = public_service(ContactSubmissionService).subscribe(data.get("email"), data.get("name"))
    if not created:
        return jsonify({"message": "You are already subscribed to our newsletter!"}), 200
    return jsonify({"message": "Thank you for subscribing to our newsletter!"}), 201


@v1_bp.route("/contact-submissions", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*INBOX_ROLES)
@feature_enabled("cms")
def list_contact_submissions():
    submissions = tenant_service(ContactSubmissionService)
    return jsonify(paginated(submissions, normalize_contact_submission, "status", "source"))


@v1_bp.route("/contact-submissions/unread-count", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*INBOX_ROLES)
@feature_enabled("cms")
def contact_submissions_unread_count():
    return jsonify({"unread_count": tenant_service(ContactSubmissionService).unread_count()})


@v1_bp.route("/contact-submissions/<submission_id>", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*INBOX_ROLES)
@feature_enabled("cms")
def get_contact_submission(submission_id):
    submissions = tenant_service(ContactSubmissionService)
    # Opening a new submission marks it read
    submission = submissions.mark_read(submissions.get_or_fail(submission_id))
    return jsonify(normalize_contact_submission(submission))


@v1_bp.route("/contact-submissions/<submission_id>/status", methods=["PUT"])
@jwt_required()
@tenant_required
@roles_required(*INBOX_ROLES)
@feature_enabled("cms")
def update_contact_submission_status(submission_id):
    submissions = tenant_service(ContactSubmissionService)
    data = json_body()
    submission = submissions.update_status(
        submissions.get_or_fail(submission_id), data.get("status"), data.get("notes")
    )
    return jsonify(normalize_contact_submission(submission))


@v1_bp.route("/contact-submissions/<submission_id>", methods=["DELETE"])
@jwt_required()
@tenant_required
@roles_required(*INBOX_ROLES)
@feature_enabled("cms")
def delete_contact_submission(submission_id):
    submissions = tenant_service(ContactSubmissionService)
    submissions.delete(submissions.get_or_fail(submission_id))
    return jsonify({"message": "Submission deleted successfully"}), 200
