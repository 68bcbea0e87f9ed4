from flask import Blueprint, jsonify, request

from ..models import PropertyNotification
from ..security import current_user, login_required
from ..services.notifications import respond_to_notification

bp = Blueprint("notifications", __name__)


@bp.route("/notifications/respond/<token>", methods=["GET", "POST"])
def respond(token):
    """Landlord answer to an availability check, reached from the emailed link"""
    data = request.get_json(silent=True) or {}
    response = request.args.get("response") or data.get("response")
    try:
        notification = respond_to_notification(token, response)
    except ValueError as e:
        return jsonify({"error": "validation_error", "message": str(e)}), 400
    if notification is None:
        return jsonify({"error": "not_found", "message": "Unknown or expired link"}), 404
    return jsonify({
        "message": "Thank you, the listing has been updated.",
        "notification": notification.serialize(),
        "property_status": notification.property.status,
    }), 200


@bp.get("/notifications")
@login_required
def list_notifications():
    user = current_user()
    query = PropertyNotification.query
    if not user.is_admin():
        query = query.filter(PropertyNotification.landlord_id == user.id)
    notifications = query.order_by(PropertyNotification.sent_at.desc()).all()
    return jsonify({"notifications": [n.serialize() for n in notifications]}), 200
