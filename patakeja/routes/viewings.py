from datetime import date, datetime

from flask import Blueprint, current_app, jsonify, request

from ..errors import Forbidden, ValidationError
from ..models import Property, ViewingRequest, db
from ..security import current_user, is_admin, login_required
from ..utils.email_sms import send_viewing_request_email, send_viewing_status_email

bp = Blueprint("viewings", __name__)


def _parse_date(value):
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError("preferred_date must be YYYY-MM-DD")


def _parse_time(value):
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError):
        raise ValidationError("preferred_time must be HH:MM")


@bp.post("/properties/<int:property_id>/viewings")
@login_required
def schedule_viewing(property_id):
    user = current_user()
    property_obj = db.get_or_404(Property, property_id)
    data = request.get_json(silent=True) or {}

    if not data.get("preferred_date") or not data.get("preferred_time"):
        raise ValidationError("Please select your preferred date and time.")
    preferred_date = _parse_date(data["preferred_date"])
    preferred_time = _parse_time(data["preferred_time"])
    if preferred_date < date.today():
        raise ValidationError("preferred_date cannot be in the past")
    if property_obj.user_id == user.id:
        raise ValidationError("You cannot schedule a viewing of your own listing")
    if property_obj.status != "available":
        raise ValidationError("This property is not available for viewing")

    viewing = ViewingRequest(
        property_id=property_obj.id,
        tenant_id=user.id,
        landlord_id=property_obj.user_id,
        preferred_date=preferred_date,
        preferred_time=preferred_time,
        phone=str(data.get("phone") or user.phone or "").strip() or None,
        notes=str(data.get("notes") or "").strip() or None,
    )
    db.session.add(viewing)
    db.session.commit()
    current_app.logger.info("Viewing %s requested for property %s by %s", viewing.id, property_obj.id, user.id)

    send_viewing_request_email(viewing)
    return jsonify({
        "viewing": viewing.serialize(),
        "message": "Your viewing request has been sent. The landlord will confirm your appointment soon.",
    }), 201


@bp.get("/viewings")
@login_required
def list_viewings():
    user = current_user()
    as_role = request.args.get("as")
    query = ViewingRequest.query

    if as_role == "landlord":
        query = query.filter(ViewingRequest.landlord_id == user.id)
    elif as_role == "tenant" or not is_admin(user):
        query = query.filter(ViewingRequest.tenant_id == user.id)

    status = request.args.get("status")
    if status:
        query = query.filter(ViewingRequest.status == status)

    viewings = query.order_by(ViewingRequest.preferred_date, ViewingRequest.preferred_time).all()
    return jsonify({"viewings": [v.serialize() for v in viewings], "count": len(viewings)}), 200


def _transition(viewing_id, new_status, actor):
    user = current_user()
    viewing = db.get_or_404(ViewingRequest, viewing_id)
    if actor == "landlord":
        if viewing.landlord_id != user.id and not is_admin(user):
            raise Forbidden("Only the landlord can answer this request")
    elif viewing.tenant_id != user.id:
        raise Forbidden("Only the requester can cancel this request")

    if viewing.status != "pending":
        raise ValidationError(f"Viewing request is already {viewing.status}")

    viewing.status = new_status
    db.session.commit()
    return viewing


@bp.post("/viewings/<int:viewing_id>/confirm")
@login_required
def confirm_viewing(viewing_id):
    viewing = _transition(viewing_id, "confirmed", actor="landlord")
    send_viewing_status_email(viewing)
    return jsonify(viewing.serialize()), 200


@bp.post("/viewings/<int:viewing_id>/decline")
@login_required
def decline_viewing(viewing_id):
    viewing = _transition(viewing_id, "declined", actor="landlord")
    send_viewing_status_email(viewing)
    return jsonify(viewing.serialize()), 200


@bp.post("/viewings/<int:viewing_id>/cancel")
@login_required
def cancel_viewing(viewing_id):
    viewing = _transition(viewing_id, "cancelled", actor="tenant")
    return jsonify(viewing.serialize()), 200
