import hmac

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func, or_

from ..models import ContactPayment, Property, User, db
from ..models.payment import COMPLETED, FAILED, PENDING
from ..security import current_user, is_admin, login_required
from ..services.mpesa import MpesaError
from ..services.payments import (
    contact_fee,
    handle_stk_callback,
    has_paid_for_contact_access,
    initiate_contact_payment,
    send_expiry_reminders,
)

bp = Blueprint("payments", __name__)


def _fail(message, status=400):
    return jsonify({"success": False, "error": message}), status


# ============= CONTACT ACCESS PAYMENTS =============

@bp.post("/payments/contact")
@login_required
def initiate_payment():
    """Start an M-Pesa STK push to unlock a landlord's contact"""
    user = current_user()
    data = request.get_json(silent=True) or {}
    property_id = data.get("property_id") or data.get("propertyId")
    phone_number = data.get("phone_number") or data.get("phoneNumber")

    if not property_id or not phone_number:
        return _fail("Missing required fields: property_id, phone_number")

    try:
        property_obj = db.session.get(Property, int(property_id))
    except (TypeError, ValueError):
        return _fail("property_id must be an integer")
    if property_obj is None:
        return _fail("Property not found", 404)
    if property_obj.user_id == user.id:
        return _fail("You already have access to your own listing")

    try:
        result = initiate_contact_payment(user, property_obj, phone_number)
    except ValueError as e:
        return _fail(str(e))
    except MpesaError as e:
        current_app.logger.error("Payment error for user %s: %s", user.id, e)
        return _fail(str(e), 502)

    return jsonify(result), 200


@bp.get("/payments/contact/quote/<int:property_id>")
@login_required
def quote_payment(property_id):
    """Amount the caller would be charged to unlock this property's contact"""
    user = current_user()
    property_obj = db.get_or_404(Property, property_id)
    return jsonify({"property_id": property_obj.id, "amount": contact_fee(property_obj, user)}), 200


@bp.post("/payments/mpesa/callback")
def mpesa_callback():
    """M-Pesa STK callback webhook"""
    expected = current_app.config.get("MPESA_CALLBACK_TOKEN")
    if expected and not hmac.compare_digest(request.args.get("token", "").encode(), expected.encode()):
        current_app.logger.warning("M-Pesa callback rejected: bad token from %s", request.remote_addr)
        return jsonify({"error": "forbidden"}), 403

    payload = request.get_json(silent=True)
    current_app.logger.info("M-Pesa callback received: %s", payload)
    if payload is None:
        return jsonify({"error": "bad_request", "message": "Invalid JSON"}), 400

    try:
        payment = handle_stk_callback(payload)
    except (KeyError, TypeError) as e:
        current_app.logger.error("Malformed M-Pesa callback: %s", e)
        return jsonify({"error": "bad_request", "message": "Malformed callback"}), 400

    if payment is None:
        return jsonify({"error": "not_found", "message": "Payment record not found"}), 404

    return jsonify({"status": "success", "payment_status": payment.payment_status}), 200


@bp.get("/payments/<int:payment_id>")
@login_required
def get_payment(payment_id):
    """Payment status, polled by the payer while the STK prompt is open"""
    user = current_user()
    payment = db.get_or_404(ContactPayment, payment_id)
    if payment.user_id != user.id and not user.is_admin():
        return jsonify({"error": "forbidden"}), 403
    return jsonify(payment.serialize()), 200


@bp.get("/payments/access/<int:property_id>")
@login_required
def contact_access(property_id):
    user = current_user()
    db.get_or_404(Property, property_id)
    return jsonify({
        "property_id": property_id,
        "has_access": bool(has_paid_for_contact_access(property_id, user.id)),
    }), 200


# ============= PAYMENT HISTORY =============

@bp.get("/payments/history")
@login_required
def payment_history():
    user = current_user()
    query = ContactPayment.query
    show_all = user.is_admin() and request.args.get("all") in ("1", "true")

    if not show_all:
        query = query.filter(ContactPayment.user_id == user.id)

    status = request.args.get("status")
    if status:
        query = query.filter(ContactPayment.payment_status == status)

    search = (request.args.get("search") or "").strip()
    if search and show_all:
        like = f"%{search.lower()}%"
        query = query.outerjoin(User, User.id == ContactPayment.user_id).outerjoin(
            Property, Property.id == ContactPayment.property_id
        ).filter(or_(
            func.lower(User.email).like(like),
            func.lower(func.coalesce(User.full_name, "")).like(like),
            func.lower(func.coalesce(Property.title, "")).like(like),
            ContactPayment.phone_number.like(like),
            func.lower(func.coalesce(ContactPayment.transaction_id, "")).like(like),
        ))

    payments = query.order_by(ContactPayment.created_at.desc()).all()

    results = []
    for p in payments:
        item = p.serialize()
        item["property_title"] = p.property.title if p.property else None
        item["user_email"] = p.user.email if p.user else None
        item["user_name"] = p.user.full_name if p.user else None
        results.append(item)

    total_revenue = sum(p.amount for p in payments if p.payment_status == COMPLETED) / 100
    return jsonify({
        "payments": results,
        "count": len(results),
        "summary": {
            "total_revenue": total_revenue,
            "completed": sum(1 for p in payments if p.payment_status == COMPLETED),
            "pending": sum(1 for p in payments if p.payment_status == PENDING),
            "failed": sum(1 for p in payments if p.payment_status == FAILED),
        },
    }), 200


# ============= SCHEDULED JOBS =============

@bp.post("/payments/reminders")
def expiry_reminders():
    """Send contact-access expiry reminders (cron or admin)"""
    secret = current_app.config.get("CRON_SECRET")
    if not (secret and hmac.compare_digest(request.headers.get("X-Cron-Secret", "").encode(), secret.encode())):
        if not is_admin():
            return jsonify({"error": "forbidden"}), 403

    try:
        result = send_expiry_reminders()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error in send-expiry-reminders: %s", e)
        return jsonify({"success": False, "error": str(e)}), 500
    return jsonify(result), 200
