"""
Contact-payment lifecycle.

A payer asks for a landlord's contact, an STK push is sent, the payment
sits in ``pending`` until the M-Pesa callback (or the reconciliation job)
settles it. A completed payment unlocks the contact for
``CONTACT_ACCESS_DAYS`` days; reminders go out before the window closes.
"""
import logging
import math
from datetime import datetime, timedelta

from flask import current_app, url_for
from sqlalchemy import or_

from ..models import ContactPayment, Property, User, db
from ..models.payment import CANCELLED, COMPLETED, FAILED, PENDING
from ..security import is_admin
from ..utils.email_sms import send_expiry_reminder_email
from .mpesa import (
    RESULT_CANCELLED_BY_USER,
    RESULT_SUCCESS,
    MpesaClient,
    MpesaError,
    MpesaRequestError,
    callback_items,
    normalize_phone,
)

logger = logging.getLogger(__name__)


def renewal_fee(rent_amount, rate=None, minimum=None):
    """6 % of the monthly rent rounded up, never below the minimum (KES)."""
    if rate is None:
        rate = current_app.config["RENEWAL_FEE_RATE"]
    if minimum is None:
        minimum = current_app.config["RENEWAL_FEE_MIN"]
    return max(math.ceil(float(rent_amount) * rate), minimum)


def contact_fee(property_obj, user):
    """First unlock costs CONTACT_FEE; a returning payer pays the renewal fee."""
    previous = ContactPayment.query.filter_by(
        user_id=user.id, property_id=property_obj.id, payment_status=COMPLETED
    ).first()
    if previous is not None:
        return renewal_fee(property_obj.rent_amount)
    return current_app.config["CONTACT_FEE"]


def has_paid_for_contact_access(property_id, user_id, now=None):
    now = now or datetime.utcnow()
    return db.session.query(
        ContactPayment.query.filter(
            ContactPayment.property_id == property_id,
            ContactPayment.user_id == user_id,
            ContactPayment.payment_status == COMPLETED,
            or_(ContactPayment.expires_at.is_(None), ContactPayment.expires_at > now),
        ).exists()
    ).scalar()


def can_see_contact(property_obj, user):
    if user is None:
        return False
    if user.id == property_obj.user_id or is_admin(user):
        return True
    return has_paid_for_contact_access(property_obj.id, user.id)


def _callback_url():
    url = current_app.config.get("MPESA_CALLBACK_URL") or url_for("payments.mpesa_callback", _external=True)
    token = current_app.config.get("MPESA_CALLBACK_TOKEN")
    if token:
        sep = "&" if "?" in url else "?"
        url = f"{url}{sep}token={token}"
    return url


def initiate_contact_payment(user, property_obj, phone_number, client=None):
    """
    Start an STK push for contact access.

    Raises ValueError for a bad phone number and MpesaError when the
    provider refuses; the pending record is marked failed in that case.
    """
    formatted_phone = normalize_phone(phone_number)
    amount = contact_fee(property_obj, user)

    logger.info("Processing M-Pesa payment for user: %s property: %s", user.id, property_obj.id)
    client = client or MpesaClient.from_config(current_app.config)
    token = client.get_access_token()

    payment = ContactPayment(
        user_id=user.id,
        property_id=property_obj.id,
        amount=amount * 100,
        phone_number=formatted_phone,
        payment_status=PENDING,
    )
    db.session.add(payment)
    db.session.commit()

    try:
        data = client.stk_push(
            phone_number=formatted_phone,
            amount=amount,
            account_reference=payment.id,
            callback_url=_callback_url(),
            token=token,
        )
    except MpesaError as e:
        payment.mark_failed(str(e))
        db.session.commit()
        raise

    if str(data.get("ResponseCode")) == "0":
        payment.checkout_request_id = data.get("CheckoutRequestID")
        payment.merchant_request_id = data.get("MerchantRequestID")
        db.session.commit()
        return {
            "success": True,
            "message": data.get("CustomerMessage") or "Please check your phone for the M-Pesa prompt.",
            "checkoutRequestId": payment.checkout_request_id,
            "paymentId": payment.id,
            "amount": amount,
        }

    reason = data.get("ResponseDescription") or data.get("errorMessage") or "STK Push failed"
    payment.mark_failed(reason)
    db.session.commit()
    raise MpesaRequestError(reason)


def apply_stk_result(payment, result_code, result_desc=None, receipt=None, now=None):
    """
    Settle a pending payment from an STK result code.

    Returns False when the payment had already been settled.
    """
    if payment.is_terminal:
        logger.info("Payment %s already %s; ignoring result %s", payment.id, payment.payment_status, result_code)
        return False

    try:
        code = int(result_code)
    except (TypeError, ValueError):
        code = -1

    if code == RESULT_SUCCESS:
        payment.mark_completed(
            transaction_id=receipt,
            access_days=current_app.config["CONTACT_ACCESS_DAYS"],
            now=now,
        )
        payment.result_description = result_desc
        logger.info("Payment completed successfully for checkout: %s", payment.checkout_request_id)
    elif code == RESULT_CANCELLED_BY_USER:
        payment.mark_failed(result_desc, status=CANCELLED)
        logger.info("Payment cancelled for checkout: %s", payment.checkout_request_id)
    else:
        payment.mark_failed(result_desc, status=FAILED)
        logger.info("Payment failed for checkout: %s Reason: %s", payment.checkout_request_id, result_desc)
    return True


def handle_stk_callback(payload):
    """
    Apply an M-Pesa STK callback body. Returns the payment, or None when
    the checkout id is unknown. Raises KeyError/TypeError for a malformed body.
    """
    stk_callback = payload["Body"]["stkCallback"]
    checkout_request_id = stk_callback["CheckoutRequestID"]

    payment = ContactPayment.query.filter_by(checkout_request_id=checkout_request_id).first()
    if payment is None:
        logger.error("Payment record not found for checkout: %s", checkout_request_id)
        return None

    items = callback_items(stk_callback)
    apply_stk_result(
        payment,
        stk_callback.get("ResultCode"),
        stk_callback.get("ResultDesc"),
        receipt=items.get("MpesaReceiptNumber"),
    )
    db.session.commit()
    return payment


def reconcile_pending_payments(client=None, now=None):
    """Re-check pending payments older than the pending timeout with the STK query API."""
    now = now or datetime.utcnow()
    cutoff = now - timedelta(minutes=current_app.config["PAYMENT_PENDING_TIMEOUT_MINUTES"])
    stale = ContactPayment.query.filter(
        ContactPayment.payment_status == PENDING,
        ContactPayment.created_at <= cutoff,
    ).all()

    summary = {"checked": len(stale), "completed": 0, "failed": 0, "errors": []}
    if not stale:
        return summary

    client = client or MpesaClient.from_config(current_app.config)
    for payment in stale:
        if not payment.checkout_request_id:
            payment.mark_failed("STK push was never accepted")
            summary["failed"] += 1
            continue
        try:
            data = client.stk_query(payment.checkout_request_id)
        except MpesaError as e:
            logger.error("Status query failed for payment %s: %s", payment.id, e)
            summary["errors"].append(f"Payment {payment.id}: {e}")
            continue

        if data.get("ResultCode") is not None:
            apply_stk_result(payment, data.get("ResultCode"), data.get("ResultDesc"), now=now)
        else:
            payment.mark_failed(data.get("errorMessage") or "Payment verification timed out")

        if payment.payment_status == COMPLETED:
            summary["completed"] += 1
        else:
            summary["failed"] += 1

    db.session.commit()
    logger.info("Reconciled %s pending payments: %s", summary["checked"], summary)
    return summary


def send_expiry_reminders(now=None):
    """Email payers whose contact access expires REMINDER_DAYS_BEFORE days from now."""
    now = now or datetime.utcnow()
    target = now + timedelta(days=current_app.config["REMINDER_DAYS_BEFORE"])
    day_start = datetime(target.year, target.month, target.day)
    day_end = day_start + timedelta(days=1)
    logger.info("Checking for payments expiring between %s and %s", day_start.isoformat(), day_end.isoformat())

    expiring = ContactPayment.query.filter(
        ContactPayment.payment_status == COMPLETED,
        ContactPayment.expires_at >= day_start,
        ContactPayment.expires_at < day_end,
        ContactPayment.reminder_sent_at.is_(None),
    ).all()
    logger.info("Found %s expiring payments", len(expiring))

    if not expiring:
        return {"success": True, "message": "No expiring payments found", "remindersSent": 0, "totalExpiring": 0}

    reminders_sent = 0
    errors = []
    for payment in expiring:
        user = db.session.get(User, payment.user_id)
        if user is None or not user.email:
            logger.info("No email found for user %s, skipping", payment.user_id)
            continue
        property_obj = db.session.get(Property, payment.property_id) if payment.property_id else None
        if property_obj is None:
            logger.info("Property not found for payment %s, skipping", payment.id)
            continue

        fee = renewal_fee(property_obj.rent_amount)
        logger.info("Sending reminder to %s for property: %s", user.email, property_obj.title)
        if send_expiry_reminder_email(user, property_obj, payment, fee):
            payment.reminder_sent_at = now
            reminders_sent += 1
        else:
            errors.append(f"Payment {payment.id}: email not sent")

    db.session.commit()
    logger.info("Finished sending reminders. Sent: %s, Errors: %s", reminders_sent, len(errors))

    result = {"success": True, "remindersSent": reminders_sent, "totalExpiring": len(expiring)}
    if errors:
        result["errors"] = errors
    return result
