import logging

from flask import current_app
from flask_mail import Message

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body: str, html: str = None):
    """
    Send email using Flask-Mail configuration.
    Falls back to logging if mail is not configured.
    """
    mail = current_app.extensions.get("mail")
    if mail is None:
        logger.info("[EMAIL - NOT CONFIGURED] To: %s | Subject: %s | Body: %s", to_email, subject, body[:120])
        return False

    msg = Message(
        subject=subject,
        recipients=[to_email],
        body=body,
        html=html,
        sender=current_app.config.get("MAIL_DEFAULT_SENDER"),
    )
    try:
        mail.send(msg)
    except Exception as e:
        # SMTP failures surface as many different exception types
        logger.error("[EMAIL - ERROR] Failed to send to %s: %s", to_email, e)
        return False
    logger.info("[EMAIL - SENT] To: %s | Subject: %s", to_email, subject)
    return True


def _frontend_url(path):
    base = current_app.config.get("FRONTEND_BASE_URL", "").rstrip("/")
    return f"{base}{path}"


def format_kes(amount):
    return f"KES {float(amount):,.0f}"


def send_expiry_reminder_email(user, property_obj, payment, renewal_fee):
    expiry = payment.expires_at.strftime("%A, %d %B %Y")
    renew_link = _frontend_url(f"/property/{property_obj.id}")
    name = user.full_name or "there"
    subject = f"Your contact access expires in {current_app.config['REMINDER_DAYS_BEFORE']} days - {property_obj.title}"

    body = (
        f"Hi {name},\n\n"
        f"Your access to the landlord's contact information for {property_obj.title} "
        f"({property_obj.location}, {format_kes(property_obj.rent_amount)}/month) expires on {expiry}.\n\n"
        f"Renew your access for {format_kes(renewal_fee)}: {renew_link}\n\n"
        "If you no longer need access to this property, you can safely ignore this email.\n\n"
        "Best regards,\nThe Pata Keja Team"
    )
    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1 style="color: #333; font-size: 24px;">Contact Access Expiring Soon</h1>
      <p>Hi {name},</p>
      <p>Your access to the landlord's contact information for the following property will expire on
         <strong>{expiry}</strong>:</p>
      <div style="background: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <h2 style="font-size: 18px; margin: 0 0 10px 0;">{property_obj.title}</h2>
        <p>{property_obj.location}</p>
        <p>{format_kes(property_obj.rent_amount)} /month</p>
      </div>
      <p>To continue accessing the landlord's contact details, you can renew your access for just
         <strong>{format_kes(renewal_fee)}</strong>.</p>
      <p style="text-align: center;"><a href="{renew_link}">Renew Access Now</a></p>
      <p style="color: #999; font-size: 14px;">If you no longer need access to this property, you can safely ignore this email.</p>
      <p style="color: #999; font-size: 14px;">Best regards,<br>The Pata Keja Team</p>
    </div>
    """
    return send_email(user.email, subject, body, html=html)


def send_viewing_request_email(viewing):
    landlord = viewing.landlord
    subject = f"New viewing request - {viewing.property.title}"
    body = (
        f"Hi {landlord.full_name or 'there'},\n\n"
        f"{viewing.tenant.display_name} would like to view {viewing.property.title} on "
        f"{viewing.preferred_date.isoformat()} at {viewing.preferred_time.strftime('%H:%M')}.\n"
        f"Phone: {viewing.phone or 'not provided'}\n"
        f"Notes: {viewing.notes or '-'}\n\n"
        f"Confirm or decline the request from your dashboard: {_frontend_url('/landlords')}\n"
    )
    return send_email(landlord.email, subject, body)


def send_viewing_status_email(viewing):
    tenant = viewing.tenant
    subject = f"Viewing {viewing.status} - {viewing.property.title}"
    body = (
        f"Hi {tenant.full_name or 'there'},\n\n"
        f"Your viewing request for {viewing.property.title} on {viewing.preferred_date.isoformat()} "
        f"at {viewing.preferred_time.strftime('%H:%M')} has been {viewing.status} by the landlord.\n"
    )
    return send_email(tenant.email, subject, body)


def send_availability_check_email(notification):
    property_obj = notification.property
    token = notification.response_token
    links = {
        answer: _frontend_url(f"/property-response/{token}?response={answer}")
        for answer in ("available", "unavailable", "sold")
    }
    subject = f"Is {property_obj.title} still available?"
    body = (
        "Hello,\n\n"
        f"Please let us know whether your listing {property_obj.title} ({property_obj.location}) "
        "is still available:\n\n"
        f"Still available: {links['available']}\n"
        f"No longer available: {links['unavailable']}\n"
        f"Sold / let: {links['sold']}\n\n"
        "The Pata Keja Team"
    )
    return send_email(notification.email_sent_to, subject, body)
