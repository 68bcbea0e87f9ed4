import logging

from ..models import Property, PropertyNotification, db
from ..models.notification import LANDLORD_RESPONSES
from ..utils.email_sms import send_availability_check_email

logger = logging.getLogger(__name__)


def send_availability_checks():
    """Ask the landlord of every available listing whether it is still available."""
    properties = Property.query.filter_by(status="available").all()
    sent = 0
    skipped = 0
    for property_obj in properties:
        landlord = property_obj.landlord
        if landlord is None or not landlord.email:
            skipped += 1
            continue
        notification = PropertyNotification(
            property_id=property_obj.id,
            landlord_id=landlord.id,
            email_sent_to=landlord.email,
        )
        db.session.add(notification)
        db.session.flush()
        if send_availability_check_email(notification):
            sent += 1
        else:
            logger.warning("Availability check for property %s was not delivered", property_obj.id)
    db.session.commit()
    logger.info("Availability checks: %s sent, %s skipped of %s listings", sent, skipped, len(properties))
    return {"checked": len(properties), "sent": sent, "skipped": skipped}


def respond_to_notification(token, response):
    """
    Record a landlord's answer. Returns the notification, None for an
    unknown token. Raises ValueError for an invalid or repeated answer.
    """
    if response not in LANDLORD_RESPONSES:
        raise ValueError(f"response must be one of: {', '.join(LANDLORD_RESPONSES)}")
    notification = PropertyNotification.query.filter_by(response_token=token).first()
    if notification is None:
        return None
    if notification.is_answered():
        raise ValueError("This notification has already been answered")
    notification.record_response(response)
    db.session.commit()
    return notification
