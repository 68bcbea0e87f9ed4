import uuid
from . import db
from datetime import datetime

LANDLORD_RESPONSES = ("available", "unavailable", "sold")


class PropertyNotification(db.Model):
    __tablename__ = "property_notifications"

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    landlord_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    notification_type = db.Column(db.String(50), nullable=False, default="availability_check")
    sent_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    email_sent_to = db.Column(db.String(255), nullable=False)
    response_token = db.Column(db.String(36), default=lambda: str(uuid.uuid4()), unique=True, nullable=False, index=True)
    landlord_response = db.Column(db.String(20), nullable=True)
    responded_at = db.Column(db.DateTime, nullable=True)

    def is_answered(self):
        return self.landlord_response is not None

    def record_response(self, response, now=None):
        """Store the landlord's answer and carry it over to the listing status"""
        self.landlord_response = response
        self.responded_at = now or datetime.utcnow()
        if self.property is not None:
            self.property.status = response

    def serialize(self):
        return {
            "id": self.id,
            "property_id": self.property_id,
            "landlord_id": self.landlord_id,
            "notification_type": self.notification_type,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "email_sent_to": self.email_sent_to,
            "landlord_response": self.landlord_response,
            "responded_at": self.responded_at.isoformat() if self.responded_at else None,
        }
