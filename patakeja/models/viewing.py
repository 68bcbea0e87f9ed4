from . import db
from datetime import datetime

VIEWING_STATUSES = ("pending", "confirmed", "declined", "cancelled")


class ViewingRequest(db.Model):
    __tablename__ = "viewing_requests"

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    landlord_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    preferred_date = db.Column(db.Date, nullable=False)
    preferred_time = db.Column(db.Time, nullable=False)
    phone = db.Column(db.String(30), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default="pending")  # pending, confirmed, declined, cancelled

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tenant = db.relationship("User", foreign_keys=[tenant_id])
    landlord = db.relationship("User", foreign_keys=[landlord_id])

    def __repr__(self):
        return f"<ViewingRequest {self.id}: property {self.property_id} - {self.status}>"

    def serialize(self):
        return {
            "id": self.id,
            "property_id": self.property_id,
            "property_title": self.property.title if self.property else None,
            "tenant_id": self.tenant_id,
            "tenant_name": self.tenant.display_name if self.tenant else None,
            "landlord_id": self.landlord_id,
            "preferred_date": self.preferred_date.isoformat(),
            "preferred_time": self.preferred_time.strftime("%H:%M"),
            "phone": self.phone,
            "notes": self.notes,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
