from . import db
from datetime import datetime, timedelta

PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
CANCELLED = "cancelled"
TERMINAL_STATUSES = (COMPLETED, FAILED, CANCELLED)


class ContactPayment(db.Model):
    __tablename__ = "contact_payments"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    property_id = db.Column(db.Integer, db.ForeignKey("properties.id", ondelete="CASCADE"), nullable=True, index=True)

    # Amount in cents (KES)
    amount = db.Column(db.Integer, nullable=False)
    phone_number = db.Column(db.String(20), nullable=False)

    # Status tracking: pending, completed, failed, cancelled
    payment_status = db.Column(db.String(20), nullable=False, default=PENDING, index=True)
    result_description = db.Column(db.String(255), nullable=True)

    # M-Pesa data
    transaction_id = db.Column(db.String(100), nullable=True)  # MpesaReceiptNumber
    checkout_request_id = db.Column(db.String(100), nullable=True, unique=True, index=True)
    merchant_request_id = db.Column(db.String(100), nullable=True)

    # Entitlement window
    expires_at = db.Column(db.DateTime, nullable=True, index=True)
    reminder_sent_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = db.relationship("User", backref=db.backref("contact_payments", lazy=True))

    def __repr__(self):
        return f"<ContactPayment {self.id}: KES {self.amount_kes} - {self.payment_status}>"

    @property
    def amount_kes(self):
        return self.amount / 100

    @property
    def is_terminal(self):
        return self.payment_status in TERMINAL_STATUSES

    def serialize(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "property_id": self.property_id,
            "amount": self.amount_kes,
            "phone_number": self.phone_number,
            "payment_status": self.payment_status,
            "result_description": self.result_description,
            "transaction_id": self.transaction_id,
            "checkout_request_id": self.checkout_request_id,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def mark_completed(self, transaction_id=None, access_days=14, now=None):
        """Mark payment as completed and open the contact access window"""
        now = now or datetime.utcnow()
        self.payment_status = COMPLETED
        self.expires_at = now + timedelta(days=access_days)
        if transaction_id:
            self.transaction_id = transaction_id

    def mark_failed(self, reason=None, status=FAILED):
        """Mark payment as failed (or cancelled by the payer)"""
        self.payment_status = status
        if reason:
            self.result_description = reason[:255]
