from . import db
from datetime import datetime

PROPERTY_STATUSES = ("available", "unavailable", "sold", "rented")


class Property(db.Model):
    __tablename__ = "properties"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Listing details
    title = db.Column(db.String(255), nullable=False)
    property_type = db.Column(db.String(50), nullable=False)  # apartment, bedsitter, bnb, lodging, house...
    location = db.Column(db.String(255), nullable=False)
    rent_amount = db.Column(db.Numeric(12, 2), nullable=False)
    bedrooms = db.Column(db.Integer, nullable=False, default=0)
    bathrooms = db.Column(db.Integer, nullable=False, default=0)
    size_sqft = db.Column(db.Integer, nullable=True)
    description = db.Column(db.Text, nullable=True)

    # Images live in the property-images bucket
    image_url = db.Column(db.String(500), nullable=True)
    image_urls = db.Column(db.JSON, nullable=False, default=list)

    status = db.Column(db.String(20), nullable=False, default="available", index=True)

    latitude = db.Column(db.Numeric(10, 8), nullable=True)
    longitude = db.Column(db.Numeric(11, 8), nullable=True)

    # Landlord contact, revealed only after payment
    contact = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(30), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    landlord = db.relationship("User", backref=db.backref("properties", lazy=True))
    payments = db.relationship("ContactPayment", backref="property", lazy=True, cascade="all, delete-orphan")
    viewings = db.relationship("ViewingRequest", backref="property", lazy=True, cascade="all, delete-orphan")
    notifications = db.relationship(
        "PropertyNotification", backref="property", lazy=True, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Property {self.id}: {self.title}>"

    def serialize(self, show_phone=False):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "property_type": self.property_type,
            "location": self.location,
            "rent_amount": float(self.rent_amount) if self.rent_amount is not None else None,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "size_sqft": self.size_sqft,
            "description": self.description,
            "image_url": self.image_url,
            "image_urls": list(self.image_urls or []),
            "status": self.status,
            "latitude": float(self.latitude) if self.latitude is not None else None,
            "longitude": float(self.longitude) if self.longitude is not None else None,
            "contact": self.contact,
            "phone": self.phone if show_phone else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
