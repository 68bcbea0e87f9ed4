from ..extensions import db

# Core Models
from .user import User, UserRole, ROLES
from .property import Property
from .payment import ContactPayment
from .viewing import ViewingRequest
from .notification import PropertyNotification
from .activity_log import ActivityLog

__all__ = [
    "db",
    "User",
    "UserRole",
    "ROLES",
    "Property",
    "ContactPayment",
    "ViewingRequest",
    "PropertyNotification",
    "ActivityLog",
]
