from .admin import bp as admin_bp
from .auth import bp as auth_bp
from .notifications import bp as notifications_bp
from .payments import bp as payments_bp
from .properties import bp as properties_bp
from .viewings import bp as viewings_bp

__all__ = ["admin_bp", "auth_bp", "notifications_bp", "payments_bp", "properties_bp", "viewings_bp"]
