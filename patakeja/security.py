# patakeja/security.py
import re
import time
from functools import wraps

from flask import current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from .models import User, UserRole, db

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
PHONE_PATTERN = re.compile(r"^[\+]?[0-9\s\-\(\)]{10,}$")
MIN_PASSWORD_LENGTH = 6

# Login attempts per client, in memory (one process)
rate_limit_store = {}


def current_user(optional=False):
    """Return the User behind the request's access token (None when optional and absent)."""
    verify_jwt_in_request(optional=optional)
    ident = get_jwt_identity()
    if ident is None:
        return None
    try:
        uid = int(ident)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, uid)


def has_role(user_id, role):
    return UserRole.query.filter_by(user_id=user_id, role=role).first() is not None


def get_current_user_role():
    """Primary role of the token holder, None for anonymous requests."""
    user = current_user(optional=True)
    return user.role if user else None


def is_admin(user=None):
    if user is None:
        return get_current_user_role() == "admin"
    return has_role(user.id, "admin")


def roles_required(*allowed):
    """Usage: @roles_required("admin", "landlord")"""
    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = current_user()
            if user is None or not user.is_active:
                return jsonify({"error": "unauthorized", "message": "Account not found or inactive"}), 401
            if not any(has_role(user.id, role) for role in allowed):
                return jsonify({"error": "forbidden", "message": "Insufficient role"}), 403
            return fn(*args, **kwargs)
        return wrapper
    return deco


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = current_user()
        if user is None or not user.is_active:
            return jsonify({"error": "unauthorized", "message": "Account not found or inactive"}), 401
        return fn(*args, **kwargs)
    return wrapper


def _drop_stale_keys(window_start):
    for key in [k for k, hits in rate_limit_store.items() if not hits or hits[-1] <= window_start]:
        del rate_limit_store[key]


def rate_limit(max_requests=None, window_minutes=None):
    """Rate limiting decorator keyed by client IP and endpoint."""
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            limit = max_requests or current_app.config.get("LOGIN_RATE_LIMIT", 5)
            window = window_minutes or current_app.config.get("LOGIN_RATE_WINDOW_MINUTES", 15)
            # remote_addr is already the proxy-resolved address (ProxyFix)
            client_ip = request.remote_addr or "unknown"
            key = f"rate_limit:{client_ip}:{f.__name__}"

            current_time = time.time()
            window_start = current_time - (window * 60)
            _drop_stale_keys(window_start)
            hits = [ts for ts in rate_limit_store.get(key, []) if ts > window_start]

            if len(hits) >= limit:
                current_app.logger.warning("Rate limit exceeded for %s on %s", client_ip, f.__name__)
                return jsonify({
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Try again in {window} minutes."
                }), 429

            hits.append(current_time)
            rate_limit_store[key] = hits
            return f(*args, **kwargs)
        return wrapper
    return decorator


def validate_email(email):
    return bool(email and EMAIL_PATTERN.fullmatch(email.strip()))


def validate_phone(phone):
    return bool(phone and PHONE_PATTERN.match(phone.strip()))


def validate_password(password):
    if not password:
        return False, "Password is required"
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return True, None
