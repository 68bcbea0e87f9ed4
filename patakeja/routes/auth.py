# patakeja/routes/auth.py
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import (
    create_access_token, create_refresh_token,
    jwt_required, get_jwt_identity
)

from ..models import User, UserRole, db
from ..security import current_user, rate_limit, validate_email, validate_password, validate_phone

bp = Blueprint("auth", __name__)

SIGNUP_ROLES = ("landlord", "tenant")


def _tokens_for(user):
    claims = {"email": user.email, "role": user.role}
    access = create_access_token(identity=str(user.id), additional_claims=claims)
    refresh = create_refresh_token(identity=str(user.id))
    return access, refresh


@bp.post("/auth/register")
def register():
    data = request.get_json(silent=True) or {}
    full_name = (data.get("full_name") or "").strip()
    email = (data.get("email") or "").strip().lower()
    phone = (data.get("phone") or "").strip()
    password = data.get("password") or ""
    role = data.get("role") or ""

    errors = {}
    if not full_name:
        errors["full_name"] = "Full name is required"
    if not email:
        errors["email"] = "Email is required"
    elif not validate_email(email):
        errors["email"] = "Please enter a valid email"
    if not phone:
        errors["phone"] = "Phone number is required"
    elif not validate_phone(phone):
        errors["phone"] = "Please enter a valid phone number"
    if role not in SIGNUP_ROLES:
        errors["role"] = "Please select your account type"
    ok, msg = validate_password(password)
    if not ok:
        errors["password"] = msg
    elif "confirm_password" in data and data["confirm_password"] != password:
        errors["confirm_password"] = "Passwords do not match"
    if errors:
        return jsonify({"error": "validation_error", "errors": errors}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({"error": "email_taken", "message": "An account with this email already exists"}), 409

    user = User(email=email, full_name=full_name, phone=phone)
    user.set_password(password)

    if email in current_app.config.get("ADMIN_EMAILS", []):
        user.is_active = True
        user.roles.append(UserRole(role="admin"))
    else:
        user.roles.append(UserRole(role=role))

    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Registered user %s as %s", user.id, user.role)

    return jsonify({
        "user": user.serialize(),
        "message": "Account created." if user.is_active
        else "Account created. It will be usable once an administrator activates it.",
    }), 201


@bp.post("/auth/login")
@rate_limit()
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        return jsonify({"error": "validation_error", "message": "email and password required"}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({"error": "invalid_credentials", "message": "Invalid email or password"}), 401
    if not user.is_active:
        return jsonify({
            "error": "account_inactive",
            "message": "Your account is pending activation. Please contact an administrator."
        }), 403

    user.last_login = datetime.utcnow()
    db.session.commit()

    access, refresh = _tokens_for(user)
    return jsonify(access_token=access, refresh_token=refresh, user=user.serialize()), 200


@bp.post("/auth/refresh")
@jwt_required(refresh=True)
def refresh():
    ident = get_jwt_identity()
    user = db.session.get(User, int(ident))
    if not user or not user.is_active:
        return jsonify({"error": "unauthorized"}), 401
    access, _ = _tokens_for(user)
    return jsonify(access_token=access), 200


@bp.get("/auth/me")
@jwt_required()
def me():
    user = current_user()
    if not user:
        return jsonify({"error": "not_found", "message": "user not found"}), 404
    return jsonify(user.serialize()), 200
