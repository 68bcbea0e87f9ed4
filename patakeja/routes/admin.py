from flask import Blueprint, jsonify, request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..models import ROLES, ActivityLog, ContactPayment, Property, User, UserRole, db
from ..models.payment import COMPLETED
from ..security import current_user, roles_required, validate_email, validate_password
from ..services.activity import log_activity
from ..services.notifications import send_availability_checks

bp = Blueprint("admin", __name__)


# ============= USERS =============

@bp.get("/admin/users")
@roles_required("admin")
def list_users():
    role = request.args.get("role")
    query = User.query
    if role:
        query = query.join(UserRole, UserRole.user_id == User.id).filter(UserRole.role == role)
    users = query.order_by(User.created_at.desc()).all()
    return jsonify({"users": [u.serialize() for u in users], "count": len(users)}), 200


@bp.post("/admin/users")
@roles_required("admin")
def create_user():
    admin = current_user()
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    role = data.get("role") or "tenant"

    if not validate_email(email):
        return jsonify(error="validation_error", message="A valid email is required"), 400
    ok, msg = validate_password(password)
    if not ok:
        return jsonify(error="validation_error", message=msg), 400
    if role not in ROLES:
        return jsonify(error="validation_error", message=f"role must be one of: {', '.join(ROLES)}"), 400

    user = User(
        email=email,
        full_name=(data.get("full_name") or "").strip() or None,
        phone=(data.get("phone") or "").strip() or None,
        is_active=True,
    )
    user.set_password(password)
    user.roles.append(UserRole(role=role, assigned_by=admin.id))
    db.session.add(user)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="email_taken", message="email already exists"), 409

    log_activity(admin, "created_user", role, user.id, {
        "email": user.email,
        "full_name": user.full_name or "",
        "role": role,
    })
    db.session.commit()
    return jsonify(user.serialize()), 201


@bp.patch("/admin/users/<int:user_id>/role")
@roles_required("admin")
def update_user_role(user_id: int):
    admin = current_user()
    user = db.get_or_404(User, user_id)
    new_role = (request.get_json(silent=True) or {}).get("role")
    if new_role not in ROLES:
        return jsonify(error="validation_error", message=f"role must be one of: {', '.join(ROLES)}"), 400

    # A user holds one role at a time: drop existing assignments first
    user.roles.clear()
    db.session.flush()
    user.roles.append(UserRole(role=new_role, assigned_by=admin.id))
    log_activity(admin, "updated_role", new_role, user.id, {
        "email": user.email,
        "full_name": user.full_name or "",
        "role": new_role,
    })
    db.session.commit()
    return jsonify(user.serialize()), 200


@bp.patch("/admin/users/<int:user_id>/activate")
@roles_required("admin")
def set_user_active(user_id: int):
    admin = current_user()
    user = db.get_or_404(User, user_id)
    data = request.get_json(silent=True) or {}
    is_active = data.get("is_active", True)
    if not isinstance(is_active, bool):
        return jsonify(error="validation_error", message="is_active must be true or false"), 400
    if user.id == admin.id and not is_active:
        return jsonify(error="validation_error", message="You cannot deactivate your own account"), 400

    user.is_active = is_active
    log_activity(admin, "activated_user" if is_active else "deactivated_user", "user", user.id, {
        "email": user.email,
    })
    db.session.commit()
    return jsonify(user.serialize()), 200


# ============= PROPERTIES =============

@bp.get("/admin/properties")
@roles_required("admin")
def list_all_properties():
    properties = Property.query.order_by(Property.created_at.desc()).all()
    results = []
    for p in properties:
        item = p.serialize(show_phone=True)
        item["landlord_name"] = p.landlord.full_name if p.landlord else None
        item["landlord_email"] = p.landlord.email if p.landlord else None
        results.append(item)
    return jsonify({"properties": results, "count": len(results)}), 200


@bp.delete("/admin/properties/<int:property_id>")
@roles_required("admin")
def delete_property(property_id: int):
    admin = current_user()
    property_obj = db.get_or_404(Property, property_id)
    log_activity(admin, "deleted_property", "property", property_obj.id, {
        "title": property_obj.title,
        "location": property_obj.location,
    })
    db.session.delete(property_obj)
    db.session.commit()
    return "", 204


# ============= ACTIVITY & DASHBOARD =============

@bp.get("/admin/activity-logs")
@roles_required("admin")
def activity_logs():
    limit = max(1, min(request.args.get("limit", 50, type=int), 500))
    logs = ActivityLog.query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()
    return jsonify({"logs": [log.serialize() for log in logs]}), 200


@bp.get("/admin/dashboard")
@roles_required("admin")
def dashboard():
    roles = dict(db.session.query(UserRole.role, func.count(UserRole.id)).group_by(UserRole.role).all())
    statuses = dict(db.session.query(Property.status, func.count(Property.id)).group_by(Property.status).all())
    payments = dict(
        db.session.query(ContactPayment.payment_status, func.count(ContactPayment.id))
        .group_by(ContactPayment.payment_status).all()
    )
    revenue_cents = db.session.query(func.coalesce(func.sum(ContactPayment.amount), 0)).filter(
        ContactPayment.payment_status == COMPLETED
    ).scalar()

    return jsonify({
        "users": {
            "total": User.query.count(),
            "pending_activation": User.query.filter_by(is_active=False).count(),
            "by_role": {role: roles.get(role, 0) for role in ROLES},
        },
        "properties": {"total": sum(statuses.values()), "by_status": statuses},
        "payments": {"by_status": payments, "revenue": revenue_cents / 100},
    }), 200


@bp.post("/admin/notifications/availability-check")
@roles_required("admin")
def availability_check():
    admin = current_user()
    result = send_availability_checks()
    log_activity(admin, "sent_availability_checks", "property", None, result)
    db.session.commit()
    return jsonify(result), 200
