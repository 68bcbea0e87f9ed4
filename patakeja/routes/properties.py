from datetime import datetime
from decimal import Decimal, InvalidOperation

from flask import Blueprint, current_app, jsonify, request, send_from_directory
from sqlalchemy import and_, func, not_, or_

from ..errors import Forbidden, ValidationError
from ..models import ContactPayment, Property, User, UserRole, db
from ..models.payment import COMPLETED
from ..models.property import PROPERTY_STATUSES
from ..security import current_user, login_required, roles_required, validate_phone
from ..services.activity import log_activity
from ..services.payments import can_see_contact
from ..services.storage import MAX_IMAGES_PER_PROPERTY, StorageError, local_image_dir, upload_image

bp = Blueprint("properties", __name__)

UPDATABLE_FIELDS = [
    "title", "property_type", "location", "rent_amount", "bedrooms", "bathrooms",
    "size_sqft", "description", "status", "latitude", "longitude", "contact", "phone",
    "image_url", "image_urls",
]
SHORT_TERM_TYPES = ("bnb", "lodging")
SHORT_TERM_WORDS = ("short term", "weekly", "daily")


def _text(column):
    return func.lower(func.coalesce(column, ""))


def _mentions(word):
    like = f"%{word}%"
    return or_(_text(Property.title).like(like), _text(Property.description).like(like))


def _decimal(value, field):
    try:
        value = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not value.is_finite():
        raise ValidationError(f"{field} must be a number")
    return value


def _clean_property_data(data, partial=False):
    """Validate and coerce listing fields. Raises ValidationError."""
    cleaned = {}
    required = ["title", "property_type", "location", "phone", "rent_amount"]
    if not partial:
        for field in required:
            if data.get(field) in (None, ""):
                raise ValidationError(f"{field} is required")

    for field in UPDATABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field in ("title", "property_type", "location") and not (isinstance(value, str) and value.strip()):
            raise ValidationError(f"{field} is required")
        if field == "phone" and not (isinstance(value, str) and validate_phone(value)):
            raise ValidationError("Please enter a valid phone number")
        if field == "rent_amount":
            value = _decimal(value, field)
            if value <= 0:
                raise ValidationError("Rent amount must be greater than 0")
        if field in ("bedrooms", "bathrooms", "size_sqft"):
            if value in (None, "") and field == "size_sqft":
                value = None
            else:
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise ValidationError(f"{field} must be a whole number")
                if value < 0:
                    raise ValidationError(f"{field.capitalize()} must be 0 or more")
        if field in ("latitude", "longitude") and value not in (None, ""):
            value = _decimal(value, field)
        if field == "status" and value not in PROPERTY_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(PROPERTY_STATUSES)}")
        if field == "image_urls":
            if not isinstance(value, list):
                raise ValidationError("image_urls must be a list")
            value = value[:MAX_IMAGES_PER_PROPERTY]
        if isinstance(value, str):
            value = value.strip()
        cleaned[field] = value
    return cleaned


def _entitled_property_ids(user):
    if user is None:
        return set()
    now = datetime.utcnow()
    rows = db.session.query(ContactPayment.property_id).filter(
        ContactPayment.user_id == user.id,
        ContactPayment.payment_status == COMPLETED,
        or_(ContactPayment.expires_at.is_(None), ContactPayment.expires_at > now),
    ).all()
    return {row[0] for row in rows}


def _get_property(property_id):
    return db.get_or_404(Property, property_id)


def _require_owner_or_admin(property_obj, user):
    if user.id != property_obj.user_id and not user.is_admin():
        raise Forbidden("You can only manage your own listings")


@bp.get("/properties")
def list_properties():
    """Browse listings with optional filtering"""
    user = current_user(optional=True)
    q = (request.args.get("q") or "").strip().lower()
    property_type = request.args.get("property_type") or request.args.get("type")
    furnished = request.args.get("furnished")
    rental_term = request.args.get("rental_term")
    limit = max(1, min(request.args.get("limit", 50, type=int), 200))
    offset = max(0, request.args.get("offset", 0, type=int))

    query = Property.query

    # Only admins may browse other statuses
    status = request.args.get("status")
    if status and user is not None and user.is_admin():
        if status != "all":
            query = query.filter(Property.status == status)
    else:
        query = query.filter(Property.status == "available")

    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            _text(Property.title).like(like),
            _text(Property.location).like(like),
            _text(Property.property_type).like(like),
        ))

    if property_type and property_type != "all":
        query = query.filter(_text(Property.property_type) == property_type.lower())

    max_rent = request.args.get("max_rent", type=float)
    if max_rent is not None:
        query = query.filter(Property.rent_amount <= max_rent)
    min_rent = request.args.get("min_rent", type=float)
    if min_rent is not None:
        query = query.filter(Property.rent_amount >= min_rent)
    bedrooms = request.args.get("bedrooms", type=int)
    if bedrooms is not None:
        query = query.filter(Property.bedrooms >= bedrooms)

    if furnished == "furnished":
        query = query.filter(_mentions("furnished"), not_(_mentions("unfurnished")))
    elif furnished == "unfurnished":
        query = query.filter(or_(not_(_mentions("furnished")), _mentions("unfurnished")))

    short_term = or_(
        *[_text(Property.property_type).like(f"%{t}%") for t in SHORT_TERM_TYPES],
        *[_text(Property.description).like(f"%{w}%") for w in SHORT_TERM_WORDS],
    )
    if rental_term == "short-term":
        query = query.filter(short_term)
    elif rental_term == "long-term":
        query = query.filter(and_(*[not_(_text(Property.property_type).like(f"%{t}%")) for t in SHORT_TERM_TYPES]))

    total = query.count()
    properties = query.order_by(Property.created_at.desc(), Property.id.desc()).limit(limit).offset(offset).all()

    entitled = _entitled_property_ids(user)
    is_admin = user is not None and user.is_admin()

    def show_phone(p):
        return is_admin or p.id in entitled or (user is not None and p.user_id == user.id)

    return jsonify({
        "total": total,
        "properties": [p.serialize(show_phone=show_phone(p)) for p in properties],
    }), 200


@bp.get("/properties/mine")
@roles_required("landlord", "admin")
def my_properties():
    user = current_user()
    properties = Property.query.filter_by(user_id=user.id).order_by(Property.created_at.desc()).all()
    return jsonify({"total": len(properties), "properties": [p.serialize(show_phone=True) for p in properties]}), 200


@bp.get("/properties/<int:property_id>")
def get_property(property_id):
    """Property details; the landlord phone is only shown to entitled callers"""
    property_obj = _get_property(property_id)
    user = current_user(optional=True)
    entitled = can_see_contact(property_obj, user)

    response = property_obj.serialize(show_phone=entitled)
    response["has_contact_access"] = entitled
    landlord = property_obj.landlord
    response["landlord_name"] = landlord.full_name if landlord else None
    return jsonify(response), 200


@bp.post("/properties")
@roles_required("landlord", "admin")
def create_property():
    user = current_user()
    data = request.get_json(silent=True) or {}
    cleaned = _clean_property_data(data)

    owner_id = user.id
    if user.is_admin() and data.get("user_id"):
        try:
            owner = db.session.get(User, int(data["user_id"]))
        except (TypeError, ValueError):
            raise ValidationError("user_id must be an integer")
        if owner is None:
            raise ValidationError("user_id does not match an existing user")
        owner_id = owner.id

    if cleaned.get("image_urls") and not cleaned.get("image_url"):
        cleaned["image_url"] = cleaned["image_urls"][0]

    property_obj = Property(user_id=owner_id, **cleaned)
    db.session.add(property_obj)
    db.session.flush()

    if user.is_admin() and owner_id != user.id:
        log_activity(user, "created_property", "property", property_obj.id, {
            "title": property_obj.title,
            "owner_id": owner_id,
        })

    db.session.commit()
    current_app.logger.info("Property %s created by user %s", property_obj.id, user.id)
    return jsonify(property_obj.serialize(show_phone=True)), 201


@bp.patch("/properties/<int:property_id>")
@login_required
def update_property(property_id):
    user = current_user()
    property_obj = _get_property(property_id)
    _require_owner_or_admin(property_obj, user)

    cleaned = _clean_property_data(request.get_json(silent=True) or {}, partial=True)
    for field, value in cleaned.items():
        setattr(property_obj, field, value)

    if user.is_admin() and user.id != property_obj.user_id:
        log_activity(user, "updated_property", "property", property_obj.id, {"fields": sorted(cleaned)})

    db.session.commit()
    return jsonify(property_obj.serialize(show_phone=True)), 200


@bp.delete("/properties/<int:property_id>")
@login_required
def delete_property(property_id):
    user = current_user()
    property_obj = _get_property(property_id)
    _require_owner_or_admin(property_obj, user)

    if user.is_admin() and user.id != property_obj.user_id:
        log_activity(user, "deleted_property", "property", property_obj.id, {"title": property_obj.title})

    db.session.delete(property_obj)
    db.session.commit()
    return jsonify({"message": "Property deleted successfully"}), 200


@bp.post("/properties/<int:property_id>/images")
@login_required
def upload_property_images(property_id):
    user = current_user()
    property_obj = _get_property(property_id)
    _require_owner_or_admin(property_obj, user)

    files = request.files.getlist("images")
    if not files:
        raise ValidationError("No images provided")
    existing = list(property_obj.image_urls or [])
    if len(existing) + len(files) > MAX_IMAGES_PER_PROPERTY:
        raise ValidationError(f"A listing can have at most {MAX_IMAGES_PER_PROPERTY} images")

    urls = []
    try:
        for f in files:
            urls.append(upload_image(f, folder=str(property_obj.id)))
    except StorageError as e:
        raise ValidationError(str(e))

    property_obj.image_urls = existing + urls
    if not property_obj.image_url:
        property_obj.image_url = property_obj.image_urls[0]
    db.session.commit()
    return jsonify({"image_url": property_obj.image_url, "image_urls": property_obj.image_urls}), 201


@bp.get("/uploads/<path:key>")
def uploaded_image(key):
    return send_from_directory(local_image_dir(), key)


@bp.get("/stats")
def stats():
    available = Property.query.filter_by(status="available").count()
    landlords = UserRole.query.filter_by(role="landlord").count()
    locations = db.session.query(func.count(func.distinct(func.lower(Property.location)))).scalar() or 0
    return jsonify({
        "available_properties": available,
        "landlords": landlords,
        "locations": locations,
    }), 200
