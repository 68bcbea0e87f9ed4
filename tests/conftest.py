from datetime import datetime
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from patakeja import create_app, security
from patakeja.models import ContactPayment, Property, User, UserRole, db
from patakeja.models.payment import COMPLETED, PENDING


@pytest.fixture
def app(tmp_path):
    app = create_app("config.TestingConfig")
    app.config["UPLOAD_FOLDER"] = str(tmp_path)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
    security.rate_limit_store.clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(email="tenant@example.com", role="tenant", password="secret123", active=True, **kwargs):
        user = User(email=email, full_name=kwargs.pop("full_name", email.split("@")[0].title()),
                    phone=kwargs.pop("phone", "0712345678"), is_active=active, **kwargs)
        user.set_password(password)
        user.roles.append(UserRole(role=role))
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_property(app):
    def _make(owner, **kwargs):
        data = {
            "title": "2 Bedroom Apartment",
            "property_type": "apartment",
            "location": "Kilimani, Nairobi",
            "rent_amount": Decimal("25000"),
            "bedrooms": 2,
            "bathrooms": 1,
            "description": "Spacious apartment close to Yaya Centre",
            "phone": "0722000111",
            "status": "available",
        }
        data.update(kwargs)
        property_obj = Property(user_id=owner.id, **data)
        db.session.add(property_obj)
        db.session.commit()
        return property_obj
    return _make


@pytest.fixture
def make_payment(app):
    def _make(user, property_obj, status=COMPLETED, expires_at=None, checkout_request_id=None, **kwargs):
        payment = ContactPayment(
            user_id=user.id,
            property_id=property_obj.id,
            amount=kwargs.pop("amount", 5000),
            phone_number=kwargs.pop("phone_number", "254712345678"),
            payment_status=status,
            expires_at=expires_at,
            checkout_request_id=checkout_request_id,
            **kwargs,
        )
        db.session.add(payment)
        db.session.commit()
        return payment
    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user.id), additional_claims={"role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def landlord(make_user):
    return make_user(email="landlord@example.com", role="landlord", full_name="Jane Landlord")


@pytest.fixture
def tenant(make_user):
    return make_user(email="tenant@example.com", role="tenant", full_name="John Tenant")


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role="admin", full_name="Site Admin")


@pytest.fixture
def listing(make_property, landlord):
    return make_property(landlord)


@pytest.fixture
def stk_callback():
    return _stk_callback_body


def _stk_callback_body(checkout_request_id, result_code=0, result_desc="The service request is processed successfully.",
                       receipt="QJK1234ABC"):
    callback = {
        "MerchantRequestID": "29115-34620561-1",
        "CheckoutRequestID": checkout_request_id,
        "ResultCode": result_code,
        "ResultDesc": result_desc,
    }
    if result_code == 0:
        callback["CallbackMetadata"] = {"Item": [
            {"Name": "Amount", "Value": 50},
            {"Name": "MpesaReceiptNumber", "Value": receipt},
            {"Name": "TransactionDate", "Value": 20261017101112},
            {"Name": "PhoneNumber", "Value": 254712345678},
        ]}
    return {"Body": {"stkCallback": callback}}


@pytest.fixture
def pending_payment(make_payment, tenant, listing):
    return make_payment(tenant, listing, status=PENDING, checkout_request_id="ws_CO_17102026101010",
                        created_at=datetime.utcnow())
