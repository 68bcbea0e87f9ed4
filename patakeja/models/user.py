from . import db
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime

ROLES = ("admin", "landlord", "tenant", "user")


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    # Basic Information
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(200), nullable=True)
    phone = db.Column(db.String(30), nullable=True)

    # Authentication
    password_hash = db.Column(db.String(255), nullable=False)
    # New accounts wait for an administrator to activate them
    is_active = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = db.Column(db.DateTime, nullable=True)

    roles = db.relationship(
        "UserRole",
        backref="user",
        lazy=True,
        cascade="all, delete-orphan",
        foreign_keys="UserRole.user_id",
    )

    def set_password(self, password: str) -> None:
        """Hashes and stores the user's password."""
        self.password_hash = generate_password_hash(password, method="pbkdf2:sha256")

    def check_password(self, password: str) -> bool:
        """Checks a password against the stored hash."""
        return check_password_hash(self.password_hash, password)

    @property
    def role(self) -> str:
        """Primary role; admin wins over any other assignment."""
        names = {r.role for r in self.roles}
        for name in ROLES:
            if name in names:
                return name
        return "user"

    def has_role(self, role: str) -> bool:
        return any(r.role == role for r in self.roles)

    def is_admin(self) -> bool:
        return self.has_role("admin")

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def serialize(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "last_login": self.last_login.isoformat() if self.last_login else None,
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"


class UserRole(db.Model):
    __tablename__ = "user_roles"
    __table_args__ = (db.UniqueConstraint("user_id", "role"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False, default="user")
    assigned_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    assigned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    def __repr__(self):
        return f"<UserRole {self.user_id}:{self.role}>"
