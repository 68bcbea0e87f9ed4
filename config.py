import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name, default="False"):
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


def _env_list(name):
    raw = os.environ.get(name, "")
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


class Config:
    # Secret key for sessions / JWT
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret")

    # Database connection
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///patakeja.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)

    # Flask Configuration
    FLASK_ENV = os.environ.get("FLASK_ENV", "production")
    FLASK_DEBUG = _env_bool("FLASK_DEBUG")
    JSON_SORT_KEYS = False
    API_PREFIX = "/api"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    CORS_ALLOWED_ORIGINS = [o.strip() for o in os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if o.strip()]

    # Accounts listed here are created as active admins on sign-up
    ADMIN_EMAILS = _env_list("ADMIN_EMAILS")
    FRONTEND_BASE_URL = os.environ.get("FRONTEND_BASE_URL", "http://127.0.0.1:5173")

    # M-Pesa Daraja
    MPESA_ENVIRONMENT = os.environ.get("MPESA_ENVIRONMENT", "sandbox")
    MPESA_CONSUMER_KEY = os.environ.get("MPESA_CONSUMER_KEY")
    MPESA_CONSUMER_SECRET = os.environ.get("MPESA_CONSUMER_SECRET")
    MPESA_SHORTCODE = os.environ.get("MPESA_SHORTCODE", "174379")
    MPESA_PASSKEY = os.environ.get(
        "MPESA_PASSKEY",
        "bfb279f9aa9bdbcf158e97dd71a467cd2e0c893059b10f78e6b72ada1ed2c919",
    )
    MPESA_CALLBACK_URL = os.environ.get("MPESA_CALLBACK_URL")
    MPESA_CALLBACK_TOKEN = os.environ.get("MPESA_CALLBACK_TOKEN")
    MPESA_TIMEOUT = int(os.environ.get("MPESA_TIMEOUT", 30))

    # Contact access pricing (KES)
    CONTACT_FEE = int(os.environ.get("CONTACT_FEE", 50))
    CONTACT_ACCESS_DAYS = int(os.environ.get("CONTACT_ACCESS_DAYS", 14))
    RENEWAL_FEE_RATE = float(os.environ.get("RENEWAL_FEE_RATE", 0.06))
    RENEWAL_FEE_MIN = int(os.environ.get("RENEWAL_FEE_MIN", 10))
    REMINDER_DAYS_BEFORE = int(os.environ.get("REMINDER_DAYS_BEFORE", 2))
    PAYMENT_PENDING_TIMEOUT_MINUTES = int(os.environ.get("PAYMENT_PENDING_TIMEOUT_MINUTES", 5))

    # Image storage: "local" or "s3"
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "local")
    STORAGE_BUCKET = os.environ.get("STORAGE_BUCKET", "property-images")
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join(os.getcwd(), "uploads"))
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024
    S3_REGION = os.environ.get("S3_REGION", "eu-west-1")
    AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY")

    # Mail
    MAIL_SERVER = os.environ.get("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", 25))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS")
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER", "Pata Keja <notifications@patakeja.co.ke>")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND")

    # Jobs
    CRON_SECRET = os.environ.get("CRON_SECRET")
    SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED")

    # Login rate limit
    LOGIN_RATE_LIMIT = int(os.environ.get("LOGIN_RATE_LIMIT", 5))
    LOGIN_RATE_WINDOW_MINUTES = int(os.environ.get("LOGIN_RATE_WINDOW_MINUTES", 15))


class DevelopmentConfig(Config):
    FLASK_ENV = "development"
    FLASK_DEBUG = True


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    MAIL_SUPPRESS_SEND = True
    MPESA_CONSUMER_KEY = "test-key"
    MPESA_CONSUMER_SECRET = "test-secret"
    MPESA_CALLBACK_URL = "https://example.test/api/payments/mpesa/callback"
    MPESA_CALLBACK_TOKEN = None
    ADMIN_EMAILS = ["root@patakeja.test"]
    CRON_SECRET = "cron-secret"
    SCHEDULER_ENABLED = False
    LOGIN_RATE_LIMIT = 1000


class ProductionConfig(Config):
    SECRET_KEY = os.environ.get("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)

    @classmethod
    def validate(cls):
        # Secret key and database are REQUIRED in production
        if not cls.SECRET_KEY:
            raise ValueError("SECRET_KEY environment variable must be set")
        if not cls.SQLALCHEMY_DATABASE_URI:
            raise ValueError("DATABASE_URL environment variable must be set")
