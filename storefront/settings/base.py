from dotenv import load_dotenv
load_dotenv()

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, "true" if default else "false").lower() in ("1", "true", "yes")


def _env_list(name: str, default: str = "") -> list:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me")
DEBUG = _env_bool("DJANGO_DEBUG")
ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "payments",
]

MIDDLEWARE = [
    "storefront.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "storefront.urls"
WSGI_APPLICATION = "storefront.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

if os.getenv("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("POSTGRES_DB"),
            "USER": os.getenv("POSTGRES_USER", ""),
            "PASSWORD": os.getenv("POSTGRES_PASSWORD", ""),
            "HOST": os.getenv("POSTGRES_HOST", "localhost"),
            "PORT": os.getenv("POSTGRES_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
# Nagad expects Bangladesh local time in its datetime field
TIME_ZONE = os.getenv("TIME_ZONE", "Asia/Dhaka")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"

# ---------- Storefront ----------
# Origin used for the browser redirects after a gateway callback.
# Empty -> origin of the callback request itself.
STOREFRONT_URL = os.getenv("STOREFRONT_URL", "").rstrip("/")

CORS_ALLOW_PATHS = _env_list("CORS_ALLOW_PATHS", "/nagad-payment/")

# Only enable behind a reverse proxy that overwrites X-Forwarded-For.
USE_X_FORWARDED_FOR = _env_bool("USE_X_FORWARDED_FOR")

# ---------- Identity provider ----------
IDENTITY_JWT_SECRET = os.getenv("IDENTITY_JWT_SECRET", "")
IDENTITY_JWT_ALGORITHMS = _env_list("IDENTITY_JWT_ALGORITHMS", "HS256")
IDENTITY_JWT_AUDIENCE = os.getenv("IDENTITY_JWT_AUDIENCE", "authenticated")
IDENTITY_JWKS_URL = os.getenv("IDENTITY_JWKS_URL", "")

# ---------- Nagad ----------
NAGAD_SANDBOX_BASE_URL = os.getenv(
    "NAGAD_SANDBOX_BASE_URL",
    "https://sandbox.mynagad.com:10061/remote-payment-gateway-1.0/api/dfs",
)
NAGAD_PRODUCTION_BASE_URL = os.getenv("NAGAD_PRODUCTION_BASE_URL", "https://api.mynagad.com/api/dfs")
NAGAD_API_VERSION = os.getenv("NAGAD_API_VERSION", "v-0.2.0")
NAGAD_CLIENT_TYPE = os.getenv("NAGAD_CLIENT_TYPE", "PC_WEB")
NAGAD_TIMEOUT = float(os.getenv("NAGAD_TIMEOUT", "30"))
# "sandbox" / "production"; empty -> trust the provider row's sandbox flag
NAGAD_ENVIRONMENT = os.getenv("NAGAD_ENVIRONMENT", "").lower()

# Secret for enc:-prefixed provider credentials
CREDENTIALS_ENCRYPTION_KEY = os.getenv("CREDENTIALS_ENCRYPTION_KEY", "")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "payments": {
            "handlers": ["console"],
            "level": os.getenv("PAYMENTS_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
