"""Base Django settings for the delivery fee service."""
from __future__ import annotations

from pathlib import Path
import os

from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent


def env(name: str, default: str | None = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    value = os.environ.get(name, default)
    if value is None:
        raise ImproperlyConfigured(f"Environment variable {name} is required")
    return value


def env_int(name: str, default: int) -> int:
    value = env(name, str(default))
    try:
        return int(value)
    except ValueError as exc:
        raise ImproperlyConfigured(f"Environment variable {name} must be an integer") from exc


SECRET_KEY = env("DJANGO_SECRET_KEY")
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "rest_framework",
    "delivery.api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "delivery.urls"

WSGI_APPLICATION = "delivery.wsgi.application"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Observations live in the DB-API store configured by DATABASE_URL
# (see delivery.core.models), not in the Django ORM.
DATABASES: dict = {}

WEATHER_FEED_URL = os.environ.get(
    "WEATHER_FEED_URL", "https://www.ilmateenistus.ee/ilma_andmed/xml/observations.php"
)
WEATHER_STATIONS = [
    name.strip()
    for name in os.environ.get("WEATHER_STATIONS", "Tallinn-Harku,Tartu-Tõravere,Pärnu").split(",")
    if name.strip()
]
WEATHER_FEED_TIMEOUT = float(os.environ.get("WEATHER_FEED_TIMEOUT", "10"))
WEATHER_FETCH_MINUTE = env_int("WEATHER_FETCH_MINUTE", 15)
WEATHER_FETCH_INTERVAL_MINUTES = env_int("WEATHER_FETCH_INTERVAL_MINUTES", 60)

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "UNAUTHENTICATED_USER": None,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "loggers": {
        "delivery": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
        },
    },
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
