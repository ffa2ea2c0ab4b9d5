"""
Django settings for the habit challenge backend.

Values come from the environment (optionally a `.env` file next to
manage.py). See https://docs.djangoproject.com/en/5.2/topics/settings/
"""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-habit-challenge-dev-key")

DEBUG = _env_bool("DJANGO_DEBUG", True)

ALLOWED_HOSTS = [h.strip() for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]


INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.staticfiles",
    "graphene_django",
    "habits",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"

WSGI_APPLICATION = "config.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("HABITS_DB_PATH", str(BASE_DIR / "habits.db")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

GRAPHENE = {
    "SCHEMA": "config.schema.schema",
}


# --- Habit challenge ---

# "relational": habits/habit_records tables, many habits.
# "keyvalue": single habit serialized into the store_items table.
HABITS_STORAGE_BACKEND = os.environ.get("HABITS_STORAGE_BACKEND", "relational")
HABITS_SINGLE_HABIT = _env_bool("HABITS_SINGLE_HABIT", False)
HABITS_STORE_MAX_BYTES = int(os.environ.get("HABITS_STORE_MAX_BYTES", str(5 * 1024 * 1024)))
HABITS_CHALLENGE_LENGTH = int(os.environ.get("HABITS_CHALLENGE_LENGTH", "100"))

# Coaching chat (OpenAI-compatible endpoint)
OPENROUTER_API_KEY = os.environ.get("OPENROUTER_API_KEY", "")
OPENROUTER_MODEL = os.environ.get("OPENROUTER_MODEL", "anthropic/claude-sonnet-4.5")
OPENROUTER_BASE_URL = os.environ.get("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "habits": {
            "handlers": ["console"],
            "level": os.environ.get("HABITS_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
