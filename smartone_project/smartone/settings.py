import os
from decimal import Decimal
from pathlib import Path

from celery.schedules import crontab

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-secret-change-me")
DEBUG = os.environ.get("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = os.environ.get(
    "DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "finance_core.apps.FinanceCoreConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "smartone.urls"
WSGI_APPLICATION = "smartone.wsgi.application"

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

# SQLite for local work, PostgreSQL (psycopg) when DATABASE_ENGINE says so
DATABASE_ENGINE = os.environ.get("DATABASE_ENGINE", "sqlite3")
if DATABASE_ENGINE == "postgresql":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ.get("DATABASE_NAME", "smartone"),
            "USER": os.environ.get("DATABASE_USER", "smartone"),
            "PASSWORD": os.environ.get("DATABASE_PASSWORD", ""),
            "HOST": os.environ.get("DATABASE_HOST", "localhost"),
            "PORT": os.environ.get("DATABASE_PORT", "5432"),
            "CONN_MAX_AGE": int(os.environ.get("DATABASE_CONN_MAX_AGE", "60")),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.environ.get("DATABASE_NAME", str(BASE_DIR / "smartone.sqlite3")),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("DJANGO_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# ---------- Celery ----------
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_ALWAYS_EAGER = os.environ.get("CELERY_TASK_ALWAYS_EAGER", "0") == "1"
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    # Incremental balance updates happen on every posting;
    # this rebuilds them from the ledger once a night
    "recompute-account-balances": {
        "task": "finance_core.tasks.recompute_account_balances",
        "schedule": crontab(hour=2, minute=0),
    },
}

# ---------- Logging ----------
LOG_LEVEL = os.environ.get("DJANGO_LOG_LEVEL", "INFO")
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "console": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
        },
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "finance_core": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}

# ---------- Finance ----------
FINANCE_BILL_NUMBER_PREFIX = os.environ.get("FINANCE_BILL_NUMBER_PREFIX", "AP")
FINANCE_JOURNAL_NUMBER_PREFIX = os.environ.get("FINANCE_JOURNAL_NUMBER_PREFIX", "JE")
# Differences below this are treated as floating-point noise
FINANCE_PAYMENT_TOLERANCE = Decimal(os.environ.get("FINANCE_PAYMENT_TOLERANCE", "0.01"))
# New bills are settled in full as part of creation
FINANCE_AUTO_SETTLE_ON_CREATE = os.environ.get("FINANCE_AUTO_SETTLE_ON_CREATE", "1") == "1"
FINANCE_DUE_SOON_DAYS = int(os.environ.get("FINANCE_DUE_SOON_DAYS", "30"))
FINANCE_DEFAULT_PAGE_SIZE = int(os.environ.get("FINANCE_DEFAULT_PAGE_SIZE", "10"))
