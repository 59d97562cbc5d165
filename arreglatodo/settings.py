"""
Django settings for the arreglatodo project.

Every value can be overridden from the environment; the defaults are meant for
local development and the test suite.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str = "") -> list[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-insecure-secret-key")
DEBUG = _env_bool("DJANGO_DEBUG", True)
ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")
ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "apps.core",
    "apps.audit",
    "apps.pros",
    "apps.orders",
    "apps.payments",
    "apps.payouts",
    "apps.chat",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "apps.core.middleware.RequestContextMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "arreglatodo.urls"

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

WSGI_APPLICATION = "arreglatodo.wsgi.application"

if os.environ.get("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ["POSTGRES_DB"],
            "USER": os.environ.get("POSTGRES_USER", ""),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", ""),
            "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
            "PORT": os.environ.get("POSTGRES_PORT", "5432"),
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

LANGUAGE_CODE = "es"
TIME_ZONE = "America/Montevideo"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# Identity is resolved by the upstream gateway; views read it from the actor headers.
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_THROTTLE_RATES": {
        "webhooks": os.environ.get("WEBHOOK_THROTTLE_RATE", "600/min"),
    },
}

# Marketplace economics.
DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "UYU")
PLATFORM_FEE_RATE = float(os.environ.get("PLATFORM_FEE_RATE", "0.10"))
# Refund and dispute window before a captured earning can be paid out.
EARNING_COOLING_OFF_HOURS = int(os.environ.get("EARNING_COOLING_OFF_HOURS", "72"))

# Provider selection. Codes must exist in the payment/payout gateway registries.
PAYMENT_PROVIDER = os.environ.get("PAYMENT_PROVIDER", "dummy")
PAYOUT_PROVIDER = os.environ.get("PAYOUT_PROVIDER", "manual")
PAYMENT_RETURN_URL = os.environ.get("PAYMENT_RETURN_URL", "http://localhost:3000/checkout/return")
PAYMENT_WEBHOOK_SECRETS = {
    "dummy": os.environ.get("DUMMY_WEBHOOK_SECRET", "dummy-secret"),
    "sandbox": os.environ.get("SANDBOX_WEBHOOK_SECRET", "sandbox-secret"),
}
PAYOUT_WEBHOOK_SECRETS = {
    "manual": os.environ.get("MANUAL_PAYOUT_WEBHOOK_SECRET", "manual-secret"),
}

ORDER_NOTIFIER = os.environ.get("ORDER_NOTIFIER", "apps.orders.infrastructure.notifier.LoggingOrderNotifier")
FORCE_STATUS_MAX_ATTEMPTS = int(os.environ.get("FORCE_STATUS_MAX_ATTEMPTS", "3"))

CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "memory://")
CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", False)
PROVIDER_RETRY_MAX_RETRIES = int(os.environ.get("PROVIDER_RETRY_MAX_RETRIES", "5"))
PROVIDER_RETRY_BACKOFF_MAX = int(os.environ.get("PROVIDER_RETRY_BACKOFF_MAX", "300"))
CELERY_BEAT_SCHEDULE = {
    "reconcile-pending-payments": {
        "task": "apps.payments.tasks.reconcile_pending_payments_task",
        "schedule": float(os.environ.get("PAYMENT_RECONCILE_INTERVAL_SECONDS", "300")),
    },
    "mark-earnings-payable": {
        "task": "apps.payouts.tasks.mark_earnings_payable_task",
        "schedule": float(os.environ.get("EARNING_PROMOTION_INTERVAL_SECONDS", "900")),
    },
}

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "arreglatodo": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
