"""
PATH: backend/settings/base.py

BASE SETTINGS (shared by dev + prod)

- django-environ driven configuration (.env aware)
- DATABASE_URL (sqlite fallback for local work only)
- Console logging via backend/logging_config.py
- Sentry (optional)
- Ledger: semantic account codes + stale posting-intent threshold
"""

from __future__ import annotations

from pathlib import Path

import environ

from backend.logging_config import get_logging_config

# ledger_backend/
BASE_DIR = Path(__file__).resolve().parent.parent.parent

env = environ.Env(
    DEBUG=(bool, True),
    SECRET_KEY=(str, ""),
    TIME_ZONE=(str, "UTC"),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    LOG_LEVEL=(str, ""),
    LOG_FORMAT=(str, ""),
    SENTRY_DSN=(str, ""),
    SENTRY_ENVIRONMENT=(str, "development"),
    SENTRY_TRACES_SAMPLE_RATE=(float, 0.0),
    SENTRY_SEND_PII=(bool, False),
    LEDGER_POSTING_STALE_MINUTES=(int, 15),
)

# First .env found wins: ledger_backend/.env, then the repo root.
for _env_file in (BASE_DIR / ".env", BASE_DIR.parent / ".env"):
    if _env_file.exists():
        env.read_env(str(_env_file))
        break

# -----------------------------------------
# CORE
# -----------------------------------------
SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")

LANGUAGE_CODE = "en-us"
TIME_ZONE = (env("TIME_ZONE") or "UTC").strip()
USE_I18N = True
# Entry dates come from timezone.localdate(), so TIME_ZONE decides the fiscal day.
USE_TZ = True

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "tenants",
    "accounting",
    "inventory",
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

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"

# Admin only; no project templates.
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
    }
]

DATABASES = {"default": env.db("DATABASE_URL")}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

STATIC_URL = "static/"

# -----------------------------------------
# LOGGING
# -----------------------------------------
LOGGING = get_logging_config(
    debug=DEBUG,
    level=(env("LOG_LEVEL") or "").strip(),
    fmt=(env("LOG_FORMAT") or "").strip(),
)

# -----------------------------------------
# LEDGER
# -----------------------------------------
# Semantic account role -> chart code. Override one role with
# LEDGER_CODE_<ROLE>, e.g. LEDGER_CODE_CASH=1010.
_DEFAULT_LEDGER_CODES = {
    "CASH": "1001",
    "BANK": "1002",
    "RECEIVABLES": "1101",
    "INVENTORY": "1201",
    "ACCOUNTS_PAYABLE": "2001",
    "CREDIT_CARDS": "2101",
    "CAPITAL": "3001",
    "SALES_REVENUE": "4001",
    "SALES_DISCOUNT": "4002",
    "COGS": "5001",
    "OPERATING_EXPENSES": "6001",
    "TAXES": "7001",
}

LEDGER_ACCOUNT_CODES = {
    role: (env.str(f"LEDGER_CODE_{role}", default=code) or code).strip()
    for role, code in _DEFAULT_LEDGER_CODES.items()
}

# PENDING posting intents older than this are picked up by reconcile_postings.
LEDGER_POSTING_STALE_MINUTES = env.int("LEDGER_POSTING_STALE_MINUTES")

# -----------------------------------------
# SENTRY (optional)
# -----------------------------------------
SENTRY_DSN = (env("SENTRY_DSN") or "").strip()

if SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=(env("SENTRY_ENVIRONMENT") or "development").strip(),
        integrations=[DjangoIntegration()],
        traces_sample_rate=env.float("SENTRY_TRACES_SAMPLE_RATE"),
        send_default_pii=env.bool("SENTRY_SEND_PII"),
    )
