"""
Django settings for the snapshot sync service.

Everything deployment-specific comes from environment variables.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.environ.get("SNAPSHOT_DATA_DIR", BASE_DIR / "data"))

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() == "true"
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "snapshot_sync",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "config.urls"

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

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("SNAPSHOT_DB_PATH", DATA_DIR / "db.sqlite3"),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = "UTC"
STATIC_URL = "static/"

# Snapshot sync
SNAPSHOT_PREFERENCES_FILE = Path(
    os.environ.get("SNAPSHOT_PREFERENCES_FILE", DATA_DIR / "preferences.json")
)
SNAPSHOT_EXPORT_SOURCE = Path(os.environ.get("SNAPSHOT_EXPORT_SOURCE", DATA_DIR / "export.json"))
SNAPSHOT_IMPORT_DESTINATION = Path(
    os.environ.get("SNAPSHOT_IMPORT_DESTINATION", DATA_DIR / "import.json")
)
SNAPSHOT_EXPORT_PIPELINE = os.environ.get(
    "SNAPSHOT_EXPORT_PIPELINE", "snapshot_sync.pipelines.FileExportPipeline"
)
SNAPSHOT_IMPORT_PIPELINE = os.environ.get(
    "SNAPSHOT_IMPORT_PIPELINE", "snapshot_sync.pipelines.FileImportPipeline"
)
SNAPSHOT_FILENAME = os.environ.get("SNAPSHOT_FILENAME", "linkora_backup.json")
SNAPSHOT_DESCRIPTION = os.environ.get("SNAPSHOT_DESCRIPTION", "Linkora Backup")
SNAPSHOT_HTTP_TIMEOUT = float(os.environ.get("SNAPSHOT_HTTP_TIMEOUT", "30"))
SNAPSHOT_FALLBACK_INTERVAL_SECONDS = int(os.environ.get("SNAPSHOT_FALLBACK_INTERVAL_SECONDS", "3600"))
SNAPSHOT_SCHEDULER_AUTOSTART = os.environ.get("SNAPSHOT_SCHEDULER_AUTOSTART", "false").lower() == "true"
# Pause holds older than this are ignored, so a crashed purge or restore cannot block backups forever
SNAPSHOT_PAUSE_TTL_SECONDS = int(os.environ.get("SNAPSHOT_PAUSE_TTL_SECONDS", str(6 * 60 * 60)))
GITHUB_API_URL = os.environ.get("GITHUB_API_URL", "https://api.github.com")

# Celery
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_TASK_ACKS_LATE = True
CELERY_BEAT_SCHEDULE = {
    "backup-due-snapshot": {
        "task": "snapshot_sync.tasks.backup_due_snapshot",
        "schedule": 15 * 60,
    },
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "snapshot_sync": {
            "handlers": ["console"],
            "level": os.environ.get("SNAPSHOT_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
