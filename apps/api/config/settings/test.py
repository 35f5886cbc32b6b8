# apps/api/config/settings/test.py

from .base import *

ROOT_URLCONF = None

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}
