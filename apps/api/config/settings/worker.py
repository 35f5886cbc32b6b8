# apps/api/config/settings/worker.py

from .base import *

# 워커는 URLConf 불필요
ROOT_URLCONF = None

# ==================================================
# LOGGING
# ==================================================
# 포맷은 워커 엔트리포인트(basicConfig)가 담당. Django 는 root 로 전파만.

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "loggers": {
        "django.db.backends": {"level": "WARNING"},
        "botocore": {"level": "WARNING"},
        "boto3": {"level": "WARNING"},
        "kombu": {"level": "WARNING"},
    },
}
