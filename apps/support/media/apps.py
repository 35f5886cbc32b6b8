from django.apps import AppConfig


class MediaConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"

    name = "apps.support.media"

    # migration / 테이블 prefix 용 앱 라벨 (변경 금지)
    label = "media"
    verbose_name = "Media Assets"
