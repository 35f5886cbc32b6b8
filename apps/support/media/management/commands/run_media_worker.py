# PATH: apps/support/media/management/commands/run_media_worker.py
"""
Media Worker 실행 (SQS Long Polling)

  python manage.py run_media_worker
  python manage.py run_media_worker --once   # 1회 poll 후 종료 (운영 점검용)
"""
import logging

from django.core.management.base import BaseCommand, CommandError

from apps.worker.media_worker.sqs_main import LOG_FORMAT, run_worker


class Command(BaseCommand):
    help = "Consume S3 upload notifications from SQS and process media assets"

    def add_arguments(self, parser):
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run a single receive/process cycle and exit",
        )

    def handle(self, *args, **options):
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        rc = run_worker(once=options.get("once", False))
        if rc != 0:
            raise CommandError(f"media worker exited with code {rc}")
