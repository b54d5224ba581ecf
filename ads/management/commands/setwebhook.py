"""
Register (or remove) the Telegram webhook for TELEGRAM_BOT_TOKEN.
Run: python manage.py setwebhook [--url URL] [--delete] [--drop-pending]
"""

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.urls import reverse

from ads.services.telegram_client import delete_webhook, set_webhook


class Command(BaseCommand):
    help = "Set the webhook to PUBLIC_URL + /telegram/webhook/, or delete it with --delete."

    def add_arguments(self, parser):
        parser.add_argument("--url", type=str, default="", help="Public base URL (default: PUBLIC_URL)")
        parser.add_argument("--delete", action="store_true", help="Remove the webhook instead")
        parser.add_argument(
            "--drop-pending",
            action="store_true",
            help="With --delete: drop updates waiting on Telegram's side",
        )

    def handle(self, *args, **options):
        token = settings.TELEGRAM_BOT_TOKEN
        if not token:
            raise CommandError("TELEGRAM_BOT_TOKEN is not set.")

        if options["delete"]:
            ok, msg = delete_webhook(token, drop_pending_updates=options["drop_pending"])
            if not ok:
                raise CommandError(f"deleteWebhook failed: {msg}")
            self.stdout.write(self.style.SUCCESS(msg))
            return

        base_url = (options["url"] or getattr(settings, "PUBLIC_URL", "") or "").strip().rstrip("/")
        if not base_url.startswith("https://"):
            raise CommandError("A public https:// base URL is required (PUBLIC_URL or --url).")
        webhook_url = base_url + reverse("ads:telegram_webhook")
        ok, msg = set_webhook(token, webhook_url, secret_token=getattr(settings, "TELEGRAM_WEBHOOK_SECRET", "") or None)
        if not ok:
            raise CommandError(f"setWebhook failed: {msg}")
        self.stdout.write(self.style.SUCCESS(f"{msg}: {webhook_url}"))
