"""
DeTransport Ads — bot runtime in long-polling mode.
Run: python manage.py runbot [--lanes N] [--once] [--debug]

- Validates the token, removes any webhook, then loops on getUpdates.
- Updates are dispatched to per-user ordered lanes.
- File lock prevents two pollers on the same project (avoids Telegram 409).
"""

import logging
import os
import sys
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand

from ads.services.bot_worker import DEFAULT_LANES, BotWorker

RUNBOT_LOCK_FILENAME = "runbot.lock"


def _read_lock_pid(lock_path: Path) -> str:
    try:
        with open(lock_path, "r") as f:
            return f.read().strip() or "?"
    except OSError:
        return "?"


def _acquire_file_lock(base_dir: Path):
    """Acquire exclusive file lock under base_dir/logs/runbot.lock. Returns (lock_handle, None) or (None, error_msg)."""
    log_dir = base_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    lock_path = log_dir / RUNBOT_LOCK_FILENAME
    try:
        fd = os.open(str(lock_path), os.O_CREAT | os.O_RDWR, 0o644)
    except OSError as e:
        return None, f"Cannot create lock file: {e}"
    busy = f"Another runbot process is running (lock file PID: {{pid}}). Stop it first to avoid Telegram 409 conflict."
    try:
        if os.name == "nt":
            import msvcrt
            try:
                msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
            except OSError:
                os.close(fd)
                return None, busy.format(pid=_read_lock_pid(lock_path))
        else:
            import fcntl
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                os.close(fd)
                return None, busy.format(pid=_read_lock_pid(lock_path))
        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode())
        return (lock_path, fd), None
    except OSError as e:
        os.close(fd)
        return None, str(e)


def _release_file_lock(lock_handle):
    """Release file lock. lock_handle is (lock_path, fd) or None."""
    if not lock_handle:
        return
    lock_path, fd = lock_handle
    if os.name != "nt":
        import fcntl
        fcntl.flock(fd, fcntl.LOCK_UN)
    os.close(fd)
    lock_path.unlink(missing_ok=True)


class Command(BaseCommand):
    help = "Run the Telegram bot with long polling. Use --once for a single getUpdates call."

    def add_arguments(self, parser):
        parser.add_argument(
            "--lanes",
            type=int,
            default=DEFAULT_LANES,
            help=f"Number of per-user ordered worker lanes (default: {DEFAULT_LANES})",
        )
        parser.add_argument(
            "--once",
            action="store_true",
            help="Poll once, process the received updates and exit",
        )
        parser.add_argument(
            "--debug",
            action="store_true",
            help="Enable debug logging",
        )

    def handle(self, *args, **options):
        current_pid = os.getpid()
        if options.get("debug"):
            logging.getLogger("ads").setLevel(logging.DEBUG)

        mode = (getattr(settings, "TELEGRAM_MODE", "polling") or "polling").lower()
        if mode == "webhook":
            self.stdout.write(self.style.WARNING(
                "TELEGRAM_MODE=webhook: starting polling will remove the registered webhook."
            ))

        file_lock_handle, file_lock_err = _acquire_file_lock(Path(settings.BASE_DIR))
        if file_lock_err:
            self.stdout.write(self.style.ERROR(file_lock_err))
            sys.exit(1)

        worker = BotWorker(lanes=max(1, options["lanes"]))
        try:
            self.stdout.write(self.style.SUCCESS(f"runbot starting (PID={current_pid}) — Ctrl+C to stop"))
            if options.get("once"):
                if not worker.start():
                    self.stdout.write(self.style.ERROR("Bot could not start; see log for details."))
                    return
                try:
                    success, _, error = worker.poll_once(None)
                finally:
                    worker.dispatcher.shutdown(wait=True)
                if not success:
                    self.stdout.write(self.style.ERROR(f"getUpdates failed: {error}"))
                else:
                    self.stdout.write(self.style.SUCCESS("Single poll completed."))
            else:
                try:
                    worker.run_forever()
                except KeyboardInterrupt:
                    self.stdout.write(self.style.WARNING("Interrupted"))
                    worker.stop()
        finally:
            _release_file_lock(file_lock_handle)
            self.stdout.write(self.style.SUCCESS(f"runbot process exiting (PID={current_pid})"))
