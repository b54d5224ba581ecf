"""
DeTransport Ads — BotWorker: long-polling worker with start/stop/run_forever.
Handles the getUpdates loop, backoff on network errors and 409 conflicts, and hands each
update to a KeyedDispatcher so one user's updates run in arrival order while other
users are served in parallel. Used by the runbot command.
"""

import logging
import signal
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from django.conf import settings

from ads.services.conversation import ConversationEngine
from ads.services.telegram_client import delete_webhook, get_me, get_updates
from ads.services.telegram_update_handler import get_engine, process_update

logger = logging.getLogger(__name__)

POLL_TIMEOUT = 30
RECONNECT_DELAY_BASE = 2
RECONNECT_DELAY_MAX = 60
MAX_CONSECUTIVE_ERRORS = 15
DEFAULT_LANES = 4
# 409 Conflict = another getUpdates already running; backoff and do not retry immediately
CONFLICT_BACKOFF_SEC = (5, 10, 20, 40, 60)
CONFLICT_BACKOFF_MAX_INDEX = len(CONFLICT_BACKOFF_SEC) - 1


def update_user_id(update: dict) -> int:
    """Telegram user id that sent the update, 0 when absent."""
    from_user = (
        (update.get("message") or {}).get("from")
        or (update.get("callback_query") or {}).get("from")
        or {}
    )
    try:
        return int(from_user.get("id", 0))
    except (TypeError, ValueError):
        return 0


class KeyedDispatcher:
    """
    Fixed set of single-thread lanes. Tasks with the same key always land on the same
    lane, so they run one at a time in submission order.
    """

    def __init__(self, lanes: int = DEFAULT_LANES, thread_name_prefix: str = "ads-lane"):
        if lanes < 1:
            raise ValueError("lanes must be >= 1")
        self._lanes = [
            ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{thread_name_prefix}-{i}")
            for i in range(lanes)
        ]

    def __len__(self):
        return len(self._lanes)

    def lane_for(self, key: int) -> int:
        return hash(key) % len(self._lanes)

    def submit(self, key: int, fn, *args, **kwargs) -> Future:
        return self._lanes[self.lane_for(key)].submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        for lane in self._lanes:
            lane.shutdown(wait=wait)


class BotWorker:
    """
    Single-token polling worker: validates token, clears the webhook, polls getUpdates
    and dispatches each update. Exposes start/stop/run_forever.
    """

    def __init__(
        self,
        token: str | None = None,
        lanes: int = DEFAULT_LANES,
        engine: ConversationEngine | None = None,
    ):
        self.token = token or settings.TELEGRAM_BOT_TOKEN
        self.lanes = lanes
        self.engine = engine
        self.dispatcher = None
        self._running = False
        self._shutdown_requested = threading.Event()

    def start(self) -> bool:
        """Validate token and remove any webhook (getUpdates is refused while one is set)."""
        if not self.token:
            logger.error("No TELEGRAM_BOT_TOKEN configured")
            return False
        success, me, err = get_me(self.token)
        if not success:
            logger.error("Invalid token: %s", err)
            return False
        ok, msg = delete_webhook(self.token, drop_pending_updates=False)
        if not ok:
            logger.warning("deleteWebhook failed: %s", msg)
        if self.engine is None:
            self.engine = get_engine()
        self.dispatcher = KeyedDispatcher(self.lanes)
        self._running = True
        self._shutdown_requested.clear()
        username = (me or {}).get("username")
        logger.info("Bot %s is now polling...", f"@{username}" if username else "")
        return True

    def stop(self) -> None:
        """Request graceful shutdown."""
        self._shutdown_requested.set()

    def _handle(self, update: dict) -> None:
        try:
            process_update(update, engine=self.engine, token=self.token)
        except Exception as e:
            logger.exception("process_update failed update_id=%s: %s", update.get("update_id"), e)

    def dispatch(self, update: dict) -> Future:
        return self.dispatcher.submit(update_user_id(update), self._handle, update)

    def poll_once(self, offset: int | None) -> tuple[bool, int | None, str | None]:
        """One getUpdates call; dispatches what it gets. Returns (success, next offset, error)."""
        success, updates, error = get_updates(self.token, offset=offset, timeout=POLL_TIMEOUT)
        if not success:
            return False, offset, error
        for update in updates or []:
            uid = update.get("update_id")
            if uid is not None:
                offset = uid + 1
            self.dispatch(update)
        return True, offset, None

    def run_forever(self, install_signal_handlers: bool = True) -> None:
        """
        Main polling loop. Runs until stop() is called, the token is rejected or too
        many consecutive errors occur.
        """
        if not self.start():
            return

        if install_signal_handlers:
            def _sigterm(_signum, _frame):
                logger.info("SIGTERM received, shutting down")
                self.stop()

            try:
                signal.signal(signal.SIGTERM, _sigterm)
            except ValueError:
                # not the main thread
                pass

        offset = None
        consecutive_errors = 0
        conflict_backoff_index = 0

        try:
            while self._running and not self._shutdown_requested.is_set():
                try:
                    success, offset, error = self.poll_once(offset)
                except Exception as e:
                    success, error = False, str(e)
                    logger.exception("Loop error: %s", e)
                if self._shutdown_requested.is_set():
                    break
                if success:
                    consecutive_errors = 0
                    conflict_backoff_index = 0
                    continue

                err_str = error or ""
                # 401/Unauthorized = invalid token; exit loop to avoid flooding logs
                if "401" in err_str or "unauthorized" in err_str.lower():
                    logger.warning("Invalid token (401 Unauthorized). Update TELEGRAM_BOT_TOKEN and restart.")
                    break
                if "409" in err_str or "conflict" in err_str.lower():
                    delay_sec = CONFLICT_BACKOFF_SEC[min(conflict_backoff_index, CONFLICT_BACKOFF_MAX_INDEX)]
                    logger.warning(
                        "getUpdates 409 Conflict (multiple instances?); backoff %ss (index=%s)",
                        delay_sec,
                        conflict_backoff_index,
                    )
                    self._shutdown_requested.wait(delay_sec)
                    if conflict_backoff_index < CONFLICT_BACKOFF_MAX_INDEX:
                        conflict_backoff_index += 1
                    continue

                consecutive_errors += 1
                logger.warning(
                    "getUpdates failed (%s/%s): %s",
                    consecutive_errors,
                    MAX_CONSECUTIVE_ERRORS,
                    err_str[:200],
                )
                if consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
                    logger.error("Too many errors, exiting")
                    break
                delay = min(
                    RECONNECT_DELAY_BASE * (2 ** (consecutive_errors - 1)),
                    RECONNECT_DELAY_MAX,
                )
                self._shutdown_requested.wait(delay)
        finally:
            self._running = False
            self.dispatcher.shutdown(wait=True)
            logger.info("Worker exiting")

