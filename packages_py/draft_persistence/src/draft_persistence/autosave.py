"""
Draft auto-save sessions.

A DraftSession keeps a near-real-time durable copy of in-progress editable
state. Saves happen on a debounce after each change, on a periodic tick, on
demand via save_now(), and unconditionally when the host signals teardown.
Storage faults never reach the caller; the editor keeps working without a
backup.
"""
import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Set

from .types import (
    DRAFT_VERSION,
    AutoSaveEvent,
    AutoSaveEventListener,
    AutoSaveEventType,
    AutoSaveOptions,
    DraftSerializationError,
    DraftState,
    DraftStore,
    Notification,
    Notifier,
    Scheduler,
    StoredDraft,
    TeardownSignal,
    TimerHandle,
)
from .scheduler import AsyncioScheduler
from .stores.memory import MemoryDraftStore
from .teardown import AtexitTeardownSignal

logger = logging.getLogger(__name__)

LOG_PREFIX = "[draft_persistence]"

DRAFT_KEY_PREFIX = "draft_"

SERVER_SAVED_NOTIFICATION = Notification(
    title="Draft saved",
    description="Your changes have been automatically saved.",
)

LOCAL_SAVED_NOTIFICATION = Notification(
    title="Draft saved locally",
    description="Your changes are saved on this device.",
)


def is_empty(data: Any) -> bool:
    """True for None and for empty strings, mappings and sequences."""
    if data is None:
        return True
    if isinstance(data, (str, bytes, dict, list, tuple, set)):
        return len(data) == 0
    return False


def serialize_snapshot(data: Any) -> str:
    """Canonical JSON used for change detection."""
    try:
        return json.dumps(data, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError) as error:
        raise DraftSerializationError(f"Draft data is not JSON serializable: {error}") from error


def log_notification(notification: Notification) -> None:
    """Default notifier: write the notification to the log."""
    logger.info(f"{LOG_PREFIX} {notification.title}: {notification.description}")


class DraftSession:
    """
    Auto-save session for one editable document.

    Example:
        session = DraftSession(
            AutoSaveOptions(key="soap_note_42", data=form, on_save=api.save_note),
            FileDraftStore("/var/lib/practice/drafts"),
        )
        session.start()
        ...
        session.update(new_form)   # debounced save ~2s later
        ...
        session.close()

    The first value passed in the options is the initial load: it never arms
    the debounce timer and a local-only save of it shows no notification.
    """

    def __init__(
        self,
        options: AutoSaveOptions,
        store: Optional[DraftStore] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        teardown: Optional[TeardownSignal] = None,
        notifier: Optional[Notifier] = None,
        key_prefix: str = DRAFT_KEY_PREFIX,
    ) -> None:
        if options.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if options.debounce_seconds < 0:
            raise ValueError("debounce_seconds must not be negative")

        self._key = options.key
        self._data = options.data
        self._on_save = options.on_save
        self._interval_seconds = options.interval_seconds
        self._enabled = options.enabled
        self._debounce_seconds = options.debounce_seconds

        self._store = store or MemoryDraftStore()
        self._scheduler = scheduler or AsyncioScheduler()
        self._teardown = teardown or AtexitTeardownSignal()
        self._notifier = notifier or log_notification
        self._storage_key = f"{key_prefix}{options.key}"

        self._last_saved_snapshot = ""
        self._initial_load = True
        self._interval_handle: Optional[TimerHandle] = None
        self._debounce_handle: Optional[TimerHandle] = None
        self._unsubscribe_teardown: Optional[Callable[[], None]] = None
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: Set[AutoSaveEventListener] = set()
        self._state = DraftState.IDLE
        self._started = False
        self._closed = False

    @property
    def key(self) -> str:
        return self._key

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def data(self) -> Any:
        return self._data

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def state(self) -> DraftState:
        return self._state

    # === Lifecycle ===

    def start(self) -> None:
        """Arm the periodic tick and subscribe to teardown. Idempotent."""
        if self._started or self._closed:
            return
        self._started = True
        self._unsubscribe_teardown = self._teardown.subscribe(self._handle_teardown)
        self._arm_interval()
        logger.debug(f"{LOG_PREFIX} Session started for {self._key}")

    def close(self) -> None:
        """
        Stop timers and unsubscribe from teardown.

        Saves already running are left to finish; see wait_idle().
        """
        if self._closed:
            return
        self._closed = True
        self._cancel_interval()
        self._cancel_debounce()
        if self._unsubscribe_teardown is not None:
            self._unsubscribe_teardown()
            self._unsubscribe_teardown = None
        self._state = DraftState.CLOSED
        logger.debug(f"{LOG_PREFIX} Session closed for {self._key}")

    async def wait_idle(self) -> None:
        """Wait for saves started by timers to finish."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def reconfigure(
        self,
        *,
        interval_seconds: Optional[float] = None,
        enabled: Optional[bool] = None,
    ) -> None:
        """Change interval and/or enabled; the periodic tick is recreated."""
        if interval_seconds is not None:
            if interval_seconds <= 0:
                raise ValueError("interval_seconds must be positive")
            self._interval_seconds = interval_seconds
        if enabled is not None:
            self._enabled = enabled
        self._arm_interval()

    def update(self, data: Any) -> None:
        """Replace the in-memory data and re-arm the debounced save."""
        self._data = data
        self._initial_load = False
        if self._closed:
            return
        self._state = DraftState.PENDING_SAVE
        self._cancel_debounce()
        self._debounce_handle = self._scheduler.call_later(
            self._debounce_seconds, self._on_debounce_fired
        )

    # === Durable store operations ===

    def save_to_store(self, data: Any) -> bool:
        """
        Write data as a durable draft record.

        Returns:
            True if the record was written; failures are logged, not raised.
        """
        try:
            record = StoredDraft(
                data=data,
                timestamp=datetime.now(timezone.utc),
                version=DRAFT_VERSION,
            )
            self._store.set(self._storage_key, record.model_dump_json())
        except Exception as error:
            logger.error(f"{LOG_PREFIX} Failed to save draft {self._storage_key}: {error}")
            self._emit(AutoSaveEventType.STORE_ERROR, {"operation": "set", "error": str(error)})
            return False
        return True

    def load_draft(self) -> Optional[StoredDraft]:
        """Read the durable record, or None if absent or unreadable."""
        try:
            raw = self._store.get(self._storage_key)
            if raw is None:
                return None
            return StoredDraft.model_validate_json(raw)
        except Exception as error:
            logger.error(f"{LOG_PREFIX} Failed to load draft {self._storage_key}: {error}")
            self._emit(AutoSaveEventType.STORE_ERROR, {"operation": "get", "error": str(error)})
            return None

    def clear_draft(self) -> None:
        """Remove the durable record. Idempotent."""
        try:
            self._store.delete(self._storage_key)
        except Exception as error:
            logger.error(f"{LOG_PREFIX} Failed to clear draft {self._storage_key}: {error}")
            self._emit(AutoSaveEventType.STORE_ERROR, {"operation": "delete", "error": str(error)})
            return
        self._emit(AutoSaveEventType.CLEARED)

    def has_draft(self) -> bool:
        """Whether a durable record currently exists."""
        return self.load_draft() is not None

    # === Auto-save ===

    async def perform_auto_save(self) -> bool:
        """
        Save the current data if it changed since the last save.

        Returns:
            True if the draft reached the durable store or the server
        """
        if not self._enabled or is_empty(self._data):
            return False

        data = self._data
        try:
            snapshot = serialize_snapshot(data)
        except DraftSerializationError as error:
            logger.error(f"{LOG_PREFIX} Skipping auto-save for {self._key}: {error}")
            return False

        if snapshot == self._last_saved_snapshot:
            if self._state in (DraftState.PENDING_SAVE, DraftState.SAVED):
                self._state = DraftState.IDLE
            return False

        stored = self.save_to_store(data)
        if stored:
            self._mark_saved(snapshot)
            self._emit(AutoSaveEventType.SAVED)
            logger.info(f"{LOG_PREFIX} Draft {self._key} saved")

        if self._on_save is not None:
            try:
                await self._on_save(data)
            except Exception as error:
                logger.error(f"{LOG_PREFIX} Server auto-save failed for {self._key}: {error}")
                self._emit(AutoSaveEventType.REMOTE_FAILED, {"error": str(error)})
            else:
                if not stored:
                    self._mark_saved(snapshot)
                    stored = True
                self._notify(SERVER_SAVED_NOTIFICATION)
                self._emit(AutoSaveEventType.REMOTE_SAVED)
        elif stored and not self._initial_load:
            self._notify(LOCAL_SAVED_NOTIFICATION)

        # With nothing written, the snapshot is untouched so the next tick retries.
        return stored

    save_now = perform_auto_save

    def _mark_saved(self, snapshot: str) -> None:
        self._last_saved_snapshot = snapshot
        if not self._closed:
            self._state = DraftState.SAVED

    # === Timers ===

    def _arm_interval(self) -> None:
        self._cancel_interval()
        if not self._started or self._closed or not self._enabled:
            return
        self._interval_handle = self._scheduler.call_every(
            self._interval_seconds, self._on_tick
        )

    def _cancel_interval(self) -> None:
        if self._interval_handle is not None:
            self._interval_handle.cancel()
            self._interval_handle = None

    def _cancel_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    def _on_tick(self) -> None:
        self._spawn_save()

    def _on_debounce_fired(self) -> None:
        self._debounce_handle = None
        self._spawn_save()

    def _spawn_save(self) -> None:
        task = asyncio.get_running_loop().create_task(self.perform_auto_save())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _handle_teardown(self) -> None:
        """Unconditional synchronous flush of the latest data."""
        if not self._enabled or is_empty(self._data):
            return
        if self.save_to_store(self._data):
            self._state = DraftState.FLUSHED_ON_EXIT
            self._emit(AutoSaveEventType.FLUSHED)
            logger.info(f"{LOG_PREFIX} Flushed draft {self._key} on teardown")

    # === Notifications and events ===

    def _notify(self, notification: Notification) -> None:
        try:
            self._notifier(notification)
        except Exception as error:
            logger.debug(f"{LOG_PREFIX} Notifier failed: {error}")

    def on(self, listener: AutoSaveEventListener) -> Callable[[], None]:
        """Add event listener."""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def off(self, listener: AutoSaveEventListener) -> None:
        """Remove event listener."""
        self._listeners.discard(listener)

    def _emit(self, event_type: AutoSaveEventType, metadata: Optional[dict] = None) -> None:
        event = AutoSaveEvent(
            type=event_type,
            key=self._key,
            timestamp=time.time(),
            metadata=metadata,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as error:
                logger.debug(f"{LOG_PREFIX} Listener failed for {event_type.value}: {error}")


def create_draft_session(
    options: AutoSaveOptions,
    store: Optional[DraftStore] = None,
    **kwargs: Any,
) -> DraftSession:
    """Create and start a draft session."""
    session = DraftSession(options, store, **kwargs)
    session.start()
    return session
