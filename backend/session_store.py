"""
NetWorth Pro - Session State Store
==================================
Single holder of the current form data and its derived totals.

Every update merges a partial record, recomputes the totals in the same
call, and schedules a debounced auto-save to durable local storage.
Loading always recomputes totals from the restored records; stored totals
are never trusted.
"""

import itertools
import json
import logging
import os
import re
import tempfile
import threading
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Type, Union

from calculator import calculate_totals, coerce_amount
from currency import Currency, DEFAULT_CURRENCY, parse_currency
from models import (
    Assets,
    Calculations,
    CamelModel,
    Liabilities,
    MonthlyFinancials,
    NetWorthSnapshot,
    normalize_keys,
)

logger = logging.getLogger(__name__)

STORAGE_KEY = "netWorthData"

_SESSION_ID_RE = re.compile(r"[A-Za-z0-9_-]{8,64}")


def new_session_id() -> str:
    return uuid.uuid4().hex


def is_valid_session_id(session_id: Optional[str]) -> bool:
    return bool(session_id) and _SESSION_ID_RE.fullmatch(session_id) is not None


def session_storage_key(session_id: str) -> str:
    """
    Storage key for one browser session, e.g. ``netWorthData:3f2a...``.

    Raises:
        ValueError: if the id is empty or has characters outside [A-Za-z0-9_-].
    """
    if not is_valid_session_id(session_id):
        raise ValueError(f"Invalid session id: {session_id!r}")
    return f"{STORAGE_KEY}:{session_id}"


# =============================================================================
# DURABLE KEY-VALUE STORAGE
# =============================================================================

class LocalStorage:
    """String key-value storage interface."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(LocalStorage):
    """Process-local storage, for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage(LocalStorage):
    """
    Key-value storage kept in a single JSON file.

    Writes go to a temp file in the same directory and are then moved into
    place, so a crash mid-write leaves the previous file intact. Several
    sessions share one file (one key each), so read-modify-write cycles
    hold a process-wide lock.
    """

    _lock = threading.RLock()

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def _write_all(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            try:
                items = self._read_all()
            except ValueError:
                logger.warning(f"Replacing unreadable storage file {self.path}")
                items = {}
            items[key] = value
            self._write_all(items)

    def remove_item(self, key: str) -> None:
        with self._lock:
            items = self._read_all()
            if key in items:
                del items[key]
                self._write_all(items)


# =============================================================================
# DEBOUNCED AUTO-SAVE
# =============================================================================

@dataclass
class ScheduledTask:
    token: int
    due_at: float
    callback: Callable[[], Any]
    cancelled: bool = False


class AutoSaveScheduler:
    """
    Single-slot debounce scheduler.

    Scheduling a task cancels whatever was pending, so only the most recent
    task can run. Nothing runs on its own: the owner calls ``run_pending()``
    (the UI does so on every rerun and from a timer) and the task fires once
    its delay has elapsed.
    """

    def __init__(self, delay: float = 1.0, clock: Callable[[], float] = time.monotonic):
        self.delay = delay
        self.clock = clock
        self._tokens = itertools.count(1)
        self._pending: Optional[ScheduledTask] = None

    @property
    def pending(self) -> Optional[ScheduledTask]:
        return self._pending

    def schedule(self, callback: Callable[[], Any]) -> int:
        """Replace any pending task with ``callback``; returns its token."""
        self.cancel()
        task = ScheduledTask(
            token=next(self._tokens),
            due_at=self.clock() + self.delay,
            callback=callback,
        )
        self._pending = task
        return task.token

    def cancel(self, token: Optional[int] = None) -> bool:
        """Cancel the pending task (only if it matches ``token`` when given)."""
        task = self._pending
        if task is None or (token is not None and task.token != token):
            return False
        task.cancelled = True
        self._pending = None
        return True

    def run_pending(self, now: Optional[float] = None) -> bool:
        """Run the pending task if it is due. Returns True if it ran."""
        task = self._pending
        if task is None or task.cancelled:
            return False
        if (self.clock() if now is None else now) < task.due_at:
            return False
        self._pending = None
        task.callback()
        return True

    def flush(self) -> bool:
        """Run the pending task now, regardless of its due time."""
        task = self._pending
        if task is None:
            return False
        self._pending = None
        task.callback()
        return True


# =============================================================================
# SESSION STORE
# =============================================================================

def _lenient_record(model: Type[CamelModel], data: Any) -> CamelModel:
    """Build a record from untrusted data, coercing bad values to 0."""
    if not isinstance(data, Mapping):
        return model()
    values = {k: coerce_amount(v) for k, v in normalize_keys(model, data).items()}
    return model(**values)


class SessionStore:
    """
    Current Assets / Liabilities / MonthlyFinancials / Currency plus totals.

    Usage:
        store = SessionStore(JsonFileStorage("storage.json"))
        store.load()
        store.update_assets({"checking": 500, "stocks": 1500})
        store.calculations.total_assets   # 2000.0
        store.run_pending()               # auto-save once the delay has passed
    """

    def __init__(
        self,
        storage: Optional[LocalStorage] = None,
        autosave_delay: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        storage_key: str = STORAGE_KEY,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.storage_key = storage_key
        self.scheduler = AutoSaveScheduler(delay=autosave_delay, clock=clock)

        self.assets = Assets()
        self.liabilities = Liabilities()
        self.monthly_financials = MonthlyFinancials()
        self.currency: Currency = DEFAULT_CURRENCY
        self.calculations = Calculations()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _merge(self, record: CamelModel, partial: Mapping[str, Any]) -> CamelModel:
        updates = {
            k: coerce_amount(v) for k, v in normalize_keys(type(record), partial).items()
        }
        return record.model_copy(update=updates)

    def _recalculate(self) -> None:
        self.calculations = calculate_totals(
            self.assets, self.liabilities, self.monthly_financials
        )

    def _schedule_autosave(self) -> None:
        self.scheduler.schedule(self.save)

    def update_assets(self, partial: Mapping[str, Any]) -> Calculations:
        """Merge asset fields (unspecified fields keep their values) and recompute."""
        assets = self._merge(self.assets, partial)
        calculations = calculate_totals(assets, self.liabilities, self.monthly_financials)
        self.assets, self.calculations = assets, calculations
        self._schedule_autosave()
        return calculations

    def update_liabilities(self, partial: Mapping[str, Any]) -> Calculations:
        liabilities = self._merge(self.liabilities, partial)
        calculations = calculate_totals(self.assets, liabilities, self.monthly_financials)
        self.liabilities, self.calculations = liabilities, calculations
        self._schedule_autosave()
        return calculations

    def update_monthly_financials(self, partial: Mapping[str, Any]) -> Calculations:
        monthly = self._merge(self.monthly_financials, partial)
        calculations = calculate_totals(self.assets, self.liabilities, monthly)
        self.monthly_financials, self.calculations = monthly, calculations
        self._schedule_autosave()
        return calculations

    def update_currency(self, code: Union[str, Currency]) -> Currency:
        """
        Switch the display currency.

        Raises:
            ValueError: for an unsupported code (state is left unchanged).
        """
        self.currency = parse_currency(code)
        self._schedule_autosave()
        return self.currency

    def reset(self) -> None:
        """Back to all-zero records and USD. Storage is left to the auto-save."""
        self.assets = Assets()
        self.liabilities = Liabilities()
        self.monthly_financials = MonthlyFinancials()
        self.currency = DEFAULT_CURRENCY
        self.calculations = Calculations()
        self._schedule_autosave()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def snapshot(self) -> NetWorthSnapshot:
        """Read-only copy of the current records and totals."""
        calc = self.calculations
        return NetWorthSnapshot(
            assets=self.assets.model_copy(),
            liabilities=self.liabilities.model_copy(),
            monthly_financials=self.monthly_financials.model_copy(),
            currency=self.currency,
            total_assets=calc.total_assets,
            total_liabilities=calc.total_liabilities,
            net_worth=calc.net_worth,
            debt_to_asset_ratio=calc.debt_to_asset_ratio,
            monthly_income=calc.monthly_income,
            monthly_expenses=calc.monthly_expenses,
            monthly_cash_flow=calc.monthly_cash_flow,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def save(self) -> bool:
        """Write the snapshot to durable storage. Never raises."""
        try:
            payload = self.snapshot().model_dump_json(by_alias=True)
            self.storage.set_item(self.storage_key, payload)
        except Exception as e:
            logger.error(f"Error saving session data: {e}")
            return False
        logger.debug(f"Saved session data under '{self.storage_key}'")
        return True

    def load(self) -> bool:
        """
        Restore records from durable storage.

        Missing or malformed data falls back to defaults. Totals are always
        recomputed. Returns True only when a saved session was restored.
        """
        restored = False
        assets, liabilities, monthly = Assets(), Liabilities(), MonthlyFinancials()
        currency = DEFAULT_CURRENCY

        try:
            raw = self.storage.get_item(self.storage_key)
            parsed = json.loads(raw) if raw is not None else None
        except Exception as e:
            logger.error(f"Error loading session data: {e}")
            parsed = None

        if isinstance(parsed, dict):
            assets = _lenient_record(Assets, parsed.get("assets"))
            liabilities = _lenient_record(Liabilities, parsed.get("liabilities"))
            monthly = _lenient_record(MonthlyFinancials, parsed.get("monthlyFinancials"))
            try:
                currency = parse_currency(parsed.get("currency") or DEFAULT_CURRENCY)
            except ValueError:
                logger.warning(f"Ignoring unknown stored currency {parsed.get('currency')!r}")
            restored = True
        elif parsed is not None:
            logger.warning("Stored session data is not an object; using defaults")

        self.assets, self.liabilities, self.monthly_financials = assets, liabilities, monthly
        self.currency = currency
        self._recalculate()
        return restored

    def run_pending(self, now: Optional[float] = None) -> bool:
        """Run the debounced auto-save if it is due."""
        return self.scheduler.run_pending(now)

    def flush(self) -> bool:
        """Run a pending auto-save immediately."""
        return self.scheduler.flush()
