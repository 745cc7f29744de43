"""Persistence utilities for the kakeibo core services."""

from __future__ import annotations

import errno
import json
import logging
import threading
from contextlib import suppress
from pathlib import Path
from typing import Optional

from .exceptions import PersistenceReadError, PersistenceWriteError, QuotaExceededError
from .models import AppState
from .notifications import Notifier

__all__ = [
    "DEFAULT_QUOTA_BYTES",
    "STORAGE_KEY",
    "BackupSlot",
    "JSONStorage",
]

logger = logging.getLogger(__name__)

STORAGE_KEY = "expense.v1"
DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024

LOAD_FAILED_MESSAGE = "データの読み込みに失敗しました"
QUOTA_EXCEEDED_MESSAGE = "ストレージ容量が不足しています。CSVエクスポートをご利用ください。"
SAVE_FAILED_MESSAGE = "データの保存に失敗しました"

_QUOTA_ERRNOS = {code for code in (errno.ENOSPC, getattr(errno, "EDQUOT", None)) if code is not None}


class JSONStorage:
    """Whole-state JSON blob store with crash-safe writes.

    Failures never escape ``load``/``save``: they are logged and turned into
    notifications, and callers see the default state or a ``False`` result.
    Callers that read, modify and write back hold ``lock`` for the whole cycle.
    """

    def __init__(
        self,
        base_path: Path,
        notifier: Optional[Notifier] = None,
        *,
        key: str = STORAGE_KEY,
        quota_bytes: Optional[int] = DEFAULT_QUOTA_BYTES,
    ) -> None:
        self._base_path = Path(base_path)
        self._base_path.mkdir(parents=True, exist_ok=True)
        self._path = self._base_path / f"{key}.json"
        self._notifier = notifier or Notifier()
        self._quota_bytes = quota_bytes
        self.lock = threading.RLock()

    def load(self) -> AppState:
        try:
            return self._read()
        except PersistenceReadError as exc:
            logger.error("Failed to load state from %s: %s", self._path, exc, exc_info=exc.__cause__)
            self._notifier.notify(LOAD_FAILED_MESSAGE, "error")
            return AppState()

    def save(self, state: AppState) -> bool:
        try:
            self._write(state)
        except QuotaExceededError as exc:
            logger.warning("Storage quota exceeded for %s: %s", self._path, exc)
            self._notifier.notify(QUOTA_EXCEEDED_MESSAGE, "error")
            return False
        except PersistenceWriteError as exc:
            logger.error("Failed to save state to %s: %s", self._path, exc, exc_info=exc.__cause__)
            self._notifier.notify(SAVE_FAILED_MESSAGE, "error")
            return False
        return True

    def _read(self) -> AppState:
        if not self._path.exists():
            return AppState()
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceReadError(f"Corrupted JSON data in {self._path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceReadError(f"Unable to read from {self._path}") from exc

        try:
            return AppState.from_dict(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise PersistenceReadError(f"Malformed state in {self._path}") from exc

    def _write(self, state: AppState) -> None:
        try:
            encoded = json.dumps(state.to_dict(), ensure_ascii=False, indent=2).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise PersistenceWriteError("State is not serialisable") from exc

        if self._quota_bytes is not None and len(encoded) > self._quota_bytes:
            raise QuotaExceededError(
                f"State of {len(encoded)} bytes exceeds quota of {self._quota_bytes} bytes"
            )

        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            with temp_path.open("wb") as handle:
                handle.write(encoded)
                handle.flush()
            # Use replace for atomic move on POSIX; ensures crash-safe persistence.
            temp_path.replace(self._path)
        except OSError as exc:
            with suppress(OSError):
                temp_path.unlink(missing_ok=True)
            if exc.errno in _QUOTA_ERRNOS:
                raise QuotaExceededError(f"No space left for {self._path}") from exc
            raise PersistenceWriteError(f"Unable to write to {self._path}") from exc

    @property
    def base_path(self) -> Path:
        return self._base_path

    @property
    def path(self) -> Path:
        return self._path

    @property
    def notifier(self) -> Notifier:
        return self._notifier


class BackupSlot:
    """Single pre-mutation snapshot of the expense collection."""

    def __init__(self, storage: JSONStorage) -> None:
        self._storage = storage

    def snapshot(self, state: AppState, persist: bool = True) -> bool:
        """Overwrite the slot with the collection as it is right now.

        With ``persist=False`` the caller writes the slot out together with its
        own change in a single save.
        """
        state.backup = list(state.expenses)
        if not persist:
            return True
        return self._storage.save(state)

    def restore(self) -> bool:
        with self._storage.lock:
            state = self._storage.load()
            if not state.backup:
                return False
            # The slot is left in place; restoring twice re-applies the same snapshot.
            state.expenses = list(state.backup)
            self._storage.save(state)
        return True
