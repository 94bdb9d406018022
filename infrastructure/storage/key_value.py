"""Durable key-value sinks for settings and notification snapshots.

Values are opaque strings (callers store JSON documents). ``JsonFileKeyValueStore``
keeps one file per key under a directory and writes through a temp file plus
``os.replace`` so a crash mid-write never leaves a truncated value behind.
Concurrent writers get last-write-wins semantics; readers never take the lock.
"""
from __future__ import annotations

import logging
import os
import re
import threading
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional

from thermacore.domain.exceptions import RepositoryError

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class KeyValueStore(ABC):
    """Minimal durable key-value capability."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or ``None`` when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store used by tests and ephemeral runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class FileLock:
    """Advisory lock using atomic creation of a ``.lock`` file.

    Suitable for single-writer or low-contention use; retries until
    ``timeout`` seconds have elapsed. A lock file older than ``stale_after``
    seconds is assumed to belong to a crashed process and is removed.
    """

    def __init__(
        self,
        lock_path: str,
        timeout: float = 5.0,
        retry: float = 0.05,
        stale_after: float = 30.0,
    ) -> None:
        self.lock_path = lock_path
        self.timeout = float(timeout)
        self.retry = float(retry)
        self.stale_after = float(stale_after)
        self._acquired = False

    def _break_if_stale(self) -> bool:
        try:
            age = time.time() - os.path.getmtime(self.lock_path)
        except FileNotFoundError:
            return True
        if age < self.stale_after:
            return False
        logger.warning("Removing stale lock %s (%.1fs old)", self.lock_path, age)
        try:
            os.unlink(self.lock_path)
        except FileNotFoundError:
            pass
        return True

    def acquire(self) -> bool:
        start = time.time()
        while True:
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                os.close(fd)
                self._acquired = True
                return True
            except FileExistsError:
                if self._break_if_stale():
                    continue
                if (time.time() - start) >= self.timeout:
                    return False
                time.sleep(self.retry)

    def release(self) -> None:
        try:
            if self._acquired and os.path.exists(self.lock_path):
                os.unlink(self.lock_path)
        finally:
            self._acquired = False

    def __enter__(self):
        if not self.acquire():
            raise TimeoutError(f"Failed to acquire file lock: {self.lock_path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class JsonFileKeyValueStore(KeyValueStore):
    """One file per key under ``directory``."""

    def __init__(self, directory: str, *, lock_timeout: float = 5.0, stale_lock_after: float = 30.0) -> None:
        self.directory = directory
        self.lock_timeout = lock_timeout
        self.stale_lock_after = stale_lock_after
        os.makedirs(self.directory, exist_ok=True)

    def _path(self, key: str) -> str:
        safe = _UNSAFE_KEY_CHARS.sub("_", key) or "_"
        return os.path.join(self.directory, f"{safe}.json")

    def _lock(self, path: str) -> FileLock:
        return FileLock(path + ".lock", timeout=self.lock_timeout, stale_after=self.stale_lock_after)

    def get(self, key: str) -> Optional[str]:
        # Writers swap whole files in with os.replace, so reads need no lock
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return fh.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Failed to read key %s from %s: %s", key, path, e)
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            with self._lock(path):
                tmp = path + ".tmp"
                with open(tmp, "w", encoding="utf-8") as fh:
                    fh.write(value)
                os.replace(tmp, path)
        except (OSError, TimeoutError) as e:
            raise RepositoryError(f"Failed to write key {key}", detail={"path": path}) from e

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            with self._lock(path):
                if os.path.exists(path):
                    os.unlink(path)
        except (OSError, TimeoutError) as e:
            raise RepositoryError(f"Failed to delete key {key}", detail={"path": path}) from e
