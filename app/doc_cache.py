"""
In-memory cache for the JSON documents served by the API.

A CachedDocument reloads its file when it has never been read, when the
file's mtime is newer than the last refresh, or when the TTL has elapsed.
Writes go through to disk and refresh the in-memory copy immediately.

Only one process is expected to write the data directory. Another process
writing the same file is picked up on the next mtime change or TTL expiry.
"""
import copy
import os
import threading
import time
from typing import Any, Callable, Optional

import structlog

from constants import CACHE_TTL_SECONDS
from json_store import ensure_json_file, get_mtime, read_json, write_json

logger = structlog.get_logger("cache")


class CachedDocument:
    def __init__(
        self,
        path: str,
        default: Any,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.path = path
        self.name = os.path.basename(path)
        self.default = default
        self.ttl = ttl
        self.clock = clock
        self.value: Optional[Any] = None
        self.last_refreshed: float = 0.0
        # Held by repositories around read-modify-write sequences
        self.lock = threading.RLock()

    def ensure(self) -> bool:
        return ensure_json_file(self.path, copy.deepcopy(self.default))

    def is_stale(self) -> bool:
        if self.value is None:
            return True
        if get_mtime(self.path) > self.last_refreshed:
            return True
        return self.clock() - self.last_refreshed > self.ttl

    def get(self) -> Any:
        with self.lock:
            if self.is_stale():
                self.value = read_json(self.path)
                self.last_refreshed = self.clock()
                logger.info(f"Cache refreshed: {self.name}")
            return self.value

    def write(self, document: Any) -> None:
        with self.lock:
            write_json(self.path, document)
            self.value = document
            self.last_refreshed = self.clock()

    def invalidate(self) -> None:
        with self.lock:
            self.value = None
            self.last_refreshed = 0.0
