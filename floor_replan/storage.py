"""
Whole-document persistence.

Every document (stock ledger, run history, new-collection batch, limits) is
loaded and replaced as a unit. ``lock`` gives callers a critical section
around their load -> mutate -> save cycle; locks are taken in sorted name
order so two operations can never deadlock on each other.
"""

import copy
import json
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Any, Iterator, Optional, TypeVar

from pydantic import BaseModel

from . import settings

logger = logging.getLogger(__name__)

DocumentT = TypeVar("DocumentT", bound=BaseModel)


class DocumentStore(ABC):
    def __init__(self):
        self._locks: dict[str, Lock] = {}
        self._registry_lock = Lock()

    def _lock_for(self, name: str) -> Lock:
        with self._registry_lock:
            return self._locks.setdefault(name, Lock())

    @contextmanager
    def lock(self, *names: str) -> Iterator[None]:
        acquired = []
        try:
            for name in sorted(set(names)):
                lock = self._lock_for(name)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def load(self, name: str, model: type[DocumentT]) -> DocumentT:
        """Returns the stored document, or an empty one when nothing usable is stored."""
        raw = self.read(name)
        if raw is None:
            return model()
        return model.model_validate(raw)

    def save(self, name: str, document: BaseModel) -> None:
        self.write(name, document.model_dump(mode="json", by_alias=True))

    @abstractmethod
    def read(self, name: str) -> Optional[dict[str, Any]]:
        """Raw document data, or None if the document does not exist."""

    @abstractmethod
    def write(self, name: str, data: dict[str, Any]) -> None:
        """Replaces the whole document."""


class JsonFileStore(DocumentStore):
    """One pretty-printed JSON file per document under ``data_dir``."""

    def __init__(self, data_dir: Path | None = None):
        super().__init__()
        self.data_dir = Path(data_dir or settings.DATA_DIR)

    def path(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def read(self, name: str) -> Optional[dict[str, Any]]:
        path = self.path(name)
        if not path.exists():
            return None
        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"⚠️ Unreadable document {path.name} ({e}). Starting from empty.")
            return None

    def write(self, name: str, data: dict[str, Any]) -> None:
        path = self.path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        temp_path.replace(path)


class MemoryStore(DocumentStore):
    """Keeps documents in a dict. Reads and writes copy, like a real store would."""

    def __init__(self):
        super().__init__()
        self._documents: dict[str, dict[str, Any]] = {}

    def read(self, name: str) -> Optional[dict[str, Any]]:
        data = self._documents.get(name)
        return copy.deepcopy(data) if data is not None else None

    def write(self, name: str, data: dict[str, Any]) -> None:
        self._documents[name] = copy.deepcopy(data)
