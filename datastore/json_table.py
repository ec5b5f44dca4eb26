from __future__ import annotations
import json
import os
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class StoreError(RuntimeError):
    """Raised when a store cannot be read, written or initialized."""


class JsonTable(Generic[ModelT]):
    """Keyed table of pydantic records, optionally mirrored to a JSON file.

    Writes replace the whole record under the lock and rewrite the file through
    a temporary sibling, so readers never observe a partially updated item.
    """

    def __init__(
        self,
        name: str,
        model: Type[ModelT],
        key: Callable[[ModelT], str],
        persistence_path: Optional[Path] = None,
    ) -> None:
        self.name = name
        self.model = model
        self._key = key
        self._items: Dict[str, ModelT] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            try:
                persistence_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StoreError(f"Cannot prepare storage for table {name!r}: {exc}") from exc
            self._load_from_disk()

    def put_item(self, item: ModelT) -> None:
        key = self._key(item)
        with self._lock:
            previous = self._items.get(key)
            self._items[key] = item.model_copy(deep=True)
            try:
                self._persist()
            except OSError as exc:
                if previous is None:
                    self._items.pop(key, None)
                else:
                    self._items[key] = previous
                raise StoreError(f"Failed to persist {key!r} in table {self.name!r}: {exc}") from exc

    def get_item(self, key: str) -> Optional[ModelT]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            return item.model_copy(deep=True)

    def scan(self) -> list[ModelT]:
        """Return deep copies of all stored records ordered by key."""

        with self._lock:
            return [self._items[key].model_copy(deep=True) for key in sorted(self._items)]

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {key: item.model_dump(mode="json") for key, item in self._items.items()}
        scratch = self.persistence_path.with_name(self.persistence_path.name + ".tmp")
        scratch.write_text(json.dumps(payload, indent=2, sort_keys=True))
        os.replace(scratch, self.persistence_path)

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(
                f"Cannot load table {self.name!r} from {self.persistence_path}: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise StoreError(f"Table file {self.persistence_path} must hold a JSON object.")

        try:
            for key, payload in data.items():
                self._items[key] = self.model.model_validate(payload)
        except ValidationError as exc:
            raise StoreError(
                f"Table {self.name!r} holds an invalid record: {exc}"
            ) from exc
