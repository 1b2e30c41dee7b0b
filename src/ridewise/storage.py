"""Key-value storage backing the persisted reservation snapshot."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

from .exceptions import StorageError


class KeyValueStorage(Protocol):
    """Minimal string key-value slot interface."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage, mainly for tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """Durable storage keeping all keys in a single JSON object file.

    Writes go through a temporary file and ``os.replace`` so a crash never
    leaves a half-written file behind.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise StorageError(f"Stored value for {key} is not a string.")
        return value

    def set(self, key: str, value: str) -> None:
        data = self._read_for_update()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read_for_update()
        if key not in data:
            return
        del data[key]
        self._write(data)

    def _read(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StorageError("Storage file could not be read.") from exc
        except (json.JSONDecodeError, RecursionError) as exc:
            raise StorageError("Storage file is not valid JSON.") from exc
        if not isinstance(data, dict):
            raise StorageError("Storage file must contain a JSON object.")
        return data

    def _read_for_update(self) -> dict[str, object]:
        try:
            return self._read()
        except StorageError:
            # A corrupt file is replaced on the next write.
            return {}

    def _write(self, data: dict[str, object]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, indent=2, sort_keys=True)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError("Storage file could not be written.") from exc
