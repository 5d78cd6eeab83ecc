# storefront/stores/blob.py
"""
String-keyed slots holding one serialized blob each.

This is the server-side stand-in for browser local storage: one slot per
guest cart, read whole, overwritten whole, removed on clear. No locking;
concurrent writers to one slot race and the last write wins.
"""
import re
from pathlib import Path
from typing import Protocol

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BlobStorage(Protocol):
    def get(self, key: str) -> str | None: ...
    def put(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


class MemoryBlobStorage:
    """Process-local slots; lost on restart."""

    def __init__(self) -> None:
        self._slots: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._slots.get(key)

    def put(self, key: str, value: str) -> None:
        self._slots[key] = value

    def delete(self, key: str) -> None:
        self._slots.pop(key, None)


class FileBlobStorage:
    """
    One UTF-8 file per slot under `root`.

    Keys are sanitized into file names, e.g. "cart:abc/1" -> "cart_abc_1.json".
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        name = _UNSAFE_CHARS.sub("_", key).strip("._") or "slot"
        return self.root / f"{name}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def put(self, key: str, value: str) -> None:
        self._path(key).write_text(value, encoding="utf-8")

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
