"""State stores - whole-ledger load/save under a single storage key.

A store owns no business logic. ``load()`` always returns a usable state:
missing, unparsable or wrongly shaped data degrades to an empty ledger.
``save()`` overwrites the stored record unconditionally (last writer wins).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ..domain.models import LedgerState

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "ledger_v1"


@runtime_checkable
class StateStore(Protocol):
    """Durable home of the full ledger state."""

    storage_key: str

    def load(self) -> LedgerState: ...

    def save(self, state: LedgerState) -> None: ...


def decode_state(raw: str | None, storage_key: str) -> LedgerState:
    """Parse a serialized record, substituting an empty state on any defect."""
    if not raw:
        return LedgerState()
    try:
        return LedgerState.from_dict(json.loads(raw))
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        logger.warning(f"Discarding unreadable ledger record {storage_key!r}: {e}")
        return LedgerState()


def encode_state(state: LedgerState) -> str:
    """Serialize the full state to the storage record format."""
    return json.dumps(state.to_dict(), ensure_ascii=False, separators=(",", ":"))


class MemoryStore:
    """In-process store holding the serialized record in a dict.

    Mirrors the browser key/value storage: records are kept as strings, so
    every ``load()`` yields fresh objects.
    """

    def __init__(self, storage_key: str = DEFAULT_STORAGE_KEY) -> None:
        self.storage_key = storage_key
        self._items: dict[str, str] = {}

    def load(self) -> LedgerState:
        return decode_state(self._items.get(self.storage_key), self.storage_key)

    def save(self, state: LedgerState) -> None:
        self._items[self.storage_key] = encode_state(state)

    def raw(self) -> str | None:
        """Return the serialized record, if any."""
        return self._items.get(self.storage_key)

    def put_raw(self, value: str) -> None:
        """Overwrite the serialized record verbatim."""
        self._items[self.storage_key] = value


class JsonFileStore:
    """Store backed by a JSON document mapping storage keys to records.

    Other keys in the document are preserved on save. Writes go to a
    temporary file that replaces the document, so readers never observe a
    half-written file.

    Example:
        store = JsonFileStore("data/ledger.json")
        state = store.load()
        store.save(state)
    """

    def __init__(
        self,
        path: Path | str | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        """Initialize the store.

        Args:
            path: JSON document path. Defaults to data/ledger.json
            storage_key: Key the ledger record lives under
        """
        if path is None:
            path = Path.cwd() / "data" / "ledger.json"
        self._path = Path(path)
        self.storage_key = storage_key

        # Ensure directory exists
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning(f"Could not read ledger file {self._path}: {e}")
            return {}

        try:
            document = json.loads(text) if text.strip() else {}
        except ValueError as e:
            logger.warning(f"Ledger file {self._path} is not valid JSON: {e}")
            return {}
        if not isinstance(document, dict):
            logger.warning(f"Ledger file {self._path} does not hold an object")
            return {}
        return document

    def load(self) -> LedgerState:
        record = self._read_document().get(self.storage_key)
        if record is None:
            return LedgerState()
        try:
            return LedgerState.from_dict(record)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Discarding unreadable ledger record {self.storage_key!r}: {e}")
            return LedgerState()

    def save(self, state: LedgerState) -> None:
        document = self._read_document()
        document[self.storage_key] = state.to_dict()

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(f"Ledger saved to {self._path}")


__all__ = [
    "DEFAULT_STORAGE_KEY",
    "JsonFileStore",
    "MemoryStore",
    "StateStore",
    "decode_state",
    "encode_state",
]
