from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from .config import load_store_config
from .errors import StoreError
from .models import LogRecord, RecordCollection

logger = logging.getLogger(__name__)


class RecordStore:
  """
  Storage abstraction for the record collection.

  The collection is always read and written as a whole. Tests are expected
  to monkeypatch get_storage() with a store rooted in a temporary directory.
  """

  def load(self) -> RecordCollection:  # pragma: no cover - interface
    raise NotImplementedError

  def save(self, collection: RecordCollection) -> None:  # pragma: no cover - interface
    raise NotImplementedError

  def append(self, record: LogRecord) -> LogRecord:  # pragma: no cover - interface
    raise NotImplementedError


class JsonFileRecordStore(RecordStore):
  """
  Keeps the collection in a single JSON file: {"logs": [...]}.

  Saves go to a temporary file in the same directory which then replaces
  the canonical file with os.replace, so readers see either the old or the
  new image and never take a lock. Load-modify-save cycles are serialized
  with a process-wide writer lock.

  A missing image is initialized empty. An image that cannot be parsed is
  reset to empty and persisted rather than failing the caller; the reset is
  logged at ERROR and counted in `corrupt_recoveries` because the previous
  records are lost.
  """

  def __init__(self, path: Union[str, Path]) -> None:
    self._path = Path(path)
    self._lock = threading.RLock()
    self.corrupt_recoveries = 0

  @property
  def path(self) -> Path:
    return self._path

  def load(self) -> RecordCollection:
    collection, _ = self._read()
    if collection is not None:
      return collection

    with self._lock:
      # A writer may have replaced the image since the unlocked read.
      collection, problem = self._read()
      if collection is not None:
        return collection

      empty = RecordCollection()
      if problem is None:
        logger.info("Initializing empty log store at %s", self._path)
      else:
        self.corrupt_recoveries += 1
        logger.error(
          "Log store image at %s is corrupt (%s); resetting to an empty collection, stored records are lost",
          self._path,
          problem,
        )
      self._write(empty)
      return empty

  def save(self, collection: RecordCollection) -> None:
    with self._lock:
      self._write(collection)

  def append(self, record: LogRecord) -> LogRecord:
    with self._lock:
      collection = self.load()
      collection.logs.append(record)
      self._write(collection)
    return record

  def _read(self) -> Tuple[Optional[RecordCollection], Optional[str]]:
    """
    Return (collection, None) on success, (None, None) when no image exists
    and (None, reason) when the image is corrupt.
    """
    try:
      raw = self._path.read_text(encoding="utf-8")
    except FileNotFoundError:
      return None, None
    except UnicodeDecodeError as exc:
      return None, f"not valid UTF-8: {exc}"
    except OSError as exc:
      raise StoreError(f"Failed to read log store at {self._path}: {exc}") from exc

    try:
      return RecordCollection.model_validate_json(raw), None
    except PydanticValidationError as exc:
      return None, f"{exc.error_count()} validation error(s), first: {exc.errors()[0]['msg']}"

  def _write(self, collection: RecordCollection) -> None:
    payload = collection.model_dump_json(indent=2)
    directory = self._path.parent
    try:
      directory.mkdir(parents=True, exist_ok=True)
      fd, tmp = tempfile.mkstemp(dir=directory, prefix=f".{self._path.name}.", suffix=".tmp")
    except OSError as exc:
      raise StoreError(f"Failed to create temporary file for {self._path}: {exc}") from exc

    try:
      with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())
      os.replace(tmp, self._path)
    except OSError as exc:
      _discard(tmp)
      raise StoreError(f"Failed to persist log store at {self._path}: {exc}") from exc
    except Exception:
      _discard(tmp)
      raise

    logger.debug("Persisted %d log record(s) to %s", len(collection.logs), self._path)


def _discard(tmp: str) -> None:
  try:
    os.unlink(tmp)
  except FileNotFoundError:
    pass


_storage: RecordStore | None = None
_storage_lock = threading.Lock()


def get_storage() -> RecordStore:
  """
  Return the global storage instance.

  Every caller must share one instance so they share one writer lock.
  set_storage() swaps it out, for example to keep tests off the working directory.
  """
  global _storage
  if _storage is None:
    with _storage_lock:
      if _storage is None:
        _storage = JsonFileRecordStore(load_store_config().path)
  return _storage


def set_storage(backend: RecordStore | None) -> None:
  """
  Replace the global storage instance.

  Passing None makes the next get_storage() build a fresh store from config.
  """
  global _storage
  with _storage_lock:
    _storage = backend
