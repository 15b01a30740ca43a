from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from faceauth.config import DATA_DIR, DESCRIPTOR_DIM, STORAGE_KEY
from faceauth.errors import PersistenceFailure
from faceauth.face.types import Identity
from faceauth.utils.log import get_logger
from faceauth.utils.serializer import deserialize_identity, serialize_identities

logger = get_logger(__name__)


@dataclass
class PersistenceConfig:
    # Well-known key under which the whole identity list is stored.
    storage_key: str = STORAGE_KEY
    # Fixed descriptor length; entries of any other length mark the blob as corrupt.
    descriptor_dim: int = DESCRIPTOR_DIM


def encode_blob(records: Sequence[Identity]) -> str:
    return json.dumps(serialize_identities(records))


# Everything the JSON parser and the entry codec raise on malformed input.
_DECODE_ERRORS = (ValueError, TypeError, OverflowError, RecursionError)


def decode_blob(text: str, dim: int) -> List[Identity]:
    """Parse a persisted blob. Any malformation raises PersistenceFailure.

    Duplicate emails or ids are corruption too: they can never be produced by
    enrollment.
    """
    try:
        data = json.loads(text)
    except _DECODE_ERRORS as e:
        raise PersistenceFailure(f"persisted identity blob is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise PersistenceFailure(f"persisted identity blob must be a list, got {type(data).__name__}")

    records: List[Identity] = []
    seen_emails = set()
    seen_ids = set()
    for i, entry in enumerate(data):
        try:
            record = deserialize_identity(entry, dim)
        except _DECODE_ERRORS as e:
            raise PersistenceFailure(f"persisted identity #{i} is corrupt: {e}") from e
        if record.email in seen_emails:
            raise PersistenceFailure(f"persisted identity #{i} repeats email {record.email!r}")
        if record.id in seen_ids:
            raise PersistenceFailure(f"persisted identity #{i} repeats id {record.id!r}")
        seen_emails.add(record.email)
        seen_ids.add(record.id)
        records.append(record)
    return records


class PersistenceAdapter:
    """Durable storage of the full identity list as a single logical blob.

    There is no per-record persistence: every mutation rewrites the whole list.
    """

    def __init__(self, config: Optional[PersistenceConfig] = None):
        self.config = config or PersistenceConfig()

    def read_all(self) -> Optional[List[Identity]]:
        """Return the persisted records, or None when nothing has been stored yet."""
        text = self._read_blob()
        if text is None:
            return None
        return decode_blob(text, self.config.descriptor_dim)

    def write_all(self, records: Sequence[Identity]) -> None:
        self._write_blob(encode_blob(records))

    def erase_all(self) -> None:
        self._erase_blob()

    def _read_blob(self) -> Optional[str]:
        raise NotImplementedError

    def _write_blob(self, text: str) -> None:
        raise NotImplementedError

    def _erase_blob(self) -> None:
        raise NotImplementedError


class MemoryPersistence(PersistenceAdapter):
    """Process-local key-value adapter.

    Keeps the encoded JSON text rather than the objects, so reloading goes through
    the same codec as on-disk storage.
    """

    def __init__(self, config: Optional[PersistenceConfig] = None, blobs: Optional[Dict[str, str]] = None):
        super().__init__(config)
        self.blobs: Dict[str, str] = blobs if blobs is not None else {}

    def _read_blob(self) -> Optional[str]:
        return self.blobs.get(self.config.storage_key)

    def _write_blob(self, text: str) -> None:
        self.blobs[self.config.storage_key] = text

    def _erase_blob(self) -> None:
        self.blobs.pop(self.config.storage_key, None)


class JsonFilePersistence(PersistenceAdapter):
    """Key-value directory: the blob for key K lives in `<data_dir>/K.json`."""

    def __init__(self, data_dir: Path = Path(DATA_DIR), config: Optional[PersistenceConfig] = None):
        super().__init__(config)
        self.data_dir = Path(data_dir)

    @property
    def path(self) -> Path:
        return self.data_dir / f"{self.config.storage_key}.json"

    def _read_blob(self) -> Optional[str]:
        fp = self.path
        if not fp.exists():
            return None
        try:
            return fp.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"读取身份库失败: {fp}: {e}")
            raise PersistenceFailure(f"failed to read {fp}: {e}") from e
        except UnicodeDecodeError as e:
            logger.error(f"身份库不是有效的 UTF-8: {fp}: {e}")
            raise PersistenceFailure(f"{fp} is not valid UTF-8: {e}") from e

    def _write_blob(self, text: str) -> None:
        fp = self.path
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file first so a crash never leaves a truncated blob.
            fd, tmp_name = tempfile.mkstemp(prefix=f".{fp.name}.", suffix=".tmp", dir=str(self.data_dir))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, fp)
            tmp_name = None
        except OSError as e:
            logger.error(f"写入身份库失败: {fp}: {e}")
            raise PersistenceFailure(f"failed to write {fp}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def _erase_blob(self) -> None:
        fp = self.path
        try:
            fp.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error(f"删除身份库失败: {fp}: {e}")
            raise PersistenceFailure(f"failed to erase {fp}: {e}") from e
