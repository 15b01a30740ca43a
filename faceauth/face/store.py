from __future__ import annotations

import threading
from typing import Optional, Tuple

from faceauth.errors import NotReady
from faceauth.face.persistence import PersistenceAdapter
from faceauth.face.types import Identity
from faceauth.utils.log import get_logger

logger = get_logger(__name__)


class DescriptorStore:
    """Authoritative in-memory list of enrolled identities.

    Records are kept in insertion order, which is also the matcher's tie-break.
    The store does no validation of its own: uniqueness and persistence are the
    enrollment manager's job, done while holding `lock`.
    """

    def __init__(self, persistence: PersistenceAdapter):
        self.persistence = persistence
        # Single critical section shared by insert/clear and the persistence write.
        self.lock = threading.RLock()
        self._records: Tuple[Identity, ...] = ()
        self._ready = False
        # Bumped on every mutation; lets the matcher cache its stacked matrix.
        self._version = 0

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def version(self) -> int:
        return self._version

    @property
    def descriptor_dim(self) -> int:
        return int(self.persistence.config.descriptor_dim)

    def load(self) -> None:
        """Populate from persistence. A second call once Ready does nothing.

        An absent blob yields an empty Ready store; a read failure or corrupt blob
        leaves the store Uninitialized and raises PersistenceFailure.
        """
        with self.lock:
            if self._ready:
                return
            records = self.persistence.read_all()
            self._records = tuple(records or ())
            self._version += 1
            self._ready = True
        logger.info(f"身份库已加载: {len(self._records)} 条记录")

    def _require_ready(self, operation: str) -> None:
        if not self._ready:
            raise NotReady(operation)

    def all(self) -> Tuple[Identity, ...]:
        self._require_ready("all")
        return self._records

    def snapshot(self) -> Tuple[int, Tuple[Identity, ...]]:
        """Return (version, records) observed atomically."""
        with self.lock:
            self._require_ready("snapshot")
            return self._version, self._records

    def find(self, email: str) -> Optional[Identity]:
        for record in self.all():
            if record.email == email:
                return record
        return None

    def insert(self, record: Identity) -> None:
        with self.lock:
            self._require_ready("insert")
            self._records = self._records + (record,)
            self._version += 1

    def clear(self) -> None:
        with self.lock:
            self._require_ready("clear")
            self._records = ()
            self._version += 1

    def rollback(self, records: Tuple[Identity, ...]) -> None:
        """Put back a previous record sequence after a failed persistence write."""
        with self.lock:
            self._records = tuple(records)
            self._version += 1

    def __len__(self) -> int:
        return len(self.all())

    def __bool__(self) -> bool:
        # Truthy only when loaded and holding records; never raises NotReady.
        return self._ready and bool(self._records)
