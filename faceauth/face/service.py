from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from faceauth.config import DATA_DIR, DESCRIPTOR_DIM, FACE_MATCH_THRESHOLD, STORAGE_KEY
from faceauth.face.auth import Authenticator
from faceauth.face.enrollment import EnrollmentManager
from faceauth.face.matcher import EuclideanMatcher, MatcherConfig
from faceauth.face.persistence import JsonFilePersistence, PersistenceAdapter, PersistenceConfig
from faceauth.face.store import DescriptorStore
from faceauth.face.types import Identity, MatchResult, Verification


@dataclass
class FaceAuthConfig:
    data_dir: str = DATA_DIR
    storage_key: str = STORAGE_KEY
    descriptor_dim: int = DESCRIPTOR_DIM
    threshold: float = FACE_MATCH_THRESHOLD


class FaceAuth:
    """Local face login: one store shared by matching, enrollment and verification.

    Construct once, call `load()` when the descriptor model is ready, then pass the
    instance to whatever layer handles login and registration. Separate instances
    are fully isolated from each other.
    """

    def __init__(self, config: Optional[FaceAuthConfig] = None, persistence: Optional[PersistenceAdapter] = None):
        self.config = config or FaceAuthConfig()
        if persistence is None:
            persistence = JsonFilePersistence(
                Path(self.config.data_dir),
                PersistenceConfig(storage_key=self.config.storage_key, descriptor_dim=int(self.config.descriptor_dim)),
            )
        self.persistence = persistence

        self.store = DescriptorStore(persistence)
        self.matcher = EuclideanMatcher(self.store, MatcherConfig(threshold=float(self.config.threshold)))
        self.enrollment = EnrollmentManager(self.store)
        self.authenticator = Authenticator(self.store, self.matcher)

    @property
    def is_ready(self) -> bool:
        return self.store.is_ready

    def load(self) -> "FaceAuth":
        self.store.load()
        return self

    def match(self, descriptor, threshold: Optional[float] = None) -> MatchResult:
        return self.matcher.match(descriptor, threshold)

    def enroll(self, name: str, email: str, descriptor) -> Identity:
        return self.enrollment.enroll(name, email, descriptor)

    def verify(self, email: str, descriptor, threshold: Optional[float] = None) -> Verification:
        return self.authenticator.verify(email, descriptor, threshold)

    def list_identities(self) -> List[Identity]:
        return self.authenticator.list_identities()

    def get_identity(self, email: str) -> Optional[Identity]:
        return self.authenticator.get_identity(email)

    def clear_all(self) -> None:
        self.enrollment.clear_all()
