from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Optional

import numpy as np


def new_identity_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, eq=False)
class Identity:
    id: str
    name: str
    email: str
    descriptor: np.ndarray  # (D,) float32
    created_at: int  # epoch milliseconds

    @property
    def dim(self) -> int:
        return int(self.descriptor.shape[0])


@dataclass(frozen=True)
class MatchResult:
    matched_email: str
    distance: float
    is_match: bool


@dataclass(frozen=True)
class Verification:
    status: str
    match: Optional[MatchResult]
    identity: Optional[Identity] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"
