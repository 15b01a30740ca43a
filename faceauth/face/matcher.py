from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from faceauth.config import EMPTY_STORE_DISTANCE, FACE_MATCH_THRESHOLD, UNKNOWN_LABEL
from faceauth.face.store import DescriptorStore
from faceauth.face.types import MatchResult
from faceauth.utils.log import get_logger
from faceauth.utils.math import as_descriptor, euclidean_distances

logger = get_logger(__name__)


@dataclass
class MatcherConfig:
    # Maximum Euclidean distance at which two descriptors are the same identity.
    threshold: float = FACE_MATCH_THRESHOLD
    unknown_label: str = UNKNOWN_LABEL
    # Distance reported when there is nothing to compare against.
    empty_distance: float = EMPTY_STORE_DISTANCE


class EuclideanMatcher:
    """Nearest-neighbor matcher over a DescriptorStore.

    Linear scan: one vectorized distance computation over all enrolled
    descriptors. Adequate for a few hundred identities. Ties go to the
    earliest-enrolled record (np.argmin returns the first minimum).
    """

    def __init__(self, store: DescriptorStore, config: Optional[MatcherConfig] = None):
        self.store = store
        self.config = config or MatcherConfig()

        # (store version, emails, (N, D) float32 matrix); always replaced as a whole.
        self._cache: Tuple[Optional[int], List[str], Optional[np.ndarray]] = (None, [], None)

    def _ensure_index(self) -> Tuple[List[str], Optional[np.ndarray]]:
        version, records = self.store.snapshot()
        cached_version, cached_emails, cached_matrix = self._cache
        if cached_version == version:
            return cached_emails, cached_matrix

        if records:
            emails = [r.email for r in records]
            matrix = np.ascontiguousarray(np.stack([r.descriptor for r in records], axis=0).astype(np.float32))
        else:
            emails, matrix = [], None

        self._cache = (version, emails, matrix)
        return emails, matrix

    def distances(self, query) -> List[Tuple[str, float]]:
        """All (email, distance) pairs in enrollment order."""
        q = as_descriptor(query, self.store.descriptor_dim)
        emails, matrix = self._ensure_index()
        if matrix is None:
            return []
        dists = euclidean_distances(matrix, q)
        return [(e, float(d)) for e, d in zip(emails, dists)]

    def match(self, query, threshold: Optional[float] = None) -> MatchResult:
        thr = self.config.threshold if threshold is None else float(threshold)
        if math.isnan(thr) or thr < 0:
            raise ValueError(f"threshold must be a non-negative number, got {threshold!r}")

        q = as_descriptor(query, self.store.descriptor_dim)
        emails, matrix = self._ensure_index()
        if matrix is None:
            return MatchResult(self.config.unknown_label, float(self.config.empty_distance), False)

        dists = euclidean_distances(matrix, q)
        best_i = int(np.argmin(dists))
        best_dist = float(dists[best_i])

        if best_dist <= thr:
            result = MatchResult(emails[best_i], best_dist, True)
        else:
            result = MatchResult(self.config.unknown_label, best_dist, False)
        logger.debug(f"match: {result.matched_email} distance={best_dist:.4f} threshold={thr:.3f}")
        return result
