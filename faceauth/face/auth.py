from __future__ import annotations

from typing import List, Optional

from faceauth.face.matcher import EuclideanMatcher
from faceauth.face.store import DescriptorStore
from faceauth.face.types import Identity, Verification
from faceauth.utils.log import get_logger

logger = get_logger(__name__)

STATUS_SUCCESS = "success"
STATUS_FACE_MISMATCH = "face_mismatch"
STATUS_UNKNOWN_FACE = "unknown_face"
STATUS_INVALID_EMAIL = "invalid_email"


def looks_like_email(email: str) -> bool:
    return isinstance(email, str) and bool(email.strip()) and "@" in email


class Authenticator:
    """Login check: the live face must match the identity behind the entered email."""

    def __init__(self, store: DescriptorStore, matcher: EuclideanMatcher):
        self.store = store
        self.matcher = matcher

    def verify(self, email: str, descriptor, threshold: Optional[float] = None) -> Verification:
        if not looks_like_email(email):
            return Verification(STATUS_INVALID_EMAIL, None)

        result = self.matcher.match(descriptor, threshold)
        if not result.is_match:
            logger.info(f"登录失败，未识别的人脸 (distance={result.distance:.4f})")
            return Verification(STATUS_UNKNOWN_FACE, result)

        if result.matched_email != email:
            logger.warning(f"登录失败，人脸与邮箱不符: 输入 {email}，识别为 {result.matched_email}")
            return Verification(STATUS_FACE_MISMATCH, result)

        identity = self.store.find(result.matched_email)
        if identity is None:
            # Cleared between the match and the lookup.
            return Verification(STATUS_UNKNOWN_FACE, result)
        logger.info(f"登录成功: {identity.name} <{identity.email}>")
        return Verification(STATUS_SUCCESS, result, identity)

    def list_identities(self) -> List[Identity]:
        return list(self.store.all())

    def get_identity(self, email: str) -> Optional[Identity]:
        return self.store.find(email)
