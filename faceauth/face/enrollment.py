from __future__ import annotations

from faceauth.errors import DuplicateEmail, InvalidEnrollment, NotReady
from faceauth.face.store import DescriptorStore
from faceauth.face.types import Identity, new_identity_id, now_ms
from faceauth.utils.log import get_logger
from faceauth.utils.math import as_descriptor, frozen_descriptor

logger = get_logger(__name__)


class EnrollmentManager:
    """Turns (name, email, descriptor) into a persisted, matchable identity.

    The uniqueness check, the in-memory insert and the full-list write run as one
    unit under the store lock; clear_all takes the same lock.
    """

    def __init__(self, store: DescriptorStore):
        self.store = store

    def enroll(self, name: str, email: str, descriptor) -> Identity:
        if not self.store.is_ready:
            raise NotReady("enroll")
        if not isinstance(name, str) or not name.strip():
            raise InvalidEnrollment("name must not be blank")
        if not isinstance(email, str) or not email.strip():
            raise InvalidEnrollment("email must not be blank")
        vec = as_descriptor(descriptor, self.store.descriptor_dim)

        with self.store.lock:
            if self.store.find(email) is not None:
                logger.warning(f"注册被拒绝，邮箱已存在: {email}")
                raise DuplicateEmail(email)

            record = Identity(
                id=new_identity_id(),
                name=name,
                email=email,
                descriptor=frozen_descriptor(vec),
                created_at=now_ms(),
            )

            previous = self.store.all()
            self.store.insert(record)
            try:
                self.store.persistence.write_all(self.store.all())
            except Exception:
                self.store.rollback(previous)
                logger.error(f"注册持久化失败，已回滚: {email}")
                raise

        logger.info(f"已注册: {name} <{email}>，当前共 {len(previous) + 1} 人")
        return record

    def clear_all(self) -> None:
        """Erase the persisted blob, then empty the store.

        If the erase fails the in-memory records stay, so the store and the
        persisted state never diverge.
        """
        if not self.store.is_ready:
            raise NotReady("clear_all")
        with self.store.lock:
            count = len(self.store.all())
            self.store.persistence.erase_all()
            self.store.clear()
        logger.info(f"已清空身份库（删除 {count} 条记录）")
