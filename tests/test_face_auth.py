from __future__ import annotations

import json
import sys

from pathlib import Path

import numpy as np
import pytest

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

import face_auth

from faceauth.errors import NotReady
from faceauth.face.auth import STATUS_FACE_MISMATCH, STATUS_INVALID_EMAIL, STATUS_SUCCESS, STATUS_UNKNOWN_FACE
from faceauth.face.persistence import MemoryPersistence, PersistenceConfig
from faceauth.face.service import FaceAuth, FaceAuthConfig

DIM = 128


def _desc(seed: int) -> np.ndarray:
    return np.random.default_rng(seed).normal(0, 0.1, DIM).astype(np.float32)


def _auth() -> FaceAuth:
    return FaceAuth(FaceAuthConfig(descriptor_dim=DIM), MemoryPersistence(PersistenceConfig(descriptor_dim=DIM))).load()


def test_verify_success_returns_identity():
    auth = _auth()
    auth.enroll("Alice", "alice@x.com", _desc(1))

    v = auth.verify("alice@x.com", _desc(1))
    assert v.status == STATUS_SUCCESS
    assert v.ok
    assert v.identity.name == "Alice"
    assert v.match.is_match


def test_verify_face_of_someone_else():
    auth = _auth()
    auth.enroll("Alice", "alice@x.com", _desc(1))
    auth.enroll("Bob", "bob@x.com", _desc(2))

    v = auth.verify("alice@x.com", _desc(2))
    assert v.status == STATUS_FACE_MISMATCH
    assert v.identity is None
    assert v.match.matched_email == "bob@x.com"


def test_verify_unknown_face():
    auth = _auth()
    auth.enroll("Alice", "alice@x.com", _desc(1))
    v = auth.verify("alice@x.com", _desc(99))
    assert v.status == STATUS_UNKNOWN_FACE
    assert not v.ok


@pytest.mark.parametrize("email", ["", "   ", "alice.x.com"])
def test_verify_rejects_malformed_email(email: str):
    v = _auth().verify(email, _desc(1))
    assert v.status == STATUS_INVALID_EMAIL
    assert v.match is None


def test_lookup_helpers():
    auth = _auth()
    auth.enroll("Alice", "alice@x.com", _desc(1))
    auth.enroll("Bob", "bob@x.com", _desc(2))

    assert [i.email for i in auth.list_identities()] == ["alice@x.com", "bob@x.com"]
    assert auth.get_identity("bob@x.com").name == "Bob"
    assert auth.get_identity("carol@x.com") is None


def test_instances_are_isolated():
    a, b = _auth(), _auth()
    a.enroll("Alice", "alice@x.com", _desc(1))
    assert len(b.list_identities()) == 0
    assert b.match(_desc(1)).matched_email == "unknown"


def test_not_ready_until_loaded():
    auth = FaceAuth(FaceAuthConfig(descriptor_dim=DIM), MemoryPersistence(PersistenceConfig(descriptor_dim=DIM)))
    assert not auth.is_ready
    with pytest.raises(NotReady):
        auth.list_identities()
    auth.load()
    assert auth.is_ready


def _write_desc(path: Path, seed: int) -> str:
    path.write_text(json.dumps(_desc(seed).tolist()), encoding="utf-8")
    return str(path)


def test_cli_enroll_verify_list_clear(tmp_path: Path, capsys: pytest.CaptureFixture):
    data_dir = str(tmp_path / "db")
    alice = _write_desc(tmp_path / "alice.json", 1)
    stranger = _write_desc(tmp_path / "stranger.json", 99)
    np.save(tmp_path / "alice.npy", _desc(1))

    assert face_auth.main(["-d", data_dir, "enroll", "--name", "Alice", "--email", "alice@x.com", "--descriptor", alice]) == 0
    enrolled = json.loads(capsys.readouterr().out)
    assert enrolled["email"] == "alice@x.com"
    assert enrolled["descriptorDim"] == DIM
    assert "descriptor_dim" not in enrolled

    # Duplicate registration is a user-correctable rejection.
    assert face_auth.main(["-d", data_dir, "enroll", "--name", "A2", "--email", "alice@x.com", "--descriptor", alice]) == 1
    capsys.readouterr()

    assert face_auth.main(["-d", data_dir, "verify", "--email", "alice@x.com", "--descriptor", str(tmp_path / "alice.npy")]) == 0
    assert json.loads(capsys.readouterr().out)["status"] == "success"

    assert face_auth.main(["-d", data_dir, "verify", "--email", "alice@x.com", "--descriptor", stranger]) == 1
    assert json.loads(capsys.readouterr().out)["status"] == "unknown_face"

    assert face_auth.main(["-d", data_dir, "list"]) == 0
    assert [i["email"] for i in json.loads(capsys.readouterr().out)] == ["alice@x.com"]

    assert face_auth.main(["-d", data_dir, "clear"]) == 1
    assert face_auth.main(["-d", data_dir, "clear", "--yes"]) == 0
    capsys.readouterr()

    assert face_auth.main(["-d", data_dir, "match", "--descriptor", alice]) == 1
    out = json.loads(capsys.readouterr().out)
    assert out == {"matchedEmail": "unknown", "distance": 1.0, "isMatch": False}


def test_cli_wrong_dimension_is_a_fault(tmp_path: Path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps([0.1] * 10), encoding="utf-8")
    code = face_auth.main(["-d", str(tmp_path / "db"), "match", "--descriptor", str(bad)])
    assert code == 2
