from typing import Any, Dict, List

import numpy as np

from faceauth.face.types import Identity, MatchResult
from faceauth.utils.math import as_descriptor, frozen_descriptor

_IDENTITY_FIELDS = ("id", "name", "email", "descriptor", "createdAt")


def serialize_identity(identity: Identity) -> Dict[str, Any]:
    """Serialize an Identity into the persisted JSON-safe form.

    The descriptor is written as a plain list of floats (not the runtime float32
    array) so the blob stays storage-engine agnostic.
    """
    return {
        "id": str(identity.id),
        "name": str(identity.name),
        "email": str(identity.email),
        "descriptor": [float(x) for x in np.asarray(identity.descriptor).reshape(-1)],
        "createdAt": int(identity.created_at),
    }


def deserialize_identity(data: Dict[str, Any], dim: int) -> Identity:
    """Rebuild an Identity from its persisted form.

    Raises ValueError (DescriptorLengthMismatch is one) on malformed input.
    """
    if not isinstance(data, dict):
        raise ValueError(f"identity entry must be an object, got {type(data).__name__}")
    missing = [k for k in _IDENTITY_FIELDS if k not in data]
    if missing:
        raise ValueError(f"identity entry missing fields: {', '.join(missing)}")

    raw = data["descriptor"]
    if not isinstance(raw, list) or not all(
        isinstance(x, (int, float)) and not isinstance(x, bool) for x in raw
    ):
        raise ValueError("descriptor must be a list of numbers")

    created_at = data["createdAt"]
    if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
        raise ValueError("createdAt must be a number")

    return Identity(
        id=str(data["id"]),
        name=str(data["name"]),
        email=str(data["email"]),
        descriptor=frozen_descriptor(as_descriptor(raw, dim)),
        created_at=int(created_at),
    )


def serialize_identities(records) -> List[Dict[str, Any]]:
    return [serialize_identity(r) for r in records]


def serialize_public_identity(identity: Identity) -> Dict[str, Any]:
    """Caller-facing view of an identity (no descriptor payload)."""
    return {
        "id": identity.id,
        "name": identity.name,
        "email": identity.email,
        "createdAt": int(identity.created_at),
        "descriptorDim": identity.dim,
    }


def serialize_match(result: MatchResult) -> Dict[str, Any]:
    return {
        "matchedEmail": result.matched_email,
        "distance": round(float(result.distance), 6),
        "isMatch": bool(result.is_match),
    }
