"""Object identity minting."""

from __future__ import annotations

import uuid

from apstrakit.core.exceptions import IdentityError


def new_object_id() -> str:
    """
    Return a fresh UUIDv1 string for use as a synthetic graph node id.

    Raises:
        IdentityError: if the uuid source fails.
    """
    try:
        return str(uuid.uuid1())
    except (OSError, ValueError) as exc:
        raise IdentityError(f"failed minting object id: {exc}", raw=exc) from exc
