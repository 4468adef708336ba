from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from flask import current_app


# ---------------------------------------------------------------------------
# Sealed assignees
#
# SqlDrawStore writes each entry's assignee as a Fernet token and only opens
# it when the matching result token is looked up, so the draw_entries table
# never lists who gifts whom. Rotating the key makes existing draws
# unreadable (StoreError), and a malformed ASSIGNMENT_ENC_KEY fails sealing.
# ---------------------------------------------------------------------------


def _assignment_fernet() -> Fernet:
    """Fernet for the current app: ASSIGNMENT_ENC_KEY when set, else a SECRET_KEY digest."""
    explicit = (current_app.config.get("ASSIGNMENT_ENC_KEY") or "").strip()
    if explicit:
        # Fernet.generate_key() output; anything else raises ValueError here
        return Fernet(explicit.encode("utf-8"))

    # Same SECRET_KEY, same key: draws stay readable after a restart
    secret = (current_app.config.get("SECRET_KEY") or "").encode("utf-8")
    digest = hashlib.sha256(b"secretfriend-assignments|" + secret).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def seal_assignee(name: str) -> str:
    """Assignee name as a Fernet token string."""
    return _assignment_fernet().encrypt(name.encode("utf-8")).decode("utf-8")


def open_assignee(token: str) -> str:
    """Inverse of seal_assignee; ValueError when the key does not match."""
    try:
        raw = _assignment_fernet().decrypt(token.encode("utf-8"))
        return raw.decode("utf-8")
    except (InvalidToken, ValueError, TypeError) as e:
        raise ValueError("Invalid assignment ciphertext") from e
