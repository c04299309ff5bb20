"""Credential proof verification for destructive account operations."""

from __future__ import annotations

import hashlib
import hmac
from base64 import b64encode


def client_password_hash(password: str, email: str) -> str:
    """Return the pre-hashed credential a client sends: ``SHA256(password + SHA256(email))``.

    The email is lower-cased before hashing and the result is base64 encoded,
    matching what mobile clients send on login and deletion.
    """
    salt = hashlib.sha256(email.lower().encode("utf-8")).digest()
    digest = hashlib.sha256(password.encode("utf-8") + salt).digest()
    return b64encode(digest).decode("ascii")


def proof_matches(proof: str, stored_hash: str) -> bool:
    """Compare a pre-hashed proof with the stored hash byte for byte in constant time."""
    return hmac.compare_digest(proof.encode("utf-8"), stored_hash.encode("utf-8"))
