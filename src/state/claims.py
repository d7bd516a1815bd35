import base64
import binascii
import json
from typing import Optional


def _to_int(val) -> Optional[int]:
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


def decode_payload(token: Optional[str]) -> Optional[dict]:
    """
    Decode the claims segment of a JWT without verifying it.
    Returns None for anything that is not a well formed token.
    """
    if not token or not isinstance(token, str):
        return None
    parts = token.split(".")
    if len(parts) < 2 or not parts[1]:
        return None

    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(segment.encode("ascii"))
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        return None
    return payload if isinstance(payload, dict) else None


def extract_user_id(token: Optional[str]) -> Optional[int]:
    """
    Best-effort user id from the token claims (`userId`, else a numeric `sub`).
    Never raises; None means the token does not carry one.
    """
    payload = decode_payload(token)
    if not payload:
        return None
    for claim in ("userId", "sub"):
        user_id = _to_int(payload.get(claim))
        if user_id is not None:
            return user_id
    return None
