from __future__ import annotations

import hashlib
import hmac

from .errors import ConfigurationError

SECRET_NAMESPACE = "umbro"
NEXTAUTH_PURPOSE = "nextauth"

# Both names carry the same value; AUTH_SECRET is read by newer Auth.js releases.
NEXTAUTH_SECRET_KEYS = ("NEXTAUTH_SECRET", "AUTH_SECRET")


def derive_secret(
    seed: str | None,
    stage_label: str,
    *,
    namespace: str = SECRET_NAMESPACE,
    purpose: str = NEXTAUTH_PURPOSE,
) -> str:
    """Derive a stable per-stage secret as 64 lowercase hex characters.

    The message is ``"<namespace>|<purpose>|<stage>"`` keyed by the seed, so
    the same seed yields unrelated values for other stages or purposes.
    """
    if not str(seed or "").strip():
        raise ConfigurationError("missing seed for secret derivation")
    message = f"{namespace}|{purpose}|{stage_label}"
    return hmac.new(
        str(seed).encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
