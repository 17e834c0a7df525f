from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import uuid4

import redis

logger = logging.getLogger(__name__)

NICKNAME_MAX_LENGTH = 20
DEVICE_ID_PREFIX = "device-"


def normalize_nickname(raw: str) -> str | None:
    """Trim surrounding whitespace; return None unless 1..20 characters remain."""

    name = raw.strip()
    if not name or len(name) > NICKNAME_MAX_LENGTH:
        return None
    return name


@dataclass(slots=True)
class LocalIdentity:
    device_id: str
    user_id: str
    username: str
    # Chosen once per app session, before any match interaction.
    nickname: str | None = None


class DeviceIdentityStore:
    """Persistent device id, created on first use and reused afterwards."""

    def __init__(self, *, r: redis.Redis, key: str) -> None:
        self._r = r
        self._key = key

    def get_or_create_device_id(self) -> str:
        candidate = f"{DEVICE_ID_PREFIX}{uuid4()}"
        # SET NX keeps the first id ever written, even if two processes race.
        if self._r.set(self._key, candidate, nx=True):
            logger.info("Created new device id: %s", candidate)
            return candidate

        existing = self._r.get(self._key)
        if not existing:
            raise RuntimeError(f"Device id key {self._key!r} vanished while reading")
        logger.info("Using existing device id: %s", existing)
        return str(existing)
