from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Request
from itsdangerous import BadSignature, URLSafeSerializer

from ..core.config import settings

PLAYER_COOKIE = "nts_player"
ANONYMOUS_PLAYER_ID = "anon"
PLAYER_COOKIE_MAX_AGE = 60 * 60 * 24 * 365

logger = logging.getLogger(__name__)


@dataclass
class PlayerIdentity:
    player_id: str
    anonymous: bool = False


class IdentityManager:
    """Issue and verify the signed cookie that carries a player's stable id."""

    def __init__(self, secret: str) -> None:
        self.serializer = URLSafeSerializer(secret, salt="namethesub-player")

    def issue(self, player_id: Optional[str] = None) -> tuple[str, str]:
        player_id = player_id or f"guest-{uuid.uuid4().hex}"
        return player_id, self.serializer.dumps(player_id)

    def read(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        try:
            player_id = self.serializer.loads(token)
        except BadSignature:
            logger.debug("Rejected player cookie with a bad signature")
            return None
        if not isinstance(player_id, str) or not player_id.strip():
            return None
        return player_id

    def resolve(self, request: Request) -> PlayerIdentity:
        player_id = self.read(request.cookies.get(PLAYER_COOKIE))
        if player_id is None:
            return PlayerIdentity(player_id=ANONYMOUS_PLAYER_ID, anonymous=True)
        return PlayerIdentity(player_id=player_id)


@lru_cache
def get_identity_manager() -> IdentityManager:
    return IdentityManager(settings.session_secret)


def resolve_player_id(request: Request) -> str:
    return get_identity_manager().resolve(request).player_id
