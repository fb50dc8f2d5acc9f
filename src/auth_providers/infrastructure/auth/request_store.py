"""Authorization Request Store

Purpose: Keep per-attempt login state between the redirect to the provider
and the provider's callback.

Each AuthorizationRequest is stored under its state token with a TTL and is
removed on first read, so a callback can be completed at most once.

Storage Schema:
- auth:oauth_request:{state} -> AuthorizationRequest JSON (expires after TTL)
"""

import logging
from typing import Optional

from pydantic import ValidationError
from redis.asyncio import Redis

from auth_providers.domain.models import AuthorizationRequest

logger = logging.getLogger(__name__)


class AuthorizationRequestStore:
    """Redis-backed one-time store for AuthorizationRequest records"""

    key_pattern = "auth:oauth_request:{}"

    def __init__(self, redis_client: Redis, default_ttl_seconds: int = 600):
        """Initialize request store

        Args:
            redis_client: Redis connection (decode_responses=True)
            default_ttl_seconds: Lifetime of a stored request
        """
        self.redis = redis_client
        self.default_ttl_seconds = default_ttl_seconds

    async def save(self, request: AuthorizationRequest, ttl_seconds: Optional[int] = None) -> None:
        """Store a login attempt until its callback arrives or the TTL expires"""
        ttl = ttl_seconds or self.default_ttl_seconds
        key = self.key_pattern.format(request.state)
        await self.redis.setex(key, ttl, request.model_dump_json())
        logger.debug(f"Stored authorization request for provider={request.provider} (ttl: {ttl}s)")

    async def pop(self, state: str) -> Optional[AuthorizationRequest]:
        """Fetch and delete the login attempt for a state token

        Returns:
            The stored request, or None when unknown or expired
        """
        if not state:
            return None

        raw = await self.redis.getdel(self.key_pattern.format(state))
        if raw is None:
            return None

        try:
            return AuthorizationRequest.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Discarding corrupt authorization request record: {e}")
            return None
