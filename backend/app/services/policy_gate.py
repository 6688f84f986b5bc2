"""
Optional external policy decision point (PDP).

The gate is layered on top of the local role hierarchy: it can only further
restrict a decision that ``role_authority`` already allowed. When no token is
configured the gate is disabled. When it is enabled, any failure to obtain an
explicit allow (transport error, timeout, non-2xx, malformed body) denies.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

import httpx
from loguru import logger

from app.core.config import settings


class PolicyGate:
    """Client for a Permit-style PDP ``/allowed`` endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.POLICY_ENGINE_URL).rstrip("/")
        self.token = token if token is not None else settings.POLICY_ENGINE_TOKEN
        self.timeout = timeout or settings.POLICY_ENGINE_TIMEOUT
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.token)

    async def check(
        self,
        user_id: Any,
        action: str,
        resource: str,
        tenant: Optional[Any] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Ask the PDP whether ``user_id`` may perform ``action`` on ``resource``.

        Returns True without a network call when the gate is disabled.
        """
        if not self.enabled:
            return True

        payload = {
            "user": {"key": str(user_id)},
            "action": action,
            "resource": {
                "type": resource,
                "tenant": str(tenant) if tenant else "global",
                "attributes": attributes or {},
            },
        }
        headers = {"Authorization": f"Bearer {self.token}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.base_url}/allowed", json=payload, headers=headers)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Policy engine check failed, denying {action}:{resource}: {e}")
            return False

        allowed = body.get("allow") if isinstance(body, dict) else None
        if not isinstance(allowed, bool):
            logger.error(f"Policy engine returned malformed decision for {action}:{resource}")
            return False

        if not allowed:
            logger.info(f"Policy engine denied {action}:{resource} for user {user_id}")
        return allowed

    async def check_many(
        self,
        user_id: Any,
        checks: Iterable[Tuple[str, str]],
        tenant: Optional[Any] = None,
    ) -> Dict[str, bool]:
        """Check several ``(action, resource)`` pairs; keys are ``"action:resource"``."""
        results = {}
        for action, resource in checks:
            results[f"{action}:{resource}"] = await self.check(user_id, action, resource, tenant=tenant)
        return results


def get_policy_gate() -> PolicyGate:
    """Dependency returning a gate built from settings."""
    return PolicyGate()
