"""Human-verification (CAPTCHA) checks against an external provider."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

import httpx

from school_clicker.core.settings import settings

logger = logging.getLogger(__name__)


class ChallengeVerifier:
    """Verify challenge tokens with a siteverify-style HTTPS endpoint.

    The provider receives ``secret``, ``response`` and ``remoteip`` as form
    fields and answers with ``{"success": bool, "error-codes": [...]}``.
    Any transport failure, timeout or malformed answer counts as a failed
    verification.
    """

    def __init__(
        self,
        *,
        secret: str | None,
        verify_url: str,
        timeout_seconds: float = 5.0,
        pass_open_when_unconfigured: bool = True,
        provider: str = "hcaptcha",
        client: httpx.Client | None = None,
    ) -> None:
        self._secret = secret
        self._verify_url = verify_url
        self._timeout = timeout_seconds
        self._pass_open = pass_open_when_unconfigured
        self.provider = provider
        self._client = client or httpx.Client(timeout=timeout_seconds)

    @property
    def configured(self) -> bool:
        return bool(self._secret)

    def verify(self, token: str | None, client_ip: str | None) -> bool:
        """Return True only when the provider explicitly reports success."""
        if not self._secret:
            logger.warning(
                "Captcha secret not configured; verification %s",
                "passes open" if self._pass_open else "fails closed",
            )
            return self._pass_open
        if not token:
            return False

        payload = {"secret": self._secret, "response": token}
        if client_ip and client_ip != "unknown":
            payload["remoteip"] = client_ip

        try:
            response = self._client.post(self._verify_url, data=payload, timeout=self._timeout)
            response.raise_for_status()
            body: Any = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Captcha provider request failed: %s", exc)
            return False
        except ValueError as exc:
            logger.warning("Captcha provider returned an unreadable body: %s", exc)
            return False

        if not isinstance(body, dict):
            logger.warning("Captcha provider returned unexpected payload type %s", type(body).__name__)
            return False
        if body.get("success") is True:
            return True

        logger.info("Captcha rejected by provider: %s", body.get("error-codes", []))
        return False

    def close(self) -> None:
        self._client.close()


@lru_cache(maxsize=1)
def get_challenge_verifier() -> ChallengeVerifier:
    """Return the process-wide verifier built from settings."""
    return ChallengeVerifier(
        secret=settings.captcha_secret,
        verify_url=settings.captcha_verify_url,
        timeout_seconds=settings.captcha_timeout_seconds,
        pass_open_when_unconfigured=settings.captcha_pass_open_when_unconfigured,
        provider=settings.captcha_provider,
    )
