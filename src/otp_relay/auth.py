"""Login credential checks for the demo UI.

Workflow code only sees the ``Authenticator`` protocol, so a real identity
backend can replace the static credential pair.
"""

import hmac
import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Authenticator(Protocol):
    """Anything that can verify a login ID / secret pair."""

    def verify(self, login_id: str, secret: str) -> bool:
        ...


class StaticCredentialAuthenticator:
    """Accepts exactly one configured login ID / secret pair."""

    def __init__(self, login_id: str, secret: str) -> None:
        if not login_id or not secret:
            raise ValueError("Login ID and secret are required")
        self._login_id = login_id
        self._secret = secret

    def verify(self, login_id: str, secret: str) -> bool:
        id_ok = hmac.compare_digest(login_id.encode(), self._login_id.encode())
        secret_ok = hmac.compare_digest(secret.encode(), self._secret.encode())
        if not (id_ok and secret_ok):
            logger.warning(f"Rejected login attempt for {login_id!r}")
            return False
        return True
