"""
Authentication gate for the shared Monarch client.

Every tool handler awaits AuthGate.ensure() before touching the client.
The first caller starts the login; anyone arriving while it is in flight
awaits the same attempt instead of logging in again. A failed attempt
leaves the gate retryable, so a later call can try again.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from monarchmoney import RequireMFAException


class AuthState(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


# (substrings, hint); matched case-insensitively, first match wins
_LOGIN_HINTS = [
    (("forbidden", "403", "invalid credentials", "invalid email", "invalid password"),
     "🚫 AUTH ERROR: Invalid email/password combination."),
    (("401", "unauthorized"),
     "🔑 AUTH ERROR: Unauthorized - verify your MonarchMoney credentials."),
    (("429", "rate limit", "too many"),
     "⏳ RATE LIMITED: Too many login attempts. Please wait before retrying."),
    (("mfa", "totp", "multi-factor", "two-factor"),
     "🔐 MFA ERROR: Multi-Factor Authentication required. Configure your TOTP secret."),
    (("network", "timeout", "timed out", "connection"),
     "🌐 NETWORK ERROR: Unable to connect to MonarchMoney servers."),
]


def classify_login_error(error: BaseException) -> str:
    """Turn a login failure into a user-facing hint."""
    if isinstance(error, RequireMFAException):
        return _LOGIN_HINTS[3][1]

    message = str(error)
    lowered = message.lower()
    for needles, hint in _LOGIN_HINTS:
        if any(needle in lowered for needle in needles):
            return hint

    return f"❌ LOGIN FAILED: {message or 'Unknown error'}"


class AuthGate:
    """Single-flight guard around an async login callable."""

    def __init__(self, login: Callable[[], Awaitable[None]]):
        self._login = login
        self._attempt: Optional[asyncio.Task] = None
        self.state = AuthState.NOT_STARTED
        self.last_error: Optional[BaseException] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    async def ensure(self) -> None:
        """Log in once; concurrent callers share the in-flight attempt."""
        if self.state is AuthState.AUTHENTICATED:
            return

        if self._attempt is None:
            self.state = AuthState.IN_PROGRESS
            self._attempt = asyncio.ensure_future(self._run())

        await asyncio.shield(self._attempt)

    async def _run(self) -> None:
        try:
            await self._login()
        except Exception as e:
            self.state = AuthState.FAILED
            self.last_error = e
            raise
        else:
            self.state = AuthState.AUTHENTICATED
            self.last_error = None
        finally:
            self._attempt = None

