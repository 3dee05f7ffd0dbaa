"""Admin gate based on time-based one-time codes."""

import logging
import re

import pyotp
from fastapi import Header, HTTPException, Request

from brewcrafter.config import Settings, get_settings

logger = logging.getLogger(__name__)

TOTP_DIGITS = 6
TOTP_PERIOD = 30
TOTP_VALID_WINDOW = 1  # one period either side of now

_CODE_RE = re.compile(r"^\d{6}$")


class AdminGate:
    """Verifies admin one-time codes against the configured secret."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.settings.admin_gate_enabled

    def _totp(self) -> pyotp.TOTP:
        return pyotp.TOTP(
            self.settings.totp_secret,
            digits=TOTP_DIGITS,
            interval=TOTP_PERIOD,
            issuer=self.settings.totp_issuer,
            name=self.settings.totp_account,
        )

    def provisioning_uri(self) -> str | None:
        """otpauth:// URI for authenticator apps, or None without a secret."""
        if not self.enabled:
            return None
        return self._totp().provisioning_uri()

    def verify(self, code: str | None) -> bool:
        """Check a 6-digit code. Always False when no secret is configured."""
        if not self.enabled:
            logger.error("TOTP verification requested but no secret is configured")
            return False
        if not code or not _CODE_RE.match(code):
            return False
        try:
            return self._totp().verify(code, valid_window=TOTP_VALID_WINDOW)
        except (ValueError, TypeError) as e:
            # Malformed base32 secret
            logger.error("Error verifying TOTP code: %s", e)
            return False


def verify_totp(code: str | None, settings: Settings | None = None) -> bool:
    """Verify an admin code against the process-wide settings."""
    return AdminGate(settings or get_settings()).verify(code)


def provisioning_uri(settings: Settings | None = None) -> str | None:
    return AdminGate(settings or get_settings()).provisioning_uri()


def require_admin(request: Request, x_admin_code: str | None = Header(default=None)) -> None:
    """
    FastAPI dependency guarding mutating endpoints.

    Without a configured secret the gate is open. Otherwise the
    ``X-Admin-Code`` header must carry a currently valid code.
    """
    gate = AdminGate(request.app.state.settings)
    if not gate.enabled:
        return
    if not gate.verify(x_admin_code):
        logger.warning("Rejected admin request to %s", request.url.path)
        raise HTTPException(status_code=401, detail="Invalid or missing admin code")
