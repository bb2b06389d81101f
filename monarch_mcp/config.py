"""
Monarch MCP Configuration

Credentials come from the environment (optionally via a .env file).

Environment variables:
- MONARCH_EMAIL: Monarch Money login email (required)
- MONARCH_PASSWORD: Monarch Money password (required)
- MONARCH_MFA_SECRET: TOTP secret for two-factor accounts (optional)
- MONARCH_API_BASE_URL: Override the Monarch API host (optional)
"""

import os
import re
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigurationError


class MonarchConfig(BaseModel):
    """Credentials and connection settings for the Monarch client."""
    email: str = Field(description="Monarch Money email address for login")
    password: str = Field(description="Monarch Money password")
    mfa_secret: Optional[str] = Field(
        default=None, description="Optional MFA/TOTP secret for two-factor authentication"
    )
    api_base_url: Optional[str] = None


def normalize_mfa_secret(secret: Optional[str]) -> Optional[str]:
    """Strip spaces and dashes from a TOTP secret; drop it if it isn't base32."""
    if not secret:
        return None

    cleaned = re.sub(r"[\s-]+", "", secret).upper()
    if not cleaned or not re.fullmatch(r"[A-Z2-7=]+", cleaned):
        return None

    return cleaned


def load_config() -> MonarchConfig:
    """
    Build the config from the environment.

    Raises ConfigurationError when email or password is missing, before
    any login is attempted.
    """
    load_dotenv()

    email = os.environ.get("MONARCH_EMAIL", "").strip()
    password = os.environ.get("MONARCH_PASSWORD", "")

    missing = [
        name for name, value in (("MONARCH_EMAIL", email), ("MONARCH_PASSWORD", password))
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"Monarch Money credentials are required. Set {' and '.join(missing)}."
        )

    return MonarchConfig(
        email=email,
        password=password,
        mfa_secret=normalize_mfa_secret(os.environ.get("MONARCH_MFA_SECRET")),
        api_base_url=os.environ.get("MONARCH_API_BASE_URL") or None,
    )
