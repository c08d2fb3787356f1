# =======================================================================================
# keycustody/utils/validators.py - Validation Helpers
# =======================================================================================
import re
from datetime import datetime
from typing import Optional
from .exceptions import InvalidIdentityTokenError

IDENTITY_TOKEN_PATTERN = re.compile(r"^[STFG]\d{7}[A-Z]$")

# Masked tokens keep only the last 4 characters behind a fixed 5-star prefix
IDENTITY_MASK = "*****"
IDENTITY_VISIBLE_CHARS = 4

LOCATION_MAX_LENGTH = 8
KEY_NO_MIN = 0
KEY_NO_MAX = 999

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class IdentityValidator:
    """Validates and masks scanned identity tokens."""

    @staticmethod
    def is_valid_token(token: Optional[str]) -> bool:
        return bool(token) and IDENTITY_TOKEN_PATTERN.match(token) is not None

    @staticmethod
    def validate_token(token: Optional[str]) -> str:
        """Return the token unchanged or raise InvalidIdentityTokenError."""
        if not IdentityValidator.is_valid_token(token):
            raise InvalidIdentityTokenError("Not a valid identity token")
        return token

    @staticmethod
    def mask(token: str) -> str:
        if token is None or len(token) < IDENTITY_VISIBLE_CHARS:
            return IDENTITY_MASK
        return IDENTITY_MASK + token[-IDENTITY_VISIBLE_CHARS:]


class KeyRecordValidator:
    """Normalizes registration input and derives custody status."""

    @staticmethod
    def normalize_location(location: str) -> str:
        return (location or "").strip().upper()[:LOCATION_MAX_LENGTH]

    @staticmethod
    def normalize_key_no(key_no) -> str:
        """
        Parse the leading integer of the input (non-numeric -> 0), clamp it
        to [0, 999] and zero-pad to at least 2 digits.
        """
        match = _LEADING_INT.match(str(key_no if key_no is not None else ""))
        value = int(match.group(1)) if match else 0
        value = max(KEY_NO_MIN, min(KEY_NO_MAX, value))
        return f"{value:02d}"

    @staticmethod
    def build_barcode_code(company: str, location: str, key_no: str) -> str:
        return f"{company}-{location}-{key_no}"

    @staticmethod
    def is_drawn(last_draw: Optional[datetime], last_return: Optional[datetime]) -> bool:
        if last_draw is None:
            return False
        return last_return is None or last_draw > last_return

    @staticmethod
    def key_status(last_draw: Optional[datetime], last_return: Optional[datetime]) -> str:
        return "drawn" if KeyRecordValidator.is_drawn(last_draw, last_return) else "available"
