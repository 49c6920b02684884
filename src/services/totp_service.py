"""Two-factor authentication primitives.

Implements TOTP (RFC 6238) with pyotp, compatible with Google Authenticator,
Authy and other authenticator apps, plus single-use backup codes for account
recovery.

Backup codes are shown to the user once in ``XXXX-XXXX`` form; only the
SHA-256 digest of each code is persisted.
"""

import hashlib
import secrets

import pyotp

from src.core.config import get_settings


class TOTPService:
    """TOTP secret management and code verification.

    Attributes:
        issuer: Issuer label embedded in provisioning URIs.
        valid_window: Accepted clock skew in 30-second steps.
    """

    def __init__(self, issuer: str | None = None, valid_window: int = 1):
        self.issuer = issuer or get_settings().totp_issuer
        self.valid_window = valid_window

    def generate_secret(self) -> str:
        """Generate a new base32 TOTP secret for enrollment."""
        return pyotp.random_base32()

    def get_provisioning_uri(self, secret: str, email: str) -> str:
        """Build the ``otpauth://`` URI an authenticator app scans.

        Args:
            secret: Base32-encoded TOTP secret.
            email: Account label displayed in the app.
        """
        return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=self.issuer)

    def verify_code(self, secret: str | None, code: str | None) -> bool:
        """Verify a 6-digit TOTP code, allowing ±1 time step.

        Returns:
            True if code is valid, False otherwise (including empty input).
        """
        if not secret or not code:
            return False

        code = "".join(filter(str.isdigit, code))
        if len(code) != 6:
            return False

        return pyotp.TOTP(secret).verify(code, valid_window=self.valid_window)

    def current_code(self, secret: str) -> str:
        """Current TOTP code for a secret (tests and local debugging)."""
        return pyotp.TOTP(secret).now()


def generate_secure_token(num_bytes: int = 32) -> str:
    """Cryptographically random hex token (64 chars for 32 bytes).

    Used for email verification and password reset links. Uniqueness is
    enforced by the unique columns that store the token.
    """
    return secrets.token_hex(num_bytes)


def generate_backup_codes(count: int = 10) -> list[str]:
    """Generate plaintext backup codes formatted as ``XXXX-XXXX``."""
    codes = []
    for _ in range(count):
        raw = secrets.token_hex(4).upper()
        codes.append(f"{raw[:4]}-{raw[4:]}")
    return codes


def hash_backup_code(code: str) -> str:
    """SHA-256 hex digest of a backup code.

    Codes are trimmed and upper-cased first so ``abcd-1234`` typed by the
    user matches the stored ``ABCD-1234``.
    """
    normalized = code.strip().upper()
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
