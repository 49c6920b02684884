"""Password service for hashing, verification, and validation.

This service handles all password-related operations including:
- Hashing passwords using bcrypt
- Verifying passwords against hashes
- Validating password strength against the account password policy

Note: This service is synchronous (uses `def` instead of `async def`)
because password hashing is CPU-bound and bcrypt is a synchronous library.
Async callers run ``hash_password``/``verify_password`` in a worker thread
(``asyncio.to_thread``) so a login burst never stalls the event loop.
"""

import re
from typing import Tuple

import bcrypt

from src.core.config import get_settings
from src.core.errors import ValidationError

# Symbols accepted as the "special character" of a strong password
SPECIAL_CHARS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

# Case-insensitive substrings that make a password weak regardless of length
WEAK_PASSWORD_PATTERNS = ("password", "12345678", "qwerty", "abc123")


class PasswordService:
    """Service for password operations using bcrypt.

    Attributes:
        bcrypt_rounds: Work factor passed to ``bcrypt.gensalt``.
        min_length: Minimum password length (default: 8).
    """

    def __init__(self, bcrypt_rounds: int | None = None):
        """Initialize password service with bcrypt configuration.

        Args:
            bcrypt_rounds: Work factor override. Defaults to
                ``settings.bcrypt_rounds`` (12 in production).
        """
        if bcrypt_rounds is None:
            bcrypt_rounds = get_settings().bcrypt_rounds
        self.bcrypt_rounds = bcrypt_rounds
        self.min_length = 8

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Note: Bcrypt has a 72-byte maximum password length. Passwords are
        truncated to 72 bytes before hashing.

        Args:
            password: Plain text password to hash

        Returns:
            Hashed password string (includes salt and cost)

        Example:
            >>> service = PasswordService()
            >>> hashed = service.hash_password("SecurePass123!")
            >>> hashed.startswith("$2b$")
            True
        """
        password_bytes = password.encode("utf-8")[:72]
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        hashed = bcrypt.hashpw(password_bytes, salt)
        return hashed.decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash.

        Uses bcrypt's constant-time comparison. A malformed stored hash
        verifies as False instead of raising.

        Args:
            plain_password: Plain text password to verify
            hashed_password: Hashed password to compare against

        Returns:
            True if password matches, False otherwise
        """
        password_bytes = plain_password.encode("utf-8")[:72]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError:
            return False

    def validate_password_strength(self, password: str) -> Tuple[bool, str]:
        """Validate password meets strength requirements.

        Requirements (all must be met):
        - At least 8 characters
        - At least one uppercase letter
        - At least one lowercase letter
        - At least one digit
        - At least one special character
        - No common weak pattern (e.g. "password", "qwerty")

        Args:
            password: Password to validate

        Returns:
            Tuple of (is_valid, error_message). error_message is "" when valid.

        Example:
            >>> service = PasswordService()
            >>> service.validate_password_strength("weak")
            (False, 'Password must be at least 8 characters long')
        """
        if len(password) < self.min_length:
            return False, f"Password must be at least {self.min_length} characters long"

        if not re.search(r"[A-Z]", password):
            return False, "Password must contain at least one uppercase letter"

        if not re.search(r"[a-z]", password):
            return False, "Password must contain at least one lowercase letter"

        if not re.search(r"\d", password):
            return False, "Password must contain at least one number"

        if not any(char in SPECIAL_CHARS for char in password):
            return False, "Password must contain at least one special character"

        lowered = password.lower()
        if any(pattern in lowered for pattern in WEAK_PASSWORD_PATTERNS):
            return False, "Password is too common or contains common patterns"

        return True, ""

    def ensure_password_strength(self, password: str) -> None:
        """Raise ``ValidationError`` unless the password passes the policy."""
        is_valid, message = self.validate_password_strength(password)
        if not is_valid:
            raise ValidationError(message)

    def needs_rehash(self, hashed_password: str) -> bool:
        """Check if a hash was produced with a different work factor.

        Args:
            hashed_password: Existing password hash (``$2b$12$...``).

        Returns:
            True if hash should be regenerated, False otherwise.
        """
        parts = hashed_password.split("$")
        if len(parts) >= 3 and parts[1] in ("2a", "2b", "2y") and parts[2].isdigit():
            return int(parts[2]) != self.bcrypt_rounds
        return False
