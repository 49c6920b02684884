"""Two-factor authentication backup codes.

Backup codes are stored one row per code so that consuming a code is a single
conditional ``DELETE``: two requests racing with the same code can never both
remove the row.
"""

from uuid import UUID

from sqlalchemy import String, UniqueConstraint
from sqlmodel import Column, Field

from src.models.base import DebtRescueBase


class BackupCode(DebtRescueBase, table=True):
    """Hashed single-use 2FA backup code.

    Attributes:
        user_id: Owner of the code.
        code_hash: SHA-256 hex digest of the normalized code. The plaintext
            is shown to the user once and never stored.
    """

    __tablename__ = "backup_codes"
    __table_args__ = (
        UniqueConstraint("user_id", "code_hash", name="uq_backup_codes_user_hash"),
    )

    user_id: UUID = Field(
        foreign_key="users.id",
        nullable=False,
        index=True,
        ondelete="CASCADE",
    )

    code_hash: str = Field(sa_column=Column(String(64), nullable=False))
