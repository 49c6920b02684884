"""Base model classes for all database models.

This module provides the abstract base class that all database models inherit
from, plus the ``UTCDateTime`` column type used for every timestamp.

The base models use SQLModel which combines SQLAlchemy and Pydantic, providing
both database ORM functionality and data validation.

Example:
    >>> from src.models.base import DebtRescueBase
    >>>
    >>> class Widget(DebtRescueBase, table=True):
    >>>     __tablename__ = "widgets"
    >>>
    >>>     name: str
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from pydantic import ConfigDict
from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timestamp column that always stores and returns aware UTC datetimes.

    Some drivers hand back naive datetimes even for ``timezone=True`` columns.
    Values are normalized to UTC on the way in and tagged as UTC on the way
    out so comparisons against ``utc_now()`` never mix naive and aware values.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class DebtRescueBase(SQLModel, table=False):
    """Base model for all DebtRescue.AI database models.

    Attributes:
        id: UUID primary key, automatically generated.
        created_at: Timestamp when the record was created.
        updated_at: Timestamp when the record was last updated.

    Note:
        This is an abstract base class. Always inherit from it with table=True:
        >>> class MyModel(DebtRescueBase, table=True):
        >>>     __tablename__ = "my_table"
    """

    # Primary key - UUID for better distribution and security
    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        index=True,
        description="Unique identifier for the record",
    )

    # Timestamps
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=UTCDateTime,
        sa_column_kwargs={"nullable": False},
        description="Timestamp when the record was created",
    )

    updated_at: Optional[datetime] = Field(
        default=None,
        sa_type=UTCDateTime,
        sa_column_kwargs={"onupdate": utc_now},
        description="Timestamp when the record was last updated",
    )

    model_config = ConfigDict(
        from_attributes=True,  # Allow reading from ORM objects (SQLAlchemy)
        use_enum_values=True,  # Use enum values instead of names
    )
