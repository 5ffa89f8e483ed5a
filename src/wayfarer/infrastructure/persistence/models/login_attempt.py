"""SQLAlchemy model for failed login attempts.

One row per (identifier, ip_address) pair. The row is removed on a
successful login.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from wayfarer.infrastructure.persistence.database import Base


class LoginAttemptModel(Base):
    """SQLAlchemy model for the login_attempts table.

    Attributes:
        id: Primary key (UUID string).
        identifier: Email or username that was attempted.
        ip_address: Client address (IPv6 fits in 45 characters).
        attempt_count: Consecutive failures since the last success.
        blocked_until: End of the current lockout window, if any.
        last_attempt: Timestamp of the most recent failure.
        updated_at: Timestamp of the last row change.
    """

    __tablename__ = "login_attempts"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    identifier: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Email or username attempted",
    )
    ip_address: Mapped[str] = mapped_column(
        String(45),
        nullable=False,
        comment="Source address of the attempt",
    )
    attempt_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )
    blocked_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    last_attempt: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("identifier", "ip_address", name="uq_login_attempts_identifier_ip"),
        Index("ix_login_attempts_last_attempt", "last_attempt"),
    )

    def __repr__(self) -> str:
        return (
            f"<LoginAttempt(identifier={self.identifier}, ip_address={self.ip_address}, "
            f"attempt_count={self.attempt_count})>"
        )
