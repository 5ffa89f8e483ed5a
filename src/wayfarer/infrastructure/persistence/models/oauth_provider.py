"""SQLAlchemy models for OAuth identity links and authorization state."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wayfarer.infrastructure.persistence.database import Base


class OAuthProviderModel(Base):
    """Link between an external provider identity and a local user.

    Attributes:
        id: Primary key (UUID string).
        user_id: Owning user.
        provider: Provider name (google, facebook, microsoft, apple).
        provider_id: Subject identifier assigned by the provider.
        email: Email last reported by the provider.
        name: Display name last reported by the provider.
        picture: Avatar URL last reported by the provider.
        created_at: Timestamp when the link was created.
    """

    __tablename__ = "oauth_providers"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    provider_id: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    picture: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user = relationship("UserModel", back_populates="oauth_providers")

    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_oauth_provider_subject"),
        UniqueConstraint("user_id", "provider", name="uq_oauth_user_provider"),
    )

    def __repr__(self) -> str:
        return f"<OAuthProvider(user_id={self.user_id}, provider={self.provider})>"


class OAuthStateModel(Base):
    """Single-use state token for the OAuth redirect flow (CSRF protection)."""

    __tablename__ = "oauth_states"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    state_token: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )
    redirect_uri: Mapped[str] = mapped_column(String(1024), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<OAuthState(provider={self.provider}, expires_at={self.expires_at})>"
