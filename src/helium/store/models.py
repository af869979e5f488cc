"""ORM models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, BigInteger, Boolean, CheckConstraint, Column, DateTime, Integer, String

from helium.store.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrackedServer(Base):
    """Lifecycle state of one panel server.

    Expiry, suspension and auto-renew live in one row so every transition
    is a single-row update.
    """

    __tablename__ = "tracked_servers"

    server_id = Column(String(64), primary_key=True)
    owner_id = Column(String(64), nullable=True, index=True)
    expires_at = Column(BigInteger, nullable=True, index=True)  # epoch ms
    suspended = Column(Boolean, nullable=False, default=False)
    auto_renew = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<TrackedServer(server_id='{self.server_id}', expires_at={self.expires_at}, "
            f"suspended={self.suspended})>"
        )


class Account(Base):
    """A dashboard user (keyed by Discord id) and their coin balance."""

    __tablename__ = "accounts"

    user_id = Column(String(64), primary_key=True)
    username = Column(String(255), nullable=True)
    panel_user_id = Column(Integer, nullable=True, unique=True, index=True)
    coins = Column(Integer, nullable=False, default=0)

    __table_args__ = (CheckConstraint("coins >= 0", name="ck_accounts_coins_non_negative"),)

    def __repr__(self) -> str:
        return f"<Account(user_id='{self.user_id}', coins={self.coins})>"


class WebhookSubscription(Base):
    """An outbound Discord webhook and the event types it receives."""

    __tablename__ = "discord_webhooks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    webhook_url = Column(String(512), nullable=False)
    server_id = Column(String(64), nullable=True)
    event_types = Column(JSON, nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def accepts(self, event_type: str) -> bool:
        types = self.event_types or []
        return event_type in types or "*" in types

    def __repr__(self) -> str:
        return f"<WebhookSubscription(id={self.id}, name='{self.name}')>"
