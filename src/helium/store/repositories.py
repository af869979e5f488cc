"""Repositories over the ORM models."""

from __future__ import annotations

from sqlalchemy import Integer, cast
from sqlalchemy.orm import Session

from helium.client.errors import InsufficientCoinsError, NotFoundError
from helium.models.webhook import WebhookCreate, WebhookUpdate
from helium.store.models import Account, TrackedServer, WebhookSubscription

# Panel ids are numeric but stored as text
_NUMERIC_ID_ORDER = (cast(TrackedServer.server_id, Integer), TrackedServer.server_id)


class TrackedServerRepository:
    """Expiry / suspension / auto-renew state per server."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, server_id: int | str) -> TrackedServer | None:
        return self.db.get(TrackedServer, str(server_id))

    def require(self, server_id: int | str) -> TrackedServer:
        record = self.get(server_id)
        if record is None:
            raise NotFoundError(f"Server {server_id} is not tracked")
        return record

    def list_tracked(self) -> list[TrackedServer]:
        """All servers that carry an expiry, in numeric id order."""
        return (
            self.db.query(TrackedServer)
            .filter(TrackedServer.expires_at.isnot(None))
            .order_by(*_NUMERIC_ID_ORDER)
            .all()
        )

    def list_all(self) -> list[TrackedServer]:
        return self.db.query(TrackedServer).order_by(*_NUMERIC_ID_ORDER).all()

    def track(
        self,
        server_id: int | str,
        expires_at: int | None,
        owner_id: str | None = None,
    ) -> TrackedServer:
        record = self.get(server_id)
        if record is None:
            record = TrackedServer(server_id=str(server_id), suspended=False, auto_renew=False)
            self.db.add(record)
        record.expires_at = expires_at
        if owner_id is not None:
            record.owner_id = owner_id
        self.db.commit()
        return record

    def renew(self, record: TrackedServer, expires_at: int) -> TrackedServer:
        """Extend the expiry and clear suspension in one row update."""
        record.expires_at = expires_at
        record.suspended = False
        self.db.commit()
        return record

    def mark_suspended(self, record: TrackedServer, suspended: bool = True) -> TrackedServer:
        record.suspended = suspended
        self.db.commit()
        return record

    def set_auto_renew(self, record: TrackedServer, enabled: bool) -> TrackedServer:
        record.auto_renew = enabled
        self.db.commit()
        return record

    def clear_expiry(self, record: TrackedServer) -> TrackedServer:
        record.expires_at = None
        record.suspended = False
        self.db.commit()
        return record

    def remove(self, server_id: int | str) -> bool:
        record = self.get(server_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.commit()
        return True


class AccountRepository:
    """Dashboard accounts and their coin balances."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: str) -> Account | None:
        return self.db.get(Account, user_id)

    def get_by_panel_user(self, panel_user_id: int) -> Account | None:
        return (
            self.db.query(Account)
            .filter(Account.panel_user_id == panel_user_id)
            .first()
        )

    def list_all(self) -> list[Account]:
        return self.db.query(Account).order_by(Account.user_id).all()

    def upsert(
        self,
        user_id: str,
        username: str | None = None,
        panel_user_id: int | None = None,
    ) -> Account:
        account = self.get(user_id)
        if account is None:
            account = Account(user_id=user_id, coins=0)
            self.db.add(account)
        if username is not None:
            account.username = username
        if panel_user_id is not None:
            account.panel_user_id = panel_user_id
        self.db.commit()
        return account

    def balance(self, user_id: str) -> int:
        account = self.get(user_id)
        return account.coins if account else 0

    def set_coins(self, user_id: str, coins: int) -> Account:
        if coins < 0:
            raise ValueError("Coins cannot be negative")
        account = self.get(user_id) or self.upsert(user_id)
        account.coins = coins
        self.db.commit()
        return account

    def credit(self, user_id: str, amount: int) -> Account:
        account = self.get(user_id) or self.upsert(user_id)
        if account.coins + amount < 0:
            raise InsufficientCoinsError(account.coins, -amount)
        account.coins += amount
        self.db.commit()
        return account

    def debit(self, account: Account, amount: int, *, commit: bool = True) -> Account:
        """Take *amount* coins; with ``commit=False`` the caller commits the unit of work."""
        if account.coins < amount:
            raise InsufficientCoinsError(account.coins, amount)
        account.coins -= amount
        if commit:
            self.db.commit()
        return account


class WebhookRepository:
    """CRUD for outbound webhook subscriptions."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list_all(self) -> list[WebhookSubscription]:
        return (
            self.db.query(WebhookSubscription)
            .order_by(WebhookSubscription.created_at.desc(), WebhookSubscription.id.desc())
            .all()
        )

    def list_enabled(self) -> list[WebhookSubscription]:
        return (
            self.db.query(WebhookSubscription)
            .filter(WebhookSubscription.enabled.is_(True))
            .order_by(WebhookSubscription.id)
            .all()
        )

    def get(self, webhook_id: int) -> WebhookSubscription | None:
        return self.db.get(WebhookSubscription, webhook_id)

    def require(self, webhook_id: int) -> WebhookSubscription:
        webhook = self.get(webhook_id)
        if webhook is None:
            raise NotFoundError(f"Webhook {webhook_id} not found")
        return webhook

    def create(self, data: WebhookCreate) -> WebhookSubscription:
        webhook = WebhookSubscription(**data.model_dump())
        self.db.add(webhook)
        self.db.commit()
        self.db.refresh(webhook)
        return webhook

    def update(self, webhook_id: int, data: WebhookUpdate) -> WebhookSubscription:
        webhook = self.require(webhook_id)
        for key, value in data.model_dump(exclude_none=True).items():
            setattr(webhook, key, value)
        self.db.commit()
        self.db.refresh(webhook)
        return webhook

    def delete(self, webhook_id: int) -> bool:
        webhook = self.get(webhook_id)
        if webhook is None:
            return False
        self.db.delete(webhook)
        self.db.commit()
        return True
