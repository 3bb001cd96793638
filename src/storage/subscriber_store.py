import logging
from datetime import datetime
from typing import Dict, Optional, Protocol

from pydantic import BaseModel

from storage.db import get_pool

logger = logging.getLogger(__name__)

_COLUMNS = """user_id, email, stripe_customer_id, subscribed, subscription_tier,
              subscription_end, trial_start, trial_end, trial_active"""


class SubscriberRecord(BaseModel):
    user_id: str
    email: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    subscribed: bool = False
    subscription_tier: Optional[str] = None
    subscription_end: Optional[datetime] = None
    trial_start: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    trial_active: bool = False


class SubscriberRepo(Protocol):
    async def get(self, user_id: str) -> Optional[SubscriberRecord]: ...

    async def get_by_email(self, email: str) -> Optional[SubscriberRecord]: ...

    async def upsert(self, record: SubscriberRecord) -> None: ...


class PostgresSubscriberRepo:
    """Subscribers table over the shared asyncpg pool, one row per user id."""

    async def get(self, user_id: str) -> Optional[SubscriberRecord]:
        row = await get_pool().fetchrow(f"SELECT {_COLUMNS} FROM subscribers WHERE user_id = $1", user_id)
        return SubscriberRecord(**dict(row)) if row else None

    async def get_by_email(self, email: str) -> Optional[SubscriberRecord]:
        row = await get_pool().fetchrow(
            f"SELECT {_COLUMNS} FROM subscribers WHERE email = $1 ORDER BY updated_at DESC LIMIT 1",
            email,
        )
        return SubscriberRecord(**dict(row)) if row else None

    async def upsert(self, record: SubscriberRecord) -> None:
        pool = get_pool()
        query = f"""
            INSERT INTO subscribers ({_COLUMNS})
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            ON CONFLICT (user_id) DO UPDATE SET
                email = COALESCE(EXCLUDED.email, subscribers.email),
                stripe_customer_id = COALESCE(EXCLUDED.stripe_customer_id, subscribers.stripe_customer_id),
                subscribed = EXCLUDED.subscribed,
                subscription_tier = EXCLUDED.subscription_tier,
                subscription_end = EXCLUDED.subscription_end,
                trial_start = COALESCE(EXCLUDED.trial_start, subscribers.trial_start),
                trial_end = COALESCE(EXCLUDED.trial_end, subscribers.trial_end),
                trial_active = EXCLUDED.trial_active,
                updated_at = NOW()
        """
        await pool.execute(
            query,
            record.user_id,
            record.email,
            record.stripe_customer_id,
            record.subscribed,
            record.subscription_tier,
            record.subscription_end,
            record.trial_start,
            record.trial_end,
            record.trial_active,
        )
        logger.info(f"Upserted subscriber {record.user_id}")


class InMemorySubscriberRepo:
    def __init__(self) -> None:
        self.rows: Dict[str, SubscriberRecord] = {}

    async def get(self, user_id: str) -> Optional[SubscriberRecord]:
        row = self.rows.get(user_id)
        return row.model_copy() if row else None

    async def get_by_email(self, email: str) -> Optional[SubscriberRecord]:
        for row in reversed(list(self.rows.values())):
            if row.email == email:
                return row.model_copy()
        return None

    async def upsert(self, record: SubscriberRecord) -> None:
        # Same merge rules as the ON CONFLICT clause above.
        current = self.rows.pop(record.user_id, None)
        row = record.model_copy()
        if current:
            row.email = row.email or current.email
            row.stripe_customer_id = row.stripe_customer_id or current.stripe_customer_id
            row.trial_start = row.trial_start or current.trial_start
            row.trial_end = row.trial_end or current.trial_end
        self.rows[record.user_id] = row
