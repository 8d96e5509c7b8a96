"""
Development data seeder.

Usage:
    python scripts/seed_data.py

Creates:
  - 3 demo accounts (password "password123")
  - 3 bookmarked pairs per account at the mock baseline rates
  - 25 conversions per account spread over the last 6 months

Idempotent: accounts are matched by email, bookmarks by pair, and history
is only generated for accounts that have none.
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from app.database import async_session
from app.models.bookmark import BookmarkedPair, Trend
from app.models.conversion import ConversionHistory
from app.models.user import User
from app.services.conversion_service import FeeType, convert
from app.services.history_service import build_history_entry
from app.services.mock_rates import MockRateGenerator

DEMO_PASSWORD = "password123"

SAMPLE_USERS: list[dict] = [
    {"username": "demo", "email": "demo@example.com"},
    {"username": "amara", "email": "amara@example.com"},
    {"username": "kenji", "email": "kenji@example.com"},
]

SAMPLE_BOOKMARKS: list[tuple[str, str]] = [
    ("USD", "INR"),
    ("EUR", "USD"),
    ("GBP", "USD"),
]

SAMPLE_PAIRS: list[tuple[str, str]] = [
    ("USD", "INR"),
    ("USD", "EUR"),
    ("USD", "GBP"),
    ("USD", "JPY"),
    ("EUR", "USD"),
    ("INR", "USD"),
]

HISTORY_PER_USER = 25
HISTORY_SPAN_DAYS = 180


async def _get_or_create_user(session, data: dict) -> tuple[User, bool]:
    result = await session.execute(select(User).where(User.email == data["email"]))
    user = result.scalar_one_or_none()
    if user is not None:
        return user, False

    user = User(**data)
    user.set_password(DEMO_PASSWORD)
    session.add(user)
    return user, True


async def seed() -> None:
    """Insert sample data into the database. Safe to run multiple times."""
    rng = random.Random(42)
    rates = MockRateGenerator(rng=rng)
    now = datetime.now(timezone.utc)

    async with async_session() as session:
        # ==================================================================
        # 1. USERS
        # ==================================================================

        users: list[User] = []
        new_users = 0
        for data in SAMPLE_USERS:
            user, created = await _get_or_create_user(session, dict(data))
            users.append(user)
            new_users += created

        await session.flush()
        print(f"  Users: {new_users} new, {len(users) - new_users} existing")

        # ==================================================================
        # 2. BOOKMARKS
        # ==================================================================

        new_bookmarks = 0
        for user in users:
            existing = set(
                (await session.execute(
                    select(BookmarkedPair.from_currency, BookmarkedPair.to_currency)
                    .where(BookmarkedPair.user_id == user.id)
                )).all()
            )
            for src, tgt in SAMPLE_BOOKMARKS:
                if (src, tgt) in existing:
                    continue
                session.add(BookmarkedPair(
                    user_id=user.id,
                    from_currency=src,
                    to_currency=tgt,
                    current_rate=rates.mock_rate(src, tgt),
                    trend=Trend.NEUTRAL,
                ))
                new_bookmarks += 1

        await session.flush()
        print(f"  Bookmarks: {new_bookmarks} new")

        # ==================================================================
        # 3. CONVERSION HISTORY
        # ==================================================================

        fee_types = [f.value for f in FeeType]
        new_history = 0
        for user in users:
            count = (await session.execute(
                select(func.count(ConversionHistory.id))
                .where(ConversionHistory.user_id == user.id)
            )).scalar_one()
            if count:
                continue

            for _ in range(HISTORY_PER_USER):
                src, tgt = rng.choice(SAMPLE_PAIRS)
                result = convert(
                    round(rng.uniform(10, 5000), 2),
                    rates.mock_rate(src, tgt),
                    rng.choice(fee_types),
                )
                entry = build_history_entry(user.id, src, tgt, result)
                entry.created_at = now - timedelta(
                    days=rng.randint(0, HISTORY_SPAN_DAYS),
                    minutes=rng.randint(0, 24 * 60),
                )
                session.add(entry)
                new_history += 1

        await session.flush()
        print(f"  Conversions: {new_history} new")

        await session.commit()
        print("\n  Seed complete!")
        print(f"  Log in as any of: {', '.join(u['email'] for u in SAMPLE_USERS)}")
        print(f"  Password: {DEMO_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(seed())
