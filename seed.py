"""Seed script — populates the database with sample accounts for testing."""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from auth_service.database.engine import async_session_factory, init_db
from auth_service.models.user import Seller, User
from auth_service.services.security import hash_password

DEMO_PASSWORD = "Passw0rd!"


def _sample_accounts() -> list[User | Seller]:
    password = hash_password(DEMO_PASSWORD)
    return [
        User(name="Alice Johnson", email="alice@example.com", password=password),
        User(name="Bob Smith", email="bob@example.com", password=password),
        Seller(
            name="Carol Davis",
            email="carol@shop.example.com",
            password=password,
            phone_number="+442071234567",
            country="GB",
        ),
    ]


async def seed() -> None:
    """Insert sample accounts into the database."""
    await init_db()
    accounts = _sample_accounts()
    async with async_session_factory() as session:
        session: AsyncSession
        session.add_all(accounts)
        await session.commit()
    print(f"✅ Seeded {len(accounts)} accounts (password: {DEMO_PASSWORD}).")


if __name__ == "__main__":
    asyncio.run(seed())
