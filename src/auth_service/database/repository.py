"""Account repositories — data access for users and sellers."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth_service.models.user import Seller, User


class UserRepository:
    """Encapsulates all database queries related to shopper accounts."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: int) -> User | None:
        return await self._session.get(User, user_id)

    async def create(self, name: str, email: str, password_hash: str) -> User:
        """Insert a new user and flush so the generated id is available."""
        user = User(name=name, email=email, password=password_hash)
        self._session.add(user)
        await self._session.flush()
        return user

    async def update_password(self, user: User, password_hash: str) -> None:
        user.password = password_hash
        await self._session.flush()


class SellerRepository:
    """Encapsulates all database queries related to seller accounts."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_email(self, email: str) -> Seller | None:
        stmt = select(Seller).where(Seller.email == email)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_id(self, seller_id: int) -> Seller | None:
        return await self._session.get(Seller, seller_id)

    async def create(
        self,
        name: str,
        email: str,
        password_hash: str,
        phone_number: str,
        country: str,
    ) -> Seller:
        seller = Seller(
            name=name,
            email=email,
            password=password_hash,
            phone_number=phone_number,
            country=country,
        )
        self._session.add(seller)
        await self._session.flush()
        return seller
