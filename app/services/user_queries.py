from typing import Dict, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.models.user import User
from app.schemas.user import UserProfile

async def get_user_by_id(db: AsyncSession, user_id: int):
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()

async def get_users_by_ids(db: AsyncSession, user_ids: Iterable[int]) -> Dict[int, User]:
    ids = set(user_ids)
    if not ids:
        return {}

    res = await db.execute(select(User).where(User.id.in_(ids)))
    return {u.id: u for u in res.scalars().all()}

async def get_profiles(db: AsyncSession, user_ids: Iterable[int]) -> Dict[int, UserProfile]:
    """Profiles for display; ids with no user row render as "Unknown User"."""
    ids = set(user_ids)
    users = await get_users_by_ids(db, ids)

    return {
        uid: UserProfile.model_validate(users[uid]) if uid in users
        else UserProfile(id=uid, name="Unknown User")
        for uid in ids
    }
