from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import async_session
from app.core.security import decode_token, get_bearer_token
from app.services.user_queries import get_user_by_id
from app.services.currency_service import RateCache
from app.services.ledger_source import SqlLedgerSource
from sqlalchemy import select
from app.models.group import Group
from app.models.group_member import GroupMember

async def get_db():
    async with async_session() as session:
        yield session

async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        token = get_bearer_token(request)
        payload = decode_token(token)
        user_id = payload.get("sub")

        if user_id is None:
            raise HTTPException(status_code=401, detail="Invalid authentication credentials")

        user = await get_user_by_id(db, int(user_id))

        if user is None:
            raise HTTPException(status_code=401, detail="User not found")

        return user
    except HTTPException:
        raise
    except Exception:
        raise HTTPException(status_code=401, detail="Could not validate credentials")

def get_rate_cache(request: Request) -> RateCache:
    return request.app.state.rate_cache

def get_ledger(db: AsyncSession = Depends(get_db)) -> SqlLedgerSource:
    return SqlLedgerSource(db)

async def check_group_membership(db: AsyncSession, group_id: int, user_id: int):
    q_group = select(Group).where(Group.id == group_id, Group.is_deleted == False)
    res_group = await db.execute(q_group)
    group = res_group.scalar_one_or_none()

    if not group:
        raise HTTPException(404, "Group does not exist")

    q_member = select(GroupMember).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id
    )

    res_member = await db.execute(q_member)
    member = res_member.scalar_one_or_none()

    if not member:
        raise HTTPException(403, "You are not a member of this group")

    return member
