"""Referral Repository Layer"""
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from referral_service.db.repository import BaseRepository
from referral_service.referrals.models import Referral, ReferralUpdate


class ReferralRepository(BaseRepository):
    """Repository for referral database operations"""

    def __init__(self, db: AsyncSession):
        super().__init__(db)

    async def count(self) -> int:
        """Number of referrals ever created"""
        result = await self.db.execute(select(func.count()).select_from(Referral))
        return result.scalar()

    async def create(self, referral: Referral) -> Referral:
        """Create a new referral"""
        self.db.add(referral)
        await self._commit()
        await self.db.refresh(referral)
        return referral

    async def get_by_id(self, referral_id: int) -> Optional[Referral]:
        """Get referral by ID"""
        stmt = select(Referral).where(Referral.id == referral_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_ids_by_victim(self, victim_id: str) -> List[int]:
        """Ids of a victim's referrals in creation order"""
        stmt = select(Referral.id).where(Referral.victim_id == victim_id).order_by(Referral.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_update(self, referral_id: int) -> Optional[ReferralUpdate]:
        """Get the latest update record of a referral"""
        stmt = select(ReferralUpdate).where(ReferralUpdate.referral_id == referral_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, referral: Referral, update_record: Optional[ReferralUpdate] = None) -> Referral:
        """Persist changes to a referral, replacing its update record if one is given"""
        if update_record is not None:
            await self.db.merge(update_record)
        await self._commit()
        await self.db.refresh(referral)
        return referral
