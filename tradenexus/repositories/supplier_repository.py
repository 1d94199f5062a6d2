import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tradenexus.database.models import Supplier, SupplierCapability
from tradenexus.repositories.base_repository import BaseRepository


class SupplierRepository(BaseRepository[Supplier]):
    """Repository for suppliers and their capabilities."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Supplier)

    async def add_capability(self, **fields) -> SupplierCapability:
        try:
            capability = SupplierCapability(**fields)
            self.session.add(capability)
            await self.session.flush()
            await self.session.commit()
            return capability
        except Exception:
            await self.session.rollback()
            raise

    async def find_capabilities(self, capability: str, now: datetime) -> List[SupplierCapability]:
        """Unexpired capabilities whose name contains ``capability``, with their supplier."""
        query = (
            select(SupplierCapability)
            .options(selectinload(SupplierCapability.supplier))
            .where(
                SupplierCapability.capability.icontains(capability, autoescape=True),
                or_(
                    SupplierCapability.valid_until.is_(None),
                    SupplierCapability.valid_until > now,
                ),
            )
            .order_by(SupplierCapability.created_at.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_capability(self, capability_id: uuid.UUID) -> Optional[SupplierCapability]:
        query = (
            select(SupplierCapability)
            .options(selectinload(SupplierCapability.supplier))
            .where(SupplierCapability.id == capability_id)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
