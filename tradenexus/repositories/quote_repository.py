from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tradenexus.database.models import Quote
from tradenexus.repositories.base_repository import BaseRepository


class QuoteRepository(BaseRepository[Quote]):
    """Repository for price quotes (factual memory)."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Quote)

    @staticmethod
    def _natural_key(supplier_id: Optional[str], item_name: str, item_type: str):
        return and_(
            func.coalesce(Quote.supplier_id, "") == (supplier_id or ""),
            Quote.item_name == item_name,
            Quote.item_type == item_type,
        )

    async def supersede_and_create(self, **fields) -> Tuple[Quote, int]:
        """Deprecate every live quote sharing the natural key, insert the new one.

        Both statements run in the session's current transaction and are
        committed together. A concurrent writer that got there first makes the
        insert fail on the live-key unique index; the caller decides whether
        to retry.

        Returns:
            The new quote and the number of quotes deprecated
        """
        stmt = (
            update(Quote)
            .where(
                self._natural_key(fields.get("supplier_id"), fields["item_name"], fields["item_type"]),
                Quote.is_deprecated.is_(False),
            )
            .values(is_deprecated=True)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            quote = Quote(**fields)
            self.session.add(quote)
            await self.session.flush()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return quote, result.rowcount or 0

    async def find_valid(
        self,
        now: datetime,
        item_type: Optional[str] = None,
        route: Optional[str] = None,
        supplier_id: Optional[str] = None,
        limit: int = 10,
    ) -> List[Quote]:
        """Live, unexpired quotes ordered by price ascending."""
        query = select(Quote).where(
            Quote.is_deprecated.is_(False),
            Quote.valid_until > now,
        )
        if item_type:
            query = query.where(Quote.item_type == item_type)
        if route:
            query = query.where(Quote.route.contains(route, autoescape=True))
        if supplier_id:
            query = query.where(Quote.supplier_id == supplier_id)

        query = query.order_by(Quote.price.asc(), Quote.created_at.desc()).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def deprecate_expired(self, now: datetime) -> int:
        """Flag every live quote whose validity window has passed."""
        stmt = (
            update(Quote)
            .where(Quote.is_deprecated.is_(False), Quote.valid_until < now)
            .values(is_deprecated=True)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result.rowcount or 0

    async def count_live(self) -> int:
        return await self.count(filters={"is_deprecated": False})
