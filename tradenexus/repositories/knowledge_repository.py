from typing import List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tradenexus.database.models import KnowledgeChunk
from tradenexus.repositories.base_repository import BaseRepository


class KnowledgeRepository(BaseRepository[KnowledgeChunk]):
    """Repository for knowledge chunks (semantic memory)."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, KnowledgeChunk)

    async def find_live_by_key(
        self, title: str, category: str, country: Optional[str]
    ) -> Optional[KnowledgeChunk]:
        """Find the live chunk for (title, category, country); NULL country matches NULL."""
        query = select(KnowledgeChunk).where(
            KnowledgeChunk.title == title,
            KnowledgeChunk.category == category,
            KnowledgeChunk.is_deprecated.is_(False),
        )
        if country is None:
            query = query.where(KnowledgeChunk.country.is_(None))
        else:
            query = query.where(KnowledgeChunk.country == country)

        query = query.order_by(KnowledgeChunk.created_at.desc()).limit(1).with_for_update()
        result = await self.session.execute(query)
        return result.scalars().first()

    async def save_versioned(self, **fields) -> Tuple[KnowledgeChunk, Optional[KnowledgeChunk]]:
        """Insert a chunk, deprecating the live one it replaces when the version differs.

        Returns:
            The new chunk and the superseded chunk, if any
        """
        version = fields.get("version")
        superseded = None
        try:
            existing = await self.find_live_by_key(
                fields["title"], fields["category"], fields.get("country")
            )
            if existing is not None and version and existing.version != version:
                existing.is_deprecated = True
                existing.superseded_by = f"{fields['title']} v{version}"
                superseded = existing

            chunk = KnowledgeChunk(**fields)
            self.session.add(chunk)
            await self.session.flush()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return chunk, superseded

    async def search(
        self,
        query: str,
        category: Optional[str] = None,
        country: Optional[str] = None,
        limit: int = 5,
    ) -> List[KnowledgeChunk]:
        """Case-insensitive substring search over title and content, newest first."""
        stmt = select(KnowledgeChunk).where(KnowledgeChunk.is_deprecated.is_(False))
        if category:
            stmt = stmt.where(KnowledgeChunk.category == category)
        if country:
            stmt = stmt.where(KnowledgeChunk.country == country)
        if query:
            stmt = stmt.where(
                or_(
                    KnowledgeChunk.title.icontains(query, autoescape=True),
                    KnowledgeChunk.content.icontains(query, autoescape=True),
                )
            )

        stmt = stmt.order_by(KnowledgeChunk.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_live(self) -> int:
        return await self.count(filters={"is_deprecated": False})
