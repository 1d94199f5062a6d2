from typing import List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tradenexus.database.models import EntityRelation
from tradenexus.repositories.base_repository import BaseRepository


class RelationRepository(BaseRepository[EntityRelation]):
    """Repository for entity relations (associative memory)."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, EntityRelation)

    async def get_by_edge(
        self,
        from_type: str,
        from_id: str,
        relation_type: str,
        to_type: str,
        to_id: str,
        for_update: bool = False,
    ) -> Optional[EntityRelation]:
        query = select(EntityRelation).where(
            EntityRelation.from_type == from_type,
            EntityRelation.from_id == from_id,
            EntityRelation.relation_type == relation_type,
            EntityRelation.to_type == to_type,
            EntityRelation.to_id == to_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def upsert(self, **fields) -> Tuple[EntityRelation, bool]:
        """Overwrite properties/confidence of an existing edge or insert a new one.

        Fields passed as None leave the stored value untouched on update.

        Returns:
            The relation and whether it was newly created
        """
        try:
            existing = await self.get_by_edge(
                fields["from_type"],
                fields["from_id"],
                fields["relation_type"],
                fields["to_type"],
                fields["to_id"],
                for_update=True,
            )
            if existing is not None:
                if fields.get("properties") is not None:
                    existing.properties = fields["properties"]
                if fields.get("confidence") is not None:
                    existing.confidence = fields["confidence"]
                await self.session.flush()
                await self.session.commit()
                return existing, False

            relation = EntityRelation(**fields)
            self.session.add(relation)
            await self.session.flush()
            await self.session.commit()
            return relation, True
        except Exception:
            await self.session.rollback()
            raise

    async def find_outgoing(
        self,
        from_type: str,
        from_id: Optional[str] = None,
        from_name: Optional[str] = None,
        relation_type: Optional[str] = None,
    ) -> List[EntityRelation]:
        """Relations leaving an entity; the name is a substring match."""
        query = select(EntityRelation).where(EntityRelation.from_type == from_type)
        if from_id:
            query = query.where(EntityRelation.from_id == from_id)
        if from_name:
            query = query.where(EntityRelation.from_name.contains(from_name, autoescape=True))
        if relation_type:
            query = query.where(EntityRelation.relation_type == relation_type)

        query = query.order_by(EntityRelation.created_at.asc())
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_by_entity_name(self, term: str, limit: int = 10) -> List[EntityRelation]:
        """Relations where either endpoint name contains ``term`` (case-insensitive)."""
        query = (
            select(EntityRelation)
            .where(
                or_(
                    EntityRelation.from_name.icontains(term, autoescape=True),
                    EntityRelation.to_name.icontains(term, autoescape=True),
                )
            )
            .order_by(EntityRelation.confidence.desc().nulls_last(), EntityRelation.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

