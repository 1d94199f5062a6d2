from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from tradenexus.database.models import ConversationMemory
from tradenexus.repositories.base_repository import BaseRepository


class ConversationRepository(BaseRepository[ConversationMemory]):
    """Repository for summarised user conversations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ConversationMemory)

    async def get_for_user(self, user_id: str, limit: int = 10) -> List[ConversationMemory]:
        """Most important memories first, then most recent."""
        return await self.find(
            {"user_id": user_id},
            order_by=[
                ConversationMemory.importance.desc(),
                ConversationMemory.last_interaction.desc(),
            ],
            limit=limit,
        )
