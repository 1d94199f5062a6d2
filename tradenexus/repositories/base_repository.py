from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tradenexus.utils.logging import get_logger

ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Shared persistence operations for one mapped model.

    Writes commit on success and roll back on ``SQLAlchemyError``; the error
    is logged with the model name and re-raised for the caller to map.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session
            model: The SQLAlchemy model class this repository manages
        """
        self.session = session
        self.model = model
        self.logger = LOGGER

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        """Equality filters on model columns; None values are skipped."""
        for field, value in (filters or {}).items():
            if value is not None and hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)
        return query

    def _log_failure(self, action: str, error: SQLAlchemyError, **context: Any) -> None:
        self.logger.error(
            f"Failed to {action} {self.model.__name__}",
            exc_info=True,
            extra={"error": str(error), **context},
        )

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        try:
            result = await self.session.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self._log_failure("load", e, record_id=str(id))
            raise

    async def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Sequence[Any] = (),
        skip: int = 0,
        limit: int = 200,
    ) -> List[ModelType]:
        """List records matching ``filters`` in the given order.

        Args:
            filters: Column name to value; None values are ignored
            order_by: Column expressions passed to ``ORDER BY``
            skip: Number of records to skip
            limit: Maximum number of records to return
        """
        query = self._apply_filters(select(self.model), filters)
        if order_by:
            query = query.order_by(*order_by)
        try:
            result = await self.session.execute(query.offset(skip).limit(limit))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self._log_failure("list", e)
            raise

    async def create(self, **fields: Any) -> ModelType:
        """Insert one record and commit."""
        instance = self.model(**fields)
        try:
            self.session.add(instance)
            await self.session.flush()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            self._log_failure("create", e)
            raise
        return instance

    async def update(self, id: UUID, **fields: Any) -> Optional[ModelType]:
        """Set ``fields`` on the record with ``id`` and commit.

        Returns:
            The updated record, or None when it does not exist
        """
        instance = await self.get_by_id(id)
        if instance is None:
            return None

        for key, value in fields.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        try:
            await self.session.flush()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            self._log_failure("update", e, record_id=str(id))
            raise
        return instance

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        query = self._apply_filters(select(func.count()).select_from(self.model), filters)
        try:
            result = await self.session.execute(query)
            return result.scalar_one()
        except SQLAlchemyError as e:
            self._log_failure("count", e)
            raise
