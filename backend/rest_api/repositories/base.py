"""
Base Repository implementation.
Provides common data access patterns scoped to a single vendor.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TypeVar, Generic, Sequence
from sqlalchemy.orm import Session
from sqlalchemy import Select, select, func

from shared.config.constants import Limits


ModelT = TypeVar("ModelT")


@dataclass
class RepositoryFilters:
    """Base filters for repository queries."""

    limit: int = Limits.DEFAULT_PAGE_SIZE
    offset: int = 0

    def __post_init__(self):
        self.limit = min(max(1, self.limit), Limits.MAX_PAGE_SIZE)
        self.offset = max(0, self.offset)


class BaseRepository(ABC, Generic[ModelT]):
    """
    Abstract base repository with common operations.

    Every lookup takes the owning vendor id: a row of another vendor is
    indistinguishable from a missing row.
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        """Return the SQLAlchemy model class."""
        ...

    def _base_query(self, vendor_id: int) -> Select:
        """Base query scoped to the vendor. Override to add eager loading."""
        return select(self.model).where(self.model.vendor_id == vendor_id)

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        """Apply entity-specific filters to query."""
        return query

    def find_all(
        self,
        vendor_id: int,
        filters: RepositoryFilters | None = None,
    ) -> Sequence[ModelT]:
        filters = filters or RepositoryFilters()
        query = self._apply_filters(self._base_query(vendor_id), filters)
        query = query.offset(filters.offset).limit(filters.limit)
        return self._db.execute(query).scalars().unique().all()

    def find_by_id(self, entity_id: int, vendor_id: int) -> ModelT | None:
        """Find entity by (id, vendor_id)."""
        query = self._base_query(vendor_id).where(self.model.id == entity_id)
        return self._db.scalar(query)

    def find_by_ids(self, entity_ids: list[int], vendor_id: int) -> Sequence[ModelT]:
        """Find entities by IDs (order not guaranteed)."""
        if not entity_ids:
            return []
        query = self._base_query(vendor_id).where(self.model.id.in_(entity_ids))
        return self._db.execute(query).scalars().unique().all()

    def count(self, vendor_id: int) -> int:
        query = (
            select(func.count())
            .select_from(self.model)
            .where(self.model.vendor_id == vendor_id)
        )
        return self._db.scalar(query) or 0

    def save(self, entity: ModelT) -> ModelT:
        """Add and flush so generated ids are available."""
        self._db.add(entity)
        self._db.flush()
        self._db.refresh(entity)
        return entity
