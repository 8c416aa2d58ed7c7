# ==== TENANT-SCOPED REPOSITORY ==== #

"""
Generic tenant-scoped data access for the back office entities.

Every read and write goes through a repository bound to one tenant, so a
record owned by another tenant behaves exactly like a missing record.
"""

from typing import Any, Generic, Iterable, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import NotFoundError
from backoffice.storage.db import Base


ModelT = TypeVar("ModelT", bound=Base)


class TenantRepository(Generic[ModelT]):
    """CRUD helper scoping every statement to a single tenant.

    Args:
        model: Mapped class with a ``tenant`` column
        db: Active session
        tenant: Tenant identifier from the request
    """

    def __init__(self, model: Type[ModelT], db: AsyncSession, tenant: str):
        self.model = model
        self.db = db
        self.tenant = tenant

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    def base_query(self) -> Select:
        return select(self.model).where(self.model.tenant == self.tenant)

    async def get(self, entity_id: int, for_update: bool = False) -> Optional[ModelT]:
        query = select(self.model).where(
            and_(self.model.id == entity_id, self.model.tenant == self.tenant)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_404(self, entity_id: int, for_update: bool = False) -> ModelT:
        """Return the entity or raise NotFoundError."""
        entity = await self.get(entity_id, for_update=for_update)
        if entity is None:
            raise NotFoundError(self.entity_name, entity_id)
        return entity

    async def list(
        self,
        filters: Iterable[Any] = (),
        search: Optional[str] = None,
        search_columns: Sequence[str] = (),
        page: int = 1,
        page_size: int = 50,
        order_by: Sequence[Any] = (),
    ) -> Tuple[list[ModelT], int]:
        """List entities with filters, free-text search and pagination.

        Args:
            filters: Extra SQLAlchemy criteria
            search: Case-insensitive substring matched against ``search_columns``
            search_columns: Column names searched by ``search``
            page: 1-based page number
            page_size: Items per page
            order_by: Ordering clauses, newest first by default

        Returns:
            Tuple of (items, total matching count)
        """
        query = self.base_query()
        for criterion in filters:
            query = query.where(criterion)

        if search and search_columns:
            pattern = f"%{search.lower()}%"
            query = query.where(or_(*[
                func.lower(getattr(self.model, column)).like(pattern)
                for column in search_columns
            ]))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(*(order_by or (self.model.id.desc(),)))
        query = query.offset((page - 1) * page_size).limit(page_size)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def exists(self, *criteria: Any) -> bool:
        query = select(func.count()).select_from(self.model).where(
            self.model.tenant == self.tenant, *criteria
        )
        return ((await self.db.execute(query)).scalar() or 0) > 0

    async def create(self, **fields: Any) -> ModelT:
        entity = self.model(tenant=self.tenant, **fields)
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def update(self, entity: ModelT, **fields: Any) -> ModelT:
        for key, value in fields.items():
            setattr(entity, key, value)
        await self.db.flush()
        return entity

    async def delete(self, entity: ModelT) -> None:
        await self.db.delete(entity)
        await self.db.flush()


async def ensure_in_tenant(
    db: AsyncSession, model: Type[ModelT], tenant: str, entity_id: Optional[int]
) -> Optional[ModelT]:
    """Resolve an optional foreign key, rejecting ids owned by other tenants."""
    if entity_id is None:
        return None
    return await TenantRepository(model, db, tenant).get_or_404(entity_id)
