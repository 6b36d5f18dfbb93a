"""Storage client: the boundary the seed procedure and services talk to.

A :class:`StorageClient` owns one async engine for its whole lifetime and
exposes one :class:`EntityRepository` per entity with
``find_unique`` / ``create`` / ``delete`` operations.  Every write runs in
its own transaction and is rolled back as a whole when the database
rejects it; driver errors are translated into the taxonomy in
:mod:`posdb.errors`.
"""

import logging
import uuid
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar

import pydantic
from sqlalchemy import delete as sa_delete
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, StatementError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from posdb.database import create_engine, create_session_factory
from posdb.errors import (
    ConnectivityError,
    ForeignKeyViolation,
    ImmutableRecordError,
    PosDBError,
    UniqueConstraintViolation,
    ValidationError,
)
from posdb.models import (
    Category,
    Customer,
    Inventory,
    Order,
    OrderItem,
    Product,
    ProductVariant,
    StockMovement,
    User,
)
from posdb.models.base import Base
from posdb.schemas import (
    CategoryCreate,
    CreateSchema,
    CustomerCreate,
    InventoryCreate,
    OrderCreate,
    ProductCreate,
    ProductVariantCreate,
    StockMovementCreate,
    UserCreate,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def validation_error_from(entity: str, exc: pydantic.ValidationError) -> ValidationError:
    """Collapse a pydantic error into a :class:`ValidationError` naming the first bad field."""
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    return ValidationError(entity, field, first["msg"])


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig_str = str(exc.orig).lower() if exc.orig is not None else ""
    return "unique" in orig_str or "duplicate" in orig_str


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    orig_str = str(exc.orig).lower() if exc.orig is not None else ""
    return "foreign key" in orig_str


class EntityRepository(Generic[ModelT]):
    """Lookup and write operations for a single entity."""

    def __init__(
        self,
        client: "StorageClient",
        model: type[ModelT],
        create_schema: type[CreateSchema],
        unique_keys: tuple[str, ...] = (),
    ) -> None:
        self._client = client
        self.model = model
        self.create_schema = create_schema
        self.unique_keys = unique_keys

    @property
    def entity(self) -> str:
        return self.model.__name__

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_unique(self, **where: Any) -> ModelT | None:
        """Return the row matching exactly one unique key, or ``None``.

        The key is normalized the way :meth:`create` stores it, so a lookup by
        a lowercase SKU or a padded phone finds the row it would conflict with.
        """
        if len(where) != 1:
            raise ValidationError(self.entity, None, "find_unique takes exactly one key")
        ((field, value),) = where.items()
        if field != "id" and field not in self.unique_keys:
            raise ValidationError(self.entity, field, "not a unique key")
        if value is None:
            return None
        value = self.create_schema.normalize_key(field, value)

        async with self._client.session() as session:
            result = await session.execute(
                select(self.model).where(getattr(self.model, field) == value)
            )
            return result.scalar_one_or_none()

    async def count(self) -> int:
        async with self._client.session() as session:
            result = await session.execute(select(func.count()).select_from(self.model))
            return result.scalar_one()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def validate(self, data: Mapping[str, Any] | CreateSchema) -> CreateSchema:
        """Run *data* through the entity's create schema."""
        if isinstance(data, self.create_schema):
            return data
        if isinstance(data, pydantic.BaseModel):
            data = data.model_dump()
        try:
            return self.create_schema.model_validate(data)
        except pydantic.ValidationError as exc:
            raise validation_error_from(self.entity, exc) from None

    def build(self, payload: CreateSchema) -> ModelT:
        return self.model(id=uuid.uuid4(), **payload.model_dump())

    async def create(self, data: Mapping[str, Any] | CreateSchema) -> ModelT:
        """Validate and insert one row, committing it on success.

        Raises :class:`UniqueConstraintViolation`, :class:`ForeignKeyViolation`
        or :class:`ValidationError`; nothing is persisted in those cases.
        """
        payload = self.validate(data)
        async with self._client.session() as session:
            instance = self.build(payload)
            session.add(instance)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                error = await self._diagnose(session, payload, exc)
                logger.info("Rejected %s create: %s", self.entity, error)
                raise error from exc
            except (OperationalError, InterfaceError):
                raise
            except StatementError as exc:
                await session.rollback()
                raise ValidationError(self.entity, None, str(exc.orig)) from exc
            await session.refresh(
                instance,
                attribute_names=[attr.key for attr in inspect(self.model).column_attrs],
            )
        logger.debug("Created %s id=%s", self.entity, instance.id)
        return instance

    async def delete(self, id: uuid.UUID) -> bool:
        """Delete the row with *id*; owned children follow by cascade.

        Returns ``False`` when no row matched.  Raises
        :class:`ForeignKeyViolation` when another row still references it
        through a restricting relationship.
        """
        async with self._client.session() as session:
            try:
                result = await session.execute(
                    sa_delete(self.model).where(self.model.id == id)
                )
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                referencing, field = await self._find_referencing(session, id)
                raise ForeignKeyViolation(
                    referencing,
                    field,
                    f"{self.entity} {id} is still referenced",
                ) from exc
        deleted = result.rowcount > 0
        if deleted:
            logger.debug("Deleted %s id=%s", self.entity, id)
        return deleted

    # ------------------------------------------------------------------
    # Error diagnosis
    # ------------------------------------------------------------------

    async def _diagnose(
        self,
        session: AsyncSession,
        payload: CreateSchema,
        exc: IntegrityError,
    ) -> PosDBError:
        if _is_unique_violation(exc):
            return UniqueConstraintViolation(
                self.entity, await self._find_conflicting_key(session, payload)
            )
        if _is_foreign_key_violation(exc):
            return ForeignKeyViolation(
                self.entity, await self._find_missing_reference(session, payload)
            )
        return ValidationError(self.entity, None, str(exc.orig))

    async def _find_conflicting_key(self, session: AsyncSession, payload: CreateSchema) -> str | None:
        for field in self.unique_keys:
            value = getattr(payload, field, None)
            if value is None:
                continue
            result = await session.execute(
                select(self.model.id).where(getattr(self.model, field) == value)
            )
            if result.first() is not None:
                return field
        return None

    async def _find_missing_reference(
        self, session: AsyncSession, payload: CreateSchema
    ) -> str | None:
        for column in self.model.__table__.columns:
            value = getattr(payload, column.key, None)
            if value is None:
                continue
            for fk in column.foreign_keys:
                result = await session.execute(
                    select(fk.column).where(fk.column == value)
                )
                if result.first() is None:
                    return column.key
        return None

    async def _find_referencing(self, session: AsyncSession, id: uuid.UUID) -> tuple[str, str | None]:
        table = self.model.__table__
        for mapper in Base.registry.mappers:
            for column in mapper.local_table.columns:
                for fk in column.foreign_keys:
                    if fk.column.table is not table or fk.ondelete in ("CASCADE", "SET NULL"):
                        continue
                    result = await session.execute(
                        select(column).where(column == id).limit(1)
                    )
                    if result.first() is not None:
                        return mapper.class_.__name__, column.key
        return self.entity, None


class StockMovementRepository(EntityRepository[StockMovement]):
    async def delete(self, id: uuid.UUID) -> bool:
        raise ImmutableRecordError(self.entity)


class OrderRepository(EntityRepository[Order]):
    @staticmethod
    def _order_payload(payload: CreateSchema) -> OrderCreate:
        if not isinstance(payload, OrderCreate):
            raise TypeError(f"expected OrderCreate, got {type(payload).__name__}")
        return payload

    def build(self, payload: CreateSchema) -> Order:
        payload = self._order_payload(payload)
        order = Order(id=uuid.uuid4(), **payload.model_dump(exclude={"items"}))
        order.items = [
            OrderItem(id=uuid.uuid4(), **item.model_dump()) for item in payload.items
        ]
        return order

    async def _find_missing_reference(
        self, session: AsyncSession, payload: CreateSchema
    ) -> str | None:
        field = await super()._find_missing_reference(session, payload)
        if field is not None:
            return field
        for item in self._order_payload(payload).items:
            result = await session.execute(select(Product.id).where(Product.id == item.product_id))
            if result.first() is None:
                return "items.product_id"
        return None


class StorageClient:
    """Connection-scoped access to the POS schema.

    Acquire with ``async with StorageClient(url) as client:`` (or call
    :meth:`connect` / :meth:`disconnect` explicitly); the engine is disposed
    on every exit path.
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self.database_url = database_url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

        self.user = EntityRepository(self, User, UserCreate, ("email",))
        self.category = EntityRepository(self, Category, CategoryCreate, ("slug",))
        self.product = EntityRepository(self, Product, ProductCreate, ("sku", "barcode"))
        self.product_variant = EntityRepository(
            self, ProductVariant, ProductVariantCreate, ("sku",)
        )
        self.inventory = EntityRepository(self, Inventory, InventoryCreate, ("product_id",))
        self.stock_movement = StockMovementRepository(self, StockMovement, StockMovementCreate)
        self.customer = EntityRepository(self, Customer, CustomerCreate, ("phone",))
        self.order = OrderRepository(self, Order, OrderCreate, ("order_number",))

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise ConnectivityError("storage client is not connected")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> None:
        """Create the engine and verify the database answers."""
        if self._engine is not None:
            return
        engine = create_engine(self.database_url, echo=self.echo)
        try:
            async with engine.connect() as conn:
                await conn.run_sync(lambda _: None)
        except (OperationalError, InterfaceError, OSError) as exc:
            await engine.dispose()
            raise ConnectivityError(f"cannot reach database: {exc}") from exc
        self._engine = engine
        self._session_factory = create_session_factory(engine)
        logger.info("Connected to %s", engine.url.render_as_string(hide_password=True))

    async def disconnect(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Disconnected from database")

    async def create_all(self) -> None:
        """Materialise the schema directly (tests and throwaway databases)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; lost or refused connections become :class:`ConnectivityError`.

        Other operational errors, such as a missing table on a database that
        was never migrated, propagate unchanged.
        """
        if self._session_factory is None:
            raise ConnectivityError("storage client is not connected")
        try:
            async with self._session_factory() as session:
                yield session
        except (OperationalError, InterfaceError) as exc:
            if isinstance(exc, InterfaceError) or exc.connection_invalidated:
                raise ConnectivityError(str(exc.orig)) from exc
            raise

    async def __aenter__(self) -> "StorageClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()
