from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from pydantic import BaseModel, ValidationError
from typing import Any, Dict, List, Optional, Type, Union
from uuid import UUID
from datetime import datetime, timedelta, timezone
import logging
import re

from models.delivery_method import DeliveryMethod, utc_now
from schemas.delivery_method import (
    DeliveryMethodCreate,
    DeliveryMethodUpdate,
    DeliveryMethodRecord,
)
from core.exceptions import ValidationException, ConflictException, NotFoundException

logger = logging.getLogger(__name__)

MethodId = Union[UUID, str]

UNIQUE_CONSTRAINT_FIELDS = {
    "uq_delivery_methods_name": "name",
    "uq_delivery_methods_code": "code",
    # Postgres default names, for tables created before the constraints were named
    "delivery_methods_name_key": "name",
    "delivery_methods_code_key": "code",
}
# SQLite reports "UNIQUE constraint failed: delivery_methods.code"
SQLITE_UNIQUE_COLUMN = re.compile(r"unique constraint failed: delivery_methods\.(\w+)", re.IGNORECASE)

DEFAULT_DELIVERY_METHODS: List[Dict[str, Any]] = [
    {
        "name": "Standard Delivery",
        "code": "STD",
        "description": "Standard delivery within Nigeria",
        "price": 2500,
        "currency": "NGN",
        "estimated_delivery_time": "3-7 business days",
        "is_active": True,
    },
    {
        "name": "Express Delivery",
        "code": "EXP",
        "description": "Express delivery within Nigeria",
        "price": 5000,
        "currency": "NGN",
        "estimated_delivery_time": "1-2 business days",
        "is_active": True,
    },
    {
        "name": "International Shipping",
        "code": "INT",
        "description": "International shipping worldwide",
        "price": 15000,
        "currency": "NGN",
        "estimated_delivery_time": "7-14 business days",
        "is_active": True,
    },
]


def _coerce_id(method_id: MethodId) -> UUID:
    """Unparseable ids are reported as not found, never as a server error."""
    if isinstance(method_id, UUID):
        return method_id
    try:
        return UUID(str(method_id))
    except (ValueError, TypeError, AttributeError):
        raise NotFoundException(message="Delivery method not found", resource="delivery_method")


def conflict_field(error: Exception) -> Optional[str]:
    """Name of the unique column an IntegrityError tripped over, if it can be told."""
    orig = getattr(error, "orig", error)
    # asyncpg errors arrive wrapped by the SQLAlchemy adapter
    for candidate in (orig, getattr(orig, "__cause__", None)):
        constraint = getattr(candidate, "constraint_name", None)
        if constraint:
            return UNIQUE_CONSTRAINT_FIELDS.get(constraint)

    match = SQLITE_UNIQUE_COLUMN.search(str(orig))
    if match and match.group(1) in ("name", "code"):
        return match.group(1)
    return None


class DeliveryMethodRepository:
    """Persistence for delivery methods. Hands out immutable records only."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _to_record(row: DeliveryMethod) -> DeliveryMethodRecord:
        return DeliveryMethodRecord.model_validate(row)

    async def _get_row(self, method_id: MethodId) -> DeliveryMethod:
        result = await self.db.execute(
            select(DeliveryMethod).where(DeliveryMethod.id == _coerce_id(method_id))
        )
        row = result.scalars().first()
        if not row:
            raise NotFoundException(message="Delivery method not found", resource="delivery_method")
        return row

    async def _commit(self):
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            field = conflict_field(e)
            reason = str(e.orig).lower()
            if field or "unique" in reason or "duplicate" in reason:
                raise ConflictException(
                    message=f"Delivery method {field or 'name or code'} already exists",
                    field=field,
                )
            raise ValidationException(message=f"Delivery method violates a constraint: {e.orig}")

    async def _next_created_at(self) -> datetime:
        now = utc_now()
        result = await self.db.execute(select(func.max(DeliveryMethod.created_at)))
        latest = result.scalar()
        if latest is None:
            return now
        if latest.tzinfo is None:
            # SQLite hands timestamps back naive
            latest = latest.replace(tzinfo=timezone.utc)
        return max(now, latest + timedelta(microseconds=1))

    async def insert(self, fields: Dict[str, Any]) -> DeliveryMethodRecord:
        row = DeliveryMethod(**fields)
        if row.created_at is None:
            row.created_at = await self._next_created_at()
        self.db.add(row)
        await self._commit()
        await self.db.refresh(row)
        return self._to_record(row)

    async def get(self, method_id: MethodId) -> DeliveryMethodRecord:
        return self._to_record(await self._get_row(method_id))

    async def find_one(self, **filters) -> Optional[DeliveryMethodRecord]:
        result = await self.db.execute(select(DeliveryMethod).filter_by(**filters).limit(1))
        row = result.scalars().first()
        return self._to_record(row) if row else None

    async def find_all(self) -> List[DeliveryMethodRecord]:
        result = await self.db.execute(
            select(DeliveryMethod).order_by(DeliveryMethod.created_at, DeliveryMethod.code)
        )
        return [self._to_record(row) for row in result.scalars().all()]

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(DeliveryMethod))
        return result.scalar_one()

    async def update_fields(self, method_id: MethodId, fields: Dict[str, Any]) -> DeliveryMethodRecord:
        row = await self._get_row(method_id)
        for key, value in fields.items():
            setattr(row, key, value)
        await self._commit()
        await self.db.refresh(row)
        return self._to_record(row)

    async def delete(self, method_id: MethodId) -> None:
        row = await self._get_row(method_id)
        await self.db.delete(row)
        await self.db.commit()


class DeliveryMethodService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = DeliveryMethodRepository(db)

    @staticmethod
    def _parse(schema: Type[BaseModel], data: Union[BaseModel, Dict[str, Any]]) -> BaseModel:
        """Validate plain dicts against the schema; schema instances pass through."""
        if isinstance(data, schema):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump(exclude_unset=True)
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            errors = {
                ".".join(str(loc) for loc in error["loc"]) or "body": error["msg"]
                for error in e.errors()
            }
            raise ValidationException(message="Invalid delivery method data", errors=errors)

    async def _ensure_unique(self, exclude_id: Optional[UUID] = None, **values):
        for field, value in values.items():
            if value is None:
                continue
            existing = await self.repository.find_one(**{field: value})
            if existing and existing.id != exclude_id:
                raise ConflictException(
                    message=f"Delivery method with {field} '{value}' already exists",
                    field=field,
                )

    async def create(self, data: Union[DeliveryMethodCreate, Dict[str, Any]]) -> DeliveryMethodRecord:
        payload = self._parse(DeliveryMethodCreate, data)
        await self._ensure_unique(name=payload.name, code=payload.code)

        record = await self.repository.insert(payload.model_dump())
        logger.info(f"Created delivery method {record.code} ({record.id})")
        return record

    async def list_all(self) -> List[DeliveryMethodRecord]:
        """All delivery methods in insertion order; an empty catalog is seeded first."""
        records = await self.repository.find_all()
        if not records:
            await self.ensure_seeded()
            records = await self.repository.find_all()
        return records

    async def get_by_id(self, method_id: MethodId) -> DeliveryMethodRecord:
        return await self.repository.get(method_id)

    async def find_by_code(self, code: str) -> Optional[DeliveryMethodRecord]:
        return await self.repository.find_one(code=code)

    async def update(
        self,
        method_id: MethodId,
        data: Union[DeliveryMethodUpdate, Dict[str, Any]],
    ) -> DeliveryMethodRecord:
        payload = self._parse(DeliveryMethodUpdate, data)
        current = await self.repository.get(method_id)

        requested = payload.model_dump(exclude_unset=True)
        changes = {key: value for key, value in requested.items() if getattr(current, key) != value}
        if not changes:
            return current

        await self._ensure_unique(
            exclude_id=current.id,
            name=changes.get("name"),
            code=changes.get("code"),
        )

        updated = current.model_copy(update=changes)
        record = await self.repository.update_fields(
            current.id, {key: getattr(updated, key) for key in changes}
        )
        logger.info(f"Updated delivery method {record.code} ({record.id}): {sorted(changes)}")
        return record

    async def delete(self, method_id: MethodId) -> None:
        await self.repository.delete(method_id)
        logger.info(f"Deleted delivery method {method_id}")

    async def ensure_seeded(self) -> int:
        """
        Insert the default delivery methods when the catalog is empty.

        Safe to run from several processes at once: a default that another
        seeder inserted first surfaces as a conflict and is skipped.
        Returns the number of records inserted.
        """
        if await self.repository.count() > 0:
            return 0

        inserted = 0
        for defaults in DEFAULT_DELIVERY_METHODS:
            try:
                await self.repository.insert(DeliveryMethodCreate(**defaults).model_dump())
                inserted += 1
            except ConflictException:
                logger.info(f"Default delivery method {defaults['code']} already present, skipping")

        if inserted:
            logger.info(f"Seeded {inserted} default delivery methods")
        return inserted
