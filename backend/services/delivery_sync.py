"""
Reconciles the storefront's delivery method list with the stored catalog.

The storefront identifies methods by its own ids; those ids are stored as the
delivery method ``code``. Each entry is created when its code is unknown and
updated when name, price or currency drifted. Entries are independent: one
bad entry is logged and skipped, the rest are still synced.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import ValidationError
from typing import Any, Dict, List, Mapping, Optional
import logging

from schemas.delivery_method import (
    Currency,
    DeliveryMethodRecord,
    ExternalDeliveryMethod,
    SyncedDeliveryMethod,
)
from services.delivery_methods import DeliveryMethodService
from core.exceptions import APIException, InvalidInputException
from core.utils.logging import structured_logger

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "name", "price")
FAST_DELIVERY_MARKER = "1-2"


def estimate_delivery_time(name: str) -> str:
    if FAST_DELIVERY_MARKER in name:
        return "1-2 business days"
    return "3-5 business days"


class SyncStats:
    def __init__(self):
        self.created = 0
        self.updated = 0
        self.unchanged = 0
        self.skipped = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "skipped": self.skipped,
        }


class DeliveryMethodReconciler:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.delivery_methods = DeliveryMethodService(db)

    @staticmethod
    def _missing_fields(entry: Mapping[str, Any]) -> List[str]:
        missing = []
        for field in REQUIRED_FIELDS:
            value = entry.get(field)
            if field == "price":
                # 0 is a valid price
                absent = value is None
            else:
                absent = not value
            if absent:
                missing.append(field)
        return missing

    async def reconcile(self, external_methods: Any) -> List[SyncedDeliveryMethod]:
        """
        Sync a list of ``{id, name, price, currency?}`` entries into the catalog.

        Raises InvalidInputException when ``external_methods`` is not a list.
        Returns one element per processed entry, in input order.
        """
        if not isinstance(external_methods, list):
            raise InvalidInputException(message="Frontend methods array is required")

        stats = SyncStats()
        synced: List[SyncedDeliveryMethod] = []

        for position, entry in enumerate(external_methods):
            if not isinstance(entry, Mapping) or self._missing_fields(entry):
                logger.warning(f"Skipping invalid frontend method at position {position}: {entry!r}")
                stats.skipped += 1
                continue

            try:
                external = self._parse_entry(entry)
                record = await self._sync_entry(external, stats)
            except (APIException, ValidationError) as e:
                logger.error(f"Failed to sync frontend method {entry.get('id')!r}: {e}")
                stats.skipped += 1
                continue
            except Exception as e:
                logger.exception(f"Unexpected error syncing frontend method {entry.get('id')!r}: {e}")
                stats.skipped += 1
                continue

            synced.append(self._to_synced(record, external.id))

        structured_logger.info(
            message=f"Synced {len(synced)} delivery methods",
            endpoint="delivery-methods/sync",
            metadata={"received": len(external_methods), "processed": len(synced), **stats.as_dict()},
        )
        return synced

    @staticmethod
    def _parse_entry(entry: Mapping[str, Any]) -> ExternalDeliveryMethod:
        data = dict(entry)
        if data.get("currency") is None:
            data["currency"] = Currency.NGN.value
        return ExternalDeliveryMethod.model_validate(data)

    async def _sync_entry(self, external: ExternalDeliveryMethod, stats: SyncStats) -> DeliveryMethodRecord:
        existing: Optional[DeliveryMethodRecord] = await self.delivery_methods.find_by_code(external.id)

        if existing is None:
            record = await self.delivery_methods.create({
                "name": external.name,
                "code": external.id,
                "description": f"{external.name} delivery",
                "price": external.price,
                "currency": external.currency,
                "estimated_delivery_time": estimate_delivery_time(external.name),
                "is_active": True,
            })
            stats.created += 1
            logger.info(f"Created new delivery method: {record.name} ({external.id})")
            return record

        changes = {
            field: getattr(external, field)
            for field in ("name", "price", "currency")
            if getattr(existing, field) != getattr(external, field)
        }
        if not changes:
            stats.unchanged += 1
            return existing

        # The code is the join key and is never rewritten
        record = await self.delivery_methods.update(existing.id, changes)
        stats.updated += 1
        logger.info(f"Updated delivery method: {record.name} ({external.id}) fields={sorted(changes)}")
        return record

    @staticmethod
    def _to_synced(record: DeliveryMethodRecord, external_id: str) -> SyncedDeliveryMethod:
        return SyncedDeliveryMethod(
            internal_id=record.id,
            id=external_id,
            name=record.name,
            code=record.code,
            price=record.price,
            currency=record.currency,
            description=record.description,
            estimated_delivery_time=record.estimated_delivery_time,
            is_active=record.is_active,
        )
