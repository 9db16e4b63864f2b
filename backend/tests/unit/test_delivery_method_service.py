"""
Unit tests for the delivery method store
"""
import pytest
import pytest_asyncio
from datetime import datetime, timezone
from uuid import uuid4
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

import services.delivery_methods as delivery_methods_module
from services.delivery_methods import DeliveryMethodService, DEFAULT_DELIVERY_METHODS, conflict_field
from core.exceptions import ValidationException, ConflictException, NotFoundException


def method_payload(**overrides):
    payload = {
        "name": "Lagos Same Day",
        "code": "LSD",
        "description": "Same day delivery within Lagos",
        "price": 3500,
        "currency": "NGN",
        "estimated_delivery_time": "Same day",
    }
    payload.update(overrides)
    return payload


class TestDeliveryMethodCreate:

    @pytest_asyncio.fixture
    async def service(self, db_session):
        return DeliveryMethodService(db_session)

    @pytest.mark.asyncio
    async def test_create_returns_stored_record(self, service):
        record = await service.create(method_payload())

        assert record.id is not None
        assert record.name == "Lagos Same Day"
        assert record.code == "LSD"
        assert record.price == 3500
        assert record.currency == "NGN"
        assert record.is_active is True
        assert record.created_at is not None

    @pytest.mark.asyncio
    async def test_create_defaults_currency_to_ngn(self, service):
        payload = method_payload()
        del payload["currency"]

        record = await service.create(payload)

        assert record.currency == "NGN"

    @pytest.mark.asyncio
    async def test_create_accepts_camel_case_keys(self, service):
        record = await service.create({
            "name": "Pickup",
            "code": "PICK",
            "price": 0,
            "estimatedDeliveryTime": "Same day",
            "isActive": False,
        })

        assert record.estimated_delivery_time == "Same day"
        assert record.is_active is False
        assert record.price == 0

    @pytest.mark.asyncio
    async def test_create_rejects_negative_price(self, service):
        with pytest.raises(ValidationException) as exc_info:
            await service.create(method_payload(price=-1))

        assert exc_info.value.status_code == 400
        assert "price" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_currency(self, service):
        with pytest.raises(ValidationException) as exc_info:
            await service.create(method_payload(currency="GBP"))

        assert "currency" in exc_info.value.errors

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["name", "code", "price"])
    async def test_create_requires_field(self, service, field):
        payload = method_payload()
        del payload[field]

        with pytest.raises(ValidationException):
            await service.create(payload)

    @pytest.mark.asyncio
    async def test_create_rejects_duplicate_code(self, service):
        await service.create(method_payload())

        with pytest.raises(ConflictException) as exc_info:
            await service.create(method_payload(name="Another Name"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.field == "code"

    @pytest.mark.asyncio
    async def test_create_rejects_duplicate_name(self, service):
        await service.create(method_payload())

        with pytest.raises(ConflictException) as exc_info:
            await service.create(method_payload(code="OTHER"))

        assert exc_info.value.field == "name"

    @pytest.mark.asyncio
    async def test_codes_are_case_sensitive(self, service):
        await service.create(method_payload(code="std", name="Lowercase"))
        record = await service.create(method_payload(code="STD", name="Uppercase"))

        assert record.code == "STD"


class TestDeliveryMethodQueries:

    @pytest_asyncio.fixture
    async def service(self, db_session):
        return DeliveryMethodService(db_session)

    @pytest.mark.asyncio
    async def test_list_all_seeds_empty_catalog(self, service):
        records = await service.list_all()

        assert [r.code for r in records] == ["STD", "EXP", "INT"]
        assert [r.price for r in records] == [2500, 5000, 15000]
        assert all(r.currency == "NGN" for r in records)

    @pytest.mark.asyncio
    async def test_list_all_does_not_seed_populated_catalog(self, service):
        await service.create(method_payload())

        records = await service.list_all()

        assert [r.code for r in records] == ["LSD"]

    @pytest.mark.asyncio
    async def test_list_all_keeps_insertion_order(self, service):
        for code in ("ZED", "ALPHA", "MID"):
            await service.create(method_payload(code=code, name=f"Method {code}"))

        records = await service.list_all()

        assert [r.code for r in records] == ["ZED", "ALPHA", "MID"]

    @pytest.mark.asyncio
    async def test_ensure_seeded_is_idempotent(self, service):
        first = await service.ensure_seeded()
        second = await service.ensure_seeded()

        assert first == len(DEFAULT_DELIVERY_METHODS)
        assert second == 0
        assert len(await service.list_all()) == len(DEFAULT_DELIVERY_METHODS)

    @pytest.mark.asyncio
    async def test_get_by_id(self, service):
        created = await service.create(method_payload())

        assert await service.get_by_id(created.id) == created
        assert await service.get_by_id(str(created.id)) == created

    @pytest.mark.asyncio
    async def test_get_by_id_unknown(self, service):
        with pytest.raises(NotFoundException):
            await service.get_by_id(uuid4())

    @pytest.mark.asyncio
    async def test_get_by_id_malformed_is_not_found(self, service):
        with pytest.raises(NotFoundException) as exc_info:
            await service.get_by_id("not-an-id")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_find_by_code(self, service):
        created = await service.create(method_payload())

        assert await service.find_by_code("LSD") == created
        assert await service.find_by_code("lsd") is None
        assert await service.find_by_code("MISSING") is None


class TestDeliveryMethodUpdateDelete:

    @pytest_asyncio.fixture
    async def service(self, db_session):
        return DeliveryMethodService(db_session)

    @pytest.mark.asyncio
    async def test_update_changes_only_given_fields(self, service):
        created = await service.create(method_payload())

        updated = await service.update(created.id, {"price": 4000, "currency": "USD"})

        assert updated.id == created.id
        assert updated.price == 4000
        assert updated.currency == "USD"
        assert updated.name == created.name
        assert updated.code == created.code
        assert updated.description == created.description

    @pytest.mark.asyncio
    async def test_update_leaves_previous_record_untouched(self, service):
        created = await service.create(method_payload())

        await service.update(created.id, {"price": 4000})

        assert created.price == 3500
        with pytest.raises(ValidationError):
            created.price = 1

    @pytest.mark.asyncio
    async def test_update_without_changes_returns_current(self, service):
        created = await service.create(method_payload())

        unchanged = await service.update(created.id, {"price": 3500, "name": "Lagos Same Day"})

        assert unchanged == created

    @pytest.mark.asyncio
    async def test_update_rejects_negative_price(self, service):
        created = await service.create(method_payload())

        with pytest.raises(ValidationException):
            await service.update(created.id, {"price": -10})

        assert (await service.get_by_id(created.id)).price == 3500

    @pytest.mark.asyncio
    async def test_update_rejects_null_for_required_field(self, service):
        created = await service.create(method_payload())

        with pytest.raises(ValidationException):
            await service.update(created.id, {"name": None})

    @pytest.mark.asyncio
    async def test_update_allows_clearing_description(self, service):
        created = await service.create(method_payload())

        updated = await service.update(created.id, {"description": None})

        assert updated.description is None

    @pytest.mark.asyncio
    async def test_update_rejects_code_of_another_method(self, service):
        await service.create(method_payload())
        other = await service.create(method_payload(code="OTHER", name="Other"))

        with pytest.raises(ConflictException) as exc_info:
            await service.update(other.id, {"code": "LSD"})

        assert exc_info.value.field == "code"

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, service):
        with pytest.raises(NotFoundException):
            await service.update(uuid4(), {"price": 1})

    @pytest.mark.asyncio
    async def test_delete(self, service):
        created = await service.create(method_payload())

        await service.delete(created.id)

        with pytest.raises(NotFoundException):
            await service.get_by_id(created.id)
        assert await service.find_by_code("LSD") is None

    @pytest.mark.asyncio
    async def test_delete_unknown_id(self, service):
        with pytest.raises(NotFoundException):
            await service.delete(uuid4())


class TestDeliveryMethodSeeding:

    @pytest.mark.asyncio
    async def test_list_all_twice_does_not_duplicate_defaults(self, db_session):
        service = DeliveryMethodService(db_session)

        first = await service.list_all()
        second = await service.list_all()

        assert [r.code for r in second] == ["STD", "EXP", "INT"]
        assert first == second


class TestInsertionOrder:

    @pytest.mark.asyncio
    async def test_same_tick_inserts_keep_insertion_order(self, db_session, monkeypatch):
        frozen = datetime(2024, 1, 1, tzinfo=timezone.utc)
        monkeypatch.setattr(delivery_methods_module, "utc_now", lambda: frozen)
        service = DeliveryMethodService(db_session)

        for code in ("ZED", "ALPHA", "MID"):
            await service.create(method_payload(code=code, name=f"Method {code}"))

        records = await service.list_all()
        assert [r.code for r in records] == ["ZED", "ALPHA", "MID"]
        assert len({r.created_at for r in records}) == 3


class FakeDriverError(Exception):
    def __init__(self, message, constraint_name=None):
        super().__init__(message)
        self.constraint_name = constraint_name


def integrity_error(orig):
    return IntegrityError("INSERT INTO delivery_methods ...", {}, orig)


class TestConflictField:

    def test_constraint_name_wins_over_message_text(self):
        orig = FakeDriverError(
            'duplicate key value violates unique constraint "uq_delivery_methods_name"\n'
            "DETAIL:  Key (name)=(Barcode Express) already exists.",
            constraint_name="uq_delivery_methods_name",
        )

        assert conflict_field(integrity_error(orig)) == "name"

    def test_constraint_name_on_wrapped_driver_error(self):
        cause = FakeDriverError("duplicate key", constraint_name="delivery_methods_code_key")
        adapter_error = Exception("<class 'asyncpg.exceptions.UniqueViolationError'>: duplicate key")
        adapter_error.__cause__ = cause

        assert conflict_field(integrity_error(adapter_error)) == "code"

    @pytest.mark.parametrize("message,expected", [
        ("UNIQUE constraint failed: delivery_methods.name", "name"),
        ("UNIQUE constraint failed: delivery_methods.code", "code"),
        ("CHECK constraint failed: ck_delivery_methods_price_non_negative", None),
    ])
    def test_sqlite_messages(self, message, expected):
        assert conflict_field(integrity_error(Exception(message))) == expected

    def test_other_constraints_are_not_unique_conflicts(self):
        orig = FakeDriverError("violates check constraint", constraint_name="ck_delivery_methods_currency")

        assert conflict_field(integrity_error(orig)) is None
