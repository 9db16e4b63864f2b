from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Optional
from datetime import datetime
from uuid import UUID


class Currency(str, Enum):
    USDC = "USDC"
    USD = "USD"
    NGN = "NGN"
    EUR = "EUR"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (the storefront's keys)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )


class DeliveryMethodBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: float = Field(..., ge=0, allow_inf_nan=False)
    currency: Currency = Currency.NGN
    estimated_delivery_time: Optional[str] = Field(None, max_length=100)
    is_active: bool = True


class DeliveryMethodCreate(DeliveryMethodBase):
    pass


class DeliveryMethodUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    currency: Optional[Currency] = None
    estimated_delivery_time: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def required_fields_not_null(self):
        # Omitting a field leaves it alone; sending null for a required one is an error
        for field in ("name", "code", "price", "currency", "is_active"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class DeliveryMethodRecord(CamelModel):
    """Immutable snapshot of a stored delivery method."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        from_attributes=True,
        frozen=True,
    )

    id: UUID
    name: str
    code: str
    description: Optional[str] = None
    price: float
    currency: Currency
    estimated_delivery_time: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class ExternalDeliveryMethod(BaseModel):
    """One entry of the storefront's delivery method list."""
    model_config = ConfigDict(coerce_numbers_to_str=True, str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: float = Field(..., allow_inf_nan=False)
    currency: str = Currency.NGN.value


class DeliveryMethodSyncRequest(CamelModel):
    # Shape is checked by the reconciler so a non-list answers 400, not 422
    frontend_methods: Any = None


class SyncedDeliveryMethod(CamelModel):
    internal_id: UUID = Field(..., alias="_id")
    id: str
    name: str
    code: str
    price: float
    currency: str
    description: Optional[str] = None
    estimated_delivery_time: Optional[str] = None
    is_active: bool
