from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, Float, Text, DateTime, CheckConstraint, UniqueConstraint
from core.database import BaseModel, CHAR_LENGTH

CURRENCY_CODES = ("USDC", "USD", "NGN", "EUR")
DEFAULT_CURRENCY = "NGN"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DeliveryMethod(BaseModel):
    __tablename__ = "delivery_methods"
    __table_args__ = (
        UniqueConstraint("name", name="uq_delivery_methods_name"),
        UniqueConstraint("code", name="uq_delivery_methods_code"),
        CheckConstraint("price >= 0", name="ck_delivery_methods_price_non_negative"),
        CheckConstraint(
            "currency IN ({})".format(", ".join(f"'{code}'" for code in CURRENCY_CODES)),
            name="ck_delivery_methods_currency",
        ),
    )

    name = Column(String(CHAR_LENGTH), nullable=False)
    # Storefront ids become codes, so no length cap
    code = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    currency = Column(String(10), nullable=False, default=DEFAULT_CURRENCY, server_default=DEFAULT_CURRENCY)
    estimated_delivery_time = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    # Strictly increasing per insert, doubles as the insertion order
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def __repr__(self) -> str:
        return f"<DeliveryMethod {self.code} {self.name!r}>"
