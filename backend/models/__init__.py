# Models package - Consolidated imports only
from .user import User, UserRole
from .delivery_method import DeliveryMethod, CURRENCY_CODES, DEFAULT_CURRENCY

__all__ = [
    "User",
    "UserRole",
    "DeliveryMethod",
    "CURRENCY_CODES",
    "DEFAULT_CURRENCY",
]
