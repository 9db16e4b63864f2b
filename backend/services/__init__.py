# Services package - Consolidated imports only
from .auth import AuthService
from .delivery_methods import DeliveryMethodService, DeliveryMethodRepository
from .delivery_sync import DeliveryMethodReconciler
from .storage import StorageService

__all__ = [
    "AuthService",
    "DeliveryMethodService",
    "DeliveryMethodRepository",
    "DeliveryMethodReconciler",
    "StorageService",
]
