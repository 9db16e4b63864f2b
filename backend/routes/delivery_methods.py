"""
Delivery method routes: admin CRUD and storefront synchronization
"""

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional
import logging

from core.database import get_db
from core.dependencies import require_admin
from core.utils.response import Response
from core.exceptions import APIException
from services.delivery_methods import DeliveryMethodService
from services.delivery_sync import DeliveryMethodReconciler
from schemas.delivery_method import DeliveryMethodSyncRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/delivery-methods", tags=["delivery-methods"])


# Bodies are validated by the service so invariant violations answer 400
@router.post("/", dependencies=[Depends(require_admin)], status_code=status.HTTP_201_CREATED)
async def create_delivery_method(
    method_data: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db)
):
    """Create a new delivery method (Admin only)"""
    try:
        method = await DeliveryMethodService(db).create(method_data)
        return Response.success(
            data=method,
            message="Delivery method created successfully",
            status_code=status.HTTP_201_CREATED
        )
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Error creating delivery method: {e}")
        raise APIException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=f"Failed to create delivery method: {str(e)}"
        )


@router.get("/")
async def get_delivery_methods(
    db: AsyncSession = Depends(get_db)
):
    """
    Get all delivery methods, seeding the defaults into an empty catalog
    """
    try:
        methods = await DeliveryMethodService(db).list_all()
        return Response.success(
            data=methods,
            message="Delivery methods retrieved successfully"
        )
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Error getting delivery methods: {e}")
        raise APIException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=f"Failed to get delivery methods: {str(e)}"
        )


@router.post("/sync")
async def sync_delivery_methods(
    sync_request: Optional[DeliveryMethodSyncRequest] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Sync the storefront's delivery methods into the catalog.
    Returns the synced methods with their internal ids under `_id`.
    """
    try:
        synced = await DeliveryMethodReconciler(db).reconcile(
            sync_request.frontend_methods if sync_request else None
        )
        return Response.success(
            data=synced,
            message=f"Synced {len(synced)} delivery methods"
        )
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Error syncing delivery methods: {e}")
        raise APIException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=f"Failed to sync delivery methods: {str(e)}"
        )


@router.get("/{method_id}")
async def get_delivery_method(
    method_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Get a specific delivery method by ID"""
    try:
        method = await DeliveryMethodService(db).get_by_id(method_id)
        return Response.success(
            data=method,
            message="Delivery method retrieved successfully"
        )
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Error getting delivery method {method_id}: {e}")
        raise APIException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=f"Failed to get delivery method: {str(e)}"
        )


@router.put("/{method_id}", dependencies=[Depends(require_admin)])
async def update_delivery_method(
    method_id: str,
    method_data: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db)
):
    """Update a delivery method (Admin only)"""
    try:
        method = await DeliveryMethodService(db).update(method_id, method_data)
        return Response.success(
            data=method,
            message="Delivery method updated successfully"
        )
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Error updating delivery method {method_id}: {e}")
        raise APIException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=f"Failed to update delivery method: {str(e)}"
        )


@router.delete("/{method_id}", dependencies=[Depends(require_admin)])
async def delete_delivery_method(
    method_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Delete a delivery method (Admin only)"""
    try:
        await DeliveryMethodService(db).delete(method_id)
        return Response.success(message="Delivery method removed")
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Error deleting delivery method {method_id}: {e}")
        raise APIException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=f"Failed to delete delivery method: {str(e)}"
        )
