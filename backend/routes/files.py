from fastapi import APIRouter, Depends, File, Request, UploadFile, status
import logging

from core.config import settings
from core.dependencies import require_admin
from core.exceptions import APIException, ValidationException
from core.utils.response import Response
from services.storage import StorageService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/files", tags=["Files"])


def get_storage_service() -> StorageService:
    return StorageService()


@router.post("/upload", dependencies=[Depends(require_admin)])
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    storage: StorageService = Depends(get_storage_service),
):
    """
    Upload an image (png, jpeg, gif, webp). Admin only.
    Stored in the S3 bucket when configured, otherwise under UPLOAD_DIR.
    """
    try:
        content = await file.read()
        error = storage.validate_image(
            content,
            file.content_type,
            max_size=settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024,
        )
        if error:
            raise ValidationException(message=error)

        stored = await storage.save_image(
            file.filename,
            content,
            file.content_type,
            base_url=str(request.base_url),
        )
        return Response.success(
            data={
                "filename": stored.filename,
                "url": stored.url,
                "content_type": stored.content_type,
                "size": stored.size,
            },
            message="File uploaded successfully"
        )
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Error uploading file {file.filename}: {e}")
        raise APIException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Failed to upload file"
        )
    finally:
        await file.close()
