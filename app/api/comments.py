from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from app.api.deps import get_comment_service
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.security import is_admin, require_admin
from app.models.api_models import SuccessResponse
from app.models.db_models import Comment
from app.services.booking_service import normalize_booking_id
from app.services.comment_service import CommentService

router = APIRouter()

async def read_upload(image: Optional[UploadFile]) -> Optional[bytes]:
    """Reads at most MAX_UPLOAD_BYTES + 1 so an oversized upload is rejected without buffering it all."""
    if image is None or not image.filename:
        return None
    data = await image.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError("Image is too large")
    return data or None

@router.get("/bookings/{booking_id}/comments", response_model=List[Comment], response_model_exclude_none=True)
async def list_comments(booking_id: str, comment_service: CommentService = Depends(get_comment_service)):
    return await comment_service.list_comments(normalize_booking_id(booking_id))

@router.post("/bookings/{booking_id}/comments", response_model=Comment, response_model_exclude_none=True)
async def add_comment(
    booking_id: str,
    request: Request,
    content: str = Form(""),
    image: Optional[UploadFile] = File(None),
    comment_service: CommentService = Depends(get_comment_service),
):
    image_bytes = await read_upload(image)

    return await comment_service.create_comment(
        normalize_booking_id(booking_id),
        content,
        image=image_bytes,
        is_admin=is_admin(request),
    )

@router.delete("/comments/{comment_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
async def delete_comment(comment_id: str, comment_service: CommentService = Depends(get_comment_service)):
    await comment_service.delete_comment(comment_id)
    return SuccessResponse()
