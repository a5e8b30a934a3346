from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_booking_service, get_comment_service
from app.core.security import require_admin
from app.models.api_models import (
    BookingSubmission,
    BookingSubmissionResponse,
    StatusUpdateRequest,
    SuccessResponse,
)
from app.models.db_models import Booking
from app.services.booking_service import BookingService, normalize_booking_id
from app.services.comment_service import CommentService

router = APIRouter()

@router.post("/bookings", response_model=BookingSubmissionResponse)
async def submit_booking(
    req: BookingSubmission,
    booking_service: BookingService = Depends(get_booking_service),
):
    return await booking_service.submit_booking(req)

@router.get("/bookings/{booking_id}", response_model=Booking)
async def track_booking(booking_id: str, booking_service: BookingService = Depends(get_booking_service)):
    return await booking_service.get_booking(normalize_booking_id(booking_id))

@router.get("/report", response_model=List[Booking], dependencies=[Depends(require_admin)])
async def booking_report(booking_service: BookingService = Depends(get_booking_service)):
    return await booking_service.list_bookings()

@router.patch("/bookings/{booking_id}/status", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
async def update_booking_status(
    booking_id: str,
    req: StatusUpdateRequest,
    booking_service: BookingService = Depends(get_booking_service),
):
    await booking_service.update_status(normalize_booking_id(booking_id), req.status)
    return SuccessResponse()

@router.delete("/bookings/{booking_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
async def delete_booking(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
    comment_service: CommentService = Depends(get_comment_service),
):
    booking_id = normalize_booking_id(booking_id)
    await booking_service.delete_booking(booking_id)
    await comment_service.delete_thread(booking_id)
    return SuccessResponse()
