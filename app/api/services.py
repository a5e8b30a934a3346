from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_booking_service, get_catalog_service, get_site_settings_file
from app.core.config_loader import load_site_settings, get_whatsapp_number
from app.models.api_models import BookingFormResponse
from app.models.catalog_models import Service
from app.services.booking_service import BookingService
from app.services.catalog_service import CatalogService

router = APIRouter()

@router.get("/services", response_model=List[Service])
async def list_services(catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.load_services()

@router.get("/booking-form", response_model=BookingFormResponse)
async def booking_form(service: str, booking_service: BookingService = Depends(get_booking_service)):
    # 404 for unknown titles comes from NotFoundError
    return await booking_service.get_booking_form(service)

@router.get("/settings")
async def public_settings(settings_file: str = Depends(get_site_settings_file)):
    # Only expose what the frontend needs, never the password hash
    return {"whatsapp_number": get_whatsapp_number(load_site_settings(settings_file))}
