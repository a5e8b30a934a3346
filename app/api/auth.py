from fastapi import APIRouter, Depends, Request

from app.api.deps import get_site_settings_file
from app.core.config_loader import load_site_settings, save_site_settings
from app.core.exceptions import UnauthorizedError
from app.core.logger import logger
from app.core.security import (
    SESSION_AUTH_KEY,
    hash_password,
    is_admin,
    validate_new_password,
    verify_password,
)
from app.models.api_models import LoginRequest, SetPasswordRequest, SuccessResponse

router = APIRouter(prefix="/auth")

@router.post("/login", response_model=SuccessResponse)
async def login(req: LoginRequest, request: Request, settings_file: str = Depends(get_site_settings_file)):
    site_settings = load_site_settings(settings_file)

    if not verify_password(site_settings.get("reportPassword", ""), req.password):
        logger.warning("🔒 Failed report login attempt")
        raise UnauthorizedError("Invalid password")

    request.session[SESSION_AUTH_KEY] = True
    logger.info("🔓 Report login successful")
    return SuccessResponse()

@router.post("/logout", response_model=SuccessResponse)
async def logout(request: Request):
    request.session.clear()
    return SuccessResponse()

@router.post("/password", response_model=SuccessResponse)
async def set_password(req: SetPasswordRequest, request: Request, settings_file: str = Depends(get_site_settings_file)):
    """
    Sets the report password. Open while no password exists yet (first setup),
    afterwards only for a logged-in admin.
    """
    site_settings = load_site_settings(settings_file)
    if site_settings.get("reportPassword") and not is_admin(request):
        raise UnauthorizedError("Not authenticated")

    validate_new_password(req.password)

    site_settings["reportPassword"] = hash_password(req.password)
    save_site_settings(site_settings, settings_file)
    return SuccessResponse(message="New password has been set and saved to settings.json")
