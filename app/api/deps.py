from functools import lru_cache

from app.core.config import settings
from app.services.booking_service import BookingService
from app.services.captcha_service import CaptchaService, InMemoryCaptchaStore
from app.services.catalog_service import CatalogService
from app.services.comment_service import CommentService
from app.services.image_service import ImageService
from app.services.json_store import JsonListStore

# Process-wide singletons. Tests swap them via app.dependency_overrides.

@lru_cache
def get_catalog_service() -> CatalogService:
    return CatalogService(settings.SERVICES_DIR)

@lru_cache
def get_captcha_service() -> CaptchaService:
    return CaptchaService(InMemoryCaptchaStore(), settings.CAPTCHA_TTL_SECONDS)

@lru_cache
def get_booking_service() -> BookingService:
    return BookingService(
        store=JsonListStore(settings.BOOKINGS_FILE),
        catalog=get_catalog_service(),
        captcha=get_captcha_service(),
        site_settings_file=settings.SITE_SETTINGS_FILE,
    )

@lru_cache
def get_comment_service() -> CommentService:
    return CommentService(
        store=JsonListStore(settings.COMMENTS_FILE),
        bookings=get_booking_service(),
        images=ImageService(settings.UPLOADS_DIR),
    )

def get_site_settings_file() -> str:
    return settings.SITE_SETTINGS_FILE
