import secrets
from datetime import datetime
from typing import Callable, List
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.config_loader import load_site_settings, get_whatsapp_number
from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.core.logger import logger
from app.models.api_models import BookingSubmission, BookingSubmissionResponse
from app.models.db_models import Booking, BookingData, BookingStatus
from app.services.captcha_service import CaptchaService
from app.services.catalog_service import CatalogService
from app.services.json_store import JsonListStore
from app.services.pricing import calculate_total_price, select_addons

# No I, O, 0 or 1: ids get read out loud and typed in by customers.
SHORT_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SHORT_ID_LENGTH = 6

WHATSAPP_TEMPLATE = (
    "Hello! I'd like to confirm my booking:\n\n"
    "Booking ID: {id}\n"
    "Service: {service}\n"
    "Date: {date}\n"
    "Total Price: ${price}\n\n"
    "Thank you!"
)


def generate_short_id() -> str:
    return "".join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(SHORT_ID_LENGTH))


def normalize_booking_id(raw: str) -> str:
    """Short ids are upper-case only; customers type them in any case."""
    return (raw or "").strip().upper()


def format_price(value: float) -> str:
    # 15.0 -> "15", 12.5 -> "12.5"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0")


def build_whatsapp_url(booking: Booking, whatsapp_number: str) -> str:
    message = WHATSAPP_TEMPLATE.format(
        id=booking.id,
        service=booking.serviceTitle,
        date=booking.date,
        price=format_price(booking.totalPrice),
    )
    # Same escaping as encodeURIComponent
    text = quote(message, safe="-_.!~*'()")
    return f"https://wa.me/{whatsapp_number}?text={text}"


class BookingService:
    def __init__(
        self,
        store: JsonListStore = None,
        catalog: CatalogService = None,
        captcha: CaptchaService = None,
        site_settings_file: str = None,
        id_factory: Callable[[], str] = generate_short_id,
    ):
        self.store = store or JsonListStore(settings.BOOKINGS_FILE)
        self.catalog = catalog or CatalogService()
        self.captcha = captcha or CaptchaService()
        self.site_settings_file = site_settings_file or settings.SITE_SETTINGS_FILE
        self.id_factory = id_factory

    def _unique_id(self, existing: List[dict]) -> str:
        taken = {item.get("id") for item in existing}
        while True:
            candidate = self.id_factory()
            if candidate not in taken:
                return candidate
            logger.debug(f"🔁 Short id collision on {candidate}, retrying")

    async def create_booking(self, data: BookingData) -> Booking:
        """Assigns a fresh short id and appends the booking."""
        def _append(items: List[dict]) -> Booking:
            booking = Booking(
                id=self._unique_id(items),
                createdAt=datetime.now().isoformat(),
                **data.model_dump(),
            )
            items.append(booking.model_dump(mode="json"))
            return booking

        booking = await self.store.update(_append)
        logger.info(f"🆕 Booking {booking.id} created for '{booking.serviceTitle}' ({booking.date})")
        return booking

    def _to_booking(self, item: dict) -> Booking:
        try:
            return Booking(**item)
        except PydanticValidationError as e:
            logger.error(f"❌ Malformed booking record {item.get('id')!r} in {self.store.path}: {e}")
            raise StorageError("Booking record could not be read")

    async def list_bookings(self) -> List[Booking]:
        """All readable bookings in file order; malformed records are logged and skipped."""
        bookings = []
        for item in await self.store.read_all():
            try:
                bookings.append(self._to_booking(item))
            except StorageError:
                continue
        return bookings

    async def get_booking(self, booking_id: str) -> Booking:
        for item in await self.store.read_all():
            if item.get("id") == booking_id:
                return self._to_booking(item)
        raise NotFoundError("Booking not found")

    async def update_status(self, booking_id: str, status: BookingStatus) -> Booking:
        try:
            status = BookingStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown booking status '{status}'")

        def _set_status(items: List[dict]) -> Booking:
            for item in items:
                if item.get("id") == booking_id:
                    item["status"] = status.value
                    return self._to_booking(item)
            raise NotFoundError("Booking not found")

        booking = await self.store.update(_set_status)
        logger.info(f"✏️ Booking {booking_id} -> {status.value}")
        return booking

    async def delete_booking(self, booking_id: str) -> None:
        def _remove(items: List[dict]) -> None:
            remaining = [item for item in items if item.get("id") != booking_id]
            if len(remaining) == len(items):
                raise NotFoundError("Booking not found")
            items[:] = remaining

        await self.store.update(_remove)
        logger.info(f"🗑️ Booking {booking_id} deleted.")

    def normalize_name(self, name: str) -> str:
        return " ".join((name or "").split())

    async def submit_booking(self, submission: BookingSubmission) -> BookingSubmissionResponse:
        """
        The public booking flow: captcha, service lookup, pricing, persist,
        then hand back the id and a pre-filled WhatsApp link.
        """
        self.captcha.verify(submission.captchaId, submission.captcha)

        name = self.normalize_name(submission.name)
        if not name or not submission.date:
            raise ValidationError("Name and date are required.")

        logger.info(f"📥 Booking request - Service: {submission.service}, Date: {submission.date}")

        try:
            service = await self.catalog.get_service(submission.service)
        except NotFoundError:
            raise ValidationError("Invalid service selected")

        addons = select_addons(service, submission.addons)
        total_price = calculate_total_price(service, submission.addons, submission.options)

        booking = await self.create_booking(BookingData(
            name=name,
            whatsappNumber=submission.whatsappNumber,
            email=submission.email,
            serviceTitle=service.title,
            date=submission.date,
            addons=addons,
            options=submission.options,
            totalPrice=total_price,
        ))

        whatsapp_url = build_whatsapp_url(booking, self.get_whatsapp_number())
        return BookingSubmissionResponse(bookingId=booking.id, whatsappUrl=whatsapp_url)

    def get_whatsapp_number(self) -> str:
        return get_whatsapp_number(load_site_settings(self.site_settings_file))

    async def get_booking_form(self, service_title: str) -> dict:
        """Service + WhatsApp number + a fresh captcha for the booking form."""
        service = await self.catalog.get_service(service_title)
        captcha = self.captcha.generate()
        return {
            "service": service,
            "whatsappNumber": self.get_whatsapp_number(),
            "captcha": {"id": captcha.id, "question": captcha.question},
        }
