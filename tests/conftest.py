import json

import pytest
from fastapi.testclient import TestClient

from app.services.booking_service import BookingService
from app.services.captcha_service import CaptchaService, InMemoryCaptchaStore
from app.services.catalog_service import CatalogService
from app.services.comment_service import CommentService
from app.services.image_service import ImageService
from app.services.json_store import JsonListStore

HAIRCUT_MD = """# Classic Haircut
A tailored cut finished with a wash and blow-dry.
## Price: $10.00
Thumbnail: /images/haircut.jpg
Category: Hair

### Addons:
- Deep conditioning: $2
  Description: Moisture treatment
- Beard trim: $8.50
  Description: Shape-up

### Options:
- [select] Hair length (required): Short, Long (+$3)
"""

MANICURE_MD = """# Gel Manicure
Gel polish.
## Price: $28
"""


@pytest.fixture
def services_dir(tmp_path):
    d = tmp_path / "services"
    d.mkdir()
    (d / "haircut.md").write_text(HAIRCUT_MD, encoding="utf-8")
    (d / "manicure.md").write_text(MANICURE_MD, encoding="utf-8")
    (d / "notes.txt").write_text("# Not a service", encoding="utf-8")
    return d


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"whatsapp_number": "15551234567", "reportPassword": ""}), encoding="utf-8")
    return path


@pytest.fixture
def captcha_service():
    return CaptchaService(InMemoryCaptchaStore(), ttl_seconds=300)


@pytest.fixture
def booking_service(tmp_path, services_dir, settings_file, captcha_service):
    return BookingService(
        store=JsonListStore(str(tmp_path / "data" / "bookings.json")),
        catalog=CatalogService(str(services_dir)),
        captcha=captcha_service,
        site_settings_file=str(settings_file),
    )


@pytest.fixture
def uploads_dir(tmp_path):
    d = tmp_path / "uploads"
    d.mkdir()
    return d


@pytest.fixture
def comment_service(tmp_path, booking_service, uploads_dir):
    return CommentService(
        store=JsonListStore(str(tmp_path / "data" / "comments.json")),
        bookings=booking_service,
        images=ImageService(str(uploads_dir)),
    )


@pytest.fixture
def client(booking_service, comment_service, captcha_service, settings_file):
    from app.main import app
    from app.api import deps

    app.dependency_overrides[deps.get_catalog_service] = lambda: booking_service.catalog
    app.dependency_overrides[deps.get_captcha_service] = lambda: captcha_service
    app.dependency_overrides[deps.get_booking_service] = lambda: booking_service
    app.dependency_overrides[deps.get_comment_service] = lambda: comment_service
    app.dependency_overrides[deps.get_site_settings_file] = lambda: str(settings_file)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
