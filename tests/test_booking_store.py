import asyncio
import json
import os
from urllib.parse import unquote

import pytest

from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.models.api_models import BookingSubmission
from app.models.db_models import Booking, BookingAddon, BookingData, BookingStatus
from app.services.booking_service import (
    SHORT_ID_ALPHABET,
    BookingService,
    build_whatsapp_url,
    generate_short_id,
)
from app.services import json_store
from app.services.json_store import JsonListStore


def make_data(**overrides) -> BookingData:
    fields = dict(
        name="Jane Doe",
        whatsappNumber="+15550001111",
        email="jane@example.com",
        serviceTitle="Classic Haircut",
        date="2026-11-02",
        addons=[BookingAddon(name="Deep conditioning", price=2)],
        options={"Hair length": "Long"},
        totalPrice=15,
    )
    fields.update(overrides)
    return BookingData(**fields)


def test_short_id_shape():
    for _ in range(50):
        short_id = generate_short_id()
        assert len(short_id) == 6
        assert all(c in SHORT_ID_ALPHABET for c in short_id)
    assert not set("IO01") & set(SHORT_ID_ALPHABET)


@pytest.mark.asyncio
async def test_store_file_created_empty_on_first_access(tmp_path):
    path = tmp_path / "data" / "bookings.json"
    store = JsonListStore(str(path))
    assert await store.read_all() == []
    assert json.loads(path.read_text()) == []


@pytest.mark.asyncio
async def test_create_then_list_round_trip(booking_service):
    data = make_data()
    booking = await booking_service.create_booking(data)

    bookings = await booking_service.list_bookings()
    assert len(bookings) == 1
    stored = bookings[0]
    assert stored.id == booking.id
    assert stored.model_dump(exclude={"id", "createdAt"}) == data.model_dump()
    assert stored.status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_file_is_pretty_printed_camel_case(booking_service):
    await booking_service.create_booking(make_data())
    raw = open(booking_service.store.path, encoding="utf-8").read()
    assert '\n  {\n    "name"' in raw
    record = json.loads(raw)[0]
    assert record["serviceTitle"] == "Classic Haircut"
    assert record["totalPrice"] == 15
    assert record["status"] == "pending"


@pytest.mark.asyncio
async def test_id_collisions_are_retried(booking_service):
    ids = iter(["AAAAAA", "AAAAAA", "BBBBBB", "AAAAAA", "BBBBBB", "CCCCCC"])
    booking_service.id_factory = lambda: next(ids)

    first = await booking_service.create_booking(make_data())
    second = await booking_service.create_booking(make_data())
    third = await booking_service.create_booking(make_data())

    assert [first.id, second.id, third.id] == ["AAAAAA", "BBBBBB", "CCCCCC"]
    assert len({b.id for b in await booking_service.list_bookings()}) == 3


@pytest.mark.asyncio
async def test_update_status(booking_service):
    booking = await booking_service.create_booking(make_data())
    await booking_service.update_status(booking.id, BookingStatus.CONFIRMED)

    stored = await booking_service.get_booking(booking.id)
    assert stored.status == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_update_status_unknown_id(booking_service):
    with pytest.raises(NotFoundError):
        await booking_service.update_status("ZZZZZZ", BookingStatus.CONFIRMED)


@pytest.mark.asyncio
async def test_delete(booking_service):
    keep = await booking_service.create_booking(make_data(name="Keep"))
    drop = await booking_service.create_booking(make_data(name="Drop"))

    await booking_service.delete_booking(drop.id)

    assert [b.id for b in await booking_service.list_bookings()] == [keep.id]


@pytest.mark.asyncio
async def test_delete_unknown_id_leaves_store_unchanged(booking_service):
    await booking_service.create_booking(make_data())
    before = open(booking_service.store.path, encoding="utf-8").read()

    with pytest.raises(NotFoundError):
        await booking_service.delete_booking("ZZZZZZ")

    assert open(booking_service.store.path, encoding="utf-8").read() == before


@pytest.mark.asyncio
async def test_corrupt_file_is_not_overwritten(tmp_path):
    path = tmp_path / "bookings.json"
    path.write_text("[{broken", encoding="utf-8")
    service = BookingService(store=JsonListStore(str(path)))

    with pytest.raises(StorageError):
        await service.create_booking(make_data())
    assert path.read_text(encoding="utf-8") == "[{broken"


@pytest.mark.asyncio
async def test_submit_booking_prices_and_links(booking_service, captcha_service):
    captcha = captcha_service.generate()
    submission = BookingSubmission(
        service="Classic Haircut",
        date="2026-11-02",
        name="  Jane   Doe ",
        whatsappNumber="+15550001111",
        addons=["Deep conditioning"],
        options={"Hair length": "Long"},
        captcha=str(captcha.answer),
        captchaId=captcha.id,
    )

    result = await booking_service.submit_booking(submission)

    booking = await booking_service.get_booking(result.bookingId)
    assert booking.name == "Jane Doe"
    assert booking.totalPrice == 15
    assert [(a.name, a.price) for a in booking.addons] == [("Deep conditioning", 2.0)]
    assert result.whatsappUrl.startswith("https://wa.me/15551234567?text=")
    assert f"Booking ID: {booking.id}" in unquote(result.whatsappUrl)
    assert "Total Price: $15\n" in unquote(result.whatsappUrl)


@pytest.mark.asyncio
async def test_submit_booking_wrong_captcha(booking_service, captcha_service):
    captcha = captcha_service.generate()
    submission = BookingSubmission(
        service="Classic Haircut", date="2026-11-02", name="Jane",
        captcha=str(captcha.answer + 1), captchaId=captcha.id,
    )

    with pytest.raises(ValidationError):
        await booking_service.submit_booking(submission)
    assert await booking_service.list_bookings() == []


@pytest.mark.asyncio
async def test_submit_booking_unknown_service_or_addon(booking_service, captcha_service):
    for service, addons in [("Massage", []), ("Classic Haircut", ["Gold leaf"])]:
        captcha = captcha_service.generate()
        submission = BookingSubmission(
            service=service, date="2026-11-02", name="Jane", addons=addons,
            captcha=str(captcha.answer), captchaId=captcha.id,
        )
        with pytest.raises(ValidationError):
            await booking_service.submit_booking(submission)

    assert await booking_service.list_bookings() == []


def test_whatsapp_url_encoding():
    booking = Booking(id="ABC234", **make_data(totalPrice=12.5).model_dump())
    url = build_whatsapp_url(booking, "15551234567")

    assert " " not in url
    assert "%0A" in url
    assert "Total%20Price%3A%20%2412.5" in url


@pytest.mark.asyncio
async def test_update_status_rejects_unknown_status(booking_service):
    booking = await booking_service.create_booking(make_data())

    with pytest.raises(ValidationError):
        await booking_service.update_status(booking.id, "lost")

    assert (await booking_service.get_booking(booking.id)).status == "pending"


def write_records(booking_service, records):
    with open(booking_service.store.path, "w", encoding="utf-8") as f:
        json.dump(records, f)


def raw_record(**overrides) -> dict:
    record = dict(
        id="HAND01",
        createdAt="2026-10-01T09:00:00",
        name="Hand Edited",
        serviceTitle="Classic Haircut",
        date="2026-11-02",
        totalPrice=10,
        status="in-progress",
    )
    record.update(overrides)
    return record


@pytest.mark.asyncio
async def test_status_outside_known_set_is_still_readable(booking_service):
    await booking_service.store.read_all()
    write_records(booking_service, [raw_record()])

    assert [b.status for b in await booking_service.list_bookings()] == ["in-progress"]
    assert (await booking_service.get_booking("HAND01")).status == "in-progress"


@pytest.mark.asyncio
async def test_malformed_record_skipped_in_list(booking_service):
    await booking_service.store.read_all()
    broken = raw_record(id="BROKE1")
    del broken["serviceTitle"]
    write_records(booking_service, [broken, raw_record(id="GOOD01", status="pending")])

    assert [b.id for b in await booking_service.list_bookings()] == ["GOOD01"]
    with pytest.raises(StorageError):
        await booking_service.get_booking("BROKE1")


@pytest.mark.asyncio
async def test_concurrent_creates_keep_every_booking(booking_service):
    created = await asyncio.gather(*[
        booking_service.create_booking(make_data(name=f"Guest {i}")) for i in range(30)
    ])

    stored = await booking_service.list_bookings()
    assert len(stored) == 30
    assert len({b.id for b in stored}) == 30
    assert {b.id for b in stored} == {b.id for b in created}
    assert sorted(b.name for b in stored) == sorted(f"Guest {i}" for i in range(30))


@pytest.mark.asyncio
async def test_failed_write_leaves_no_temp_file(booking_service, monkeypatch):
    await booking_service.create_booking(make_data())
    path = booking_service.store.path
    before = open(path, encoding="utf-8").read()

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(json_store.os, "replace", broken_replace)

    with pytest.raises(StorageError):
        await booking_service.create_booking(make_data(name="Lost"))

    directory = os.path.dirname(os.path.abspath(path))
    assert [name for name in os.listdir(directory) if name.startswith(".tmp-")] == []
    assert open(path, encoding="utf-8").read() == before
