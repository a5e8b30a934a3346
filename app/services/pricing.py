from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List

from app.core.exceptions import ValidationError
from app.core.logger import logger
from app.models.catalog_models import Addon, Service
from app.models.db_models import BookingAddon

CENTS = Decimal("0.01")


def _money(value: float) -> Decimal:
    return Decimal(str(value))


def _find_addon(service: Service, name: str) -> Addon:
    for addon in service.addons:
        if addon.name == name:
            return addon
    raise ValidationError(f"Unknown add-on '{name}' for service '{service.title}'")


def select_addons(service: Service, addon_names: Iterable[str]) -> List[BookingAddon]:
    """Name + price snapshots stored on the booking. Unknown names are rejected."""
    return [
        BookingAddon(name=addon.name, price=addon.price)
        for addon in (_find_addon(service, name) for name in addon_names)
    ]


def calculate_total_price(service: Service, addon_names: Iterable[str], options: Dict[str, str]) -> float:
    """
    Base price + every selected add-on + the price of each chosen option value.

    Add-ons must exist on the service. Options are lenient: an unknown option
    name or value contributes nothing.
    """
    total = _money(service.price)

    for name in addon_names:
        total += _money(_find_addon(service, name).price)

    for option_name, value_name in (options or {}).items():
        option = next((o for o in service.options if o.name == option_name), None)
        if option is None:
            logger.warning(f"⚠️ Ignoring unknown option '{option_name}' for '{service.title}'")
            continue
        value = next((v for v in option.values if v.name == value_name), None)
        if value is None:
            logger.warning(f"⚠️ Ignoring unknown value '{value_name}' for option '{option_name}'")
            continue
        total += _money(value.price)

    return float(total.quantize(CENTS, rounding=ROUND_HALF_UP))
