import asyncio
import os
import re
from typing import List, Optional

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.core.logger import logger
from app.models.catalog_models import Addon, OptionValue, Service, ServiceOption

ADDONS_MARKER = "### Addons:"
OPTIONS_MARKER = "### Options:"
DESCRIPTION_LABEL = "description:"

PRICE_RE = re.compile(r"\$(\d+(\.\d{1,2})?)")
OPTION_RE = re.compile(r"- \[(.*?)\] (.*?)( \(required\))?: (.*)")
OPTION_VALUE_RE = re.compile(r"(.*?) \(\+?\$([\d.]+)\)")


def _parse_addon(line: str, next_line: Optional[str]) -> Optional[Addon]:
    name, sep, price_str = line[2:].partition(": $")
    if not sep:
        return None
    try:
        price = float(price_str)
    except ValueError:
        logger.debug(f"Skipping add-on '{name}' with bad price '{price_str}'")
        return None

    description = ""
    if next_line is not None and next_line.lower().startswith(DESCRIPTION_LABEL):
        description = next_line[len(DESCRIPTION_LABEL):].strip()

    return Addon(name=name, price=price, description=description)


def _parse_option_value(raw: str) -> OptionValue:
    match = OPTION_VALUE_RE.match(raw)
    if match:
        try:
            return OptionValue(name=match.group(1), price=float(match.group(2)))
        except ValueError:
            pass
    return OptionValue(name=raw, price=0.0)


def _parse_option(line: str) -> Optional[ServiceOption]:
    match = OPTION_RE.match(line)
    if not match:
        return None
    values = [_parse_option_value(v) for v in match.group(4).split(", ")]
    return ServiceOption(
        type=match.group(1),
        name=match.group(2),
        required=bool(match.group(3)),
        values=values,
    )


def parse_service_markdown(content: str) -> Service:
    """
    Parses one service file. Line-oriented, single pass; every line is
    stripped first and the first matching rule wins:

        # Title
        Second line is always the description
        ## Price: $12.50
        Thumbnail: /images/x.jpg
        Category: Hair

        ### Addons:
        - Extra wash: $5
          Description: Includes conditioner

        ### Options:
        - [select] Length (required): Short, Long (+$10)

    Never raises; anything it does not understand is left at its default.
    """
    lines = [line.strip() for line in content.split("\n")]
    service = Service()
    section = ""

    for index, line in enumerate(lines):
        if line.startswith("# "):
            service.title = line[2:]
        elif index == 1:
            service.description = line
        elif line.startswith("## ") and "price" in line.lower():
            match = PRICE_RE.search(line)
            if match:
                service.price = float(match.group(1))
        elif line.startswith("Thumbnail: "):
            service.thumbnail = line[len("Thumbnail: "):]
        elif line.startswith("Category: "):
            service.category = line[len("Category: "):]
        elif line == ADDONS_MARKER:
            section = "addons"
        elif line == OPTIONS_MARKER:
            section = "options"
        elif section == "addons" and line.startswith("- "):
            next_line = lines[index + 1] if index + 1 < len(lines) else None
            addon = _parse_addon(line, next_line)
            if addon:
                service.addons.append(addon)
        elif section == "options" and line.startswith("- "):
            option = _parse_option(line)
            if option:
                service.options.append(option)

    return service


class CatalogService:
    def __init__(self, services_dir: str = None):
        self.services_dir = services_dir or settings.SERVICES_DIR

    def _load(self) -> List[Service]:
        try:
            files = sorted(os.listdir(self.services_dir))
        except OSError as e:
            logger.warning(f"⚠️ Cannot list services directory '{self.services_dir}': {e}")
            return []

        services = []
        for file_name in files:
            if os.path.splitext(file_name)[1].lower() != ".md":
                continue
            file_path = os.path.join(self.services_dir, file_name)
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    content = f.read()
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"⚠️ Skipping unreadable service file {file_name}: {e}")
                continue
            services.append(parse_service_markdown(content))

        return services

    async def load_services(self) -> List[Service]:
        """Reads the catalog from disk. Called per request, never cached."""
        return await asyncio.to_thread(self._load)

    async def get_service(self, title: str) -> Service:
        for service in await self.load_services():
            if service.title == title:
                return service
        raise NotFoundError(f"Service '{title}' not found")
