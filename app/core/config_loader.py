import json
import os
import logging
from typing import Dict, Any

from app.core.config import settings
from app.services.json_store import write_json_atomic

logger = logging.getLogger("app")

def load_site_settings(path: str = None) -> Dict[str, Any]:
    """
    Loads the site settings (whatsapp_number, reportPassword, ...) from JSON.
    A missing file yields an empty dict so a fresh install can still boot.
    """
    path = path or settings.SITE_SETTINGS_FILE

    if not os.path.exists(path):
        logger.warning(f"⚠️ Site settings '{path}' not found, using empty settings.")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Invalid JSON in site settings: {e}")
        raise ValueError(f"Invalid JSON in settings file: {e}")

    if not isinstance(data, dict):
        raise ValueError("Settings file must contain a JSON object")
    return data

def save_site_settings(data: Dict[str, Any], path: str = None) -> None:
    """Writes the whole settings object back to disk."""
    path = path or settings.SITE_SETTINGS_FILE
    write_json_atomic(path, data)
    logger.info(f"✅ Site settings saved to {path}")

def get_whatsapp_number(config: Dict[str, Any]) -> str:
    return str(config.get("whatsapp_number", "") or "")
