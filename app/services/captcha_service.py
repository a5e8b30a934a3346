import asyncio
import random
import secrets
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Protocol

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logger import logger
from app.models.db_models import Captcha


class CaptchaStore(Protocol):
    def get(self, captcha_id: str) -> Optional[Captcha]: ...
    def set(self, captcha: Captcha) -> None: ...
    def delete(self, captcha_id: str) -> None: ...
    def list(self) -> List[Captcha]: ...


class InMemoryCaptchaStore:
    """Process-lifetime storage. Nothing survives a restart."""

    def __init__(self):
        self._items: Dict[str, Captcha] = {}

    def get(self, captcha_id: str) -> Optional[Captcha]:
        return self._items.get(captcha_id)

    def set(self, captcha: Captcha) -> None:
        self._items[captcha.id] = captcha

    def delete(self, captcha_id: str) -> None:
        self._items.pop(captcha_id, None)

    def list(self) -> List[Captcha]:
        return list(self._items.values())


class CaptchaService:
    def __init__(self, store: CaptchaStore = None, ttl_seconds: int = None):
        self.store = store if store is not None else InMemoryCaptchaStore()
        self.ttl = timedelta(seconds=ttl_seconds or settings.CAPTCHA_TTL_SECONDS)
        self._rng = random.SystemRandom()

    def generate(self) -> Captcha:
        a = self._rng.randint(1, 10)
        b = self._rng.randint(1, 10)
        captcha = Captcha(
            id=secrets.token_hex(16),
            question=f"What is {a} + {b}?",
            answer=a + b,
            createdAt=datetime.now(),
        )
        self.store.set(captcha)
        return captcha

    def verify(self, captcha_id: str, answer: str) -> None:
        """
        Single use: the challenge is removed whether or not the answer is right.
        Raises ValidationError on a missing, expired or wrong answer.
        """
        captcha = self.store.get(captcha_id) if captcha_id else None
        if captcha_id:
            self.store.delete(captcha_id)

        if captcha is None or self._is_expired(captcha, datetime.now()):
            raise ValidationError("Invalid captcha. Please try again.")

        try:
            given = int(str(answer).strip())
        except (TypeError, ValueError):
            raise ValidationError("Invalid captcha. Please try again.")

        if given != captcha.answer:
            raise ValidationError("Invalid captcha. Please try again.")

    def _is_expired(self, captcha: Captcha, now: datetime) -> bool:
        return captcha.createdAt < now - self.ttl

    def cleanup(self, now: datetime = None) -> int:
        now = now or datetime.now()
        expired = [c.id for c in self.store.list() if self._is_expired(c, now)]
        for captcha_id in expired:
            self.store.delete(captcha_id)
        if expired:
            logger.debug(f"🧹 Evicted {len(expired)} expired captchas")
        return len(expired)

    async def run_cleanup_loop(self, interval_seconds: int = None):
        """Background sweep, started from the app lifespan and cancelled on shutdown."""
        interval = interval_seconds or settings.CAPTCHA_SWEEP_INTERVAL_SECONDS
        while True:
            await asyncio.sleep(interval)
            try:
                self.cleanup()
            except Exception as e:
                logger.error(f"❌ Captcha cleanup failed: {e}")
