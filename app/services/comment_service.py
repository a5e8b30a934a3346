import asyncio
import time
from datetime import datetime
from typing import List, Optional

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logger import logger
from app.models.db_models import Comment
from app.services.booking_service import BookingService
from app.services.image_service import ImageService
from app.services.json_store import JsonListStore


class CommentService:
    """Per-booking comment threads, stored in comments.json."""

    def __init__(
        self,
        store: JsonListStore = None,
        bookings: BookingService = None,
        images: ImageService = None,
    ):
        self.store = store or JsonListStore(settings.COMMENTS_FILE)
        self.bookings = bookings or BookingService()
        self.images = images or ImageService()

    @staticmethod
    def _timestamp_id(existing: List[dict]) -> str:
        taken = {item.get("id") for item in existing}
        candidate = int(time.time() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    async def create_comment(
        self,
        booking_id: str,
        content: str,
        image: Optional[bytes] = None,
        is_admin: bool = False,
    ) -> Comment:
        content = (content or "").strip()
        if not content and not image:
            raise ValidationError("Comment cannot be empty")

        # Raises NotFoundError for unknown bookings
        await self.bookings.get_booking(booking_id)

        saved_paths = []

        def _append(items: List[dict]) -> Comment:
            comment_id = self._timestamp_id(items)
            image_paths = None
            if image:
                image_paths = self.images.save_comment_images(comment_id, image)
                saved_paths.append(image_paths)
            comment = Comment(
                id=comment_id,
                bookingId=booking_id,
                content=content,
                imagePaths=image_paths,
                createdAt=datetime.now().isoformat(),
                isAdmin=is_admin,
            )
            items.append(comment.model_dump(mode="json", exclude_none=True))
            return comment

        try:
            comment = await self.store.update(_append)
        except Exception:
            # Don't leave orphaned files behind if the write failed
            for paths in saved_paths:
                self.images.delete_images(paths)
            raise

        logger.info(f"💬 Comment {comment.id} added to booking {booking_id} (admin={is_admin})")
        return comment

    async def list_comments(self, booking_id: str) -> List[Comment]:
        return [Comment(**item) for item in await self.store.read_all() if item.get("bookingId") == booking_id]

    async def delete_comment(self, comment_id: str) -> None:
        def _remove(items: List[dict]) -> Comment:
            for index, item in enumerate(items):
                if item.get("id") == comment_id:
                    return Comment(**items.pop(index))
            raise NotFoundError("Comment not found")

        comment = await self.store.update(_remove)
        logger.info(f"🗑️ Comment {comment_id} deleted.")
        await asyncio.to_thread(self.images.delete_images, comment.imagePaths)

    async def delete_thread(self, booking_id: str) -> int:
        """Drops every comment of a booking, e.g. after the booking itself is deleted."""
        def _remove(items: List[dict]) -> List[Comment]:
            removed = [Comment(**item) for item in items if item.get("bookingId") == booking_id]
            items[:] = [item for item in items if item.get("bookingId") != booking_id]
            return removed

        removed = await self.store.update(_remove)
        for comment in removed:
            await asyncio.to_thread(self.images.delete_images, comment.imagePaths)
        if removed:
            logger.info(f"🗑️ Removed {len(removed)} comments of booking {booking_id}")
        return len(removed)
