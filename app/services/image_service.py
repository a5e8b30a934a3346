import io
import os
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logger import logger
from app.models.db_models import ImagePaths

FULL_SIZE_BOUNDS = (1200, 1200)
THUMBNAIL_SIZE = (50, 50)
PUBLIC_PREFIX = "/uploads/"
COMMENTS_SUBDIR = "comments"


class ImageService:
    """
    Derives the two JPEGs stored for a comment attachment and removes them again.
    Paths handed out are public URLs under /uploads/, mapped back onto UPLOADS_DIR.
    """

    def __init__(self, uploads_dir: str = None):
        self.uploads_dir = uploads_dir or settings.UPLOADS_DIR

    def _to_file(self, public_path: str) -> Optional[str]:
        if not public_path or not public_path.startswith(PUBLIC_PREFIX):
            return None
        relative = public_path[len(PUBLIC_PREFIX):]
        root = os.path.abspath(self.uploads_dir)
        full = os.path.abspath(os.path.join(root, relative))
        if os.path.commonpath([root, full]) != root:
            return None
        return full

    def save_comment_images(self, comment_id: str, data: bytes) -> ImagePaths:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            logger.warning(f"⚠️ Rejected comment image for {comment_id}: {e}")
            raise ValidationError("Uploaded file is not a valid image")

        image = ImageOps.exif_transpose(image).convert("RGB")

        full = image.copy()
        full.thumbnail(FULL_SIZE_BOUNDS, Image.Resampling.LANCZOS)
        thumb = ImageOps.fit(image, THUMBNAIL_SIZE, Image.Resampling.LANCZOS)

        target_dir = os.path.join(self.uploads_dir, COMMENTS_SUBDIR)
        os.makedirs(target_dir, exist_ok=True)

        full_name = f"{comment_id}.jpg"
        thumb_name = f"{comment_id}_thumb.jpg"
        full.save(os.path.join(target_dir, full_name), "JPEG", quality=85)
        thumb.save(os.path.join(target_dir, thumb_name), "JPEG", quality=85)

        logger.info(f"🖼️ Saved images for comment {comment_id} ({full.width}x{full.height})")
        return ImagePaths(
            fullSize=f"{PUBLIC_PREFIX}{COMMENTS_SUBDIR}/{full_name}",
            thumbnail=f"{PUBLIC_PREFIX}{COMMENTS_SUBDIR}/{thumb_name}",
        )

    def delete_images(self, paths: Optional[ImagePaths]) -> None:
        """Best effort: failures are logged and swallowed."""
        if paths is None:
            return
        for public_path in (paths.fullSize, paths.thumbnail):
            file_path = self._to_file(public_path)
            if file_path is None:
                logger.warning(f"⚠️ Not deleting image outside uploads dir: {public_path}")
                continue
            try:
                os.remove(file_path)
                logger.info(f"🗑️ Deleted image {public_path}")
            except OSError as e:
                logger.warning(f"⚠️ Could not delete image {public_path}: {e}")
