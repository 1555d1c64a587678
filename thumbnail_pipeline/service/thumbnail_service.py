import io
import logging
import re
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageOps

from thumbnail_pipeline.config.env_config import get_settings
from thumbnail_pipeline.service.errors import ImageProcessingError

config = get_settings()

_EXTENSION = re.compile(r"\.([^/.]+)$")
_LOSSY_FORMATS = {"JPEG", "WEBP"}


@dataclass
class RenderedThumbnail:
    payload: bytes
    format: str
    width: int
    height: int

    @property
    def mime_type(self) -> Optional[str]:
        return Image.MIME.get(self.format)


class ThumbnailService:
    def __init__(
        self,
        max_size: Optional[tuple[int, int]] = None,
        prefix: Optional[str] = None,
        quality: Optional[int] = None,
        default_extension: Optional[str] = None,
    ):
        self.max_size = max_size or (
            config.thumbnail_max_width,
            config.thumbnail_max_height,
        )
        self.prefix = prefix or config.thumbnail_prefix
        self.quality = quality or config.thumbnail_quality
        self.default_extension = default_extension or config.thumbnail_default_extension

    def is_thumbnail_key(self, key: str) -> bool:
        return key.startswith(self.prefix)

    def generate_thumbnail_object_key(self, key: str) -> str:
        match = _EXTENSION.search(key)
        if match:
            stem = key[: match.start()]
            ext = match.group(1).lower()
        else:
            stem = key
            ext = self.default_extension
        return f"{self.prefix}{stem}_thumb.{ext}"

    def output_format_for(self, thumbnail_key: str, source_format: Optional[str]) -> str:
        """Pick the encoder for a derived key.

        The key's extension wins so the stored bytes always match the name.
        Unknown extensions fall back to the decoded image's own format.
        """
        match = _EXTENSION.search(thumbnail_key)
        if match:
            registered = Image.registered_extensions().get(f".{match.group(1).lower()}")
            if registered and registered in Image.SAVE:
                return registered
        if source_format and source_format in Image.SAVE:
            return source_format
        return "JPEG"

    def generate_small_thumbnail(self, image: Image.Image) -> Image.Image:
        image = ImageOps.exif_transpose(image)
        # Image.thumbnail keeps the aspect ratio and never enlarges
        image.thumbnail(self.max_size)
        return image

    def generate_thumbnail(self, payload: bytes, thumbnail_key: str) -> RenderedThumbnail:
        try:
            with Image.open(io.BytesIO(payload)) as probe:
                probe.verify()

            with Image.open(io.BytesIO(payload)) as image:
                image.load()
                source_format = image.format
                thumbnail_image = self.generate_small_thumbnail(image)
                output_format = self.output_format_for(thumbnail_key, source_format)

                if output_format == "JPEG" and thumbnail_image.mode not in ("RGB", "L"):
                    thumbnail_image = thumbnail_image.convert("RGB")

                save_kwargs = {}
                if output_format in _LOSSY_FORMATS:
                    save_kwargs["quality"] = self.quality

                thumbnail_buffer = io.BytesIO()
                thumbnail_image.save(thumbnail_buffer, format=output_format, **save_kwargs)
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            logging.error(f"❌ Thumbnail generation failed: {e}")
            raise ImageProcessingError(f"could not build thumbnail: {e}") from e

        return RenderedThumbnail(
            payload=thumbnail_buffer.getvalue(),
            format=output_format,
            width=thumbnail_image.width,
            height=thumbnail_image.height,
        )
