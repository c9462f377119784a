from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError


@dataclass(frozen=True)
class ImageOptions:
    max_size: Tuple[int, int] = (2048, 2048)  # keep under model limits
    jpeg_quality: int = 85


@dataclass(frozen=True)
class PreparedImage:
    data: bytes
    mime_type: str


class ImageDecodeError(ValueError):
    """Bytes are not an image Pillow can read."""


class ImageProcessor:
    def __init__(self, options: Optional[ImageOptions] = None):
        self.options = options or ImageOptions()

    def open(self, data: bytes) -> Image.Image:
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ImageDecodeError(str(e)) from e
        return img

    def encode(self, img: Image.Image, fmt: str) -> bytes:
        buf = io.BytesIO()
        fmt = fmt.upper()

        if fmt in ("JPG", "JPEG"):
            img.convert("RGB").save(
                buf, format="JPEG", quality=self.options.jpeg_quality, optimize=True
            )
        else:
            img.save(buf, format="PNG", optimize=True)

        return buf.getvalue()

    def prepare(self, data: bytes, declared_mime_type: Optional[str] = None) -> PreparedImage:
        """
        Check the upload decodes, shrink it if it exceeds the model limit.
        Images already within limits are sent as-is.
        """
        img = self.open(data)
        detected = Image.MIME.get(img.format or "", "image/png")
        mime = declared_mime_type if (declared_mime_type or "").startswith("image/") else detected

        max_w, max_h = self.options.max_size
        if img.width <= max_w and img.height <= max_h:
            return PreparedImage(data=data, mime_type=mime)

        resized = img.copy()
        resized.thumbnail((max_w, max_h))
        if mime == "image/jpeg":
            return PreparedImage(data=self.encode(resized, "JPEG"), mime_type="image/jpeg")
        return PreparedImage(data=self.encode(resized, "PNG"), mime_type="image/png")
