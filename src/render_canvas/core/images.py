"""
Image references stored in node payloads.

An ImageData holds encoded bytes plus their MIME type, which is what the
transform collaborator consumes and returns. Decoding goes through Pillow.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

from PIL import Image


_DATA_URL = re.compile(r"^data:(?P<mime>image/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)


@dataclass(frozen=True)
class ImageData:
    """Encoded image bytes and their MIME type."""
    data: bytes
    mime_type: str = "image/png"

    @classmethod
    def from_pil(cls, image: Image.Image) -> ImageData:
        """Encode a PIL image as PNG."""
        buf = BytesIO()
        image.save(buf, format="PNG")
        return cls(buf.getvalue(), "image/png")

    @classmethod
    def from_file(cls, path: str | Path) -> ImageData:
        """
        Load a local image file for upload.

        The file is decoded (so unreadable files fail here, not later) and
        re-encoded as PNG.
        """
        with Image.open(path) as img:
            img.load()
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA")
            return cls.from_pil(img)

    @classmethod
    def from_base64(cls, b64: str, mime_type: str = "image/png") -> ImageData:
        return cls(base64.b64decode(b64), mime_type)

    @classmethod
    def from_data_url(cls, url: str) -> ImageData:
        match = _DATA_URL.match(url)
        if match is None:
            raise ValueError("Not a base64 image data URL")
        return cls.from_base64(match.group("data"), match.group("mime"))

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode()

    def to_data_url(self) -> str:
        """Embeddable ``data:`` URL for this image."""
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    def to_pil(self) -> Image.Image:
        img = Image.open(BytesIO(self.data))
        img.load()
        return img

    @property
    def size(self) -> tuple[int, int]:
        with Image.open(BytesIO(self.data)) as img:
            return img.size

    def save(self, path: str | Path) -> Path:
        """Write the image to ``path`` as PNG."""
        path = Path(path)
        self.to_pil().save(path, format="PNG")
        return path


def composite_with_mask(base: ImageData, mask: ImageData | None) -> ImageData:
    """
    Paint ``mask`` over ``base`` so the highlighted region is visible to the
    model. The mask is stretched to the base size. Without a mask the base
    image is returned unchanged.
    """
    if mask is None:
        return base
    base_img = base.to_pil().convert("RGBA")
    mask_img = mask.to_pil().convert("RGBA")
    if mask_img.size != base_img.size:
        mask_img = mask_img.resize(base_img.size, Image.Resampling.BILINEAR)
    return ImageData.from_pil(Image.alpha_composite(base_img, mask_img))
