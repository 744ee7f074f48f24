import io

from PIL import Image, ImageOps

from app.imaging.base import BaseImageCodec
from app.imaging.exceptions import ImageCodecError

_WEBP_MODES = ("RGB", "RGBA")


class PillowCodec(BaseImageCodec):
    """Decodes any Pillow-readable image and encodes WebP."""

    def __init__(self, max_image_pixels: int = 50_000_000, method: int = 4) -> None:
        self._max_image_pixels = max_image_pixels
        self._method = method

    def decode(self, data: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
                if width * height > self._max_image_pixels:
                    raise ImageCodecError(
                        f"{width}x{height} exceeds {self._max_image_pixels} pixels"
                    )
                img.load()
                return ImageOps.exif_transpose(img)
        except ImageCodecError:
            raise
        except Exception as exc:
            raise ImageCodecError(f"pillow decode failed: {exc}") from exc

    def fit(self, image: Image.Image, max_dimension: int) -> Image.Image:
        width, height = image.size
        longest = max(width, height)
        if longest <= max_dimension:
            return image
        ratio = max_dimension / longest
        size = (max(1, round(width * ratio)), max(1, round(height * ratio)))
        try:
            return image.resize(size, Image.Resampling.LANCZOS)
        except Exception as exc:
            raise ImageCodecError(f"pillow resize failed: {exc}") from exc

    def encode(self, image: Image.Image, quality: int) -> bytes:
        try:
            prepared = self._prepare_mode(image)
            buf = io.BytesIO()
            prepared.save(buf, format="WEBP", quality=quality, method=self._method)
            return buf.getvalue()
        except Exception as exc:
            raise ImageCodecError(f"pillow encode failed: {exc}") from exc

    @staticmethod
    def _prepare_mode(image: Image.Image) -> Image.Image:
        # tRNS colour keys arrive as info["transparency"] on RGB, L and P images.
        has_alpha = "A" in image.getbands() or "transparency" in image.info
        if image.mode not in _WEBP_MODES or (has_alpha and image.mode != "RGBA"):
            image = image.convert("RGBA" if has_alpha else "RGB")
        if image.mode == "RGBA":
            # Fully opaque alpha is dropped to keep lossy output small.
            low, _ = image.getchannel("A").getextrema()
            if low == 255:
                return image.convert("RGB")
        return image
