import io

import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


def make_image_bytes(
    fmt: str,
    size: tuple[int, int] = (64, 48),
    mode: str = "RGB",
    noise: bool = False,
    **save_kwargs: object,
) -> bytes:
    """Encode a synthetic image with Pillow."""
    if noise:
        band = Image.effect_noise(size, 64)
        image = Image.merge("RGB", (band, band.rotate(90, expand=False), band))
        if mode != "RGB":
            image = image.convert(mode)
    else:
        color: object = (200, 30, 30, 255) if mode == "RGBA" else (200, 30, 30)
        if mode in ("L", "P"):
            color = 120
        image = Image.new(mode, size, color)  # type: ignore[arg-type]
    buf = io.BytesIO()
    image.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


@pytest.fixture()
def image_factory():  # type: ignore[no-untyped-def]
    return make_image_bytes


@pytest.fixture()
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture()
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture()
def webp_bytes() -> bytes:
    """Small WebP that qualifies for the already-optimized fast path."""
    return make_image_bytes("WEBP")


@pytest.fixture()
def large_jpeg_bytes() -> bytes:
    """Noisy photo larger than the default max dimension."""
    return make_image_bytes("JPEG", size=(2400, 1600), noise=True, quality=95)


@pytest.fixture()
def corrupt_jpeg_bytes() -> bytes:
    """Correct JPEG magic bytes followed by garbage."""
    return b"\xff\xd8\xff" + b"\x00" * 200


@pytest.fixture()
def corrupt_webp_bytes() -> bytes:
    """RIFF/WEBP header with no decodable image data."""
    return b"RIFF\x20\x00\x00\x00WEBPVP8 " + b"\xaa" * 64


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF certificate."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Certificate of Completion")
    c.save()
    return buf.getvalue()
