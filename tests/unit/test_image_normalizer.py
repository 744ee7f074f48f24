"""Tests for the ImageNormalizer (decode, downscale, WebP re-encode)."""

import asyncio
import io
import time
from unittest.mock import MagicMock

import pytest
from PIL import Image

from app.imaging.exceptions import ImageCodecError
from app.imaging.models import OUTPUT_MIME, NormalizerOptions
from app.imaging.normalizer import ImageNormalizer
from app.imaging.pillow_codec import PillowCodec
from app.processor.exceptions import CompressionFailedError
from app.processor.progress import ProgressReporter
from app.validation.errors import ErrorCode


class _SlowFirstDecodeCodec(PillowCodec):
    """Stalls on the first decode to simulate a hung verification."""

    def __init__(self, delay: float) -> None:
        super().__init__()
        self._delay = delay
        self.decode_calls = 0

    def decode(self, data: bytes) -> Image.Image:
        self.decode_calls += 1
        if self.decode_calls == 1:
            time.sleep(self._delay)
        return super().decode(data)


class _FailingFirstDecodeCodec(PillowCodec):
    def __init__(self) -> None:
        super().__init__()
        self.decode_calls = 0

    def decode(self, data: bytes) -> Image.Image:
        self.decode_calls += 1
        if self.decode_calls == 1:
            raise ImageCodecError("simulated decoder glitch")
        return super().decode(data)


def _make_normalizer(
    codec: PillowCodec | None = None,
    **options: object,
) -> ImageNormalizer:
    return ImageNormalizer(
        codec=codec if codec is not None else PillowCodec(),
        options=NormalizerOptions(**options),  # type: ignore[arg-type]
    )


def _is_webp(data: bytes) -> bool:
    return data[:4] == b"RIFF" and data[8:12] == b"WEBP"


class TestFullPath:
    @pytest.mark.asyncio
    async def test_jpeg_is_reencoded_to_webp(self, large_jpeg_bytes: bytes) -> None:
        result = await _make_normalizer().normalize(large_jpeg_bytes, "image/jpeg")

        assert _is_webp(result.data)
        assert result.mime_type == OUTPUT_MIME
        assert result.stats.output_format == OUTPUT_MIME
        assert result.stats.original_format == "image/jpeg"
        assert result.stats.original_size == len(large_jpeg_bytes)
        assert result.stats.compressed_size == len(result.data)
        assert result.stats.compressed_size > 0

    @pytest.mark.asyncio
    async def test_large_image_is_downscaled(self, large_jpeg_bytes: bytes) -> None:
        result = await _make_normalizer().normalize(large_jpeg_bytes, "image/jpeg")

        assert result.stats.dimensions is not None
        assert (result.stats.dimensions.width, result.stats.dimensions.height) == (1920, 1280)
        with Image.open(io.BytesIO(result.data)) as decoded:
            assert decoded.size == (1920, 1280)

    @pytest.mark.asyncio
    async def test_png_is_reencoded(self, png_bytes: bytes) -> None:
        result = await _make_normalizer().normalize(png_bytes, "image/png")
        assert _is_webp(result.data)
        assert result.stats.dimensions is not None
        assert result.stats.dimensions.width == 64

    @pytest.mark.asyncio
    async def test_stops_at_first_quality_under_target(self, png_bytes: bytes) -> None:
        codec = PillowCodec()
        codec.encode = MagicMock(wraps=codec.encode)  # type: ignore[method-assign]

        await _make_normalizer(codec).normalize(png_bytes, "image/png")

        codec.encode.assert_called_once()
        assert codec.encode.call_args.args[1] == 80

    @pytest.mark.asyncio
    async def test_walks_quality_ladder_and_keeps_smallest(self, image_factory) -> None:  # type: ignore[no-untyped-def]
        data = image_factory("PNG", size=(300, 200), noise=True)
        codec = PillowCodec()
        original_encode = codec.encode
        attempts: list[tuple[int, int]] = []

        def _recording_encode(image: Image.Image, quality: int) -> bytes:
            encoded = original_encode(image, quality)
            attempts.append((quality, len(encoded)))
            return encoded

        codec.encode = _recording_encode  # type: ignore[method-assign]

        result = await _make_normalizer(codec, target_size_bytes=1).normalize(data, "image/png")

        assert [quality for quality, _ in attempts] == [80, 70, 60, 50, 40]
        assert result.stats.compressed_size == min(size for _, size in attempts)


class TestFastPath:
    @pytest.mark.asyncio
    async def test_small_webp_is_kept_unchanged(self, webp_bytes: bytes) -> None:
        result = await _make_normalizer().normalize(webp_bytes, "image/webp")

        assert result.data == webp_bytes
        assert result.stats.compressed_size == result.stats.original_size == len(webp_bytes)
        assert result.stats.output_format == OUTPUT_MIME

    @pytest.mark.asyncio
    async def test_fast_path_does_not_encode(self, webp_bytes: bytes) -> None:
        codec = PillowCodec()
        codec.encode = MagicMock(wraps=codec.encode)  # type: ignore[method-assign]

        await _make_normalizer(codec).normalize(webp_bytes, "image/webp")

        codec.encode.assert_not_called()

    @pytest.mark.asyncio
    async def test_webp_above_threshold_is_reencoded(self, webp_bytes: bytes) -> None:
        codec = PillowCodec()
        codec.encode = MagicMock(wraps=codec.encode)  # type: ignore[method-assign]

        await _make_normalizer(codec, fast_path_max_bytes=10).normalize(webp_bytes, "image/webp")

        codec.encode.assert_called()

    @pytest.mark.asyncio
    async def test_oversized_dimensions_fall_through(self, image_factory) -> None:  # type: ignore[no-untyped-def]
        data = image_factory("WEBP", size=(3000, 100))

        result = await _make_normalizer().normalize(data, "image/webp")

        assert result.data != data
        assert result.stats.dimensions is not None
        assert result.stats.dimensions.width == 1920

    @pytest.mark.asyncio
    async def test_verification_error_falls_through(self, webp_bytes: bytes) -> None:
        codec = _FailingFirstDecodeCodec()

        result = await _make_normalizer(codec).normalize(webp_bytes, "image/webp")

        assert codec.decode_calls == 2
        assert _is_webp(result.data)

    @pytest.mark.asyncio
    async def test_verification_timeout_falls_through(self, webp_bytes: bytes) -> None:
        codec = _SlowFirstDecodeCodec(delay=0.5)

        result = await asyncio.wait_for(
            _make_normalizer(codec, verify_timeout_seconds=0.05).normalize(
                webp_bytes, "image/webp"
            ),
            timeout=5,
        )

        assert codec.decode_calls == 2
        assert _is_webp(result.data)

    @pytest.mark.asyncio
    async def test_corrupt_small_webp_fails_without_hanging(
        self, corrupt_webp_bytes: bytes
    ) -> None:
        with pytest.raises(CompressionFailedError) as exc_info:
            await asyncio.wait_for(
                _make_normalizer().normalize(corrupt_webp_bytes, "image/webp"),
                timeout=5,
            )
        assert exc_info.value.detail.code is ErrorCode.COMPRESSION_FAILED


class TestFailures:
    @pytest.mark.asyncio
    async def test_corrupt_jpeg_raises_compression_failed(
        self, corrupt_jpeg_bytes: bytes
    ) -> None:
        with pytest.raises(CompressionFailedError) as exc_info:
            await _make_normalizer().normalize(corrupt_jpeg_bytes, "image/jpeg")

        assert exc_info.value.detail.code is ErrorCode.COMPRESSION_FAILED
        assert "decode failed" in (exc_info.value.detail.details or "")

    @pytest.mark.asyncio
    async def test_encode_error_raises_compression_failed(self, png_bytes: bytes) -> None:
        codec = PillowCodec()
        codec.encode = MagicMock(side_effect=ImageCodecError("no encoder"))  # type: ignore[method-assign]

        with pytest.raises(CompressionFailedError, match="encode failed"):
            await _make_normalizer(codec).normalize(png_bytes, "image/png")

    @pytest.mark.asyncio
    async def test_decode_timeout_raises_compression_failed(self, png_bytes: bytes) -> None:
        codec = _SlowFirstDecodeCodec(delay=0.5)

        with pytest.raises(CompressionFailedError, match="timed out"):
            await _make_normalizer(codec, codec_timeout_seconds=0.05).normalize(
                png_bytes, "image/png"
            )


class TestProgress:
    @pytest.mark.asyncio
    async def test_progress_is_monotonic_and_ends_at_100(self, large_jpeg_bytes: bytes) -> None:
        seen: list[int] = []

        await _make_normalizer(target_size_bytes=1).normalize(
            large_jpeg_bytes, "image/jpeg", ProgressReporter(seen.append)
        )

        assert seen == sorted(seen)
        assert len(seen) == len(set(seen))
        assert seen[0] == 0
        assert seen[-1] == 100
        assert len(seen) > 3

    @pytest.mark.asyncio
    async def test_fast_path_progress_ends_at_100(self, webp_bytes: bytes) -> None:
        seen: list[int] = []

        await _make_normalizer().normalize(webp_bytes, "image/webp", ProgressReporter(seen.append))

        assert seen == [0, 100]

    @pytest.mark.asyncio
    async def test_failure_does_not_report_100(self, corrupt_jpeg_bytes: bytes) -> None:
        seen: list[int] = []

        with pytest.raises(CompressionFailedError):
            await _make_normalizer().normalize(
                corrupt_jpeg_bytes, "image/jpeg", ProgressReporter(seen.append)
            )

        assert 100 not in seen
