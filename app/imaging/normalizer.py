"""Re-encodes accepted images into the canonical WebP format."""

import asyncio
import time
from collections.abc import Callable
from typing import TypeVar

from PIL import Image

from app.imaging.base import BaseImageCodec
from app.imaging.exceptions import ImageCodecError
from app.imaging.formatting import format_bytes, format_compression_ratio
from app.imaging.models import (
    OUTPUT_MIME,
    CompressionStats,
    ImageDimensions,
    NormalizedImage,
    NormalizerOptions,
)
from app.logging.logger import Log
from app.processor.exceptions import CompressionFailedError
from app.processor.progress import ProgressReporter
from app.validation.errors import compression_failed

T = TypeVar("T")

_FAST_PATH_CHECKED = 10
_DECODED = 30
_RESIZED = 40
_ENCODED = 95


class ImageNormalizer:
    """Decodes, downscales and re-encodes an image, reporting progress as it goes.

    Small inputs already in the output format may be returned unchanged, but only
    after they decode successfully within ``verify_timeout_seconds``. Any failure
    of that check falls back to a full re-encode.

    Codec calls run in worker threads so the event loop stays responsive and the
    task can be cancelled between steps. A timeout only abandons the await: Python
    threads cannot be interrupted, so a timed-out codec call keeps running and holds
    a default-executor slot until it returns. The pixel limit on decode bounds how
    long that can be.
    """

    def __init__(
        self,
        codec: BaseImageCodec,
        options: NormalizerOptions | None = None,
    ) -> None:
        self._codec = codec
        self._options = options if options is not None else NormalizerOptions()

    async def normalize(
        self,
        data: bytes,
        source_mime: str,
        progress: ProgressReporter | None = None,
    ) -> NormalizedImage:
        """Return the canonical encoding of ``data`` with size statistics.

        Raises:
            CompressionFailedError: if the image cannot be decoded or encoded.
        """
        progress = progress if progress is not None else ProgressReporter()
        started = time.perf_counter()
        progress.report(0)

        decoded: Image.Image | None = None
        if self._fast_path_applies(data, source_mime):
            decoded = await self._verify(data)
            if decoded is not None and self._within_bounds(decoded):
                Log.info(f"Image already optimized ({format_bytes(len(data))}), kept as-is")
                progress.complete()
                return NormalizedImage(
                    data=data,
                    stats=self._stats(data, data, source_mime, decoded, started),
                )
        progress.report(_FAST_PATH_CHECKED)

        if decoded is None:
            decoded = await self._call(
                self._codec.decode,
                data,
                timeout=self._options.codec_timeout_seconds,
                action="decode",
            )
        progress.report(_DECODED)

        resized = await self._call(
            self._codec.fit,
            decoded,
            self._options.max_dimension,
            timeout=self._options.codec_timeout_seconds,
            action="resize",
        )
        progress.report(_RESIZED)

        encoded = await self._encode(resized, progress)
        progress.report(_ENCODED)

        stats = self._stats(data, encoded, source_mime, resized, started)
        Log.info(
            f"Normalized image {decoded.width}x{decoded.height} ({source_mime}) -> "
            f"{resized.width}x{resized.height} ({OUTPUT_MIME}): "
            f"{format_bytes(stats.original_size)} -> {format_bytes(stats.compressed_size)} "
            f"({format_compression_ratio(stats.compression_ratio)} saved)"
        )
        progress.complete()
        return NormalizedImage(data=encoded, stats=stats)

    def _fast_path_applies(self, data: bytes, source_mime: str) -> bool:
        return source_mime == OUTPUT_MIME and len(data) <= self._options.fast_path_max_bytes

    def _within_bounds(self, image: Image.Image) -> bool:
        return max(image.size) <= self._options.max_dimension

    async def _verify(self, data: bytes) -> Image.Image | None:
        """Decode for the fast path. Returns None instead of raising or hanging."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._codec.decode, data),
                timeout=self._options.verify_timeout_seconds,
            )
        except ImageCodecError as exc:
            Log.warning(f"Fast-path verification failed, re-encoding: {exc}")
        except asyncio.TimeoutError:
            Log.warning(
                f"Fast-path verification timed out after "
                f"{self._options.verify_timeout_seconds}s, re-encoding"
            )
        return None

    async def _encode(self, image: Image.Image, progress: ProgressReporter) -> bytes:
        ladder = self._options.quality_ladder()
        best: bytes | None = None
        span = _ENCODED - _RESIZED
        for attempt, quality in enumerate(ladder, start=1):
            encoded = await self._call(
                self._codec.encode,
                image,
                quality,
                timeout=self._options.codec_timeout_seconds,
                action="encode",
            )
            Log.debug(f"Encoded at quality {quality}: {format_bytes(len(encoded))}")
            if best is None or len(encoded) < len(best):
                best = encoded
            progress.report(_RESIZED + span * attempt / len(ladder))
            if len(encoded) <= self._options.target_size_bytes:
                break
        if best is None:
            raise CompressionFailedError(compression_failed("No encode attempts configured"))
        return best

    @staticmethod
    async def _call(
        func: Callable[..., T],
        *args: object,
        timeout: float,
        action: str,
    ) -> T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)
        except ImageCodecError as exc:
            raise CompressionFailedError(
                compression_failed(f"Image {action} failed: {exc}")
            ) from exc
        except asyncio.TimeoutError as exc:
            raise CompressionFailedError(
                compression_failed(f"Image {action} timed out after {timeout}s")
            ) from exc

    @staticmethod
    def _stats(
        original: bytes,
        output: bytes,
        source_mime: str,
        image: Image.Image,
        started: float,
    ) -> CompressionStats:
        return CompressionStats(
            original_size=len(original),
            compressed_size=len(output),
            original_format=source_mime,
            output_format=OUTPUT_MIME,
            dimensions=ImageDimensions(width=image.width, height=image.height),
            processing_time_ms=int((time.perf_counter() - started) * 1000),
        )
