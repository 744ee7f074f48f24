from dataclasses import dataclass

OUTPUT_MIME = "image/webp"
OUTPUT_EXTENSION = "webp"


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int


@dataclass(frozen=True)
class CompressionStats:
    """Before/after figures for one normalization run."""

    original_size: int
    compressed_size: int
    original_format: str
    output_format: str = OUTPUT_MIME
    dimensions: ImageDimensions | None = None
    processing_time_ms: int = 0

    @property
    def compression_ratio(self) -> float:
        """Fraction of bytes saved, e.g. 0.85 for an 85% reduction."""
        if self.original_size == 0:
            return 0.0
        return 1 - (self.compressed_size / self.original_size)


@dataclass(frozen=True)
class NormalizedImage:
    data: bytes
    stats: CompressionStats
    mime_type: str = OUTPUT_MIME


@dataclass(frozen=True)
class NormalizerOptions:
    """Tuning knobs for re-encoding. Built from Settings."""

    max_dimension: int = 1920
    quality: int = 80
    min_quality: int = 40
    quality_step: int = 10
    target_size_bytes: int = 1024 * 1024
    fast_path_max_bytes: int = 1024 * 1024
    verify_timeout_seconds: float = 5.0
    codec_timeout_seconds: float = 30.0

    def quality_ladder(self) -> list[int]:
        """Qualities to try in order, highest first."""
        floor = min(self.min_quality, self.quality)
        return list(range(self.quality, floor - 1, -self.quality_step))
