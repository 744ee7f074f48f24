from abc import ABC, abstractmethod

from PIL import Image


class BaseImageCodec(ABC):
    """Contract for image codec adapters. All methods are blocking."""

    @abstractmethod
    def decode(self, data: bytes) -> Image.Image:
        """Fully decode image bytes into pixels.

        Raises:
            ImageCodecError: if the payload is not a readable image.
        """

    @abstractmethod
    def fit(self, image: Image.Image, max_dimension: int) -> Image.Image:
        """Downscale so the longest side is at most ``max_dimension``."""

    @abstractmethod
    def encode(self, image: Image.Image, quality: int) -> bytes:
        """Encode pixels into the canonical output format.

        Raises:
            ImageCodecError: if encoding fails for any reason.
        """
