from app.imaging.base import BaseImageCodec
from app.imaging.normalizer import ImageNormalizer
from app.imaging.pillow_codec import PillowCodec

__all__ = ["BaseImageCodec", "ImageNormalizer", "PillowCodec"]
