class ImageCodecError(Exception):
    """Raised when an image cannot be decoded, resized or encoded."""
