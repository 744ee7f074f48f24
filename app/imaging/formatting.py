_UNITS = ("Bytes", "KB", "MB", "GB")


def format_bytes(size: int) -> str:
    """Human-readable size: ``0 Bytes``, ``1.5 KB``, ``2 MB``."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {_UNITS[exponent]}"


def format_compression_ratio(ratio: float) -> str:
    return f"{round(ratio * 100)}%"
