import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

from app.config.settings import Settings
from app.imaging.formatting import format_bytes, format_compression_ratio
from app.logging.logger import Log
from app.processor.models import ProcessedFileResult, ProcessingSuccess
from app.processor.processor import build_processor
from app.signatures.registry import SignatureRegistry


def result_to_dict(result: ProcessedFileResult) -> dict[str, object]:
    """JSON-ready view of a result. Output bytes are summarized, not embedded."""
    if isinstance(result, ProcessingSuccess):
        payload: dict[str, object] = {
            "success": True,
            "category": result.category.value,
            "mime_type": result.mime_type,
            "filename": result.filename,
            "size": len(result.file),
            "stats": None,
        }
        if result.stats is not None:
            stats = asdict(result.stats)
            stats["compression_ratio"] = result.stats.compression_ratio
            stats["summary"] = (
                f"{format_bytes(result.stats.original_size)} -> "
                f"{format_bytes(result.stats.compressed_size)} "
                f"({format_compression_ratio(result.stats.compression_ratio)} saved)"
            )
            payload["stats"] = stats
        return payload
    error = asdict(result.error)
    error["code"] = result.error.code.value
    return {
        "success": False,
        "category": result.category.value if result.category else None,
        "error": error,
    }


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Validate and normalize an evidence file before upload."
    )
    parser.add_argument("path", type=Path, help="File to check")
    parser.add_argument(
        "-t", "--type", dest="declared_type", default="",
        help="Declared media type (detected from content when omitted)",
    )
    parser.add_argument("-o", "--output", type=Path, help="Write the processed file here")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point: read file -> run pipeline -> print JSON result."""
    args = _parse_args(argv)
    settings = Settings()
    # stdout carries the JSON result
    Log.configure(settings.log_level, stream=sys.stderr)

    raw_bytes = args.path.read_bytes()
    registry = SignatureRegistry()
    declared_type = args.declared_type
    if not declared_type:
        detected = registry.detect(raw_bytes)
        declared_type = detected.canonical_mime if detected else "application/octet-stream"

    processor = build_processor(settings, registry=registry)
    result = asyncio.run(
        processor.process(
            raw_bytes,
            declared_type,
            on_progress=lambda pct: Log.debug(f"Progress {pct}%"),
            filename=args.path.name,
        )
    )

    if isinstance(result, ProcessingSuccess) and args.output is not None:
        args.output.write_bytes(result.file)
        Log.info(f"Wrote {format_bytes(len(result.file))} to {args.output}")

    print(json.dumps(result_to_dict(result), ensure_ascii=False, indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
