import asyncio
from pathlib import PurePath

from app.config.settings import Settings
from app.imaging.models import OUTPUT_EXTENSION, NormalizerOptions
from app.imaging.normalizer import ImageNormalizer
from app.imaging.pillow_codec import PillowCodec
from app.logging.logger import Log
from app.processor.exceptions import ProcessingError
from app.processor.models import ProcessedFileResult, ProcessingFailure, ProcessingSuccess
from app.processor.pipeline import PipelineContext, PipelineStep, Stage
from app.processor.progress import ProgressCallback, ProgressReporter
from app.processor.steps import (
    CheckSizeStep,
    NormalizeImageStep,
    PassThroughStep,
    ValidateTypeStep,
)
from app.signatures.models import Category
from app.signatures.registry import SignatureRegistry
from app.validation.policy import CategoryPolicy, SizePolicy
from app.validation.validator import TypeValidator

_TERMINAL_STAGES = (Stage.NORMALIZED, Stage.PASS_THROUGH)


class Processor:
    """Runs an evidence file through the integrity pipeline.

    Pipeline: validate type -> check size -> normalize image | pass document through.
    Every rejection comes back as a ProcessingFailure; nothing is raised except
    task cancellation.
    """

    def __init__(self, steps: list[PipelineStep]) -> None:
        self._steps = steps

    async def process(
        self,
        raw_bytes: bytes,
        declared_type: str,
        on_progress: ProgressCallback | None = None,
        filename: str | None = None,
    ) -> ProcessedFileResult:
        context = PipelineContext(
            raw_bytes=raw_bytes,
            declared_type=declared_type,
            progress=ProgressReporter(on_progress),
            filename=filename,
        )
        Log.info(f"Processing {filename or 'file'} declared as '{declared_type}'")
        try:
            for step in self._steps:
                context = await step.run(context)
        except ProcessingError as exc:
            Log.warning(
                f"Rejected {filename or 'file'} at {context.stage.value}: "
                f"{exc.detail.code.value} ({exc})"
            )
            return ProcessingFailure(error=exc.detail, category=context.category)
        except asyncio.CancelledError:
            Log.warning(f"Processing of {filename or 'file'} cancelled at {context.stage.value}")
            raise

        if context.stage not in _TERMINAL_STAGES or context.category is None:
            raise RuntimeError(f"Pipeline ended in non-terminal stage {context.stage.value}")
        if context.output_bytes is None or context.output_mime is None:
            raise RuntimeError("Pipeline finished without output")

        context.progress.complete()
        return ProcessingSuccess(
            file=context.output_bytes,
            category=context.category,
            mime_type=context.output_mime,
            stats=context.stats,
            filename=self._output_filename(context),
        )

    @staticmethod
    def _output_filename(context: PipelineContext) -> str | None:
        if not context.filename or context.stage is not Stage.NORMALIZED:
            return context.filename
        path = PurePath(context.filename)
        # "." and "/" have no name part to re-suffix
        if not path.name:
            return context.filename
        return str(path.with_suffix(f".{OUTPUT_EXTENSION}"))


def build_processor(
    settings: Settings,
    registry: SignatureRegistry | None = None,
) -> Processor:
    """Build a Processor with all collaborators configured from settings."""
    registry = registry if registry is not None else SignatureRegistry()
    size_policy = SizePolicy(
        {
            Category.IMAGE: settings.max_image_size_bytes,
            Category.DOCUMENT: settings.max_document_size_bytes,
        }
    )
    category_policy = CategoryPolicy(settings.accepted_categories)
    normalizer = ImageNormalizer(
        codec=PillowCodec(max_image_pixels=settings.image_max_pixels),
        options=NormalizerOptions(
            max_dimension=settings.image_max_dimension,
            quality=settings.image_quality,
            min_quality=settings.image_min_quality,
            quality_step=settings.image_quality_step,
            target_size_bytes=settings.image_target_size_bytes,
            fast_path_max_bytes=settings.image_fast_path_max_bytes,
            verify_timeout_seconds=settings.verify_timeout_seconds,
            codec_timeout_seconds=settings.codec_timeout_seconds,
        ),
    )
    steps: list[PipelineStep] = [
        ValidateTypeStep(TypeValidator(registry, category_policy)),
        CheckSizeStep(size_policy),
        NormalizeImageStep(normalizer),
        PassThroughStep(),
    ]
    return Processor(steps=steps)
