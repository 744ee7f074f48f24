from app.imaging.normalizer import ImageNormalizer
from app.logging.logger import Log
from app.processor.exceptions import InvalidFileTypeError
from app.processor.pipeline import PipelineContext, PipelineStep, Stage
from app.signatures.models import Category
from app.validation.errors import invalid_file_type
from app.validation.policy import SizePolicy
from app.validation.validator import TypeValidator


class ValidateTypeStep(PipelineStep):
    def __init__(self, validator: TypeValidator) -> None:
        self._validator = validator

    async def run(self, context: PipelineContext) -> PipelineContext:
        verdict = self._validator.validate(context.raw_bytes, context.declared_type)
        context.category = verdict.category
        context.signature = verdict.signature
        if not verdict.is_valid:
            raise InvalidFileTypeError(verdict.error or invalid_file_type())
        context.advance(Stage.TYPE_VALIDATED)
        Log.info(
            f"Verified {verdict.declared_type} signature "
            f"({len(context.raw_bytes)} bytes, category {verdict.category.value})"
        )
        return context


class CheckSizeStep(PipelineStep):
    def __init__(self, size_policy: SizePolicy) -> None:
        self._size_policy = size_policy

    async def run(self, context: PipelineContext) -> PipelineContext:
        if context.category is None:
            raise ValueError("PipelineContext.category must be set before size check")
        self._size_policy.check_size(context.category, len(context.raw_bytes))
        context.advance(Stage.SIZE_CHECKED)
        return context


class NormalizeImageStep(PipelineStep):
    def __init__(self, normalizer: ImageNormalizer) -> None:
        self._normalizer = normalizer

    async def run(self, context: PipelineContext) -> PipelineContext:
        if context.category is not Category.IMAGE:
            return context
        if context.signature is None:
            raise ValueError("PipelineContext.signature must be set before normalization")
        result = await self._normalizer.normalize(
            context.raw_bytes,
            context.signature.canonical_mime,
            context.progress,
        )
        context.output_bytes = result.data
        context.output_mime = result.mime_type
        context.stats = result.stats
        context.advance(Stage.NORMALIZED)
        return context


class PassThroughStep(PipelineStep):
    """Accepted non-image files are returned byte-for-byte."""

    async def run(self, context: PipelineContext) -> PipelineContext:
        if context.category is Category.IMAGE:
            return context
        if context.signature is None:
            raise ValueError("PipelineContext.signature must be set before pass-through")
        context.output_bytes = context.raw_bytes
        context.output_mime = context.signature.canonical_mime
        context.advance(Stage.PASS_THROUGH)
        return context
