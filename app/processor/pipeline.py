from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from app.imaging.models import CompressionStats
from app.processor.progress import ProgressReporter
from app.signatures.models import Category, MediaSignature


class Stage(Enum):
    START = "start"
    TYPE_VALIDATED = "type_validated"
    SIZE_CHECKED = "size_checked"
    NORMALIZED = "normalized"
    PASS_THROUGH = "pass_through"


_STAGE_ORDER: dict[Stage, int] = {
    Stage.START: 0,
    Stage.TYPE_VALIDATED: 1,
    Stage.SIZE_CHECKED: 2,
    Stage.NORMALIZED: 3,
    Stage.PASS_THROUGH: 3,
}


@dataclass(slots=True)
class PipelineContext:
    raw_bytes: bytes
    declared_type: str
    progress: ProgressReporter = field(default_factory=ProgressReporter)
    filename: str | None = None
    stage: Stage = Stage.START
    category: Category | None = None
    signature: MediaSignature | None = None
    output_bytes: bytes | None = None
    output_mime: str | None = None
    stats: CompressionStats | None = None

    def advance(self, stage: Stage) -> None:
        """Move forward to ``stage``. The pipeline never moves backwards or sideways."""
        if _STAGE_ORDER[stage] <= _STAGE_ORDER[self.stage]:
            raise ValueError(f"Cannot move from {self.stage.value} to {stage.value}")
        self.stage = stage


class PipelineStep(ABC):
    @abstractmethod
    async def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
