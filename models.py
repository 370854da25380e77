"""Models for stream evaluation settings and pipeline descriptions."""

from typing import List, Optional
from pydantic import BaseModel, Field, model_validator
from enum import Enum
import psutil


class EvaluationMode(str, Enum):
    """How terminal operations pull elements."""
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class ExecutorKind(str, Enum):
    """Worker pool flavour for parallel evaluation."""
    THREAD = "thread"
    PROCESS = "process"


class SourceKind(str, Enum):
    """Where a stream's elements come from."""
    COLLECTION = "collection"
    RANGE = "range"
    ITERATE = "iterate"
    GENERATE = "generate"
    ITERATOR = "iterator"


class ParallelSettings(BaseModel):
    """Worker pool sizing for parallel evaluation."""
    max_workers: Optional[int] = Field(
        None,
        ge=1,
        le=256,
        description="Number of workers; defaults to the logical CPU count"
    )
    partitions: Optional[int] = Field(
        None,
        ge=1,
        description="Number of partitions the input is split into; defaults to max_workers"
    )
    executor: ExecutorKind = Field(
        default=ExecutorKind.THREAD,
        description="Thread pool or process pool (process needs picklable functions)"
    )

    @model_validator(mode="after")
    def fill_defaults(self):
        """Resolve the worker count."""
        if self.max_workers is None:
            self.max_workers = max(1, min(psutil.cpu_count(logical=True) or 1, 256))
        return self

    @property
    def partition_count(self) -> int:
        """Explicit partitions, or one per worker."""
        return self.partitions if self.partitions is not None else self.max_workers


class StageInfo(BaseModel):
    """One stage of a pipeline."""
    name: str = Field(..., description="Stage name, e.g. 'filter' or 'limit'")
    stateful: bool = Field(..., description="Whether the stage depends on previously seen elements")
    argument: Optional[str] = Field(None, description="Repr of a numeric stage argument")


class PipelineInfo(BaseModel):
    """Read-only snapshot of a stream pipeline."""
    source: SourceKind = Field(..., description="Kind of source feeding the pipeline")
    bounded: bool = Field(..., description="Whether terminal operations are guaranteed to halt")
    mode: EvaluationMode = Field(..., description="Evaluation strategy for the terminal operation")
    consumed: bool = Field(..., description="Whether the stream has already been used")
    stages: List[StageInfo] = Field(default_factory=list, description="Stages in pipeline order")

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]
