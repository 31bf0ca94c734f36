from .pipeline import (
    FetchStatus,
    PeriodFetchResult,
    PipelineStatus,
    PipelineConfig,
    PipelineResult,
    PeriodPipeline,
)

__all__ = [
    "FetchStatus",
    "PeriodFetchResult",
    "PipelineStatus",
    "PipelineConfig",
    "PipelineResult",
    "PeriodPipeline",
]
