"""
Seven-pass scanning pipeline.
"""
from .context import PassOutcome, PipelineContext
from .specialists import (
    SpecialistAnalyzer,
    SpecialistFinding,
    SpecialistInput,
    SalesFitAnalyst,
    Investigator,
    PersonalityProfiler,
    default_specialists,
)
from .pipeline import (
    MultiPassScanningPipeline,
    PipelineRun,
    PASS_NAMES,
    PASS_PROGRESS,
)

__all__ = [
    "PassOutcome",
    "PipelineContext",
    "SpecialistAnalyzer",
    "SpecialistFinding",
    "SpecialistInput",
    "SalesFitAnalyst",
    "Investigator",
    "PersonalityProfiler",
    "default_specialists",
    "MultiPassScanningPipeline",
    "PipelineRun",
    "PASS_NAMES",
    "PASS_PROGRESS",
]
