"""Restartable settlement batch jobs."""

from settlement_engine.jobs.period_normalizer import PeriodNormalizationResult, PeriodNormalizer
from settlement_engine.jobs.vat_backfill import VatBackfillJob, VatBackfillResult

__all__ = [
    "PeriodNormalizationResult",
    "PeriodNormalizer",
    "VatBackfillJob",
    "VatBackfillResult",
]
