"""
Batch Runner - concurrent verification of many records with per-item error isolation
"""

from .processor import BatchProcessingResult, BatchProcessor
from .schemas import RESULT_FIELD, BatchSummarySchema, Operation

__all__ = [
    "BatchProcessor",
    "BatchProcessingResult",
    "BatchSummarySchema",
    "Operation",
    "RESULT_FIELD",
]
