"""Background categorization worker."""

from neural_mail.worker.categorizer import (
    CategorizationReport,
    CategorizationWorker,
    parse_category,
)

__all__ = [
    "CategorizationWorker",
    "CategorizationReport",
    "parse_category",
]
