"""Business logic services."""
from melodee.services.errors import (
    ChecksumMismatchError,
    ConflictError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    PipelineError,
    PromotionError,
)
from melodee.services.staging import StagingRepository
from melodee.services.quarantine import QuarantineService
from melodee.services.promotion import PromotionService, PromotionResult

__all__ = [
    "ChecksumMismatchError",
    "ConflictError",
    "InvalidInputError",
    "InvalidTransitionError",
    "NotFoundError",
    "PipelineError",
    "PromotionError",
    "PromotionResult",
    "PromotionService",
    "QuarantineService",
    "StagingRepository",
]
