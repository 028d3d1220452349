"""Pydantic schemas for API request/response validation."""
from melodee.schemas.common import DeletedResponse, Page
from melodee.schemas.staging import (
    StagingItemResponse,
    StagingStatsResponse,
    ApproveRequest,
    RejectRequest,
    PromoteResponse,
    PromoteBatchRequest,
    PromoteBatchResult,
)
from melodee.schemas.quarantine import QuarantineRecordResponse, RequeueRequest

__all__ = [
    "Page",
    "DeletedResponse",
    "StagingItemResponse",
    "StagingStatsResponse",
    "ApproveRequest",
    "RejectRequest",
    "PromoteResponse",
    "PromoteBatchRequest",
    "PromoteBatchResult",
    "QuarantineRecordResponse",
    "RequeueRequest",
]
