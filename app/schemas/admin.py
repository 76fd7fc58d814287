"""
Pydantic schemas for admin moderation endpoints.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Dict, Optional, List
import enum
import uuid

from app.models.property import PropertyStatus
from app.utils.error_classifier import ClassifiedError


class ApprovalAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_CHANGES = "request_changes"


class ApprovalRequest(BaseModel):
    """
    Moderation decision for a pending listing.
    Rejections need a reason; change requests need notes for the owner.
    """

    action: ApprovalAction
    reason: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode='after')
    def validate_required_text(self):
        if self.action == ApprovalAction.REJECT and not (self.reason and self.reason.strip()):
            raise ValueError("A reason is required when rejecting a property")
        if self.action == ApprovalAction.REQUEST_CHANGES and not (self.notes and self.notes.strip()):
            raise ValueError("Notes are required when requesting changes")
        return self


class AssignAgentRequest(BaseModel):
    agent_id: uuid.UUID


class BulkArchiveRequest(BaseModel):
    status: PropertyStatus = Field(..., description="Archive every listing currently in this status")

    @model_validator(mode='after')
    def validate_status(self):
        if self.status == PropertyStatus.ARCHIVED:
            raise ValueError("Listings that are already archived cannot be archived again")
        return self


class BulkArchiveResponse(BaseModel):
    status: PropertyStatus
    archived: int


class PropertyStatisticsResponse(BaseModel):
    total_properties: int
    total_views: int
    deleted_properties: int
    by_status: Dict[str, int]
    by_approval_status: Dict[str, int]
    by_type: Dict[str, int]


class ErrorLogResponse(BaseModel):
    total: int
    errors: List[ClassifiedError]
