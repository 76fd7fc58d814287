"""
Admin moderation API endpoints. Every route requires the admin role.
"""

from fastapi import APIRouter, Depends, Query, status
from uuid import UUID

from app.config import settings
from app.models.user import User
from app.services.approval import ApprovalService
from app.services.error_handler import ErrorReporter
from app.services.property import PropertyService
from app.schemas.admin import (
    ApprovalRequest,
    AssignAgentRequest,
    BulkArchiveRequest,
    BulkArchiveResponse,
    ErrorLogResponse,
    PropertyStatisticsResponse
)
from app.schemas.error import ERROR_RESPONSES
from app.schemas.property import PropertyListResponse, PropertyResponse
from app.schemas.user import UserResponse
from app.utils.dependencies import (
    get_approval_service,
    get_current_admin_user,
    get_error_reporter,
    get_property_service
)


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses={401: ERROR_RESPONSES[401], 403: ERROR_RESPONSES[403]}
)


@router.get(
    "/properties/pending",
    response_model=PropertyListResponse,
    summary="Moderation queue",
    description="Listings pending approval, oldest first"
)
async def list_pending_properties(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    admin: User = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> PropertyListResponse:
    properties, total = await approval_service.list_pending(page=page, limit=limit)
    return PropertyListResponse.paginate(properties, total, page, limit)


@router.get(
    "/properties/statistics",
    response_model=PropertyStatisticsResponse,
    summary="Listing statistics",
    description="Counts by status, approval status and type"
)
async def get_property_statistics(
    admin: User = Depends(get_current_admin_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyStatisticsResponse:
    stats = await property_service.get_property_statistics()
    return PropertyStatisticsResponse(**stats)


@router.post(
    "/properties/bulk-archive",
    response_model=BulkArchiveResponse,
    summary="Archive every listing in a status"
)
async def bulk_archive_properties(
    archive_data: BulkArchiveRequest,
    admin: User = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> BulkArchiveResponse:
    archived = await approval_service.bulk_archive(archive_data.status, admin)
    return BulkArchiveResponse(status=archive_data.status, archived=archived)


@router.post(
    "/properties/{property_id}/approval",
    response_model=PropertyResponse,
    summary="Approve, reject or request changes",
    description="Only listings pending approval can be reviewed",
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]}
)
async def review_property(
    property_id: UUID,
    approval: ApprovalRequest,
    admin: User = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> PropertyResponse:
    property_obj = await approval_service.review(property_id, approval, admin)
    return PropertyResponse.model_validate(property_obj)


@router.post(
    "/properties/{property_id}/assign-agent",
    response_model=PropertyResponse,
    summary="Assign an agent",
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]}
)
async def assign_agent(
    property_id: UUID,
    assignment: AssignAgentRequest,
    admin: User = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> PropertyResponse:
    property_obj = await approval_service.assign_agent(property_id, assignment.agent_id, admin)
    return PropertyResponse.model_validate(property_obj)


@router.delete(
    "/properties/{property_id}",
    response_model=PropertyResponse,
    summary="Soft delete a listing",
    responses={404: ERROR_RESPONSES[404]}
)
async def soft_delete_property(
    property_id: UUID,
    admin: User = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> PropertyResponse:
    property_obj = await approval_service.soft_delete(property_id, admin)
    return PropertyResponse.model_validate(property_obj)


@router.post(
    "/properties/{property_id}/restore",
    response_model=PropertyResponse,
    summary="Restore a deleted or archived listing",
    description="The listing returns to the moderation queue",
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]}
)
async def restore_property(
    property_id: UUID,
    admin: User = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> PropertyResponse:
    property_obj = await approval_service.restore(property_id, admin)
    return PropertyResponse.model_validate(property_obj)


@router.post(
    "/users/{user_id}/verify",
    response_model=UserResponse,
    summary="Verify an agent or seller",
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]}
)
async def verify_user(
    user_id: UUID,
    admin: User = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> UserResponse:
    user = await approval_service.verify_user(user_id, admin)
    return UserResponse.model_validate(user)


@router.get(
    "/errors",
    response_model=ErrorLogResponse,
    status_code=status.HTTP_200_OK,
    summary="Recent errors",
    description="Classified errors from the reporter log, newest first"
)
async def get_recent_errors(
    limit: int = Query(50, ge=1, le=500),
    admin: User = Depends(get_current_admin_user),
    reporter: ErrorReporter = Depends(get_error_reporter)
) -> ErrorLogResponse:
    return ErrorLogResponse(total=len(reporter), errors=reporter.recent(limit))
