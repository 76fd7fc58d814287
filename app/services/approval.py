"""
Admin moderation: the approval queue, agent assignment, bulk archiving,
soft delete and account verification.
"""

from typing import List, Tuple
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from app.repositories.property import PropertyRepository
from app.repositories.user import UserRepository
from app.models.property import Property, PropertyStatus, ApprovalStatus
from app.models.user import User, UserRole
from app.schemas.admin import ApprovalAction, ApprovalRequest
from app.utils.exceptions import (
    BadRequestError,
    PropertyNotFoundError,
    PropertyStatusError,
    UserNotFoundError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class ApprovalService:
    """Moderation operations. Callers must already be checked for the admin role."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)

    async def _get_property(self, property_id: uuid.UUID, include_deleted: bool = False) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj or (property_obj.is_deleted and not include_deleted):
            raise PropertyNotFoundError(str(property_id))
        return property_obj

    async def list_pending(self, page: int = 1, limit: int = 20) -> Tuple[List[Property], int]:
        return await self.property_repo.get_pending_approval(skip=(page - 1) * limit, limit=limit)

    async def review(
        self,
        property_id: uuid.UUID,
        request: ApprovalRequest,
        admin: User
    ) -> Property:
        """
        Apply a moderation decision to a listing awaiting approval.

        Raises:
            PropertyNotFoundError: If the listing is missing or deleted
            PropertyStatusError: If the listing is archived or not pending approval
        """
        property_obj = await self._get_property(property_id)
        if property_obj.is_archived:
            raise PropertyStatusError("Archived listings cannot be reviewed; restore them first")
        if property_obj.approval_status != ApprovalStatus.PENDING:
            raise PropertyStatusError(
                f"Only listings pending approval can be reviewed "
                f"(current approval status: {property_obj.approval_status.value})"
            )

        if request.action == ApprovalAction.APPROVE:
            changes = {
                "status": PropertyStatus.ACTIVE,
                "approval_status": ApprovalStatus.APPROVED,
                "approved_at": datetime.now(timezone.utc),
                "approved_by": admin.id,
                "rejection_reason": None,
            }
            if request.notes:
                changes["admin_notes"] = request.notes
        elif request.action == ApprovalAction.REJECT:
            changes = {
                "status": PropertyStatus.REJECTED,
                "approval_status": ApprovalStatus.REJECTED,
                "rejection_reason": request.reason,
            }
        else:
            changes = {
                "approval_status": ApprovalStatus.CHANGES_REQUESTED,
                "admin_notes": request.notes,
            }

        updated = await self.property_repo.update(property_id, changes, exclude_none=False)
        logger.info(f"Property {property_id} {request.action.value} by admin {admin.email}")
        return updated

    async def assign_agent(self, property_id: uuid.UUID, agent_id: uuid.UUID, admin: User) -> Property:
        """
        Raises:
            UserNotFoundError: If the agent does not exist
            BadRequestError: If the user is not an active agent
        """
        property_obj = await self._get_property(property_id)

        agent = await self.user_repo.get_by_id(agent_id)
        if not agent:
            raise UserNotFoundError(str(agent_id))
        if agent.role != UserRole.AGENT or not agent.is_active:
            raise BadRequestError("Properties can only be assigned to active agents")

        updated = await self.property_repo.update(property_obj.id, {"agent_id": agent.id})
        logger.info(f"Agent {agent.email} assigned to property {property_id} by {admin.email}")
        return updated

    async def bulk_archive(self, status: PropertyStatus, admin: User) -> int:
        archived = await self.property_repo.archive_by_status(status, archived_by=admin.id)
        logger.info(f"Bulk archived {archived} {status.value} properties by {admin.email}")
        return archived

    async def soft_delete(self, property_id: uuid.UUID, admin: User) -> Property:
        property_obj = await self._get_property(property_id, include_deleted=True)
        if property_obj.is_deleted:
            return property_obj

        deleted = await self.property_repo.update(property_id, {"deleted_at": datetime.now(timezone.utc)})
        logger.info(f"Property {property_id} soft-deleted by admin {admin.email}")
        return deleted

    async def restore(self, property_id: uuid.UUID, admin: User) -> Property:
        """Bring a deleted or archived listing back into the moderation queue."""
        property_obj = await self._get_property(property_id, include_deleted=True)
        if not property_obj.is_deleted and not property_obj.is_archived:
            raise PropertyStatusError("Only deleted or archived properties can be restored")

        restored = await self.property_repo.update(property_id, {
            "deleted_at": None,
            "archived_at": None,
            "archived_by": None,
            "status": PropertyStatus.PENDING,
            "approval_status": ApprovalStatus.PENDING,
        }, exclude_none=False)
        logger.info(f"Property {property_id} restored by admin {admin.email}")
        return restored

    async def verify_user(self, user_id: uuid.UUID, admin: User) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(str(user_id))
        if user.role not in (UserRole.AGENT, UserRole.SELLER):
            raise BadRequestError("Only agents and sellers require verification")

        verified = await self.user_repo.set_verified(user_id, True)
        logger.info(f"User {user.email} verified by admin {admin.email}")
        return verified
