"""
Property model for marketplace listings.
Handles listing data, moderation state, promotion tier and ownership.
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Boolean, JSON, DateTime, Enum as SQLEnum,
    Index, ForeignKey, case, and_
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from datetime import datetime
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.image import PropertyImage


def _enum_column(enum_cls: type, length: int = 20) -> SQLEnum:
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [member.value for member in members]
    )


class PropertyType(str, enum.Enum):
    HOUSE = "house"
    APARTMENT = "apartment"
    LAND = "land"
    COMMERCIAL = "commercial"
    OFFICE = "office"


class ListingType(str, enum.Enum):
    SALE = "sale"
    RENT = "rent"
    LEASE = "lease"


class PropertyStatus(str, enum.Enum):
    """Lifecycle status of a listing."""
    PENDING = "pending"
    ACTIVE = "active"
    SOLD = "sold"
    RENTED = "rented"
    INACTIVE = "inactive"
    ARCHIVED = "archived"
    REJECTED = "rejected"


class ApprovalStatus(str, enum.Enum):
    """Admin moderation gate, independent of the listing status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CHANGES_REQUESTED = "changes_requested"


class ListingTier(str, enum.Enum):
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"


class Property(Base):
    """
    Marketplace property listing.
    New listings start pending approval; only active approved listings that are
    neither archived nor deleted are publicly visible.
    """

    __tablename__ = "properties"

    # Basic information
    title: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    property_type: Mapped[PropertyType] = mapped_column(
        _enum_column(PropertyType),
        nullable=False,
        index=True
    )
    listing_type: Mapped[ListingType] = mapped_column(
        _enum_column(ListingType),
        nullable=False,
        index=True
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=False,
        index=True,
        comment="Listing price in the listing currency"
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="GHS")

    # Location
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    region: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=10, scale=8), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=11, scale=8), nullable=True)

    # Details
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    square_feet: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    land_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    features: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Moderation
    status: Mapped[PropertyStatus] = mapped_column(
        _enum_column(PropertyStatus),
        nullable=False,
        default=PropertyStatus.PENDING,
        index=True
    )
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        _enum_column(ApprovalStatus),
        nullable=False,
        default=ApprovalStatus.PENDING,
        index=True
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Lifecycle
    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True
    )

    # Promotion
    tier: Mapped[ListingTier] = mapped_column(
        _enum_column(ListingTier),
        nullable=False,
        default=ListingTier.BASIC
    )
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    views_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Ownership
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="User who created the listing"
    )
    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Agent assigned by an admin"
    )

    # Relationships
    owner: Mapped["User"] = relationship(
        "User",
        back_populates="properties",
        foreign_keys=[owner_id],
        lazy="selectin"
    )
    agent: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[agent_id],
        lazy="selectin"
    )
    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyImage.order_index"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title[:30]}, status={self.status})>"

    @property
    def primary_image(self) -> Optional["PropertyImage"]:
        """Get the primary image, falling back to the first by order."""
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None

    @property
    def image_count(self) -> int:
        return len(self.images)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None or self.status == PropertyStatus.ARCHIVED

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_publicly_visible(self) -> bool:
        return (
            self.status == PropertyStatus.ACTIVE
            and self.approval_status == ApprovalStatus.APPROVED
            and not self.is_archived
            and not self.is_deleted
        )

    def can_be_viewed_by(self, user: Optional["User"]) -> bool:
        """Owners, the assigned agent and admins see every state."""
        if self.is_publicly_visible:
            return True
        if user is None:
            return False
        return user.is_admin or user.id in (self.owner_id, self.agent_id)

    @classmethod
    def public_filter(cls):
        """SQL predicate matching publicly visible listings."""
        return and_(
            cls.status == PropertyStatus.ACTIVE,
            cls.approval_status == ApprovalStatus.APPROVED,
            cls.archived_at.is_(None),
            cls.deleted_at.is_(None),
        )

    @classmethod
    def tier_rank(cls):
        """Sort key putting premium listings first."""
        return case(
            (cls.tier == ListingTier.PREMIUM, 0),
            (cls.tier == ListingTier.STANDARD, 1),
            else_=2
        )


# Composite index for the public listing query
public_listing_index = Index(
    'idx_properties_public_listing',
    Property.status,
    Property.approval_status,
    Property.created_at.desc()
)

# Composite index for the moderation queue
approval_queue_index = Index(
    'idx_properties_approval_queue',
    Property.approval_status,
    Property.created_at
)

# Composite index for owner dashboards
owner_dashboard_index = Index(
    'idx_properties_owner_updated',
    Property.owner_id,
    Property.updated_at.desc()
)
