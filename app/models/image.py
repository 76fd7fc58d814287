"""
PropertyImage model for listing photos.
Images may be staged before their property exists and linked afterwards.
"""

from sqlalchemy import String, Integer, Boolean, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
import enum
import uuid
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.models.property import Property


class ImageType(str, enum.Enum):
    PRIMARY = "primary"
    GALLERY = "gallery"
    FLOORPLAN = "floorplan"
    EXTERIOR = "exterior"
    INTERIOR = "interior"


class PropertyImage(Base):
    """
    Image attached to a property, or staged under a temporary id.
    File metadata is only present for images uploaded through the API.
    """

    __tablename__ = "property_images"

    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )

    staging_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        nullable=True,
        index=True,
        comment="Temporary property id issued before the property exists"
    )

    url: Mapped[str] = mapped_column(String(1000), nullable=False)

    image_type: Mapped[ImageType] = mapped_column(
        SQLEnum(
            ImageType,
            native_enum=False,
            length=20,
            values_callable=lambda members: [member.value for member in members]
        ),
        nullable=False,
        default=ImageType.GALLERY
    )

    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    alt_text: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Stored file metadata
    filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, unique=True)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    property_rel: Mapped[Optional["Property"]] = relationship(
        "Property",
        back_populates="images",
        lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, primary={self.is_primary})>"

    @property
    def is_staged(self) -> bool:
        return self.property_id is None and self.staging_id is not None


# Index for loading a property's gallery in order
property_images_order_index = Index(
    'idx_property_images_property_order',
    PropertyImage.property_id,
    PropertyImage.order_index
)
