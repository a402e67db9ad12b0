"""
Skenderaj Places Backend — Place SQLAlchemy Model
==================================================

What:  ORM model for the `places` table.
Who:   Used by PlaceService for CRUD and by the health check.

Table Design:
    - Integer primary key: server generated, immutable
    - name / slug: both UNIQUE; the constraints are what enforce uniqueness,
      PlaceService translates their violations into domain errors
    - images: TEXT[] on PostgreSQL, JSON everywhere else
    - latitude / longitude: fixed precision decimals, independently nullable
    - created_at / updated_at: UTC, timezone-aware
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, Numeric, String, Text, text
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

# Gallery URL list: native array on PostgreSQL, JSON document elsewhere
ImageList = JSON().with_variant(postgresql.ARRAY(Text()), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Place(Base):
    """
    A historical place with its narrative, images and coordinates.

    Lifecycle:
        1. Created by POST (slug derived from name)
        2. Mutated by PATCH; only the fields sent are touched,
           slug follows name, updated_at always moves forward
        3. Deleted by DELETE (uploaded media is left on the media host)
    """

    __tablename__ = "places"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Free-text place name, not a structured address
    location: Mapped[str] = mapped_column(String(255), nullable=False)

    historical_significance: Mapped[str] = mapped_column(Text, nullable=False)

    image_url: Mapped[str] = mapped_column(Text, nullable=False)

    images: Mapped[List[str]] = mapped_column(ImageList, nullable=False, default=list)

    # asdecimal=False: values come back as floats for JSON serialization
    latitude: Mapped[Optional[float]] = mapped_column(
        Numeric(10, 8, asdecimal=False), nullable=True
    )
    longitude: Mapped[Optional[float]] = mapped_column(
        Numeric(11, 8, asdecimal=False), nullable=True
    )

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Listing is always newest first
    __table_args__ = (
        Index("idx_places_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Place(id={self.id}, slug='{self.slug}')>"
