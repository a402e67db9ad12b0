"""
Skenderaj Places Backend — Applied Migration Model
===================================================

What:  ORM model for the `migrations` tracking table.
Who:   Written and read only by the MigrationRunner.

One row per applied script, keyed by the script's filename. A script whose
name is present here is never applied again.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.place import utcnow


class AppliedMigration(Base):
    __tablename__ = "migrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Script filename, e.g. "001_create_places_table.py"
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    executed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<AppliedMigration(name='{self.name}')>"
