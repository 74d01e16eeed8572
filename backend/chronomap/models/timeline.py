"""
Timeline models.

Relational layout of the timeline document: one row per entry (year),
per note, per recorded change and per epoch. The store rewrites all of
them in a single transaction, so the document stays the unit of change.
"""
from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from chronomap.models.base import Base


class TimelineEntryRow(Base):
    __tablename__ = "timeline_entries"

    year = Column(Integer, primary_key=True)
    age = Column(String(200))

    notes = relationship(
        "TimelineNoteRow",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="TimelineNoteRow.position",
    )
    changes = relationship(
        "TimelineChangeRow",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="TimelineChangeRow.position",
    )

    def __repr__(self):
        return f"<TimelineEntryRow(year={self.year})>"


class TimelineNoteRow(Base):
    __tablename__ = "timeline_notes"

    id = Column(String(100), primary_key=True)
    year = Column(Integer, ForeignKey("timeline_entries.year", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(String(40), nullable=False)  # ISO-8601, as in the document
    updated_at = Column(String(40))

    entry = relationship("TimelineEntryRow", back_populates="notes")


class TimelineChangeRow(Base):
    """
    One recorded change.

    change_type: 'updated' (patch in `changes`), 'deleted', or the legacy
    'created' marker.
    """
    __tablename__ = "timeline_changes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    year = Column(Integer, ForeignKey("timeline_entries.year", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    element_id = Column(String(100), nullable=False, index=True)
    element_type = Column(
        String(20),
        CheckConstraint("element_type IN ('location', 'region')"),
        nullable=False,
    )
    change_type = Column(
        String(20),
        CheckConstraint("change_type IN ('updated', 'deleted', 'created')"),
        nullable=False,
    )
    changes = Column(JSON)

    entry = relationship("TimelineEntryRow", back_populates="changes")

    __table_args__ = (
        UniqueConstraint("year", "element_id", "element_type", "change_type", name="uq_timeline_change"),
    )


class EpochRow(Base):
    __tablename__ = "epochs"

    id = Column(String(100), primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    start_year = Column(Integer, nullable=False, index=True)
    end_year = Column(Integer, nullable=False)
    color = Column(String(20))
    year_prefix = Column(String(50))
    year_suffix = Column(String(50))
    restart_at_zero = Column(Boolean, nullable=False, default=False)
    show_end_date = Column(Boolean, nullable=False, default=True)
    reverse_years = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint("start_year < end_year", name="ck_epoch_interval"),
    )

    def __repr__(self):
        return f"<EpochRow(id={self.id}, name='{self.name}', {self.start_year} to {self.end_year})>"
