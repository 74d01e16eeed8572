"""
Element model.

Stores the current (latest) record of every location and region. The
record itself is open-ended, so it is kept whole in a JSON column; only
the identity fields are broken out.
"""
from sqlalchemy import JSON, CheckConstraint, Column, Integer, String

from chronomap.models.base import Base, TimestampMixin


class ElementRow(Base, TimestampMixin):
    __tablename__ = "elements"

    id = Column(String(100), primary_key=True)
    kind = Column(
        String(20),
        CheckConstraint("kind IN ('location', 'region')"),
        primary_key=True,
    )
    creation_year = Column(Integer, nullable=False, default=0)
    position = Column(Integer, nullable=False, default=0)  # preserves document order
    record = Column(JSON, nullable=False)

    def __repr__(self):
        return f"<ElementRow(kind={self.kind}, id='{self.id}')>"
