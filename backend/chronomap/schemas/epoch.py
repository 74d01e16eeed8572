"""
Epoch schemas.

Epochs label closed year ranges [startYear, endYear] of the timeline.
Request fields are all optional so updates can merge into the stored epoch;
the epoch manager reports missing required values as validation errors.
"""
from typing import Optional

from chronomap.schemas.common import CamelModel


class Epoch(CamelModel):
    id: str
    name: str
    description: str = ""
    start_year: int
    end_year: int
    color: Optional[str] = None
    year_prefix: Optional[str] = None
    year_suffix: Optional[str] = None
    restart_at_zero: bool = False
    show_end_date: bool = True
    reverse_years: bool = False


class EpochCreate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    color: Optional[str] = None
    year_prefix: Optional[str] = None
    year_suffix: Optional[str] = None
    restart_at_zero: Optional[bool] = None
    show_end_date: Optional[bool] = None
    reverse_years: Optional[bool] = None


class EpochUpdate(EpochCreate):
    """All fields optional; only the fields sent are merged."""


class EpochDeleted(CamelModel):
    success: bool = True
    deleted: Epoch
