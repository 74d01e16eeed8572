"""
Epoch Manager

Epochs are named, closed year ranges [startYear, endYear] that label the
year axis. They never overlap and are kept sorted by start year. Epochs
have no effect on element history.

Also home to the year display rules an epoch imposes (counting from the
epoch start, counting backwards, prefixes and suffixes).
"""
import logging
import uuid
from typing import Callable, Iterable, Optional

from chronomap.core.errors import NotFoundError, ValidationError
from chronomap.schemas.epoch import Epoch, EpochCreate, EpochUpdate
from chronomap.schemas.timeline import TimelineDocument

logger = logging.getLogger(__name__)

DEFAULT_EPOCH_COLOR = "#3B82F6"


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Closed-interval overlap test."""
    return start_a <= end_b and end_a >= start_b


def _validate(
    name: Optional[str],
    start_year: Optional[int],
    end_year: Optional[int],
    others: Iterable[Epoch],
) -> None:
    if not name or start_year is None or end_year is None:
        raise ValidationError("Name, startYear, and endYear are required")
    if start_year >= end_year:
        raise ValidationError("Start year must be before end year")
    for other in others:
        if overlaps(start_year, end_year, other.start_year, other.end_year):
            raise ValidationError(
                f"Epoch overlaps with existing epoch '{other.name}' "
                f"({other.start_year} to {other.end_year})"
            )


def sort_epochs(document: TimelineDocument) -> None:
    document.epochs.sort(key=lambda epoch: epoch.start_year)


def create_epoch(
    document: TimelineDocument,
    data: EpochCreate,
    default_color: str = DEFAULT_EPOCH_COLOR,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> Epoch:
    _validate(data.name, data.start_year, data.end_year, document.epochs)

    epoch = Epoch(
        id=id_factory(),
        name=data.name,
        description=data.description or "",
        start_year=data.start_year,
        end_year=data.end_year,
        color=data.color or default_color,
        year_prefix=data.year_prefix or "",
        year_suffix=data.year_suffix or "",
        restart_at_zero=bool(data.restart_at_zero),
        show_end_date=data.show_end_date is not False,
        reverse_years=bool(data.reverse_years),
    )
    document.epochs.append(epoch)
    sort_epochs(document)
    logger.info("Created epoch %s '%s' (%s to %s)", epoch.id, epoch.name, epoch.start_year, epoch.end_year)
    return epoch


def _find_index(document: TimelineDocument, epoch_id: str) -> int:
    for index, epoch in enumerate(document.epochs):
        if epoch.id == epoch_id:
            return index
    raise NotFoundError(f"Epoch {epoch_id} not found")


def update_epoch(
    document: TimelineDocument,
    epoch_id: str,
    updates: EpochUpdate,
    default_color: str = DEFAULT_EPOCH_COLOR,
) -> Epoch:
    """Merge the fields sent in `updates` into the stored epoch and re-validate."""
    index = _find_index(document, epoch_id)
    existing = document.epochs[index]

    merged = existing.model_dump()
    merged.update(updates.model_dump(exclude_unset=True))
    merged["id"] = existing.id
    # An empty name or colour keeps the stored one
    merged["name"] = merged.get("name") or existing.name
    merged["color"] = merged.get("color") or existing.color or default_color
    for flag in ("restart_at_zero", "show_end_date", "reverse_years"):
        if merged.get(flag) is None:
            merged[flag] = getattr(existing, flag)
    if merged.get("description") is None:
        merged["description"] = existing.description

    others = [epoch for position, epoch in enumerate(document.epochs) if position != index]
    _validate(merged["name"], merged.get("start_year"), merged.get("end_year"), others)

    epoch = Epoch.model_validate(merged)
    document.epochs[index] = epoch
    sort_epochs(document)
    logger.info("Updated epoch %s", epoch_id)
    return epoch


def delete_epoch(document: TimelineDocument, epoch_id: str) -> Epoch:
    index = _find_index(document, epoch_id)
    epoch = document.epochs.pop(index)
    logger.info("Deleted epoch %s", epoch_id)
    return epoch


def epoch_for_year(year: int, epochs: Iterable[Epoch]) -> Optional[Epoch]:
    for epoch in epochs:
        if epoch.start_year <= year <= epoch.end_year:
            return epoch
    return None


def display_year(year: int, epoch: Epoch) -> int:
    """
    Year number as shown inside an epoch.

    Reverse epochs count down to 1 at their end year (like BC years);
    restart-at-zero epochs count up from 1 at their start year.
    """
    if epoch.reverse_years:
        return epoch.end_year - year + 1
    if epoch.restart_at_zero:
        return year - epoch.start_year + 1
    return year


def format_year(year: int, epochs: Iterable[Epoch]) -> str:
    """Year label using the enclosing epoch's prefix and suffix, if any."""
    epoch = epoch_for_year(year, epochs)
    if epoch is None:
        return str(year)
    prefix = f"{epoch.year_prefix} " if epoch.year_prefix else ""
    suffix = f" {epoch.year_suffix}" if epoch.year_suffix else ""
    return f"{prefix}{display_year(year, epoch)}{suffix}"


def format_epoch_dates(epoch: Epoch) -> str:
    """Compact date range, e.g. "AR1 - 300" or "AR1" when the end date is hidden."""
    prefix = epoch.year_prefix or ""
    suffix = epoch.year_suffix or ""
    start = display_year(epoch.start_year, epoch)
    if not epoch.show_end_date:
        return f"{prefix}{start}{suffix}"
    end = display_year(epoch.end_year, epoch)
    return f"{prefix}{start} - {end}{suffix}"


def format_epoch_date_range(epoch: Epoch) -> str:
    """
    Date range for headers and panels, prefix and suffix space-separated.

    With the end date hidden, reverse epochs show their end year and
    forward epochs their start year.
    """
    prefix = f"{epoch.year_prefix} " if epoch.year_prefix else ""
    suffix = f" {epoch.year_suffix}" if epoch.year_suffix else ""
    if not epoch.show_end_date:
        shown = epoch.end_year if epoch.reverse_years else epoch.start_year
        return f"{prefix}{display_year(shown, epoch)}{suffix}"
    start = display_year(epoch.start_year, epoch)
    end = display_year(epoch.end_year, epoch)
    return f"{prefix}{start} - {end}{suffix}"
