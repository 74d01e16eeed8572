"""
CHRONOMAP - Temporal versioning engine for map authoring

Keeps the current state of every location and region on a map, plus a
year-indexed log of how those elements changed over in-world history.

Systems:
- Change Index: per-element, per-year lookup built from the timeline
- State Reconstructor: what did an element look like in year Y
- Change Recorder: record / remove a change at a given year
- History Maintainer: purge, rewind and consolidate recorded history
- Epoch Manager: named, non-overlapping ranges of the year axis
"""

__version__ = "0.1.0"
