"""
CHRONOMAP core - the temporal versioning engine.

Everything in this package is pure: functions take a timeline document
(and element records) and return results or mutate the document they were
handed. Loading and saving belong to the stores in chronomap.services.

- change_index: ChangeMap built from timeline entries
- reconstruction: element state as of a year
- recorder: record / remove changes, entry CRUD, attribute diffs
- maintenance: purge, delete-after, consolidate, migrations
- epochs: epoch validation, CRUD and year display
"""
