"""
One-shot migration from the legacy MySQL database into the Postgres store.

Steps run in dependency order (teachers, schools, case-files, dispositions,
join rows). Legacy numeric ids are remapped to uuids through an `IdMapping`
that is passed from step to step and persisted as JSON files between runs.
"""
