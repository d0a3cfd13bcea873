"""Personal finance data-access package.

Modules:
- config: ini-file settings and DB path persistence
- db: connection helpers
- schema: table DDL, indexes, update allowlists and seed rows
- service: connection manager (transactions, change events)
- repositories: per-entity data access (categories, budgets, transactions, bank balances)
- bootstrap: table/index creation and first-run seeding
- importer / exporter: JSON import and export
"""
