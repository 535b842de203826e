"""
migration-mapper: cloud resource categorization and migration mapping tool.

Helps plan infrastructure migrations by classifying inventoried cloud resources
as legacy or modern and recording which legacy resources are replaced by which
modern ones.

Main features:
- Resource categorization (single and bulk, with partial-failure reporting)
- Confidence-scored mapping suggestions
- Many-to-many mapping groups with optimistic concurrency
- Migration status tracking (not_started -> in_progress -> migrated -> verified)
- Filtering, sorting and cursor pagination
- JSON export and HTML progress reports
"""
