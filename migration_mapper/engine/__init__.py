"""
Migration mapping and categorization engine.

Modules:
- classifier: CategoryClassifier (per-resource category changes)
- scoring: confidence-scored mapping suggestions
- graph: MappingGraph (mapping group lifecycle and validation)
- status: migration status state machine
- bulk: BulkOperationCoordinator (partial-failure tolerant batches)
- query: filtering, sorting and cursor pagination
"""
