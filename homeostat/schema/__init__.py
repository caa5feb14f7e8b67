"""
Schema Layer

RESPONSIBILITY: Trust boundary between untrusted documents and the
in-memory ontology (structural validation and version migration)
ALLOWED INPUTS: Arbitrary decoded documents
OUTPUTS: bool (validators), MigrationResult (pipeline)

WHAT THIS LAYER MUST NOT DO:
============================
- Raise on malformed input
- Apply business rules (cardinality, lifecycle); those belong to core
- Read or write storage
"""

from .pipeline import MigrationResult, MigrationStatus, detect_version, migrate_to_latest
from .versions import VALIDATORS, is_valid_state

__all__ = [
    'MigrationResult',
    'MigrationStatus',
    'detect_version',
    'migrate_to_latest',
    'VALIDATORS',
    'is_valid_state',
]
