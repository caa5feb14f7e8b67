"""
Homeostat

A regulatory ontology kept internally consistent across every mutation.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Responsibility: Immutable data shared by every layer
   - Outputs: Result/Error, ontology enums and limits, entity and intent records
   - MUST NOT: Contain business rules

2. SCHEMA (schema/)
   - Responsibility: Versioned structural validation and migration
   - Allowed inputs: Arbitrary decoded documents
   - Outputs: MigrationResult (current | migrated | invalid)
   - MUST NOT: Raise on malformed input, apply business rules

3. CORE (core/)
   - Responsibility: Queries and pure mutators enforcing cross-entity invariants
   - Allowed inputs: Current-shape State, intent records, NodePolicy
   - Outputs: Projections and Result(State)
   - MUST NOT: Mutate in place, log, persist

4. OBSERVABILITY (observability/)
   - Responsibility: Audit trail and counters
   - MUST NOT: Influence any decision

5. API (api/)
   - Responsibility: HTTP read model and intent endpoints over an in-memory State
   - MUST NOT: Bypass the schema pipeline or the Regulator

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: every record is a frozen dataclass
- Errors are data: every rejection is a Result, never an exception
- Deterministic: identical inputs produce identical outputs
"""

from .contracts.base import Error, ErrorCode, Result
from .contracts.entities import NodeRef, State
from .engine import HomeostatConfig, Regulator, RegulatorConfig
from .schema.pipeline import MigrationResult, MigrationStatus, migrate_to_latest

__version__ = "0.1.0"

__all__ = [
    'Error', 'ErrorCode', 'Result', 'NodeRef', 'State',
    'HomeostatConfig', 'Regulator', 'RegulatorConfig',
    'MigrationResult', 'MigrationStatus', 'migrate_to_latest',
]
