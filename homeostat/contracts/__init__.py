"""
Contracts Layer

Immutable data shared by every other layer: the Result/Error taxonomy,
the ontology constants, entity records and intent records.
"""

from .base import (
    EPOCH_ISO, OK, Error, ErrorCode, Result, Timestamp, derive_id, fail,
)
from .entities import (
    DEFAULT_ORG_NODE, DEFAULT_PERSONAL_NODE, Action, Episode, Link,
    MembraneException, Model, Node, NodeRef, Note, Proxy, ProxyReading,
    ProxyThresholds, ProxyValue, State, Variable,
)

__all__ = [
    'EPOCH_ISO', 'OK', 'Error', 'ErrorCode', 'Result', 'Timestamp',
    'derive_id', 'fail',
    'DEFAULT_ORG_NODE', 'DEFAULT_PERSONAL_NODE', 'Action', 'Episode',
    'Link', 'MembraneException', 'Model', 'Node', 'NodeRef', 'Note',
    'Proxy', 'ProxyReading', 'ProxyThresholds', 'ProxyValue', 'State',
    'Variable',
]
