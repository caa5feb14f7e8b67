"""
Seed Entities

The canonical nodes every current-version document is guaranteed to
contain: the two default agent scopes and the engine's own system node.
"""

from __future__ import annotations
from typing import Tuple

from .base import EPOCH_ISO
from .entities import Node, NodeRef
from .ontology import (
    DEFAULT_ORG_NODE_ID, DEFAULT_PERSONAL_NODE_ID, ENGINE_NODE_ID,
    NodeKind, NodeType,
)


PERSONAL_NODE = Node(
    id=DEFAULT_PERSONAL_NODE_ID,
    kind=NodeKind.AGENT,
    name="Personal",
    created_at=EPOCH_ISO,
)

ORG_NODE = Node(
    id=DEFAULT_ORG_NODE_ID,
    kind=NodeKind.AGENT,
    name="Org",
    created_at=EPOCH_ISO,
)

ENGINE_NODE = Node(
    id=ENGINE_NODE_ID,
    kind=NodeKind.SYSTEM,
    name="Becoming Engine",
    description="The regulatory system itself, eating its own dogfood",
    tags=("meta", "infrastructure", "dogfood"),
    created_at="2026-01-01T00:00:00.000Z",
)

# System nodes still address variables through the legacy Org type
ENGINE_NODE_REF = NodeRef(type=NodeType.ORG, id=ENGINE_NODE_ID)

CANONICAL_NODES: Tuple[Node, ...] = (PERSONAL_NODE, ORG_NODE, ENGINE_NODE)
