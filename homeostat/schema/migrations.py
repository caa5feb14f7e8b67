"""
Migration Steps

One pure function per version step (N -> N+1). Each step performs
exactly one shape change and fills new fields with a documented default:

- added collections start empty
- pre-timestamp episodes get openedAt (and closedAt when Closed) set
  to the epoch placeholder
- pre-tag notes get createdAt set to the epoch placeholder and tags []
- bare NodeType strings become NodeRef records via a fixed lookup
- the final step guarantees the canonical nodes

Steps are total over documents that passed the source version's
validator. They never mutate their input: changed records are copied,
unchanged records are shared.

MIGRATION_CHAIN is the static ordered list the pipeline folds over.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Tuple

from ..contracts.base import EPOCH_ISO
from ..contracts.ontology import (
    DEFAULT_ORG_NODE_ID, DEFAULT_PERSONAL_NODE_ID, EpisodeStatus, NodeType,
    SCHEMA_VERSION,
)
from ..contracts.seeds import CANONICAL_NODES
from .versions import VALIDATORS


Document = Dict[str, Any]


def node_ref_from_legacy(node: str) -> Dict[str, str]:
    """'Personal' -> {Personal, personal}; anything else -> {Org, org}."""
    if node == NodeType.PERSONAL.value:
        return {"type": NodeType.PERSONAL.value, "id": DEFAULT_PERSONAL_NODE_ID}
    return {"type": NodeType.ORG.value, "id": DEFAULT_ORG_NODE_ID}


def _bump(doc: Document, version: int, **changes: Any) -> Document:
    return {**doc, **changes, "schemaVersion": version}


# =============================================================================
# STEPS
# =============================================================================

def migrate_v0_to_v1(doc: Document) -> Document:
    """Stamp the unversioned format as version 1."""
    return _bump(doc, 1)


def migrate_v1_to_v2(doc: Document) -> Document:
    """Bare NodeType strings become NodeRef records."""
    return _bump(
        doc, 2,
        variables=[{**v, "node": node_ref_from_legacy(v["node"])} for v in doc["variables"]],
        episodes=[{**e, "node": node_ref_from_legacy(e["node"])} for e in doc["episodes"]],
    )


def migrate_v2_to_v3(doc: Document) -> Document:
    """Relaxation only (optional action episodeId)."""
    return _bump(doc, 3)


def _with_episode_timestamps(episode: Dict[str, Any]) -> Dict[str, Any]:
    stamped = {**episode, "openedAt": EPOCH_ISO}
    if episode["status"] == EpisodeStatus.CLOSED.value:
        stamped["closedAt"] = EPOCH_ISO
    return stamped


def migrate_v3_to_v4(doc: Document) -> Document:
    """Backfill episode timestamps with the epoch placeholder."""
    return _bump(doc, 4, episodes=[_with_episode_timestamps(e) for e in doc["episodes"]])


def migrate_v4_to_v5(doc: Document) -> Document:
    return _bump(doc, 5, models=[])


def migrate_v5_to_v6(doc: Document) -> Document:
    """Backfill note createdAt and tags."""
    return _bump(
        doc, 6,
        notes=[{**n, "createdAt": EPOCH_ISO, "tags": []} for n in doc["notes"]],
    )


def migrate_v6_to_v7(doc: Document) -> Document:
    return _bump(doc, 7, links=[])


def migrate_v7_to_v8(doc: Document) -> Document:
    return _bump(doc, 8, exceptions=[])


def migrate_v8_to_v9(doc: Document) -> Document:
    """Relaxation only (linkedObjects, timeboxDays)."""
    return _bump(doc, 9)


def migrate_v9_to_v10(doc: Document) -> Document:
    """Relaxation only (variable enrichments)."""
    return _bump(doc, 10)


def migrate_v10_to_v11(doc: Document) -> Document:
    return _bump(doc, 11, proxies=[], proxyReadings=[])


def migrate_v11_to_v12(doc: Document) -> Document:
    return _bump(doc, 12, nodes=[])


def migrate_v12_to_v13(doc: Document) -> Document:
    """Insert any missing canonical node; never duplicate an existing id."""
    existing = {n["id"] for n in doc["nodes"]}
    missing = [node.to_dict() for node in CANONICAL_NODES if node.id not in existing]
    return _bump(doc, SCHEMA_VERSION, nodes=list(doc["nodes"]) + missing)


# =============================================================================
# CHAIN
# =============================================================================

# (source version, source validator, step to source+1), oldest first
MIGRATION_CHAIN: List[Tuple[int, Callable[[Any], bool], Callable[[Document], Document]]] = [
    (0, VALIDATORS[0], migrate_v0_to_v1),
    (1, VALIDATORS[1], migrate_v1_to_v2),
    (2, VALIDATORS[2], migrate_v2_to_v3),
    (3, VALIDATORS[3], migrate_v3_to_v4),
    (4, VALIDATORS[4], migrate_v4_to_v5),
    (5, VALIDATORS[5], migrate_v5_to_v6),
    (6, VALIDATORS[6], migrate_v6_to_v7),
    (7, VALIDATORS[7], migrate_v7_to_v8),
    (8, VALIDATORS[8], migrate_v8_to_v9),
    (9, VALIDATORS[9], migrate_v9_to_v10),
    (10, VALIDATORS[10], migrate_v10_to_v11),
    (11, VALIDATORS[11], migrate_v11_to_v12),
    (12, VALIDATORS[12], migrate_v12_to_v13),
]
