"""
API Mapper
==========

Request DTOs (pydantic) to intent records, and Results to HTTP responses.
Wire names are camelCase to match the persisted document shape.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from pydantic import BaseModel, ConfigDict, Field

from ..contracts.base import ErrorCode, Result, Timestamp, derive_id
from ..contracts.entities import NodeRef, State
from ..contracts.ontology import EpisodeType, NodeType, parse_enum
from ..contracts.params import (
    CloseEpisodeParams, ClosureNote, CreateActionParams, ExploreEpisodeParams,
    ModelUpdate, OpenEpisodeParams, SignalParams, StabilizeEpisodeParams,
    VariableUpdate,
)
from ..schema.pipeline import MigrationResult


# =============================================================================
# REQUEST DTOs
# =============================================================================

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class NodeRefDTO(_CamelModel):
    type: str
    id: str


class OpenEpisodeRequest(_CamelModel):
    node: NodeRefDTO
    type: str
    objective: str
    episode_id: Optional[str] = Field(default=None, alias="episodeId")
    variable_id: Optional[str] = Field(default=None, alias="variableId")
    opened_at: Optional[str] = Field(default=None, alias="openedAt")


class VariableUpdateDTO(_CamelModel):
    id: str
    status: str


class ModelUpdateDTO(_CamelModel):
    id: str
    type: str
    statement: str
    confidence: Optional[float] = None
    scope: Optional[str] = None
    enforcement: Optional[str] = None


class ClosureNoteDTO(_CamelModel):
    content: str
    id: Optional[str] = None


class CloseEpisodeRequest(_CamelModel):
    closure_note: ClosureNoteDTO = Field(alias="closureNote")
    closed_at: Optional[str] = Field(default=None, alias="closedAt")
    variable_updates: List[VariableUpdateDTO] = Field(default_factory=list, alias="variableUpdates")
    model_updates: List[ModelUpdateDTO] = Field(default_factory=list, alias="modelUpdates")


class SignalRequest(_CamelModel):
    node: NodeRefDTO
    variable_id: str = Field(alias="variableId")
    status: str
    reason: Optional[str] = None


class CreateActionRequest(_CamelModel):
    node: NodeRefDTO
    description: str
    action_id: Optional[str] = Field(default=None, alias="actionId")
    episode_id: Optional[str] = Field(default=None, alias="episodeId")


# =============================================================================
# DTO -> INTENT
# =============================================================================

def to_node_ref(node_type: str, node_id: str) -> NodeRef:
    member = parse_enum(NodeType, node_type)
    if member is None or not node_id:
        raise HTTPException(status_code=422, detail=f"Invalid node: {node_type}:{node_id}")
    return NodeRef(type=member, id=node_id)


def _now() -> str:
    return Timestamp.now().to_iso()


def to_open_episode_params(request: OpenEpisodeRequest, state: State) -> OpenEpisodeParams:
    node = to_node_ref(request.node.type, request.node.id)
    opened_at = request.opened_at or _now()
    episode_id = request.episode_id or derive_id(
        "ep", node.key, request.type, request.objective, opened_at, str(len(state.episodes))
    )
    episode_type = parse_enum(EpisodeType, request.type)
    if episode_type == EpisodeType.STABILIZE:
        return StabilizeEpisodeParams(
            episode_id=episode_id,
            node=node,
            variable_id=request.variable_id or "",
            objective=request.objective,
            opened_at=opened_at,
        )
    if episode_type == EpisodeType.EXPLORE:
        return ExploreEpisodeParams(
            episode_id=episode_id,
            node=node,
            objective=request.objective,
            opened_at=opened_at,
        )
    raise HTTPException(status_code=422, detail=f"Invalid episode type: {request.type}")


def to_close_episode_params(
    episode_id: str,
    request: CloseEpisodeRequest,
    state: State
) -> CloseEpisodeParams:
    closed_at = request.closed_at or _now()
    note_id = request.closure_note.id or derive_id(
        "note", "closure", episode_id, closed_at, str(len(state.notes))
    )
    return CloseEpisodeParams(
        episode_id=episode_id,
        closed_at=closed_at,
        closure_note=ClosureNote(id=note_id, content=request.closure_note.content),
        variable_updates=tuple(
            VariableUpdate(id=u.id, status=u.status) for u in request.variable_updates
        ),
        model_updates=tuple(
            ModelUpdate(
                id=m.id,
                type=m.type,
                statement=m.statement,
                confidence=m.confidence,
                scope=m.scope,
                enforcement=m.enforcement,
            )
            for m in request.model_updates
        ),
    )


def to_signal_params(request: SignalRequest) -> SignalParams:
    return SignalParams(
        node=to_node_ref(request.node.type, request.node.id),
        variable_id=request.variable_id,
        status=request.status,
        reason=request.reason,
    )


def to_create_action_params(request: CreateActionRequest, state: State) -> CreateActionParams:
    node = to_node_ref(request.node.type, request.node.id)
    action_id = request.action_id or derive_id(
        "act", node.key, request.description, str(len(state.actions))
    )
    return CreateActionParams(
        action_id=action_id,
        node=node,
        description=request.description,
        episode_id=request.episode_id,
    )


# =============================================================================
# RESULT -> RESPONSE
# =============================================================================

_NOT_FOUND = {ErrorCode.NOT_FOUND}
_UNPROCESSABLE = {ErrorCode.VALIDATION_FAILED, ErrorCode.TYPE_MISMATCH}


def status_code_for(code: ErrorCode) -> int:
    """404 for missing targets, 422 for bad fields, 409 for invariant conflicts."""
    if code in _NOT_FOUND:
        return 404
    if code in _UNPROCESSABLE:
        return 422
    return 409


def raise_for_failure(result: Result):
    if not result.ok:
        raise HTTPException(
            status_code=status_code_for(result.error.code),
            detail={"code": result.error.code.name, "error": result.error.message},
        )


def map_migration_result(result: MigrationResult) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": result.status.value}
    if result.from_version is not None:
        body["fromVersion"] = result.from_version
    if result.state is not None:
        body["state"] = result.state.to_dict()
    return body
