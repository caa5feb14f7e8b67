"""
Homeostat API Server
====================

HTTP read model and intent endpoints over an in-memory State.

The State is loaded once at startup through the migration pipeline and
then only ever replaced by the Result of a Regulator mutator. Nothing
is written back to disk.

Endpoints:
- GET  /health                        -> liveness
- GET  /status/{node_type}/{node_id}  -> status projection
- GET  /state                         -> full current document
- POST /episodes                      -> open an episode
- POST /episodes/{id}/close           -> close an episode
- POST /signals                       -> signal a variable status
- POST /actions                       -> create an action
- POST /actions/{id}/complete         -> complete an action
- POST /migrate                       -> run a document through the pipeline (never stored)

Usage:
    uvicorn homeostat.api.server:app --reload
"""
import json
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import AppConfig, get_config
from ..contracts.entities import State
from ..contracts.ontology import SCHEMA_VERSION
from ..contracts.params import CompleteActionParams
from ..core.integrity import check_no_duplicate_id
from ..core.membrane import MembraneVerdict
from ..engine import Regulator
from ..schema.pipeline import MigrationStatus
from .mapper import (
    CloseEpisodeRequest, CreateActionRequest, OpenEpisodeRequest,
    SignalRequest, map_migration_result, raise_for_failure,
    to_close_episode_params, to_create_action_params, to_node_ref,
    to_open_episode_params, to_signal_params,
)


# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

@dataclass
class ServerState:
    """The one mutable slot: the current State, swapped on success."""
    regulator: Regulator
    state: State


def load_state(regulator: Regulator, path: str) -> State:
    """
    Read the document at path through the pipeline.

    A missing file yields an empty current State; an unrecognised
    document is a startup failure.
    """
    if not os.path.exists(path):
        print(f"[*] No state document at {path}; starting empty.")
        return State.empty()

    with open(path, 'r', encoding='utf-8') as f:
        document = json.load(f)

    result = regulator.load(document)
    if result.status == MigrationStatus.INVALID:
        raise RuntimeError(f"State document at {path} matches no known schema version")
    if result.status == MigrationStatus.MIGRATED:
        print(f"[*] Migrated state document from schema v{result.from_version}.")
    return result.state


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    app_config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load the state document on startup."""
        print(f"[*] Initializing Homeostat ({app_config.env}) from: {app_config.state_path}")

        regulator = Regulator()
        try:
            state = load_state(regulator, app_config.state_path)
            print("[*] State loaded successfully.")
        except Exception as e:
            print(f"[!] FAILED to load state: {e}")
            raise e

        app.state.homeostat = ServerState(regulator=regulator, state=state)

        yield

        print("[*] Shutting down.")
        app.state.homeostat = None

    app = FastAPI(
        title="Homeostat API",
        version="0.1.0",
        description="Regulatory ontology read model and intents",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    _register_routes(app)
    return app


def _server(request: Request) -> ServerState:
    server = getattr(request.app.state, "homeostat", None)
    if server is None:
        raise HTTPException(status_code=503, detail="State not loaded")
    return server


# =============================================================================
# ENDPOINTS
# =============================================================================

def _register_routes(app: FastAPI):

    @app.get("/health")
    async def health_check(request: Request):
        """System status."""
        _server(request)
        return {"status": "online", "schemaVersion": SCHEMA_VERSION}

    @app.get("/status/{node_type}/{node_id}")
    async def get_status(node_type: str, node_id: str, request: Request):
        """Baseline or active projection for one node."""
        server = _server(request)
        node = to_node_ref(node_type, node_id)
        return server.regulator.get_status(server.state, node).to_dict()

    @app.get("/state")
    async def get_state(request: Request):
        return _server(request).state.to_dict()

    @app.post("/episodes", status_code=201)
    async def open_episode(body: OpenEpisodeRequest, request: Request):
        """
        Open an episode.

        A blocking Normative model refuses the request; warnings are
        returned alongside the new episode. An episode id already in
        use is refused.
        """
        server = _server(request)
        params = to_open_episode_params(body, server.state)
        raise_for_failure(check_no_duplicate_id(server.state.episodes, params.episode_id, "Episode"))

        decision = server.regulator.check_episode_constraints(server.state, params.node, params.type)
        if decision.decision == MembraneVerdict.BLOCK:
            raise HTTPException(status_code=409, detail={
                "code": "BLOCKED",
                "error": decision.reason,
                "modelId": decision.model_id,
            })

        result = server.regulator.open_episode(server.state, params)
        raise_for_failure(result)
        server.state = result.value

        episode = next(e for e in server.state.episodes if e.id == params.episode_id)
        return {"episode": episode.to_dict(), "membrane": decision.to_dict()}

    @app.post("/episodes/{episode_id}/close")
    async def close_episode(episode_id: str, body: CloseEpisodeRequest, request: Request):
        server = _server(request)
        params = to_close_episode_params(episode_id, body, server.state)

        result = server.regulator.close_episode(server.state, params)
        raise_for_failure(result)
        server.state = result.value

        episode = next(e for e in server.state.episodes if e.id == episode_id)
        return {"episode": episode.to_dict()}

    @app.post("/signals")
    async def signal(body: SignalRequest, request: Request):
        server = _server(request)
        params = to_signal_params(body)

        result = server.regulator.signal(server.state, params)
        raise_for_failure(result)
        server.state = result.value

        variable = next(v for v in server.state.variables if v.id == params.variable_id)
        return {"variable": variable.to_dict()}

    @app.post("/actions", status_code=201)
    async def create_action(body: CreateActionRequest, request: Request):
        server = _server(request)
        params = to_create_action_params(body, server.state)
        raise_for_failure(check_no_duplicate_id(server.state.actions, params.action_id, "Action"))

        result = server.regulator.create_action(server.state, params)
        raise_for_failure(result)
        server.state = result.value

        action = next(a for a in server.state.actions if a.id == params.action_id)
        return {"action": action.to_dict()}

    @app.post("/actions/{action_id}/complete")
    async def complete_action(action_id: str, request: Request):
        server = _server(request)

        result = server.regulator.complete_action(server.state, CompleteActionParams(action_id))
        raise_for_failure(result)
        server.state = result.value

        action = next(a for a in server.state.actions if a.id == action_id)
        return {"action": action.to_dict()}

    @app.post("/migrate")
    async def migrate(request: Request, document: Any = Body(...)):
        """Dry run of the pipeline; the loaded State is untouched."""
        server = _server(request)
        return map_migration_result(server.regulator.load(document))


app = create_app()
