"""
Engine Node Bootstrap

The regulatory system tracked with its own primitives: a system node,
the variables it keeps viable and the models it builds itself by.
"""

from __future__ import annotations
from typing import Tuple

from ..contracts.entities import Model, State, Variable
from ..contracts.ontology import (
    EnforcementLevel, MeasurementCadence, ModelScope, ModelType,
    VariableStatus,
)
from ..contracts.seeds import ENGINE_NODE, ENGINE_NODE_REF


CODE_HEALTH_ID = "var:engine:code-health"
UX_COHERENCE_ID = "var:engine:ux-coherence"
DOCTRINE_ALIGNMENT_ID = "var:engine:doctrine-alignment"
ADOPTION_ID = "var:engine:adoption"


ENGINE_VARIABLES: Tuple[Variable, ...] = (
    Variable(
        id=CODE_HEALTH_ID,
        node=ENGINE_NODE_REF,
        name="Code Health",
        status=VariableStatus.IN_RANGE,
        description="Is the codebase in good shape?",
        preferred_range="Test coverage >80%, zero lint errors, zero type errors, all tests passing",
        measurement_cadence=MeasurementCadence.DAILY,
    ),
    Variable(
        id=UX_COHERENCE_ID,
        node=ENGINE_NODE_REF,
        name="UX Coherence",
        status=VariableStatus.IN_RANGE,
        description="Is the UI consistent and usable?",
        preferred_range="UI follows design system, no visual regressions, intuitive navigation",
        measurement_cadence=MeasurementCadence.WEEKLY,
    ),
    Variable(
        id=DOCTRINE_ALIGNMENT_ID,
        node=ENGINE_NODE_REF,
        name="Doctrine Alignment",
        status=VariableStatus.IN_RANGE,
        description="Does the system match the philosophy?",
        preferred_range="ADR compliance, no anti-patterns, constraints enforced, baseline quiet",
        measurement_cadence=MeasurementCadence.WEEKLY,
    ),
    Variable(
        id=ADOPTION_ID,
        node=ENGINE_NODE_REF,
        name="Adoption",
        status=VariableStatus.UNKNOWN,
        description="Are people using it?",
        preferred_range="Active users, regular sessions, growing usage over time",
        measurement_cadence=MeasurementCadence.MONTHLY,
    ),
)


ENGINE_MODELS: Tuple[Model, ...] = (
    # Normative: hard constraint
    Model(
        id="model:engine:no-capture",
        type=ModelType.NORMATIVE,
        statement="Never ship features that create capture loops or coercive patterns",
        confidence=1.0,
        scope=ModelScope.DOMAIN,
        enforcement=EnforcementLevel.BLOCK,
        exceptions_allowed=False,
    ),
    # Normative: soft constraint
    Model(
        id="model:engine:baseline-quiet",
        type=ModelType.NORMATIVE,
        statement="The default state is quiet. Features should reduce noise, not add it.",
        confidence=1.0,
        scope=ModelScope.DOMAIN,
        enforcement=EnforcementLevel.WARN,
        exceptions_allowed=True,
    ),
    Model(
        id="model:engine:pr-review",
        type=ModelType.PROCEDURAL,
        statement="All pull requests require review before merge",
        confidence=0.9,
        scope=ModelScope.DOMAIN,
    ),
    Model(
        id="model:engine:check-before-commit",
        type=ModelType.PROCEDURAL,
        statement="Run the checks before committing. If they fail, fix before moving on.",
        confidence=1.0,
        scope=ModelScope.DOMAIN,
    ),
    Model(
        id="model:engine:small-functions",
        type=ModelType.DESCRIPTIVE,
        statement="Functions over 20 lines tend to accumulate bugs. Split them.",
        confidence=0.85,
        scope=ModelScope.DOMAIN,
    ),
    Model(
        id="model:engine:explicit-types",
        type=ModelType.DESCRIPTIVE,
        statement="Explicit return types catch errors earlier than inferred types.",
        confidence=0.9,
        scope=ModelScope.DOMAIN,
    ),
)


def create_engine_state() -> State:
    """A fresh current-version State holding only the engine's own node."""
    return State(
        nodes=(ENGINE_NODE,),
        variables=ENGINE_VARIABLES,
        models=ENGINE_MODELS,
    )
