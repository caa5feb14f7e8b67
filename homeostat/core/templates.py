"""
Articulation Templates

Shareable vocabulary for naming a viability dimension. Templates are
not State: instantiating one only produces a CreateVariableParams
intent, with status Unknown so the user assesses their own situation.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..contracts.entities import NodeRef
from ..contracts.ontology import MeasurementCadence, VariableStatus
from ..contracts.params import CreateVariableParams


@dataclass(frozen=True)
class ArticulationTemplate:
    id: str
    name: str
    description: str
    suggested_preferred_range: str
    suggested_cadence: MeasurementCadence
    rationale: str
    origin: str = "builtin"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "suggestedPreferredRange": self.suggested_preferred_range,
            "suggestedCadence": self.suggested_cadence.value,
            "rationale": self.rationale,
            "origin": self.origin,
        }


BUILTIN_TEMPLATES: Tuple[ArticulationTemplate, ...] = (
    ArticulationTemplate(
        id="continuity",
        name="Continuity",
        description=(
            "Ability to continue functioning without collapse across physical, "
            "psychological, and material dimensions."
        ),
        suggested_preferred_range=(
            "Sleep is consistent, energy is usable most days, finances are not a constant "
            "background stress, and my nervous system feels basically steady."
        ),
        suggested_cadence=MeasurementCadence.WEEKLY,
        rationale=(
            "Continuity is baseline viability. Without it, no other regulation is possible."
        ),
    ),
    ArticulationTemplate(
        id="coherence",
        name="Coherence",
        description=(
            "Degree of internal consistency and integration across beliefs, actions, "
            "and identity over time."
        ),
        suggested_preferred_range=(
            "My actions align with my stated beliefs; I don't feel fragmented or "
            "contradictory across contexts."
        ),
        suggested_cadence=MeasurementCadence.MONTHLY,
        rationale=(
            "Coherence prevents identity drift and decision fatigue. "
            "Incoherence creates hidden costs."
        ),
    ),
    ArticulationTemplate(
        id="social-embeddedness",
        name="Social Embeddedness",
        description=(
            "Degree of stable integration into ongoing social systems and relationships "
            "that persist over time."
        ),
        suggested_preferred_range=(
            "I feel socially held by persistent relationships and contexts, such that "
            "week-to-week variability does not threaten my sense of belonging or continuity."
        ),
        suggested_cadence=MeasurementCadence.WEEKLY,
        rationale=(
            "Social infrastructure provides feedback, support, and reality-testing. "
            "Isolation degrades all other capacities."
        ),
    ),
    ArticulationTemplate(
        id="optionality",
        name="Optionality",
        description=(
            "Degree of freedom to adapt or pivot without being forced into brittle or "
            "irreversible decisions."
        ),
        suggested_preferred_range=(
            "I am not under acute pressure from any single constraint, and at least one "
            "credible alternative path exists if circumstances change."
        ),
        suggested_cadence=MeasurementCadence.MONTHLY,
        rationale=(
            "Optionality is viability under uncertainty. "
            "Low optionality forces premature optimization."
        ),
    ),
    ArticulationTemplate(
        id="agency",
        name="Agency",
        description=(
            "Ability to initiate actions and reliably produce effects in the world "
            "through closed action-feedback loops."
        ),
        suggested_preferred_range=(
            "I can externalize intentions into a trusted system, initiate small actions "
            "without excessive deliberation, and reliably complete loops such that action "
            "produces visible effects."
        ),
        suggested_cadence=MeasurementCadence.WEEKLY,
        rationale="Agency is the capacity to intervene. Without it, regulation is impossible.",
    ),
    ArticulationTemplate(
        id="meaningful-engagement",
        name="Meaningful Engagement",
        description=(
            "Degree of emotional investment, aliveness, and care in lived experience "
            "and ongoing pursuits."
        ),
        suggested_preferred_range=(
            "I feel genuinely invested in what I'm building, with engagement flowing from "
            "high-level conviction into daily action, even if intensity varies."
        ),
        suggested_cadence=MeasurementCadence.WEEKLY,
        rationale=(
            "Engagement is not forced meaning; it emerges when viability allows."
        ),
    ),
    ArticulationTemplate(
        id="learning",
        name="Learning",
        description=(
            "Ability to update internal models of self and world in response to evidence, "
            "leading to durable behavioral and narrative change."
        ),
        suggested_preferred_range=(
            "I notice surprises, revise my assumptions, and see my behavior and "
            "self-narratives change over time in response to lived experience."
        ),
        suggested_cadence=MeasurementCadence.MONTHLY,
        rationale=(
            "Learning is explicit model update. If nothing changes, learning has not occurred."
        ),
    ),
)


def get_template(template_id: str) -> Optional[ArticulationTemplate]:
    return next((t for t in BUILTIN_TEMPLATES if t.id == template_id), None)


def instantiate_template(
    template: ArticulationTemplate,
    variable_id: str,
    node: NodeRef
) -> CreateVariableParams:
    return CreateVariableParams(
        variable_id=variable_id,
        node=node,
        name=template.name,
        status=VariableStatus.UNKNOWN,
        description=template.description,
        preferred_range=template.suggested_preferred_range,
        measurement_cadence=template.suggested_cadence,
    )
