"""
Status Inference
================

Suggest a variable status from the readings of its numeric proxies.

FENCE POST:
===========
This module SUGGESTS, it never DECIDES.

ALLOWED:
- Averaging numeric readings against declared thresholds
- Reporting how consistent the readings are (confidence)
- Returning the reading ids a suggestion is based on

FORBIDDEN:
- Applying a suggestion to State (a signal from the caller does that)
- Inferring from boolean or categorical proxies
- Extrapolating beyond the supplied readings
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..contracts.entities import Proxy, ProxyReading
from ..contracts.ontology import ProxyValueType, VariableStatus


@dataclass(frozen=True)
class StatusSuggestion:
    """A proposed status the user must confirm."""
    variable_id: str
    suggested_status: VariableStatus
    confidence: float
    based_on: Tuple[str, ...]
    reason: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "variableId": self.variable_id,
            "suggestedStatus": self.suggested_status.value,
            "confidence": self.confidence,
            "basedOn": list(self.based_on),
            "reason": self.reason,
        }


def _format_threshold(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def infer_status(proxy: Proxy, readings: Sequence[ProxyReading]) -> Optional[StatusSuggestion]:
    """
    Suggest a status from a numeric proxy's readings.

    Returns None unless the proxy is numeric, declares thresholds and
    has at least one numeric reading. Confidence drops as the readings
    spread out relative to their mean, with a floor of 0.1.
    """
    if proxy.value_type != ProxyValueType.NUMERIC or proxy.thresholds is None:
        return None

    numeric = [
        r for r in readings
        if r.value.type == ProxyValueType.NUMERIC and r.value.matches_tag()
    ]
    if not numeric:
        return None

    values = np.array([r.value.value for r in numeric], dtype=float)
    average = float(values.mean())
    std_dev = float(values.std())

    normalized = std_dev / abs(average) if average != 0 else std_dev
    confidence = max(0.1, 1.0 / (1.0 + normalized))

    low_below = proxy.thresholds.low_below
    high_above = proxy.thresholds.high_above
    if low_below is not None and average < low_below:
        status = VariableStatus.LOW
        reason = f"Average value ({average:.2f}) is below threshold ({_format_threshold(low_below)})"
    elif high_above is not None and average > high_above:
        status = VariableStatus.HIGH
        reason = f"Average value ({average:.2f}) is above threshold ({_format_threshold(high_above)})"
    else:
        status = VariableStatus.IN_RANGE
        reason = f"Average value ({average:.2f}) is within acceptable range"

    return StatusSuggestion(
        variable_id=proxy.variable_id,
        suggested_status=status,
        confidence=round(confidence, 2),
        based_on=tuple(r.id for r in numeric),
        reason=f"{reason} based on {len(numeric)} reading(s)",
    )


def infer_status_for_variable(
    proxies: Sequence[Proxy],
    readings_by_proxy: Dict[str, List[ProxyReading]]
) -> Optional[StatusSuggestion]:
    """Highest-confidence suggestion across proxies; the first one wins ties."""
    best: Optional[StatusSuggestion] = None
    for proxy in proxies:
        suggestion = infer_status(proxy, readings_by_proxy.get(proxy.id, []))
        if suggestion is None:
            continue
        if best is None or suggestion.confidence > best.confidence:
            best = suggestion
    return best
