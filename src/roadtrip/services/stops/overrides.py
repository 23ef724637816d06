"""Re-apply user decisions to regenerated suggestions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Optional, Sequence

from .models import SuggestedStop


@dataclass(frozen=True, slots=True)
class StopOverride:
    accepted: Optional[bool] = None
    dismissed: Optional[bool] = None
    duration: Optional[float] = None


def apply_overrides(
    base: Sequence[SuggestedStop],
    overrides_by_id: Mapping[str, StopOverride],
) -> list[SuggestedStop]:
    """Return copies of ``base`` with accept/dismiss/duration decisions applied by stop id.

    Overrides for ids that no longer exist are ignored, so decisions survive
    regeneration for every stop that is still suggested.
    """
    result: list[SuggestedStop] = []
    for stop in base:
        override = overrides_by_id.get(stop.id)
        if override is None:
            result.append(replace(stop))
            continue
        changes = {}
        if override.accepted is not None:
            changes["accepted"] = override.accepted
        if override.dismissed is not None:
            changes["dismissed"] = override.dismissed
        if override.duration is not None:
            changes["duration"] = override.duration
        result.append(replace(stop, **changes))
    return result
