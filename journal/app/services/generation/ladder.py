"""The fixed simplification ladder applied across generation attempts.

Each rung is derived from the caller's original preferences, so later
rungs are always at least as simple as earlier ones.
"""

from dataclasses import dataclass, replace

from journal.app.services.generation.models import Length, Preferences, Style


@dataclass(frozen=True)
class LadderRung:
    drop_extra_context: bool = False
    simplify: bool = False


LADDER: tuple[LadderRung, ...] = (
    LadderRung(),
    LadderRung(drop_extra_context=True),
    LadderRung(drop_extra_context=True, simplify=True),
)

MAX_ATTEMPTS = len(LADDER)


def apply_rung(preferences: Preferences, rung: LadderRung) -> Preferences:
    changes = {}
    if rung.drop_extra_context:
        changes.update({name: False for name in preferences.EXTRA_CONTEXT_FIELDS})
    if rung.simplify:
        changes.update(length=Length.SHORT, style=Style.CASUAL, study_guide=False)
    return replace(preferences, **changes) if changes else preferences


def ladder_preferences(preferences: Preferences) -> list[Preferences]:
    """Preferences for attempt 1..MAX_ATTEMPTS."""
    return [apply_rung(preferences, rung) for rung in LADDER]
