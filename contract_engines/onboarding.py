"""
contract_engines.onboarding -- onboarding checklist completeness.

Responsibility:
    Check the require-together pairs of the seven onboarding tracks and
    compute completion percentages.

Architecture position:
    Engines -- pure calculation layer.  Tracks are a data table
    (``ONBOARDING_TRACKS``) iterated generically; adding a track means
    adding a row, not a branch.

Invariants enforced:
    - A track whose initiating flag is false never produces an error.
    - An initiated track with only one half of its confirmation pair
      produces exactly one error, naming the missing half.
    - Blank strings count as missing.

Failure modes:
    - validate_onboarding returns errors instead of raising; callers
      decide whether to block (approval does).
    - KeyError for an unknown track name.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from contract_engines.tracer import traced_engine
from contract_kernel.domain.dtos import OnboardingSnapshot
from contract_kernel.exceptions import ValidationError


class TrackState(str, Enum):
    EMPTY = "empty"
    PENDING = "pending"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class OnboardingTrack:
    """
    One checklist item.

    ``counts_initiation_step`` is False for tracks whose initiation is not
    a separate step in the twelve-step progress figure.
    """

    name: str
    initiating_field: str
    reference_field: str
    confirmation_date_field: str
    counts_initiation_step: bool = True

    @property
    def fields(self) -> tuple[str, str, str]:
        return (self.initiating_field, self.reference_field, self.confirmation_date_field)


ONBOARDING_TRACKS: tuple[OnboardingTrack, ...] = (
    OnboardingTrack("medical_exam", "exam_scheduled", "exam_done", "exam_date"),
    OnboardingTrack(
        "contract_signature", "contract_sent", "signed_contract_received",
        "contract_confirmation_date",
    ),
    OnboardingTrack("insurer", "insurer_requested", "insurer_name", "insurer_confirmation_date"),
    OnboardingTrack(
        "health_plan", "health_plan_requested", "health_plan_filing_number",
        "health_plan_confirmation_date",
    ),
    OnboardingTrack(
        "compensation_fund", "compensation_fund_requested",
        "compensation_fund_filing_number", "compensation_fund_confirmation_date",
    ),
    OnboardingTrack(
        "severance_fund", "severance_requested", "severance_fund",
        "severance_confirmation_date", counts_initiation_step=False,
    ),
    OnboardingTrack(
        "pension_fund", "pension_requested", "pension_fund",
        "pension_confirmation_date", counts_initiation_step=False,
    ),
)

_TRACKS_BY_NAME = {track.name: track for track in ONBOARDING_TRACKS}

OnboardingRecord = OnboardingSnapshot | Mapping[str, Any]


def get_track(track: OnboardingTrack | str) -> OnboardingTrack:
    if isinstance(track, OnboardingTrack):
        return track
    return _TRACKS_BY_NAME[track]


def _value(record: OnboardingRecord, field: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


def _present(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _initiated(record: OnboardingRecord, track: OnboardingTrack) -> bool:
    return _value(record, track.initiating_field) is True


def _confirmed(record: OnboardingRecord, track: OnboardingTrack) -> bool:
    return _present(_value(record, track.reference_field)) and _present(
        _value(record, track.confirmation_date_field)
    )


@traced_engine("onboarding.validate", "1.0")
def validate_onboarding(record: OnboardingRecord) -> tuple[ValidationError, ...]:
    """One error per initiated track with a half-filled confirmation pair."""
    errors: list[ValidationError] = []
    for track in ONBOARDING_TRACKS:
        if not _initiated(record, track):
            continue
        has_reference = _present(_value(record, track.reference_field))
        has_date = _present(_value(record, track.confirmation_date_field))
        if has_reference and not has_date:
            errors.append(ValidationError(
                track.confirmation_date_field,
                f"required when {track.reference_field} is set",
            ))
        elif has_date and not has_reference:
            errors.append(ValidationError(
                track.reference_field,
                f"required when {track.confirmation_date_field} is set",
            ))
    return tuple(errors)


def progress(record: OnboardingRecord) -> int:
    """Percentage of tracks initiated and fully confirmed."""
    completed = sum(
        1 for track in ONBOARDING_TRACKS
        if _initiated(record, track) and _confirmed(record, track)
    )
    return round(100 * completed / len(ONBOARDING_TRACKS))


def step_progress(record: OnboardingRecord) -> int:
    """
    Twelve-step percentage shown on dashboards.

    Tracks flagged ``counts_initiation_step`` contribute an initiation
    step and a confirmation step; the others contribute one step that
    needs initiation and confirmation together.
    """
    steps: list[bool] = []
    for track in ONBOARDING_TRACKS:
        if track.counts_initiation_step:
            steps.append(_initiated(record, track))
            steps.append(_confirmed(record, track))
        else:
            steps.append(_initiated(record, track) and _confirmed(record, track))
    return round(100 * sum(steps) / len(steps))


def track_state(record: OnboardingRecord, track: OnboardingTrack | str) -> TrackState:
    track = get_track(track)
    if not _initiated(record, track):
        return TrackState.EMPTY
    if _confirmed(record, track):
        return TrackState.CONFIRMED
    return TrackState.PENDING


def can_initiate_confirmation(record: OnboardingRecord, track: OnboardingTrack | str) -> bool:
    """Confirmation data may only be entered once the track is initiated."""
    return _initiated(record, get_track(track))


def clear_track(track: OnboardingTrack | str) -> dict[str, Any]:
    """Field updates that reset ``track`` to empty."""
    track = get_track(track)
    boolean_fields = {
        name for name, f in OnboardingSnapshot.__dataclass_fields__.items()
        if f.default is False
    }
    return {
        field: (False if field in boolean_fields else None)
        for field in track.fields
    }
