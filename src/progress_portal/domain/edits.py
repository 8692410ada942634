"""Field edits an admin can apply to a weekly update."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SetTitle:
    value: str


@dataclass(frozen=True)
class SetSummary:
    value: str


@dataclass(frozen=True)
class SetCaptureRef:
    """Point the update at a hosted 3D capture, or clear it with ``None``."""

    value: str | None


@dataclass(frozen=True)
class SetTourRef:
    """Point the update at a hosted 360 tour, or clear it with ``None``."""

    value: str | None


@dataclass(frozen=True)
class SetStatsCompletion:
    value: int


@dataclass(frozen=True)
class SetStatsWorkers:
    value: int


@dataclass(frozen=True)
class SetStatsWeather:
    value: str


UpdateEdit = (
    SetTitle
    | SetSummary
    | SetCaptureRef
    | SetTourRef
    | SetStatsCompletion
    | SetStatsWorkers
    | SetStatsWeather
)
