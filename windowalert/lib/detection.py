"""Open-window heuristic.

A fast indoor temperature rise against recent readings correlates with air
exchange through an open window. The newest reading is compared against each
older one in turn (never point-to-point), which tolerates a single noisy
reading in the history.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from windowalert.lib.models import Measurement

WINDOW_OPEN_DELTA = 2.0


@dataclass(frozen=True, slots=True)
class Detection:
    """Outcome of one window check."""

    is_open: bool
    latest: Measurement | None = None
    reference: Measurement | None = None

    @property
    def delta(self) -> float | None:
        """Temperature difference that triggered the detection."""
        if self.latest is None or self.reference is None:
            return None
        return self.latest.temperature - self.reference.temperature


NOT_OPEN = Detection(is_open=False)


def detect_open_window(
    measurements: Sequence[Measurement],
    threshold: float = WINDOW_OPEN_DELTA,
) -> Detection:
    """Decide whether a device's window appears open.

    Args:
        measurements: One device's recent readings, newest first.
        threshold: Minimum rise of the newest reading over an older one
            (inclusive).

    Returns:
        An open Detection for the first older reading at least `threshold`
        below the newest one, NOT_OPEN otherwise.
    """
    if len(measurements) < 2:
        return NOT_OPEN

    latest = measurements[0]
    for entry in measurements[1:]:
        if latest.temperature - entry.temperature >= threshold:
            return Detection(is_open=True, latest=latest, reference=entry)
    return Detection(is_open=False, latest=latest)
