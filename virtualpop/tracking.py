"""Optional per-individual trajectory recording.

Records the full state row of selected individuals at every step they
are present in, including the step they die in (before removal). Useful
for inspecting individual growth curves and causes of death,
and for checking life-history invariants.

Usage:
    tracker = IndividualTracker(ids=[1, 2, 3])

    # In simulation loop (before dead individuals are purged):
    tracker.capture(t, inds)

    # After simulation:
    traj = tracker.trajectory(1)   # structured array, one row per step
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import numpy as np

from virtualpop.types import INDIVIDUAL_DTYPE


TRACK_DTYPE = np.dtype([('time', np.float64)] + INDIVIDUAL_DTYPE.descr)


class IndividualTracker:
    """Collects per-step state rows for a fixed set of individual ids.

    When constructed with no ids, all methods are no-ops.
    """

    def __init__(self, ids: Optional[Iterable[int]] = None):
        self.ids = np.unique(np.asarray(list(ids or []), dtype=np.int64))
        self._rows: Dict[int, List[np.ndarray]] = {int(i): [] for i in self.ids}

    @property
    def enabled(self) -> bool:
        return self.ids.size > 0

    def capture(self, t: float, inds: np.ndarray) -> int:
        """Record the rows of tracked individuals present in inds.

        Returns:
            Number of rows recorded.
        """
        if not self.enabled or inds.size == 0:
            return 0
        hits = np.flatnonzero(np.isin(inds['id'], self.ids))
        for row in hits:
            rec = np.zeros(1, dtype=TRACK_DTYPE)
            rec['time'] = t
            for name in INDIVIDUAL_DTYPE.names:
                rec[name] = inds[name][row]
            self._rows[int(inds['id'][row])].append(rec)
        return int(hits.size)

    def trajectory(self, individual_id: int) -> np.ndarray:
        """Time-ordered state rows of one individual (empty if never seen).

        Raises:
            KeyError: If the id is not tracked.
        """
        if int(individual_id) not in self._rows:
            raise KeyError(f"Individual {individual_id} is not tracked")
        rows = self._rows[int(individual_id)]
        if not rows:
            return np.zeros(0, dtype=TRACK_DTYPE)
        return np.concatenate(rows)

    def trajectories(self) -> Dict[int, np.ndarray]:
        """All tracked ids → trajectory (ids never seen map to empty arrays)."""
        return {i: self.trajectory(i) for i in self._rows}
