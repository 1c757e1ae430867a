"""Scoring sub-package for the workforce-scoring project.

Exports the three engine entry points so callers can do::

    from workforce_scoring.scoring import (
        compute_stress, check_leave_conflicts, rank_candidates,
    )
"""

from workforce_scoring.scoring.stress import compute_stress
from workforce_scoring.scoring.conflicts import check_leave_conflicts
from workforce_scoring.scoring.ranker import rank_candidates

__all__ = ["compute_stress", "check_leave_conflicts", "rank_candidates"]
