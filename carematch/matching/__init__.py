"""Compatibility scoring entry points.

Usage:
    from carematch.matching import rank_candidates, score_match

    result = score_match(job, household, children, provider, now=now)
    best = rank_candidates(job, household, children, providers, limit=10)
"""

from carematch.matching.scorer import rank_candidates, score_match

__all__ = ["rank_candidates", "score_match"]
