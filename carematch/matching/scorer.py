"""Compatibility scoring between one request and one provider.

Score range: 0-100. Each criterion produces a raw value in [0, 1] that is
multiplied by its points from ``ScoringConfig.weights`` (see MAX_SCORES).
Elimination runs first and independently; an ineligible result still
carries its computed score.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from carematch.core.config import ScoringConfig
from carematch.core.rounding import round_half_up
from carematch.core.schemas import (
    ChildProfile,
    HouseholdProfile,
    JobRequirements,
    MatchResult,
    ProviderProfile,
    RankedCandidate,
    ScoreComponent,
)
from carematch.matching.ages import children_age_ranges
from carematch.matching.budget import find_best_rate_match, format_budget_overlap_summary
from carematch.matching.distance import distance_between_addresses, max_travel_distance_to_km
from carematch.matching.filters import (
    COMPATIBLE_CONTRACTS,
    MatchContext,
    build_elimination_chain,
    run_elimination_chain,
)
from carematch.matching.schedule import calculate_schedule_overlap, format_schedule_overlap_summary

logger = logging.getLogger(__name__)

NEUTRAL = 0.5


def _component(config: ScoringConfig, criterion: str, raw: float, details: str) -> ScoreComponent:
    weight = config.weights[criterion]
    raw = max(0.0, min(1.0, raw))
    return ScoreComponent(
        raw=raw, weight=weight, weighted_contribution=raw * weight, details=details
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Job fit
# ---------------------------------------------------------------------------


def _age_range_score(ctx: MatchContext) -> ScoreComponent:
    ranges = ctx.child_ranges
    accepted = ctx.provider.age_ranges
    if not ranges:
        return _component(ctx.config, "age_range", 1.0, "No children in scope")
    if not accepted:
        return _component(ctx.config, "age_range", NEUTRAL, "Provider did not list age ranges")

    matched = [r for r in ranges if r in accepted]
    summary = f"{len(matched)}/{len(ranges)} age ranges"
    if len(matched) == len(ranges):
        return _component(ctx.config, "age_range", 1.0, "All age ranges covered")
    if ranges[0] in accepted:
        return _component(ctx.config, "age_range", 0.72, f"Youngest child covered ({summary})")
    if matched:
        return _component(ctx.config, "age_range", 0.32, f"Partial coverage ({summary})")
    return _component(ctx.config, "age_range", 0.0, "No age range covered")


def _engagement_type_score(ctx: MatchContext) -> ScoreComponent:
    wanted = ctx.household.engagement_type
    offered = ctx.provider.engagement_types
    if wanted is None:
        return _component(ctx.config, "engagement_type", 1.0, "Household did not specify")
    if not offered:
        return _component(ctx.config, "engagement_type", NEUTRAL, "Provider did not specify")
    if wanted in offered:
        return _component(ctx.config, "engagement_type", 1.0, f"Works as {wanted.value}")
    return _component(ctx.config, "engagement_type", 0.0, f"Does not work as {wanted.value}")


def _contract_type_score(ctx: MatchContext) -> ScoreComponent:
    wanted = ctx.household.contract_type
    offered = ctx.provider.contract_types
    if wanted is None:
        return _component(ctx.config, "contract_type", 1.0, "Household did not specify")
    if not offered:
        return _component(ctx.config, "contract_type", NEUTRAL, "Provider did not specify")
    if wanted in offered:
        return _component(ctx.config, "contract_type", 1.0, f"Exact match: {wanted.value}")
    if COMPATIBLE_CONTRACTS.get(wanted, frozenset()) & offered:
        return _component(ctx.config, "contract_type", 0.5, "Compatible contract type")
    return _component(ctx.config, "contract_type", 0.0, f"Does not accept {wanted.value}")


def _activities_score(ctx: MatchContext) -> ScoreComponent:
    expected = ctx.household.domestic_help_expected
    if not expected:
        return _component(ctx.config, "activities", 1.0, "Household did not specify activities")

    count = len(expected & ctx.provider.accepted_activities)
    if count >= 5:
        raw = 1.0
    elif count >= 3:
        raw = 2 / 3
    elif count >= 1:
        raw = 1 / 3
    else:
        raw = 0.0
    return _component(ctx.config, "activities", raw, f"{count} activities in common")


def _schedule_score(ctx: MatchContext) -> ScoreComponent:
    if ctx.provider.availability is None:
        return _component(ctx.config, "schedule", 1.0, "Provider did not share availability")
    result = ctx.schedule
    return _component(
        ctx.config,
        "schedule",
        result.overlap_percentage / 100,
        format_schedule_overlap_summary(result),
    )


def _children_count_score(ctx: MatchContext) -> ScoreComponent:
    limit = ctx.provider.max_children
    n = ctx.number_of_children
    if limit is None:
        return _component(ctx.config, "children_count", 1.0, "Provider did not set a limit")
    if limit > n:
        return _component(ctx.config, "children_count", 1.0, f"{n} children, limit {limit}")
    if limit == n:
        return _component(ctx.config, "children_count", 0.6, f"At the limit ({n} children)")
    return _component(ctx.config, "children_count", 0.0, f"Over the limit ({n} > {limit})")


# ---------------------------------------------------------------------------
# Logistics
# ---------------------------------------------------------------------------


def _distance_score(ctx: MatchContext) -> ScoreComponent:
    if ctx.distance_km is None:
        return _component(ctx.config, "distance", NEUTRAL, "Coordinates not available")

    ratio = ctx.distance_km / ctx.travel_radius_km
    if ratio <= 0.5:
        raw = 1.0
    elif ratio <= 1.0:
        # 1.0 at half the radius, 0.4 at the edge
        raw = 1.0 - (ratio - 0.5) * 1.2
    else:
        raw = 0.0
    details = f"{ctx.distance_km:.1f} km, {round_half_up(ratio * 100)}% of travel radius"
    return _component(ctx.config, "distance", raw, details)


def _budget_score(ctx: MatchContext) -> ScoreComponent:
    match = ctx.rate_match
    return _component(
        ctx.config,
        "budget",
        match.result.overlap_percentage / 100,
        format_budget_overlap_summary(match.result, match.rate_type or "monthly"),
    )


# ---------------------------------------------------------------------------
# Trust
# ---------------------------------------------------------------------------


def _experience_score(ctx: MatchContext) -> ScoreComponent:
    years = ctx.provider.experience_years
    if years is None:
        return _component(ctx.config, "experience", NEUTRAL, "Experience not informed")
    full = ctx.config.full_experience_years
    return _component(
        ctx.config, "experience", min(max(years, 0), full) / full, f"{max(years, 0)} years"
    )


def _certifications_score(ctx: MatchContext) -> ScoreComponent:
    count = len(ctx.provider.certifications)
    full = ctx.config.full_certifications
    return _component(
        ctx.config, "certifications", min(count, full) / full, f"{count} certifications"
    )


def _verification_score(ctx: MatchContext) -> ScoreComponent:
    p = ctx.provider
    flags = (p.document_validated, p.identity_validated, p.background_check_validated)
    if all(flag is None for flag in flags):
        return _component(ctx.config, "verification", NEUTRAL, "Verification status unknown")

    expires = p.document_expires_at
    document = bool(p.document_validated) and (expires is None or expires >= ctx.now.date())
    if document and p.identity_validated and p.background_check_validated:
        return _component(ctx.config, "verification", 1.0, "Document, identity and background check")
    if document and p.identity_validated:
        return _component(ctx.config, "verification", 0.5, "Document and identity")
    return _component(ctx.config, "verification", 0.0, "Not verified")


def _reputation_score(ctx: MatchContext) -> ScoreComponent:
    """Average rating pulled towards neutral until enough reviews accumulate."""
    count = ctx.provider.review_count or 0
    avg = ctx.provider.average_rating
    if count <= 0 or avg is None:
        return _component(ctx.config, "reputation", NEUTRAL, "No reviews yet")

    confidence = count / (count + ctx.config.review_prior_count)
    raw = NEUTRAL * (1 - confidence) + (avg / 5) * confidence
    return _component(ctx.config, "reputation", raw, f"{avg:.1f} stars, {count} reviews")


def _recency_score(ctx: MatchContext) -> ScoreComponent:
    last_active = ctx.provider.last_active_at
    if last_active is None:
        return _component(ctx.config, "recency", NEUTRAL, "Last activity unknown")

    cfg = ctx.config
    days = (_as_utc(ctx.now) - _as_utc(last_active)).total_seconds() / 86400
    if days <= cfg.recency_full_days:
        raw = 1.0
    elif days >= cfg.recency_floor_days:
        raw = cfg.recency_floor
    else:
        span = max(cfg.recency_floor_days - cfg.recency_full_days, 1)
        progress = (days - cfg.recency_full_days) / span
        raw = 1.0 - progress * (1.0 - cfg.recency_floor)
    return _component(ctx.config, "recency", raw, f"Active {max(days, 0):.0f} days ago")


# Job-fit criteria; their subtotal breaks ties on equal scores.
FIT_CRITERIA = (
    "age_range",
    "engagement_type",
    "contract_type",
    "activities",
    "schedule",
    "children_count",
)


_CRITERIA = (
    ("age_range", _age_range_score),
    ("engagement_type", _engagement_type_score),
    ("contract_type", _contract_type_score),
    ("activities", _activities_score),
    ("schedule", _schedule_score),
    ("children_count", _children_count_score),
    ("distance", _distance_score),
    ("budget", _budget_score),
    ("experience", _experience_score),
    ("certifications", _certifications_score),
    ("verification", _verification_score),
    ("reputation", _reputation_score),
    ("recency", _recency_score),
)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def build_context(
    job: JobRequirements,
    household: HouseholdProfile,
    children: Sequence[ChildProfile],
    provider: ProviderProfile,
    config: ScoringConfig,
    now: datetime,
) -> MatchContext:
    """Derive distance, schedule and budget once for both phases."""
    number_of_children = household.number_of_children
    if number_of_children is None:
        number_of_children = len(children)
    return MatchContext(
        job=job,
        household=household,
        children=tuple(children),
        provider=provider,
        config=config,
        now=now,
        child_ranges=children_age_ranges(children, now.date()),
        number_of_children=number_of_children,
        distance_km=distance_between_addresses(provider.address, household.address),
        travel_radius_km=max_travel_distance_to_km(provider.max_travel_distance),
        schedule=calculate_schedule_overlap(household.schedule, provider.availability),
        rate_match=find_best_rate_match(household.budget, provider.rates),
    )


def score_match(
    job: JobRequirements,
    household: HouseholdProfile,
    children: Sequence[ChildProfile],
    provider: ProviderProfile,
    config: ScoringConfig | None = None,
    now: datetime | None = None,
) -> MatchResult:
    """Score one provider against one request.

    Args:
        job: The open request and its mandatory requirements.
        household: The requesting household.
        children: Children in scope for the job.
        provider: The candidate.
        config: Weight table and thresholds; defaults to ScoringConfig().
        now: Reference time for ages, document expiry and recency. Read once
            from the clock when omitted.

    Returns:
        MatchResult with the 0-100 score, eligibility and per-criterion breakdown.
    """
    config = config or ScoringConfig()
    now = now or datetime.now(timezone.utc)
    ctx = build_context(job, household, children, provider, config, now)

    reasons = run_elimination_chain(ctx, build_elimination_chain(config))
    breakdown = {name: fn(ctx) for name, fn in _CRITERIA}
    total = sum(c.weighted_contribution for c in breakdown.values())

    return MatchResult(
        score=max(0, min(100, round_half_up(total))),
        is_eligible=not reasons,
        elimination_reasons=tuple(reasons),
        breakdown=breakdown,
        distance_km=ctx.distance_km,
    )


def _rank_key(candidate: RankedCandidate) -> tuple[float, ...]:
    breakdown = candidate.result.breakdown
    last_active = candidate.provider.last_active_at
    return (
        candidate.result.score,
        sum(breakdown[name].weighted_contribution for name in FIT_CRITERIA),
        breakdown["reputation"].weighted_contribution,
        breakdown["verification"].weighted_contribution,
        _as_utc(last_active).timestamp() if last_active else 0.0,
    )


def rank_candidates(
    job: JobRequirements,
    household: HouseholdProfile,
    children: Sequence[ChildProfile],
    providers: Iterable[ProviderProfile],
    limit: int = 20,
    min_score: int = 0,
    config: ScoringConfig | None = None,
    now: datetime | None = None,
) -> list[RankedCandidate]:
    """Score a candidate pool and return the best eligible matches, best first.

    Candidates must be eligible and score strictly above ``min_score``. Ties
    are broken by the job-fit subtotal, reputation, verification, then most
    recent activity.
    """
    config = config or ScoringConfig()
    now = now or datetime.now(timezone.utc)

    scored = [
        RankedCandidate(
            provider=p, result=score_match(job, household, children, p, config, now)
        )
        for p in providers
    ]
    eligible = [c for c in scored if c.result.is_eligible and c.result.score > min_score]
    eligible.sort(key=_rank_key, reverse=True)
    logger.debug(
        "rank_candidates: %d scored, %d eligible above %d, returning up to %d",
        len(scored), len(eligible), min_score, limit,
    )
    return eligible[:limit]
