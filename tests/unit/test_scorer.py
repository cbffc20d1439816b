"""Tests for weighted compatibility scoring and candidate ranking."""

from datetime import date, datetime, timedelta, timezone

import pytest

from carematch.core.config import MAX_SCORES, MAX_TOTAL_SCORE, ScoringConfig
from carematch.core.schemas import (
    Address,
    AgeRange,
    BudgetCard,
    BudgetRange,
    Certification,
    ChildProfile,
    ContractType,
    DayWindow,
    EngagementType,
    HouseholdProfile,
    JobRequirements,
    MatchResult,
    PetComfort,
    ProviderProfile,
    RateCard,
    TravelRadius,
    WeeklySchedule,
)
from carematch.matching.scorer import rank_candidates, score_match

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
HOME = Address(latitude=-23.5505, longitude=-46.6333)
# ~5 km north of HOME
NEAR = Address(latitude=-23.5055, longitude=-46.6333)
# ~11 km north of HOME
EDGE = Address(latitude=-23.4505, longitude=-46.6333)

JOB = JobRequirements(id=1, children_ids=(1,))
TODDLER = ChildProfile(id=1, birth_date=date(2024, 6, 1))


def _window(start: str, end: str) -> DayWindow:
    return DayWindow(enabled=True, start=start, end=end)  # type: ignore[arg-type]


def _household(**overrides: object) -> HouseholdProfile:
    defaults: dict[str, object] = {
        "id": 1,
        "has_pets": False,
        "address": HOME,
        "budget": BudgetCard(monthly=BudgetRange(min=2000, max=3000)),
        "schedule": WeeklySchedule(
            monday=_window("08:00", "12:00"),
            wednesday=_window("08:00", "12:00"),
            friday=_window("08:00", "12:00"),
        ),
    }
    defaults.update(overrides)
    return HouseholdProfile(**defaults)  # type: ignore[arg-type]


def _provider(**overrides: object) -> ProviderProfile:
    morning = _window("07:00", "13:00")
    defaults: dict[str, object] = {
        "id": 10,
        "name": "Ana",
        "experience_years": 6,
        "age_ranges": {AgeRange.TODDLER, AgeRange.PRESCHOOL},
        "certifications": {
            Certification.FIRST_AID, Certification.CPR, Certification.CHILD_DEVELOPMENT,
        },
        "rates": RateCard(monthly=2500),
        "address": NEAR,
        "max_travel_distance": TravelRadius.UP_TO_10KM,
        "max_children": 3,
        "comfortable_with_pets": PetComfort.YES_ANY,
        "document_validated": True,
        "identity_validated": True,
        "background_check_validated": True,
        "average_rating": 4.9,
        "review_count": 20,
        "last_active_at": NOW - timedelta(days=1),
        "availability": WeeklySchedule(
            monday=morning, tuesday=morning, wednesday=morning,
            thursday=morning, friday=morning,
        ),
    }
    defaults.update(overrides)
    return ProviderProfile(**defaults)  # type: ignore[arg-type]


def _score(
    provider: ProviderProfile,
    household: HouseholdProfile | None = None,
    children: list[ChildProfile] | None = None,
    **kwargs: object,
) -> MatchResult:
    return score_match(
        JOB,
        household or _household(),
        children if children is not None else [TODDLER],
        provider,
        now=NOW,
        **kwargs,  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Weight table
# ---------------------------------------------------------------------------


class TestWeightTable:
    def test_max_scores_sum_to_total(self) -> None:
        assert sum(MAX_SCORES.values()) == MAX_TOTAL_SCORE

    def test_breakdown_covers_every_criterion(self) -> None:
        result = _score(_provider())
        assert set(result.breakdown) == set(MAX_SCORES)
        for name, component in result.breakdown.items():
            assert component.weight == MAX_SCORES[name]
            assert component.weighted_contribution == pytest.approx(
                component.raw * component.weight
            )

    def test_custom_weights_flow_through(self) -> None:
        weights = dict(MAX_SCORES, recency=0.0, distance=14.0)
        result = _score(_provider(), config=ScoringConfig(weights=weights))
        assert result.breakdown["recency"].weighted_contribution == 0.0
        assert result.breakdown["distance"].weight == 14.0


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------


class TestScoreMatch:
    def test_end_to_end_good_match(self) -> None:
        result = _score(_provider())
        assert result.is_eligible is True
        assert result.elimination_reasons == ()
        assert result.breakdown["schedule"].raw == 1.0
        assert result.breakdown["budget"].raw == 1.0
        assert result.breakdown["distance"].raw > 0.99
        assert result.distance_km == pytest.approx(5.0, abs=0.1)
        assert result.score >= 80

    def test_sparse_provider_is_neutral(self) -> None:
        result = _score(ProviderProfile(id=99))
        assert result.is_eligible is True
        assert result.breakdown["age_range"].raw == 0.5
        assert result.breakdown["schedule"].raw == 1.0
        assert result.breakdown["distance"].raw == 0.5
        assert result.breakdown["budget"].raw == 1.0
        assert result.breakdown["experience"].raw == 0.5
        assert result.breakdown["verification"].raw == 0.5
        assert result.breakdown["reputation"].raw == 0.5
        assert result.breakdown["recency"].raw == 0.5
        # 72.5 points, exact halves round up
        assert result.score == 73

    def test_ineligible_still_scored(self) -> None:
        result = _score(
            _provider(comfortable_with_pets=PetComfort.NO),
            household=_household(has_pets=True),
        )
        assert result.is_eligible is False
        assert len(result.elimination_reasons) == 1
        assert result.score >= 80

    def test_idempotent(self) -> None:
        provider = _provider()
        first = _score(provider)
        second = _score(provider)
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_score_bounds(self) -> None:
        worst = _provider(
            experience_years=-1,
            age_ranges={AgeRange.TEENAGER},
            certifications=set(),
            rates=RateCard(monthly=9000),
            address=Address(latitude=-22.9, longitude=-43.17),
            accepted_activities=set(),
            engagement_types={EngagementType.DIARISTA},
            contract_types={ContractType.CLT},
            max_children=0,
            document_validated=False,
            average_rating=1.0,
            review_count=50,
            last_active_at=NOW - timedelta(days=400),
            availability=WeeklySchedule(saturday=_window("08:00", "12:00")),
        )
        household = _household(
            engagement_type=EngagementType.MENSALISTA,
            contract_type=ContractType.AUTONOMA,
            domestic_help_expected={"COOKING"},
        )
        result = _score(worst, household=household)
        assert 0 <= result.score <= 100
        assert result.is_eligible is False
        assert len(result.elimination_reasons) >= 5

    def test_garbage_rating_does_not_raise(self) -> None:
        result = _score(_provider(average_rating=50.0))
        assert result.breakdown["reputation"].raw == 1.0

    def test_default_now(self) -> None:
        result = score_match(JOB, _household(), [TODDLER], _provider())
        assert 0 <= result.score <= 100

    def test_naive_and_aware_datetimes_mix(self) -> None:
        provider = _provider(last_active_at=datetime(2026, 10, 18, 12, 0))
        assert _score(provider).breakdown["recency"].raw == 1.0


# ---------------------------------------------------------------------------
# Individual criteria
# ---------------------------------------------------------------------------


class TestCriteria:
    def test_distance_tiers(self) -> None:
        at_edge = _score(_provider(address=EDGE, max_travel_distance=TravelRadius.UP_TO_15KM))
        assert 0.4 < at_edge.breakdown["distance"].raw < 1.0
        beyond = _score(_provider(address=EDGE))
        assert beyond.breakdown["distance"].raw == 0.0
        # Beyond the radius but inside the 1.2 tolerance: scored zero, still eligible
        assert beyond.is_eligible is True

    def test_schedule_partial(self) -> None:
        provider = _provider(
            availability=WeeklySchedule(
                monday=_window("08:00", "12:00"), wednesday=_window("08:00", "12:00"),
            )
        )
        assert _score(provider).breakdown["schedule"].raw == pytest.approx(0.67)

    def test_budget_over(self) -> None:
        result = _score(_provider(rates=RateCard(monthly=3500)))
        assert result.breakdown["budget"].raw == 0.0
        assert result.is_eligible is True

    def test_budget_eliminatory(self) -> None:
        result = _score(
            _provider(rates=RateCard(monthly=3500)),
            config=ScoringConfig(budget_is_eliminatory=True),
        )
        assert result.is_eligible is False

    def test_age_range_youngest_covered(self) -> None:
        children = [TODDLER, ChildProfile(id=2, birth_date=date(2012, 1, 1))]
        result = _score(_provider(), children=children)
        assert result.breakdown["age_range"].raw == 0.72
        assert result.is_eligible is False

    def test_age_range_no_children(self) -> None:
        assert _score(_provider(), children=[]).breakdown["age_range"].raw == 1.0

    def test_contract_compatible(self) -> None:
        result = _score(
            _provider(contract_types={ContractType.PJ}),
            household=_household(contract_type=ContractType.AUTONOMA),
        )
        assert result.breakdown["contract_type"].raw == 0.5
        assert result.is_eligible is True

    def test_activities_tiers(self) -> None:
        household = _household(
            domestic_help_expected={"COOKING", "BATHING", "READING", "HOMEWORK", "PLAYING"}
        )
        few = _score(_provider(accepted_activities={"COOKING"}), household=household)
        many = _score(
            _provider(accepted_activities={"COOKING", "BATHING", "READING"}), household=household
        )
        assert few.breakdown["activities"].raw == pytest.approx(1 / 3)
        assert many.breakdown["activities"].raw == pytest.approx(2 / 3)

    def test_children_at_capacity(self) -> None:
        assert _score(_provider(max_children=1)).breakdown["children_count"].raw == 0.6

    def test_experience_scales(self) -> None:
        assert _score(_provider(experience_years=2)).breakdown["experience"].raw == 0.4
        assert _score(_provider(experience_years=-1)).breakdown["experience"].raw == 0.0

    def test_expired_document_not_verified(self) -> None:
        result = _score(_provider(document_expires_at=date(2026, 1, 1)))
        assert result.breakdown["verification"].raw == 0.0

    def test_partial_verification(self) -> None:
        result = _score(_provider(background_check_validated=False))
        assert result.breakdown["verification"].raw == 0.5

    def test_unknown_verification_is_neutral(self) -> None:
        result = _score(
            _provider(
                document_validated=None, identity_validated=None, background_check_validated=None,
            )
        )
        assert result.breakdown["verification"].raw == 0.5

    def test_explicitly_unverified_scores_zero(self) -> None:
        result = _score(
            _provider(
                document_validated=False, identity_validated=False, background_check_validated=None,
            )
        )
        assert result.breakdown["verification"].raw == 0.0

    def test_reputation_few_reviews_pulled_to_neutral(self) -> None:
        one_bad = _score(_provider(average_rating=1.0, review_count=1))
        many_bad = _score(_provider(average_rating=1.0, review_count=100))
        none = _score(_provider(average_rating=None, review_count=0))
        assert none.breakdown["reputation"].raw == 0.5
        assert many_bad.breakdown["reputation"].raw < one_bad.breakdown["reputation"].raw < 0.5

    def test_recency_decays_to_floor(self) -> None:
        recent = _score(_provider(last_active_at=NOW - timedelta(days=3)))
        stale = _score(_provider(last_active_at=NOW - timedelta(days=45)))
        gone = _score(_provider(last_active_at=NOW - timedelta(days=400)))
        assert recent.breakdown["recency"].raw == 1.0
        assert 0.2 < stale.breakdown["recency"].raw < 1.0
        assert gone.breakdown["recency"].raw == 0.2
        assert gone.is_eligible is True


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


class TestRankCandidates:
    def test_excludes_ineligible(self) -> None:
        household = _household(has_pets=True)
        providers = [
            _provider(id=1),
            _provider(id=2, comfortable_with_pets=PetComfort.NO),
        ]
        ranked = rank_candidates(JOB, household, [TODDLER], providers, now=NOW)
        assert [c.provider.id for c in ranked] == [1]

    def test_sorted_descending(self) -> None:
        providers = [
            ProviderProfile(id=1),
            _provider(id=2),
            _provider(id=3, rates=RateCard(monthly=3500)),
        ]
        ranked = rank_candidates(JOB, _household(), [TODDLER], providers, now=NOW)
        assert [c.provider.id for c in ranked] == [2, 3, 1]
        scores = [c.result.score for c in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_limit(self) -> None:
        providers = [_provider(id=i) for i in range(5)]
        ranked = rank_candidates(JOB, _household(), [TODDLER], providers, limit=2, now=NOW)
        assert len(ranked) == 2

    def test_min_score_is_strict(self) -> None:
        providers = [ProviderProfile(id=1)]
        assert rank_candidates(JOB, _household(), [TODDLER], providers, min_score=73, now=NOW) == []
        assert len(
            rank_candidates(JOB, _household(), [TODDLER], providers, min_score=72, now=NOW)
        ) == 1

    def test_ties_broken_by_job_fit_first(self) -> None:
        # Same total: 1.8 fit + 6 experience against 3 fit + 4.8 experience
        providers = [
            _provider(id=1, max_children=1, experience_years=6),
            _provider(id=2, max_children=3, experience_years=4),
        ]
        ranked = rank_candidates(JOB, _household(), [TODDLER], providers, now=NOW)
        assert ranked[0].result.score == ranked[1].result.score
        assert [c.provider.id for c in ranked] == [2, 1]

    def test_ties_broken_by_reputation(self) -> None:
        providers = [
            _provider(id=1, average_rating=4.85),
            _provider(id=2, average_rating=4.9),
        ]
        ranked = rank_candidates(JOB, _household(), [TODDLER], providers, now=NOW)
        assert ranked[0].result.score == ranked[1].result.score
        assert [c.provider.id for c in ranked] == [2, 1]

    def test_ties_broken_by_recent_activity(self) -> None:
        providers = [
            _provider(id=1, last_active_at=NOW - timedelta(days=3)),
            _provider(id=2, last_active_at=NOW - timedelta(days=1)),
        ]
        ranked = rank_candidates(JOB, _household(), [TODDLER], providers, now=NOW)
        assert [c.provider.id for c in ranked] == [2, 1]

    def test_empty_pool(self) -> None:
        assert rank_candidates(JOB, _household(), [TODDLER], [], now=NOW) == []
