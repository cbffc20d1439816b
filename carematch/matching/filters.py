"""Elimination chain: hard filters evaluated before scoring.

Every filter runs (no short-circuit) so that all blocking issues can be
shown at once. A filter only eliminates on present, conflicting data;
unknown values pass.

Filter order:
  1. AgeRangeFilter            - every child's bracket covered
  2. CapacityFilter            - number of children within provider limit
  3. SpecialNeedsFilter        - experience and categories, when required
  4. MandatoryRequirementsFilter - non-smoker, driver license, tagged qualifications
  5. EngagementTypeFilter
  6. ContractTypeFilter
  7. PetFilter
  8. DistanceFilter            - beyond travel radius times tolerance
  9. AvailabilityFilter        - no common hours at all
 10. BudgetFilter              - only when budget_is_eliminatory is set
"""

import logging
from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from carematch.core.config import ScoringConfig
from carematch.core.schemas import (
    AgeRange,
    ChildProfile,
    ContractType,
    HouseholdProfile,
    JobRequirements,
    PetComfort,
    ProviderProfile,
    Requirement,
    SpecialNeed,
)
from carematch.matching.budget import BudgetStatus, RateMatch
from carematch.matching.schedule import ScheduleOverlapResult

logger = logging.getLogger(__name__)

# Contract types a household accepts in place of the one it asked for.
COMPATIBLE_CONTRACTS: dict[ContractType, frozenset[ContractType]] = {
    ContractType.AUTONOMA: frozenset({ContractType.PJ}),
    ContractType.PJ: frozenset({ContractType.AUTONOMA}),
}


class MatchContext(BaseModel):
    """Inputs of one scoring call plus the values derived from them once."""

    model_config = ConfigDict(frozen=True)

    job: JobRequirements
    household: HouseholdProfile
    children: tuple[ChildProfile, ...]
    provider: ProviderProfile
    config: ScoringConfig
    now: datetime
    child_ranges: tuple[AgeRange, ...]
    number_of_children: int
    distance_km: float | None
    travel_radius_km: float
    schedule: ScheduleOverlapResult
    rate_match: RateMatch


# A filter takes the context and returns the reasons it eliminates the candidate.
Filter = Callable[[MatchContext], list[str]]


class AgeRangeFilter:
    """Provider must have experience with every child's age bracket."""

    def __call__(self, ctx: MatchContext) -> list[str]:
        accepted = ctx.provider.age_ranges
        if not accepted or not ctx.child_ranges:
            return []
        missing = [r for r in dict.fromkeys(ctx.child_ranges) if r not in accepted]
        if not missing:
            return []
        names = ", ".join(r.value for r in missing)
        return [f"Provider has no experience with age range: {names}"]


class CapacityFilter:
    def __call__(self, ctx: MatchContext) -> list[str]:
        limit = ctx.provider.max_children
        if limit is None or ctx.number_of_children <= limit:
            return []
        return [
            f"Household has {ctx.number_of_children} children, "
            f"provider accepts up to {limit}"
        ]


class SpecialNeedsFilter:
    """Checked only when a child has special needs and the job requires the experience."""

    def __call__(self, ctx: MatchContext) -> list[str]:
        needing = [c for c in ctx.children if c.has_special_needs]
        required = Requirement.SPECIAL_NEEDS_EXPERIENCE.value in ctx.job.mandatory_requirements
        if not needing or not required:
            return []

        experience = ctx.provider.has_special_needs_experience
        if experience is None:
            return []
        if not experience:
            return ["Household requires special needs experience"]

        specialties = ctx.provider.special_needs_specialties
        if SpecialNeed.OTHER in specialties:
            return []
        categories = {need for c in needing for need in c.special_needs}
        unmatched = sorted(
            n.value for n in categories if n is not SpecialNeed.OTHER and n not in specialties
        )
        if not unmatched:
            return []
        return [f"Provider has no experience with: {', '.join(unmatched)}"]


class MandatoryRequirementsFilter:
    """Known flags map to provider booleans; any other tag must be a certification or activity."""

    def __call__(self, ctx: MatchContext) -> list[str]:
        provider = ctx.provider
        qualifications = {c.value for c in provider.certifications} | set(
            provider.accepted_activities
        )
        reasons: list[str] = []
        for tag in sorted(ctx.job.mandatory_requirements):
            if tag == Requirement.NON_SMOKER.value:
                if provider.is_smoker:
                    reasons.append("Household requires a non-smoker")
            elif tag == Requirement.DRIVER_LICENSE.value:
                if provider.has_driver_license is False:
                    reasons.append("Household requires a driver license")
            elif tag == Requirement.SPECIAL_NEEDS_EXPERIENCE.value:
                continue
            elif tag not in qualifications:
                reasons.append(f"Provider lacks required qualification: {tag}")
        return reasons


class EngagementTypeFilter:
    def __call__(self, ctx: MatchContext) -> list[str]:
        wanted = ctx.household.engagement_type
        offered = ctx.provider.engagement_types
        if wanted is None or not offered or wanted in offered:
            return []
        return [f"Provider does not work as {wanted.value}"]


class ContractTypeFilter:
    def __call__(self, ctx: MatchContext) -> list[str]:
        wanted = ctx.household.contract_type
        offered = ctx.provider.contract_types
        if wanted is None or not offered:
            return []
        acceptable = {wanted} | COMPATIBLE_CONTRACTS.get(wanted, frozenset())
        if acceptable & offered:
            return []
        return [f"Provider does not accept {wanted.value} contracts"]


class PetFilter:
    def __call__(self, ctx: MatchContext) -> list[str]:
        if ctx.household.has_pets and ctx.provider.comfortable_with_pets is PetComfort.NO:
            return ["Household has pets and provider is not comfortable with animals"]
        return []


class DistanceFilter:
    def __call__(self, ctx: MatchContext) -> list[str]:
        if ctx.distance_km is None:
            return []
        if ctx.distance_km <= ctx.travel_radius_km * ctx.config.distance_tolerance:
            return []
        return [
            f"Distance ({ctx.distance_km:.1f} km) exceeds provider travel radius "
            f"({ctx.travel_radius_km:g} km)"
        ]


class AvailabilityFilter:
    """Eliminates only when both schedules are known and share no minute."""

    def __call__(self, ctx: MatchContext) -> list[str]:
        if ctx.household.schedule is None or ctx.provider.availability is None:
            return []
        if ctx.schedule.total_needed_minutes == 0 or ctx.schedule.total_overlap_minutes > 0:
            return []
        return ["No availability in common between household and provider"]


class BudgetFilter:
    def __call__(self, ctx: MatchContext) -> list[str]:
        result = ctx.rate_match.result
        if result.status is not BudgetStatus.NO_MATCH:
            return []
        return [
            f"Provider {ctx.rate_match.rate_type} rate is "
            f"{result.difference_percentage}% above budget"
        ]


def build_elimination_chain(config: ScoringConfig) -> list[Filter]:
    """Build the filter chain for a scoring config."""
    filters: list[Filter] = [
        AgeRangeFilter(),
        CapacityFilter(),
        SpecialNeedsFilter(),
        MandatoryRequirementsFilter(),
        EngagementTypeFilter(),
        ContractTypeFilter(),
        PetFilter(),
        DistanceFilter(),
        AvailabilityFilter(),
    ]
    if config.budget_is_eliminatory:
        filters.append(BudgetFilter())
    return filters


def run_elimination_chain(ctx: MatchContext, filters: list[Filter]) -> list[str]:
    """Apply every filter in order and collect all elimination reasons."""
    reasons: list[str] = []
    for f in filters:
        found = f(ctx)
        if found:
            logger.debug(
                "%s: eliminated provider %d (%d reasons)",
                type(f).__name__, ctx.provider.id, len(found),
            )
            reasons.extend(found)
    return reasons
