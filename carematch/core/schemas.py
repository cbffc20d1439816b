"""Core data models for the compatibility scoring engine.

All snapshots are frozen: the caller builds them from storage, the engine
only reads them. Absent optional data is ``None`` (or an empty set for tag
collections) and always means "unknown", never zero.
"""

from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class AgeRange(str, Enum):
    NEWBORN = "NEWBORN"
    BABY = "BABY"
    TODDLER = "TODDLER"
    PRESCHOOL = "PRESCHOOL"
    SCHOOL_AGE = "SCHOOL_AGE"
    TEENAGER = "TEENAGER"


class EngagementType(str, Enum):
    FOLGUISTA = "FOLGUISTA"
    DIARISTA = "DIARISTA"
    MENSALISTA = "MENSALISTA"


class ContractType(str, Enum):
    AUTONOMA = "AUTONOMA"
    PJ = "PJ"
    CLT = "CLT"


class PetComfort(str, Enum):
    YES_ANY = "YES_ANY"
    ONLY_SOME = "ONLY_SOME"
    NO = "NO"


class TravelRadius(str, Enum):
    UP_TO_5KM = "UP_TO_5KM"
    UP_TO_10KM = "UP_TO_10KM"
    UP_TO_15KM = "UP_TO_15KM"
    UP_TO_20KM = "UP_TO_20KM"
    UP_TO_30KM = "UP_TO_30KM"
    ENTIRE_CITY = "ENTIRE_CITY"


class Certification(str, Enum):
    FIRST_AID = "FIRST_AID"
    CPR = "CPR"
    CHILD_DEVELOPMENT = "CHILD_DEVELOPMENT"
    EARLY_EDUCATION = "EARLY_EDUCATION"
    NUTRITION = "NUTRITION"
    SPECIAL_NEEDS = "SPECIAL_NEEDS"
    MONTESSORI = "MONTESSORI"
    NURSING = "NURSING"


class SpecialNeed(str, Enum):
    AUTISM = "AUTISM"
    ADHD = "ADHD"
    DOWN_SYNDROME = "DOWN_SYNDROME"
    CEREBRAL_PALSY = "CEREBRAL_PALSY"
    PHYSICAL_DISABILITY = "PHYSICAL_DISABILITY"
    VISUAL_IMPAIRMENT = "VISUAL_IMPAIRMENT"
    HEARING_IMPAIRMENT = "HEARING_IMPAIRMENT"
    CHRONIC_ILLNESS = "CHRONIC_ILLNESS"
    FOOD_ALLERGIES = "FOOD_ALLERGIES"
    OTHER = "OTHER"


class Requirement(str, Enum):
    """Mandatory requirement tags checked against dedicated provider flags."""

    NON_SMOKER = "NON_SMOKER"
    DRIVER_LICENSE = "DRIVER_LICENSE"
    SPECIAL_NEEDS_EXPERIENCE = "SPECIAL_NEEDS_EXPERIENCE"


# ---------------------------------------------------------------------------
# Geography
# ---------------------------------------------------------------------------


class Coordinate(BaseModel):
    """A point on the globe in decimal degrees.

    Ranges are not validated: callers are expected to check them upstream.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class Address(BaseModel):
    """Address snapshot reduced to what matching needs."""

    model_config = ConfigDict(frozen=True)

    latitude: float | None = None
    longitude: float | None = None

    @property
    def coordinate(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------


class DayWindow(BaseModel):
    """One day of a weekly schedule. ``start < end``, no overnight wraparound."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    start: time | None = None
    end: time | None = None


class WeeklySchedule(BaseModel):
    model_config = ConfigDict(frozen=True)

    monday: DayWindow | None = None
    tuesday: DayWindow | None = None
    wednesday: DayWindow | None = None
    thursday: DayWindow | None = None
    friday: DayWindow | None = None
    saturday: DayWindow | None = None
    sunday: DayWindow | None = None

    def day(self, weekday: Weekday) -> DayWindow | None:
        return getattr(self, weekday.value)


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------


class BudgetRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float | None = None
    max: float | None = None


class BudgetCard(BaseModel):
    """Household budget per rate granularity."""

    model_config = ConfigDict(frozen=True)

    monthly: BudgetRange | None = None
    hourly: BudgetRange | None = None
    daily: BudgetRange | None = None


class RateCard(BaseModel):
    """Provider quoted rates per granularity."""

    model_config = ConfigDict(frozen=True)

    monthly: float | None = None
    hourly: float | None = None
    daily: float | None = None


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class ProviderProfile(BaseModel):
    """Caregiver snapshot scored against a request."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    experience_years: int | None = None
    age_ranges: frozenset[AgeRange] = frozenset()
    accepted_activities: frozenset[str] = frozenset()
    certifications: frozenset[Certification] = frozenset()
    engagement_types: frozenset[EngagementType] = frozenset()
    contract_types: frozenset[ContractType] = frozenset()
    rates: RateCard | None = None
    address: Address | None = None
    max_travel_distance: TravelRadius | None = None
    max_children: int | None = None
    comfortable_with_pets: PetComfort | None = None
    is_smoker: bool | None = None
    has_driver_license: bool | None = None
    has_special_needs_experience: bool | None = None
    special_needs_specialties: frozenset[SpecialNeed] = frozenset()
    document_validated: bool | None = None
    document_expires_at: date | None = None
    identity_validated: bool | None = None
    background_check_validated: bool | None = None
    average_rating: float | None = None
    review_count: int | None = None
    last_active_at: datetime | None = None
    availability: WeeklySchedule | None = None


class JobRequirements(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    mandatory_requirements: frozenset[str] = frozenset()
    children_ids: tuple[int, ...] = ()


class HouseholdProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    has_pets: bool = False
    number_of_children: int | None = None
    engagement_type: EngagementType | None = None
    contract_type: ContractType | None = None
    budget: BudgetCard | None = None
    domestic_help_expected: frozenset[str] = frozenset()
    address: Address | None = None
    schedule: WeeklySchedule | None = None


class ChildProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    birth_date: date | None = None
    expected_birth_date: date | None = None
    unborn: bool = False
    has_special_needs: bool = False
    special_needs: frozenset[SpecialNeed] = frozenset()
    special_needs_description: str | None = None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ScoreComponent(BaseModel):
    """One criterion of the breakdown. ``raw`` is in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    raw: float = Field(ge=0.0, le=1.0)
    weight: float
    weighted_contribution: float
    details: str = ""


class MatchResult(BaseModel):
    """Outcome of scoring one provider against one request.

    ``score`` is computed even when the candidate is ineligible; callers must
    not rank on it unless ``is_eligible`` is true.
    """

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    is_eligible: bool
    elimination_reasons: tuple[str, ...] = ()
    breakdown: dict[str, ScoreComponent] = Field(default_factory=dict)
    distance_km: float | None = None


class RankedCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: ProviderProfile
    result: MatchResult


class MatchSnapshot(BaseModel):
    """A request and a candidate pool, as read from a snapshot file."""

    model_config = ConfigDict(frozen=True)

    job: JobRequirements
    household: HouseholdProfile
    children: tuple[ChildProfile, ...] = ()
    providers: tuple[ProviderProfile, ...] = ()
