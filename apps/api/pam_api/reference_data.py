"""Static schedules a child's checklist is generated from.

Sources: Australian National Immunisation Program, Services Australia and state
registries of births, and Department of Health developmental milestones. Bump
``REFERENCE_TABLES_VERSION`` whenever an entry is added, removed or re-dated;
already materialized checklist items are never rewritten.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .schemas import Priority

REFERENCE_TABLES_VERSION = "2024.1"


@dataclass(frozen=True)
class ImmunisationEntry:
    id: str
    title: str
    description: str
    age_in_weeks: int
    is_required: bool
    vaccines: Tuple[str, ...]


@dataclass(frozen=True)
class RegistrationTask:
    id: str
    title: str
    description: str
    days_after_birth: int
    priority: Priority
    requirements: Tuple[str, ...]
    links: Dict[str, str] = field(default_factory=dict)
    estimated_time: Optional[str] = None


@dataclass(frozen=True)
class MilestoneEntry:
    id: str
    title: str
    description: str
    age_in_months: int
    is_optional: bool
    milestone_type: str


@dataclass(frozen=True)
class CheckupEntry:
    title: str
    description: str
    weeks: Optional[int] = None
    months: Optional[int] = None

    @property
    def id(self) -> str:
        return f"{self.weeks}w" if self.weeks is not None else f"{self.months}m"


_ROUTINE_VACCINES = (
    "Diphtheria, tetanus, pertussis (whooping cough)",
    "Haemophilus influenzae type b (Hib)",
    "Hepatitis B",
    "Poliomyelitis (polio)",
    "Pneumococcal",
)

IMMUNISATION_SCHEDULE: Tuple[ImmunisationEntry, ...] = (
    ImmunisationEntry(
        id="birth-hepb",
        title="Birth Immunisations",
        description="Hepatitis B vaccine - first dose",
        age_in_weeks=0,
        is_required=True,
        vaccines=("Hepatitis B",),
    ),
    ImmunisationEntry(
        id="6-weeks",
        title="6 Week Immunisations",
        description="First round of routine immunisations",
        age_in_weeks=6,
        is_required=True,
        vaccines=_ROUTINE_VACCINES + ("Rotavirus",),
    ),
    ImmunisationEntry(
        id="4-months",
        title="4 Month Immunisations",
        description="Second round of routine immunisations",
        age_in_weeks=16,
        is_required=True,
        vaccines=_ROUTINE_VACCINES + ("Rotavirus",),
    ),
    ImmunisationEntry(
        id="6-months",
        title="6 Month Immunisations",
        description="Third round of routine immunisations",
        age_in_weeks=24,
        is_required=True,
        vaccines=_ROUTINE_VACCINES,
    ),
    ImmunisationEntry(
        id="12-months",
        title="12 Month Immunisations",
        description="Fourth round including MMR vaccine",
        age_in_weeks=52,
        is_required=True,
        vaccines=(
            "Haemophilus influenzae type b (Hib)",
            "Measles, mumps, rubella (MMR)",
            "Meningococcal ACWY",
            "Pneumococcal",
        ),
    ),
    ImmunisationEntry(
        id="18-months",
        title="18 Month Immunisations",
        description="Fifth round of routine immunisations",
        age_in_weeks=78,
        is_required=True,
        vaccines=(
            "Diphtheria, tetanus, pertussis (whooping cough)",
            "Haemophilus influenzae type b (Hib)",
            "Measles, mumps, rubella (MMR)",
            "Varicella (chickenpox)",
        ),
    ),
    ImmunisationEntry(
        id="2-years-flu",
        title="Annual Influenza Vaccine (2+ years)",
        description="Annual influenza vaccination recommended",
        age_in_weeks=104,
        is_required=False,
        vaccines=("Influenza",),
    ),
)

REGISTRATION_TASKS: Tuple[RegistrationTask, ...] = (
    RegistrationTask(
        id="birth-certificate",
        title="Register Birth Certificate",
        description="Register your baby's birth and obtain birth certificate",
        days_after_birth=60,
        priority=Priority.HIGH,
        estimated_time="15-30 minutes online",
        requirements=("Hospital birth notification", "Parent identification", "Proof of address"),
        links={
            "NSW": "https://www.nsw.gov.au/topics/births-and-certificates/register-a-birth",
            "VIC": "https://www.bdm.vic.gov.au/births/register-a-birth",
            "QLD": "https://www.qld.gov.au/law/births-deaths-marriages-and-divorces/births/registering-a-birth",
            "WA": "https://www.wa.gov.au/service/community-services/births-deaths-and-marriages/register-birth",
            "SA": "https://www.sa.gov.au/topics/family-and-community/births-and-certificates/register-a-birth",
            "TAS": "https://www.justice.tas.gov.au/bdm/births/register_a_birth",
            "ACT": "https://www.accesscanberra.act.gov.au/app/answers/detail/a_id/1314",
            "NT": "https://nt.gov.au/law/bdm/births/register-a-birth",
        },
    ),
    RegistrationTask(
        id="medicare-card",
        title="Add Baby to Medicare",
        description="Add your baby to your Medicare card or apply for their own",
        days_after_birth=28,
        priority=Priority.HIGH,
        estimated_time="10-15 minutes online",
        requirements=(
            "Birth certificate or hospital birth notification",
            "Medicare card",
            "Proof of identity",
        ),
        links={"ALL": "https://www.servicesaustralia.gov.au/how-to-enrol-and-get-started-with-medicare"},
    ),
    RegistrationTask(
        id="centrelink-baby-bonus",
        title="Apply for Family Tax Benefit",
        description="Apply for Family Tax Benefit and other Centrelink payments",
        days_after_birth=1,
        priority=Priority.HIGH,
        estimated_time="20-30 minutes online",
        requirements=(
            "Birth certificate or hospital birth notification",
            "Tax File Numbers for both parents",
            "Income details",
            "Bank details",
        ),
        links={"ALL": "https://www.servicesaustralia.gov.au/family-tax-benefit"},
    ),
    RegistrationTask(
        id="child-care-subsidy",
        title="Apply for Child Care Subsidy",
        description="Apply for Child Care Subsidy if planning to use childcare",
        days_after_birth=30,
        priority=Priority.MEDIUM,
        estimated_time="15-20 minutes online",
        requirements=(
            "Customer Reference Number (CRN)",
            "Child's details",
            "Income estimate",
            "Childcare provider details",
        ),
        links={"ALL": "https://www.servicesaustralia.gov.au/child-care-subsidy"},
    ),
    RegistrationTask(
        id="tax-file-number",
        title="Apply for Child's Tax File Number",
        description="Apply for your child's Tax File Number for future financial needs",
        days_after_birth=90,
        priority=Priority.LOW,
        estimated_time="10 minutes online",
        requirements=("Birth certificate", "Parent identification", "Proof of address"),
        links={
            "ALL": "https://www.ato.gov.au/individuals-and-families/tax-file-number/apply-for-a-tfn/babies-and-children-under-16"
        },
    ),
    RegistrationTask(
        id="passport",
        title="Apply for Child Passport",
        description="Apply for your child's first Australian passport if planning to travel",
        days_after_birth=180,
        priority=Priority.LOW,
        estimated_time="30-45 minutes",
        requirements=(
            "Birth certificate",
            "Citizenship certificate (if applicable)",
            "Parent identification",
            "Passport photos",
            "Consent from both parents",
        ),
        links={"ALL": "https://www.passports.gov.au/getting-passport-how-it-works/documents-you-need/children"},
    ),
)

DEVELOPMENTAL_MILESTONES: Tuple[MilestoneEntry, ...] = (
    MilestoneEntry("2m-smile", "2 Month Check: Social Smile", "Baby should be smiling in response to your smile", 2, False, "social"),
    MilestoneEntry("2m-head-control", "2 Month Check: Head Control", "Baby can hold head up when on tummy for short periods", 2, False, "physical"),
    MilestoneEntry("4m-rolling", "4 Month Check: Rolling Over", "Baby may start rolling from tummy to back", 4, True, "physical"),
    MilestoneEntry("4m-laughing", "4 Month Check: Laughing", "Baby laughs and shows joy during play", 4, False, "social"),
    MilestoneEntry("6m-sitting", "6 Month Check: Sitting with Support", "Baby can sit with support and good head control", 6, False, "physical"),
    MilestoneEntry("6m-solids", "6 Month Check: Ready for Solids", "Baby shows signs of readiness for solid foods", 6, False, "physical"),
    MilestoneEntry("9m-crawling", "9 Month Check: Crawling", "Baby crawls or moves around to explore", 9, True, "physical"),
    MilestoneEntry("9m-babbling", "9 Month Check: Babbling", 'Baby babbles with different sounds like "ba-ba", "da-da"', 9, False, "communication"),
    MilestoneEntry("12m-walking", "12 Month Check: First Steps", "Baby may take first independent steps", 12, True, "physical"),
    MilestoneEntry("12m-first-words", "12 Month Check: First Words", 'Baby says first meaningful words like "mama", "dada"', 12, False, "communication"),
    MilestoneEntry("18m-walking-steady", "18 Month Check: Steady Walking", "Child walks steadily without support", 18, False, "physical"),
    MilestoneEntry("18m-vocabulary", "18 Month Check: Growing Vocabulary", "Child uses 10-20 words regularly", 18, False, "communication"),
    MilestoneEntry("24m-running", "2 Year Check: Running and Jumping", "Child can run and may attempt jumping", 24, False, "physical"),
    MilestoneEntry("24m-sentences", "2 Year Check: Two-Word Sentences", "Child combines words into simple sentences", 24, False, "communication"),
    MilestoneEntry("36m-toilet-training", "3 Year Check: Toilet Training", "Child shows readiness for toilet training", 36, True, "physical"),
    MilestoneEntry("36m-conversations", "3 Year Check: Simple Conversations", "Child can have simple back-and-forth conversations", 36, False, "communication"),
)

HEALTH_CHECKUPS: Tuple[CheckupEntry, ...] = (
    CheckupEntry("2 Week Health Check", "First routine health check with GP or nurse", weeks=2),
    CheckupEntry("6 Week Health Check", "Health check before first immunisations", weeks=6),
    CheckupEntry("4 Month Health Check", "Routine health and development check", months=4),
    CheckupEntry("6 Month Health Check", "Health check and discussion about starting solids", months=6),
    CheckupEntry("12 Month Health Check", "Annual health check and development assessment", months=12),
    CheckupEntry("18 Month Health Check", "Health check and development milestone review", months=18),
    CheckupEntry("2 Year Health Check", "Comprehensive health and development assessment", months=24),
    CheckupEntry("3 Year Health Check", "Pre-school health check and development review", months=36),
)


@dataclass(frozen=True)
class ReferenceTables:
    immunisations: Tuple[ImmunisationEntry, ...] = IMMUNISATION_SCHEDULE
    registrations: Tuple[RegistrationTask, ...] = REGISTRATION_TASKS
    milestones: Tuple[MilestoneEntry, ...] = DEVELOPMENTAL_MILESTONES
    checkups: Tuple[CheckupEntry, ...] = HEALTH_CHECKUPS
    version: str = REFERENCE_TABLES_VERSION

    def __len__(self) -> int:
        return len(self.immunisations) + len(self.registrations) + len(self.milestones) + len(self.checkups)


DEFAULT_TABLES = ReferenceTables()
