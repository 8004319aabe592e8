"""
Triage models: scoring inputs, the decision record and the weight table.

A Decision is computed once per submission at intake and stored with the
report. TriageConfig carries every weight and threshold the engine uses,
so tuning happens here and nowhere else.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import CORROBORATION_WINDOW_HOURS

# ===========================================
# Enums
# ===========================================


class ReportCategory(str, Enum):
    """Known abuse categories, most severe first."""

    CHILD_SAFETY = "child_safety"
    FRAUD = "fraud"
    VIOLENCE = "violence"
    HATE_SPEECH = "hate_speech"
    HARASSMENT = "harassment"
    INAPPROPRIATE = "inappropriate"
    MISINFORMATION = "misinformation"
    COPYRIGHT = "copyright"
    SPAM = "spam"
    OTHER = "other"


class Priority(str, Enum):
    """Handling tier derived from the triage score."""

    CRITICAL = "critical"  # >= 85
    HIGH = "high"  # >= 60
    MEDIUM = "medium"  # >= 35
    LOW = "low"


class AutoAction(str, Enum):
    """Moderation effects applied without human review."""

    TEMPORARY_HIDE = "temporary_hide"


# ===========================================
# Scoring inputs
# ===========================================


class ReporterHistory(BaseModel):
    """Outcome counts of everything a reporter has filed before."""

    total_reports: int = 0
    valid_reports: int = 0  # resolved in the reporter's favor
    false_reports: int = 0  # rejected

    @property
    def valid_rate(self) -> float:
        """Share of valid reports; 0.5 (neutral) for an unknown reporter."""
        total = max(self.total_reports, 0)
        if total == 0:
            return 0.5
        return min(max(self.valid_reports, 0) / total, 1.0)


class TargetHistory(BaseModel):
    """Violation record of the reported content's author."""

    violation_count: int = 0
    reported_count: int = 0
    last_violation: Optional[datetime] = None
    warning_count: Optional[int] = None


class PreviousReport(BaseModel):
    """A prior report against the same target."""

    id: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None


# ===========================================
# Outputs
# ===========================================


class Feedback(BaseModel):
    """What the reporter is told, plus any automatic action to take."""

    model_config = ConfigDict(frozen=True)

    message: str
    estimated_time: str
    auto_action: Optional[AutoAction] = None


class Decision(BaseModel):
    """Result of triaging one submission. Immutable once computed."""

    model_config = ConfigDict(frozen=True)

    score: float
    priority: Priority
    false_report_probability: float = Field(..., ge=0.0, le=1.0)
    feedback: Feedback
    config_version: str


# ===========================================
# Configuration
# ===========================================


class FeedbackTemplate(BaseModel):
    """Reporter-facing copy for one outcome."""

    model_config = ConfigDict(frozen=True)

    message: str
    estimated_time: str


DEFAULT_CATEGORY_SCORES: dict[str, float] = {
    ReportCategory.CHILD_SAFETY.value: 100,
    ReportCategory.FRAUD.value: 95,
    ReportCategory.VIOLENCE.value: 90,
    ReportCategory.HATE_SPEECH.value: 85,
    ReportCategory.HARASSMENT.value: 75,
    ReportCategory.INAPPROPRIATE.value: 60,
    ReportCategory.MISINFORMATION.value: 50,
    ReportCategory.COPYRIGHT.value: 40,
    ReportCategory.SPAM.value: 30,
    ReportCategory.OTHER.value: 20,
}

DEFAULT_FEEDBACK: dict[Priority, FeedbackTemplate] = {
    Priority.CRITICAL: FeedbackTemplate(
        message="This report has been marked as urgent and will be prioritized for handling.",
        estimated_time="within 24 hours",
    ),
    Priority.HIGH: FeedbackTemplate(
        message="Thank you for your report. We will review it and act quickly.",
        estimated_time="1-2 business days",
    ),
    Priority.MEDIUM: FeedbackTemplate(
        message="Your report has been received and will be reviewed in order.",
        estimated_time="3-5 business days",
    ),
    Priority.LOW: FeedbackTemplate(
        message="Your report has been received. We will review its content.",
        estimated_time="5-7 business days",
    ),
}

CAUTIOUS_FEEDBACK = FeedbackTemplate(
    message="Your report has been received. We will review its content carefully.",
    estimated_time="5-7 business days",
)


class TriageConfig(BaseModel):
    """
    Versioned weight table and thresholds for the triage engine.

    Ordered pairs are checked top to bottom and the first match wins, so
    penalties and recency bonuses never stack.
    """

    model_config = ConfigDict(frozen=True)

    version: str = "1"

    # Step 1: category base score
    category_scores: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_CATEGORY_SCORES))
    fallback_score: float = 20

    # Step 2: reporter trust
    trust_floor: float = 0.5  # multiplier = trust_floor + valid_rate
    false_report_min_sample: int = 5
    false_report_penalties: tuple[tuple[float, float], ...] = ((0.5, 0.3), (0.3, 0.6))

    # Step 3: target history
    violation_points: float = 10
    violation_cap: float = 30
    heavily_reported_threshold: int = 5
    heavily_reported_bonus: float = 15
    recent_violation_bonuses: tuple[tuple[float, float], ...] = ((7, 20), (30, 10))

    # Step 4: corroboration burst
    corroboration_window_hours: float = CORROBORATION_WINDOW_HOURS
    corroboration_points: float = 15
    corroboration_cap: float = 45

    # Step 5: tiers
    tier_thresholds: tuple[tuple[float, Priority], ...] = (
        (85, Priority.CRITICAL),
        (60, Priority.HIGH),
        (35, Priority.MEDIUM),
    )

    # Steps 6-7: false-report override and feedback
    false_report_override_threshold: float = 0.7
    auto_hide_categories: frozenset[str] = frozenset(
        {
            ReportCategory.VIOLENCE.value,
            ReportCategory.CHILD_SAFETY.value,
            ReportCategory.FRAUD.value,
        }
    )
    feedback: dict[Priority, FeedbackTemplate] = Field(
        default_factory=lambda: dict(DEFAULT_FEEDBACK)
    )
    cautious_feedback: FeedbackTemplate = CAUTIOUS_FEEDBACK
