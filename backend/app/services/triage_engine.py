"""
Report triage engine.

Turns a new abuse report plus its context into a Decision:
- Category base score
- Reporter trust adjustment (valid rate, false-report penalty)
- Target history adjustment (violations, report volume, recency)
- Corroboration burst (other reports on the same target in the last 24h)
- Tier classification and false-report override
- Reporter feedback and auto-action

Pure and synchronous: no I/O, and the only ambient input is the clock,
which callers can pin with `now`. Every call site (intake, admin preview)
goes through this module so the weights cannot drift apart.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from app.models.triage import (
    AutoAction,
    Decision,
    Feedback,
    PreviousReport,
    Priority,
    ReporterHistory,
    TargetHistory,
    TriageConfig,
)

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so comparisons never raise."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TriageEngine:
    """Scores reports against one TriageConfig."""

    def __init__(self, config: Optional[TriageConfig] = None) -> None:
        self.config = config or TriageConfig()

    # =========================================================================
    # Public API
    # =========================================================================

    def compute_decision(
        self,
        category: str,
        reporter_history: Optional[ReporterHistory],
        target_history: Optional[TargetHistory],
        previous_reports: Iterable[PreviousReport],
        now: Optional[datetime] = None,
    ) -> Decision:
        """Compute score, tier, false-report probability and feedback."""
        now = _as_utc(now) if now else datetime.now(timezone.utc)

        score = self.base_score(category)
        score, false_report_probability = self._apply_reporter_trust(score, reporter_history)
        score += self._target_history_bonus(target_history, now)
        score += self._corroboration_bonus(previous_reports, now)

        priority = self.classify(score)
        if (
            false_report_probability > self.config.false_report_override_threshold
            and priority != Priority.CRITICAL
        ):
            priority = Priority.LOW

        return Decision(
            score=score,
            priority=priority,
            false_report_probability=false_report_probability,
            feedback=self.build_feedback(priority, category, false_report_probability),
            config_version=self.config.version,
        )

    def base_score(self, category: str) -> float:
        """Category weight, or the fallback for unlisted categories."""
        key = (category or "").strip().lower()
        return float(self.config.category_scores.get(key, self.config.fallback_score))

    def classify(self, score: float) -> Priority:
        """Map a final score onto a tier."""
        for threshold, priority in self.config.tier_thresholds:
            if score >= threshold:
                return priority
        return Priority.LOW

    def build_feedback(
        self, priority: Priority, category: str, false_report_probability: float
    ) -> Feedback:
        """Reporter-facing message, estimate and optional auto-action."""
        if false_report_probability > self.config.false_report_override_threshold:
            cautious = self.config.cautious_feedback
            return Feedback(message=cautious.message, estimated_time=cautious.estimated_time)

        template = self.config.feedback[priority]
        auto_action = None
        if (
            priority == Priority.CRITICAL
            and (category or "").strip().lower() in self.config.auto_hide_categories
        ):
            auto_action = AutoAction.TEMPORARY_HIDE

        return Feedback(
            message=template.message,
            estimated_time=template.estimated_time,
            auto_action=auto_action,
        )

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _apply_reporter_trust(
        self, score: float, history: Optional[ReporterHistory]
    ) -> tuple[float, float]:
        if history is None:
            return score, 0.0

        score *= self.config.trust_floor + history.valid_rate

        total = max(history.total_reports, 0)
        if total < self.config.false_report_min_sample:
            return score, 0.0

        probability = min(max(history.false_reports, 0) / total, 1.0)
        for threshold, multiplier in self.config.false_report_penalties:
            if probability > threshold:
                score *= multiplier
                break

        return score, probability

    def _target_history_bonus(self, history: Optional[TargetHistory], now: datetime) -> float:
        if history is None:
            return 0.0

        bonus = min(
            max(history.violation_count, 0) * self.config.violation_points,
            self.config.violation_cap,
        )
        if history.reported_count > self.config.heavily_reported_threshold:
            bonus += self.config.heavily_reported_bonus

        if history.last_violation is not None:
            days_since = (now - _as_utc(history.last_violation)).total_seconds() / SECONDS_PER_DAY
            for max_days, points in self.config.recent_violation_bonuses:
                if days_since < max_days:
                    bonus += points
                    break

        return bonus

    def _corroboration_bonus(
        self, previous_reports: Iterable[PreviousReport], now: datetime
    ) -> float:
        window = self.config.corroboration_window_hours
        recent = 0
        for report in previous_reports or ():
            if report.created_at is None:
                continue
            hours_since = (now - _as_utc(report.created_at)).total_seconds() / SECONDS_PER_HOUR
            if hours_since < window:
                recent += 1

        return min(recent * self.config.corroboration_points, self.config.corroboration_cap)


_default_engine = TriageEngine()


def compute_decision(
    category: str,
    reporter_history: Optional[ReporterHistory],
    target_history: Optional[TargetHistory],
    previous_reports: Iterable[PreviousReport],
    now: Optional[datetime] = None,
) -> Decision:
    """Triage with the default weight table."""
    return _default_engine.compute_decision(
        category, reporter_history, target_history, previous_reports, now=now
    )


def calculate_false_report_probability(total_reports: int, false_reports: int) -> float:
    """Raw false-report rate for admin display (no minimum sample)."""
    if total_reports <= 0:
        return 0.0
    return min(max(false_reports, 0) / total_reports, 1.0)


def is_suspicious_reporter(history: ReporterHistory, threshold: float = 0.7) -> bool:
    """True when most of a reporter's reports were rejected."""
    rate = calculate_false_report_probability(history.total_reports, history.false_reports)
    return rate > threshold
