"""
Exam service container.

Wires the exam services to one session factory, clock, random source and
audit sink. The application keeps a single container on ``app.state``.
"""

import random
from dataclasses import dataclass
from typing import Optional

from examhub.common.audit import AuditSink, LoggingAuditSink
from examhub.common.clock import Clock, SystemClock
from examhub.common.db.session import SessionFactory
from examhub.config import Settings, settings as default_settings
from examhub.domain.questions import AdaptivePolicy
from examhub.exams.analytics import AnalyticsAggregator
from examhub.exams.grading import GradingEngine
from examhub.exams.lifecycle import ExamLifecycle
from examhub.exams.publisher import AssignmentPublisher
from examhub.exams.session_service import ExamSession


@dataclass
class ExamServices:
    publisher: AssignmentPublisher
    session: ExamSession
    grading: GradingEngine
    lifecycle: ExamLifecycle
    analytics: AnalyticsAggregator


def build_services(
    session_factory: SessionFactory,
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
    audit: Optional[AuditSink] = None,
    config: Settings = default_settings
) -> ExamServices:
    """Create the exam services sharing the given collaborators."""
    clock = clock or SystemClock()
    rng = rng or random.Random()
    audit = audit or LoggingAuditSink()
    return ExamServices(
        publisher=AssignmentPublisher(session_factory, clock, rng, audit, config),
        session=ExamSession(session_factory, clock, rng),
        grading=GradingEngine(session_factory, clock, AdaptivePolicy.from_settings(config), audit),
        lifecycle=ExamLifecycle(session_factory, clock, audit, config),
        analytics=AnalyticsAggregator(session_factory, config),
    )
