"""
Tests for shared infrastructure: logging, audit delivery, serialization
and the user principal.
"""

import json
import logging
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from examhub.common.audit import LoggingAuditSink, emit
from examhub.common.auth.user import User, UserRole
from examhub.common.exceptions import AlreadySubmitted
from examhub.common.logger import JsonFormatter, LoggerAdapter, log_execution_time
from examhub.common.serialization import serialize, to_camel


def test_json_formatter_merges_adapter_context():
    logger = logging.getLogger("examhub.tests.json")
    adapter = LoggerAdapter(logger, {"exam_id": "e1"}).with_context(student="s1")
    records = []

    class Capture(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = Capture()
    logger.addHandler(handler)
    try:
        adapter.warning("late start")
    finally:
        logger.removeHandler(handler)

    payload = json.loads(JsonFormatter().format(records[0]))
    assert payload["message"] == "late start"
    assert payload["level"] == "WARNING"
    assert payload["exam_id"] == "e1"
    assert payload["student"] == "s1"


@pytest.mark.asyncio
async def test_log_execution_time_reraises(caplog):
    @log_execution_time()
    async def failing():
        raise ValueError("nope")

    with caplog.at_level(logging.ERROR, logger="examhub"):
        with pytest.raises(ValueError):
            await failing()

    assert "failing failed after" in caplog.text


@pytest.mark.asyncio
async def test_log_execution_time_reports_domain_rejections_as_info(caplog):
    @log_execution_time()
    async def submit():
        raise AlreadySubmitted("e1", "s1")

    with caplog.at_level(logging.INFO, logger="examhub"):
        with pytest.raises(AlreadySubmitted):
            await submit()

    record = next(r for r in caplog.records if "submit rejected after" in r.getMessage())
    assert record.levelno == logging.INFO
    assert "already_submitted" in record.getMessage()
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


@pytest.mark.asyncio
async def test_failing_audit_sink_does_not_propagate(caplog):
    sink = AsyncMock()
    sink.record.side_effect = RuntimeError("sink down")

    with caplog.at_level(logging.WARNING, logger="examhub.audit"):
        await emit(sink, "exam.publish", "u1", exam_id="e1")

    sink.record.assert_awaited_once_with("exam.publish", "u1", exam_id="e1")
    assert "Audit sink failed for exam.publish" in caplog.text


@pytest.mark.asyncio
async def test_logging_audit_sink(caplog):
    with caplog.at_level(logging.INFO, logger="examhub.audit"):
        await LoggingAuditSink().record("exam.delete", None, exam_id="e1")

    record = caplog.records[-1]
    assert record.getMessage() == "exam.delete by system"
    assert record.data["exam_id"] == "e1"
    assert record.data["audit"] is True


def test_serialize_camel_case():
    data = {"student_email": "a@b.test", "submitted_at": datetime(2024, 1, 1), "role": UserRole.TEACHER}

    assert serialize(data, camel_case=True) == {
        "studentEmail": "a@b.test",
        "submittedAt": "2024-01-01T00:00:00",
        "role": "teacher",
    }
    assert to_camel("pool_question_ids") == "poolQuestionIds"


class TestUser:

    def test_email_is_normalized(self):
        assert User(id="1", email="  Ana@School.TEST ").email == "ana@school.test"

    def test_teacher_manages_only_own_resources(self):
        teacher = User(id="t1", email="t@x.test", role=UserRole.TEACHER)

        assert teacher.can_manage("t1")
        assert not teacher.can_manage("t2")
        assert not teacher.can_manage(None)

    def test_super_admin_is_a_capability(self):
        root = User(id="r", email="r@x.test", role="student", is_super_admin=True)

        assert root.is_admin
        assert not root.is_student
        assert root.can_manage("anyone")
