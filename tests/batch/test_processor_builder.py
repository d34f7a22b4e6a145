"""
Tests for build_bulk_processor.

Covers:
- Configured rates, worker count and database URL reach the processor
- The configured log level is applied
- The active configuration is loaded when none is passed
"""

import logging
from decimal import Decimal

import pytest
import yaml

from payroll_batch import BatchStatus, build_bulk_processor
from payroll_config.schema import EngineConfig
from payroll_kernel.db.engine import create_tables, get_engine, reset_engine, session_scope
from payroll_kernel.domain.dtos import AttendanceTotals, RateConfiguration
from payroll_kernel.logging_config import configure_logging, reset_logging
from payroll_kernel.models import EmployeeProfile
from payroll_kernel.services.audit_trail import AuditTrail


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides):
        fields = dict(
            config_id="builder-test",
            version=1,
            rates=RateConfiguration(overtime_multiplier=Decimal("2.0")),
            database_url=f"sqlite:///{tmp_path / 'payroll.db'}",
        )
        fields.update(overrides)
        return EngineConfig(**fields)

    return _make


@pytest.fixture
def built(attendance, clock):
    """Build processors against the module-level engine; cleaned up afterwards."""
    processors = []

    def _build(config=None):
        processor = build_bulk_processor(config=config, clock=clock, attendance_source=attendance)
        processors.append(processor)
        create_tables()
        return processor

    reset_engine()
    yield _build
    for processor in processors:
        processor.session.close()
    reset_engine()


def seed(attendance, *employee_ids):
    with session_scope() as session:
        for employee_id in employee_ids:
            session.add(EmployeeProfile(
                employee_id=employee_id, salary_type="daily", daily_salary=Decimal("300"),
            ))
    for employee_id in employee_ids:
        attendance.set_totals(employee_id, AttendanceTotals(
            worked_days=5, overtime_hours=Decimal("8"),
        ))


class TestConfiguredProcessor:

    def test_configured_rates_are_the_default(self, built, make_config, attendance, week, actor):
        processor = built(make_config())
        seed(attendance, "E1")

        result = processor.run(["E1"], week, None, actor)

        # 1500 base + 8h x (300 / 8 x 2.0)
        assert result.records[0].gross_pay == Decimal("2100.00")
        assert result.status is BatchStatus.COMPLETED

    def test_explicit_rates_win(self, built, make_config, attendance, week, rates, actor):
        processor = built(make_config())
        seed(attendance, "E1")

        result = processor.run(["E1"], week, rates, actor)

        assert result.records[0].gross_pay == Decimal("1950.00")

    def test_engine_uses_configured_url(self, built, make_config, tmp_path):
        built(make_config())

        assert get_engine().url.database == str(tmp_path / "payroll.db")

    def test_configured_worker_pool(
        self, built, make_config, attendance, week, actor, clock, captured_logs,
    ):
        processor = built(make_config(batch_max_workers=2))
        seed(attendance, "E1", "E2", "E3")

        result = processor.run(["E1", "E2", "E3"], week, None, actor)
        processor.session.commit()

        assert result.succeeded == 3
        started = [r for r in captured_logs() if r["message"] == "batch_started"]
        assert started[0]["max_workers"] == 2
        with session_scope() as session:
            assert AuditTrail(session, clock).validate_chain() is True


class TestConfiguredLogging:

    def test_log_level_applied(self, built, make_config):
        reset_logging()
        try:
            built(make_config(log_level="ERROR"))

            assert logging.getLogger("payroll_kernel").level == logging.ERROR
        finally:
            reset_logging()
            configure_logging(level=logging.DEBUG)


class TestActiveConfig:

    def test_loaded_when_not_given(self, built, tmp_path, monkeypatch, captured_logs):
        path = tmp_path / "active.yaml"
        path.write_text(yaml.safe_dump({
            "config_id": "from-env",
            "version": 4,
            "rates": {"overtime_multiplier": "1.5"},
            "database": {"url": f"sqlite:///{tmp_path / 'active.db'}"},
        }))
        monkeypatch.setenv("PAYROLL_CONFIG", str(path))
        monkeypatch.delenv("PAYROLL_DATABASE_URL", raising=False)

        built()

        configured = [r for r in captured_logs() if r["message"] == "bulk_processor_configured"]
        assert configured[0]["config_id"] == "from-env"
        assert configured[0]["config_version"] == 4
        assert get_engine().url.database == str(tmp_path / "active.db")
