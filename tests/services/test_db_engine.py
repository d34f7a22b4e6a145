"""Tests for the module-level engine, session factory and session_scope."""

import pytest
from sqlalchemy import select

from payroll_kernel.db import engine as db_engine
from payroll_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from payroll_kernel.models import EmployeeProfile


@pytest.fixture
def initialized():
    reset_engine()
    init_engine_from_url("sqlite://")
    create_tables()
    yield
    drop_tables()
    reset_engine()


class TestEngineLifecycle:

    def test_uninitialized(self):
        reset_engine()

        with pytest.raises(RuntimeError):
            get_session()
        with pytest.raises(RuntimeError):
            get_session_factory()

    def test_reset_forgets_engine(self, initialized):
        reset_engine()

        assert db_engine._engine is None
        with pytest.raises(RuntimeError):
            db_engine.get_engine()

        init_engine_from_url("sqlite://")
        create_tables()


class TestSessionScope:

    def test_commits_on_success(self, initialized):
        with session_scope() as session:
            session.add(EmployeeProfile(employee_id="E1", salary_type="daily"))

        with session_scope() as session:
            found = session.execute(
                select(EmployeeProfile).where(EmployeeProfile.employee_id == "E1")
            ).scalar_one_or_none()
            assert found is not None

    def test_rolls_back_on_error(self, initialized):
        with pytest.raises(ValueError):
            with session_scope() as session:
                session.add(EmployeeProfile(employee_id="E2", salary_type="daily"))
                session.flush()
                raise ValueError("abort")

        with session_scope() as session:
            assert session.execute(select(EmployeeProfile)).first() is None

    def test_sessions_support_savepoints(self, initialized):
        session = get_session_factory()()
        try:
            savepoint = session.begin_nested()
            session.add(EmployeeProfile(employee_id="E3", salary_type="daily"))
            session.flush()
            savepoint.rollback()

            assert session.execute(select(EmployeeProfile)).first() is None
        finally:
            session.close()
