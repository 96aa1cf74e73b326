"""Alert store tests (statements compiled for PostgreSQL, sessions mocked)"""
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from netmon_agent.database.models import Alert
from netmon_agent.database.store import AlertStore, _jsonable
from netmon_agent.parsers.alert_parser import AlertRecord
from netmon_agent.utils.exceptions import StoreError


def make_record(problem_id="12345", embedding=None):
    return AlertRecord(
        problem_id=problem_id,
        timestamp="2024-01-15T10:30:00+00:00",
        status="PROBLEM",
        severity="HIGH",
        host="Router-01",
        alert_type="Interface down",
        description="Interface GigabitEthernet0/0/1 is down",
        interface="GigabitEthernet0/0/1",
        duration_seconds=8100,
        embedding=embedding,
    )


def compile_pg(statement):
    return statement.compile(dialect=postgresql.dialect())


@pytest.fixture
def session():
    db = MagicMock()
    db.__enter__.return_value = db
    db.__exit__.return_value = False
    return db


@pytest.fixture
def session_factory(session):
    return MagicMock(return_value=session)


@pytest.fixture
def store(session_factory):
    return AlertStore(session_factory)


class TestHelpers:

    def test_row_from_record_parses_timestamp(self, store):
        row = store._row_from_record(make_record(embedding=[0.1, 0.2]))

        assert row["timestamp"] == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert row["embedding"] == [0.1, 0.2]
        assert row["problem_id"] == "12345"

    def test_jsonable(self):
        assert _jsonable(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)) == "2024-01-15T10:30:00+00:00"
        assert _jsonable(date(2024, 1, 15)) == "2024-01-15"
        assert _jsonable(Decimal("1.5")) == 1.5
        assert isinstance(_jsonable(Decimal("2")), float)
        assert _jsonable("Router-01") == "Router-01"
        assert _jsonable(None) is None


class TestInsertBatch:

    def test_statement_skips_conflicting_problem_ids(self, store):
        sql = str(compile_pg(store.insert_statement([make_record()])))

        assert "ON CONFLICT (problem_id) DO NOTHING" in sql
        assert "RETURNING alerts.problem_id" in sql

    def test_returns_only_inserted_ids(self, store, session):
        session.execute.return_value = [("12345",)]

        inserted = store.insert_batch([make_record("12345"), make_record("12346")])

        assert inserted == ["12345"]
        session.commit.assert_called_once()

    def test_empty_batch_does_not_open_session(self, store, session_factory):
        assert store.insert_batch([]) == []
        session_factory.assert_not_called()

    def test_database_error_becomes_store_error(self, store, session):
        session.execute.side_effect = OperationalError("INSERT", {}, Exception("server closed the connection"))

        with pytest.raises(StoreError):
            store.insert_batch([make_record()])


class TestSimilaritySearch:

    def test_statement_filters_strictly_above_threshold(self):
        compiled = compile_pg(AlertStore.similarity_statement([0.1] * 3, 0.7, 10))
        sql = str(compiled)

        assert "<=>" in sql
        assert "IS NOT NULL" in sql
        assert " > " in sql
        assert ">=" not in sql
        assert 0.7 in compiled.params.values()
        assert 10 in compiled.params.values()

    def test_results_carry_float_similarity(self, store, session):
        alert = Alert(
            id=1,
            problem_id="12345",
            host="Router-01",
            status="PROBLEM",
            timestamp=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        )
        session.execute.return_value.all.return_value = [(alert, Decimal("0.92"))]

        results = store.similarity_search([0.1] * 3, 0.7, 10)

        assert len(results) == 1
        assert results[0]["problem_id"] == "12345"
        assert results[0]["timestamp"] == "2024-01-15T10:30:00+00:00"
        assert results[0]["similarity"] == 0.92
        assert isinstance(results[0]["similarity"], float)
        assert "embedding" not in results[0]

    def test_database_error_becomes_store_error(self, store, session):
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("timeout"))

        with pytest.raises(StoreError):
            store.similarity_search([0.1] * 3)


class TestExecuteReadonly:

    def test_rows_are_bounded_and_json_safe(self, store, session):
        result = session.connection.return_value.exec_driver_sql.return_value
        result.mappings.return_value.fetchmany.return_value = [
            {
                "host": "Router-01",
                "last_seen": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
                "avg_duration": Decimal("8100.0"),
                "embedding": [0.1, 0.2],
            }
        ]

        rows = store.execute_readonly("SELECT * FROM alerts", limit=100)

        assert rows == [{
            "host": "Router-01",
            "last_seen": "2024-01-15T10:30:00+00:00",
            "avg_duration": 8100.0,
        }]
        result.mappings.return_value.fetchmany.assert_called_once_with(100)
        session.connection.return_value.exec_driver_sql.assert_called_once_with(
            "SELECT * FROM alerts", execution_options={"no_parameters": True}
        )
        session.rollback.assert_called_once()
        session.commit.assert_not_called()

    def test_database_error_becomes_store_error(self, store, session):
        session.connection.return_value.exec_driver_sql.side_effect = OperationalError(
            "SELECT hostname FROM alerts", {}, Exception('column "hostname" does not exist')
        )

        with pytest.raises(StoreError):
            store.execute_readonly("SELECT hostname FROM alerts")
