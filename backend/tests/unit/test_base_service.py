# backend/tests/unit/test_base_service.py
"""
Unit tests for BaseService transactions and operation metrics.

Run with: pytest backend/tests/unit/test_base_service.py -v
"""

from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from courtside.core.exceptions import ServiceException, SessionNotFoundException
from courtside.services import base as base_module
from courtside.services.base import BaseService


class ExampleService(BaseService):
    @BaseService.measure_operation("fast_operation")
    def fast_operation(self):
        return "success"

    @BaseService.measure_operation("failing_operation")
    def failing_operation(self):
        raise ValueError("This operation always fails")

    def nested_operation(self):
        with self.measure_operation_context("outer"):
            result = []
            for i in range(2):
                with self.measure_operation_context(f"inner_{i}"):
                    result.append(i)
            return result


class TestBaseServiceMetrics:
    @pytest.fixture(autouse=True)
    def clear_metrics(self):
        BaseService._class_metrics.clear()
        yield

    @pytest.fixture
    def mock_db(self):
        return Mock(spec=Session)

    @pytest.fixture
    def service(self, mock_db):
        return ExampleService(mock_db)

    def test_decorator_metrics_collection(self, service):
        assert service.get_metrics() == {}

        for _ in range(3):
            service.fast_operation()

        metrics = service.get_metrics()["fast_operation"]
        assert metrics["count"] == 3
        assert metrics["success_count"] == 3
        assert metrics["failure_count"] == 0
        assert metrics["success_rate"] == 1.0

    def test_failing_operation_metrics(self, service):
        for _ in range(2):
            with pytest.raises(ValueError):
                service.failing_operation()

        metrics = service.get_metrics()["failing_operation"]
        assert metrics["count"] == 2
        assert metrics["failure_count"] == 2
        assert metrics["success_rate"] == 0.0

    def test_context_manager_metrics(self, service):
        assert service.nested_operation() == [0, 1]

        assert set(service.get_metrics()) == {"outer", "inner_0", "inner_1"}

    def test_slow_operation_warning(self, service, caplog, monkeypatch):
        monkeypatch.setattr(base_module, "SLOW_OPERATION_SECONDS", -1.0)

        service.fast_operation()

        assert "Slow operation detected: fast_operation" in caplog.text

    def test_prometheus_failure_does_not_break_operation(self, service):
        with patch.object(
            base_module.prometheus_metrics,
            "record_service_operation",
            side_effect=RuntimeError("registry broken"),
        ):
            assert service.fast_operation() == "success"

    def test_reset_metrics(self, service):
        service.fast_operation()
        service.reset_metrics()

        assert service.get_metrics() == {}

    def test_metrics_are_per_class(self, mock_db):
        class OtherService(BaseService):
            @BaseService.measure_operation("fast_operation")
            def fast_operation(self):
                return "other"

        ExampleService(mock_db).fast_operation()

        assert OtherService(mock_db).get_metrics() == {}


class TestTransaction:
    @pytest.fixture
    def mock_db(self):
        return Mock(spec=Session)

    def test_commits_on_success(self, mock_db):
        service = ExampleService(mock_db)

        with service.transaction():
            pass

        mock_db.commit.assert_called_once()
        mock_db.rollback.assert_not_called()

    def test_database_error_becomes_service_exception(self, mock_db):
        service = ExampleService(mock_db)

        with pytest.raises(ServiceException, match="Database operation failed"):
            with service.transaction():
                raise OperationalError("UPDATE", {}, Exception("connection lost"))

        mock_db.rollback.assert_called_once()
        mock_db.commit.assert_not_called()

    def test_domain_errors_propagate_unchanged(self, mock_db):
        service = ExampleService(mock_db)

        with pytest.raises(SessionNotFoundException):
            with service.transaction():
                raise SessionNotFoundException("coach", "missing")

        mock_db.rollback.assert_called_once()
        mock_db.commit.assert_not_called()
