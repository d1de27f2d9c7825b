from unittest.mock import MagicMock

import pytest

from hbot_booking.monitoring.prometheus_metrics import REGISTRY
from hbot_booking.services.base import BaseService


class MeasuredService(BaseService):
    @BaseService.measure_operation("tests.succeed")
    def succeed(self):
        return "ok"

    @BaseService.measure_operation("tests.explode")
    def explode(self):
        raise KeyError("boom")


def _sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_measured_operation_is_counted_in_prometheus():
    labels = {"service": "MeasuredService", "operation": "tests.succeed", "status": "success"}
    before = _sample("hbot_service_operations_total", **labels)

    assert MeasuredService(MagicMock()).succeed() == "ok"

    assert _sample("hbot_service_operations_total", **labels) == before + 1


def test_measured_failure_is_counted_by_error_type():
    labels = {"service": "MeasuredService", "operation": "tests.explode", "error_type": "KeyError"}
    before = _sample("hbot_errors_total", **labels)

    with pytest.raises(KeyError):
        MeasuredService(MagicMock()).explode()

    assert _sample("hbot_errors_total", **labels) == before + 1


def test_service_keeps_no_in_process_metrics():
    service = MeasuredService(MagicMock())
    service.succeed()

    assert not hasattr(BaseService, "_class_metrics")
    assert not hasattr(service, "get_metrics")
