"""Tests for store metrics."""

import pytest

from flatsocial import metrics
from flatsocial.io import ConflictError, InvalidValueError, NotFoundError, StorageError


def sample(name: str, labels: dict[str, str] | None = None) -> float:
    return metrics.registry.get_sample_value(name, labels or {}) or 0.0


@pytest.fixture(autouse=True)
def enable_metrics(mocker):
    mocker.patch.object(metrics.settings, "metrics_enabled", True)


class TestTrackOperation:
    """Tests for the track_operation context manager."""

    def test_success_is_counted(self):
        labels = {"operation": "sample_op_ok", "status": "success"}
        before = sample("flatsocial_store_operations_total", labels)

        with metrics.track_operation("sample_op_ok"):
            pass

        assert sample("flatsocial_store_operations_total", labels) == before + 1
        assert sample(
            "flatsocial_store_operation_duration_seconds_count", {"operation": "sample_op_ok"}
        ) >= 1

    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (ConflictError("taken"), "conflict"),
            (NotFoundError("missing"), "not_found"),
            (InvalidValueError("trailing comma"), "invalid"),
            (StorageError("disk"), "error"),
            (RuntimeError("boom"), "error"),
        ],
    )
    def test_failure_status_and_reraise(self, exc, status):
        operation = f"sample_op_{status}_{type(exc).__name__}"
        labels = {"operation": operation, "status": status}

        with pytest.raises(type(exc)):
            with metrics.track_operation(operation):
                raise exc

        assert sample("flatsocial_store_operations_total", labels) == 1

    def test_disabled_records_nothing(self, mocker):
        mocker.patch.object(metrics.settings, "metrics_enabled", False)

        with metrics.track_operation("sample_op_disabled"):
            pass

        assert sample(
            "flatsocial_store_operations_total",
            {"operation": "sample_op_disabled", "status": "success"},
        ) == 0


class TestStoreMetrics:
    """Tests for counters updated by the store."""

    def test_store_operations_are_tracked(self, store):
        labels = {"operation": "create_user", "status": "conflict"}
        before = sample("flatsocial_store_operations_total", labels)

        store.create_user("alice", "a")
        with pytest.raises(ConflictError):
            store.create_user("alice", "b")

        assert sample("flatsocial_store_operations_total", labels) == before + 1

    def test_allocations_are_counted(self, store):
        before = sample("flatsocial_ids_allocated_total", {"space": "nextPostId"})

        store.add_post(1, "hi")

        assert sample("flatsocial_ids_allocated_total", {"space": "nextPostId"}) == before + 1

    def test_malformed_records_are_counted(self, store, data_dir):
        before = sample("flatsocial_malformed_records_total", {"file": "likes.csv"})
        (data_dir / "likes.csv").write_text("junk\n1,1\n", encoding="utf-8")

        assert store.count_likes(1) == 1
        assert sample("flatsocial_malformed_records_total", {"file": "likes.csv"}) == before + 1


def test_generate_metrics_output():
    with metrics.track_operation("sample_op_output"):
        pass

    output = metrics.generate_metrics_output().decode("utf-8")

    assert "flatsocial_store_operations_total" in output
    assert 'operation="sample_op_output"' in output
