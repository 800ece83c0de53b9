"""
Unit tests for pipeline monitoring
==================================

Tests for pipeline_monitoring.py including:
- StageMetrics computed properties
- PipelineMonitor stage tracking and thread safety
- MonitoredStage context manager
- Throughput metrics of a run
"""

import pytest
import threading
import time
from unittest.mock import Mock, patch

import psutil

from base_classes import Metrics
from pipeline_monitoring import (
    METRICS_THRESHOLD_MS, MonitoredStage, PipelineMonitor, StageMetrics, compute_metrics
)


class TestStageMetrics:
    """Test StageMetrics dataclass and computed properties"""

    def test_stage_metrics_creation(self):
        """Test basic StageMetrics creation"""
        metrics = StageMetrics(stage_name="parsing", start_time=10.0, items_processed=100)

        assert metrics.stage_name == "parsing"
        assert metrics.items_processed == 100
        assert metrics.errors == 0
        assert metrics.end_time is None

    def test_stage_metrics_duration_ongoing(self):
        """Test duration calculation for ongoing stage"""
        metrics = StageMetrics(stage_name="test", start_time=time.perf_counter() - 5.0)

        assert 4.8 <= metrics.duration <= 5.2

    def test_stage_metrics_duration_completed(self):
        """Test duration calculation for completed stage"""
        metrics = StageMetrics(stage_name="test", start_time=100.0, end_time=103.0)

        assert metrics.duration == 3.0
        assert metrics.duration_ms == 3000.0

    def test_throughput_items_per_sec(self):
        """Test items per second throughput calculation"""
        metrics = StageMetrics(stage_name="test", start_time=100.0, end_time=104.0, items_processed=200)

        assert metrics.throughput_items_per_sec == 50.0

    def test_zero_duration_throughput(self):
        """Test throughput calculation with zero duration"""
        metrics = StageMetrics(stage_name="test", start_time=100.0, end_time=100.0, items_processed=10)

        assert metrics.throughput_items_per_sec == 0.0


class TestComputeMetrics:
    """Throughput of a run"""

    def test_fast_run_has_no_metrics(self):
        assert compute_metrics(METRICS_THRESHOLD_MS, files=10, lines=100) is None
        assert compute_metrics(5.0, files=10, lines=100) is None

    def test_slow_run_metrics(self):
        assert compute_metrics(2000.0, files=10, lines=1001) == Metrics(files_per_sec=5, lines_per_sec=500)


class TestPipelineMonitor:
    """Test PipelineMonitor core functionality"""

    @pytest.fixture
    def monitor(self):
        return PipelineMonitor()

    def test_monitor_initialization(self, monitor):
        assert monitor.stage_metrics == {}
        assert monitor.peak_memory == 0
        assert monitor.get_summary() == {}

    def test_stage_start_and_end(self, monitor):
        stage = monitor.stage_start("parsing")
        assert stage.memory_start > 0
        assert stage.end_time is None

        finished = monitor.stage_end("parsing")
        assert finished is stage
        assert finished.end_time is not None
        assert finished.duration >= 0
        assert monitor.peak_memory >= stage.memory_start

    def test_update_stage_progress(self, monitor):
        monitor.stage_start("parsing")

        monitor.update_stage_progress("parsing", items=50, bytes_count=25000)
        monitor.update_stage_progress("parsing", items=30, bytes_count=15000)

        stage = monitor.stage_metrics["parsing"]
        assert stage.items_processed == 80
        assert stage.bytes_processed == 40000

    def test_update_unknown_stage_is_ignored(self, monitor):
        monitor.update_stage_progress("missing", items=1)
        monitor.record_error("missing")
        assert monitor.stage_metrics == {}

    def test_update_stage_progress_thread_safety(self, monitor):
        monitor.stage_start("parsing")

        def worker():
            for _ in range(100):
                monitor.update_stage_progress("parsing", items=1, bytes_count=1024)

        threads = [threading.Thread(target=worker) for _ in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stage = monitor.stage_metrics["parsing"]
        assert stage.items_processed == 300
        assert stage.bytes_processed == 300 * 1024

    def test_record_error(self, monitor):
        monitor.stage_start("parsing")
        monitor.record_error("parsing")
        assert monitor.stage_metrics["parsing"].errors == 1

    def test_get_summary(self, monitor):
        monitor.stage_start("parsing")
        monitor.update_stage_progress("parsing", items=3, bytes_count=30)
        monitor.stage_end("parsing")

        summary = monitor.get_summary()["parsing"]
        assert summary['items'] == 3
        assert summary['bytes'] == 30
        assert summary['errors'] == 0
        assert summary['duration_ms'] >= 0

    def test_memory_read_failure(self, monitor):
        with patch.object(monitor, '_process') as process:
            process.memory_info.side_effect = psutil.AccessDenied()
            stage = monitor.stage_start("parsing")
        assert stage.memory_start == 0


class TestMonitoredStage:
    """MonitoredStage context manager"""

    def test_context_manager(self):
        monitor = PipelineMonitor()
        with monitor.stage("parsing") as stage:
            assert isinstance(stage, MonitoredStage)
            stage.update_progress(items=2)

        metrics = monitor.stage_metrics["parsing"]
        assert metrics.items_processed == 2
        assert metrics.end_time is not None
        assert metrics.errors == 0

    def test_exception_is_recorded_and_propagated(self):
        monitor = PipelineMonitor()
        with pytest.raises(ValueError):
            with monitor.stage("parsing"):
                raise ValueError("boom")

        metrics = monitor.stage_metrics["parsing"]
        assert metrics.errors == 1
        assert metrics.end_time is not None
