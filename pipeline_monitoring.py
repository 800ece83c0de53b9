"""
Pipeline Monitoring
===================

Stage timing, memory tracking and throughput metrics for the line
counting pipeline.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import psutil

from base_classes import Metrics

logger = logging.getLogger(__name__)

# Throughput is only meaningful once parsing took longer than this
METRICS_THRESHOLD_MS = 1000


@dataclass
class StageMetrics:
    """Metrics for a pipeline stage"""
    stage_name: str
    start_time: float
    end_time: Optional[float] = None
    items_processed: int = 0
    bytes_processed: int = 0
    errors: int = 0
    memory_start: int = 0
    memory_peak: int = 0

    @property
    def duration(self) -> float:
        if self.end_time:
            return self.end_time - self.start_time
        return time.perf_counter() - self.start_time

    @property
    def duration_ms(self) -> float:
        return self.duration * 1000

    @property
    def throughput_items_per_sec(self) -> float:
        if self.duration > 0:
            return self.items_processed / self.duration
        return 0.0


def compute_metrics(elapsed_ms: float, files: int, lines: int) -> Optional[Metrics]:
    """
    Files/sec and lines/sec of a run, or None when it took at most
    METRICS_THRESHOLD_MS milliseconds.
    """
    if elapsed_ms <= METRICS_THRESHOLD_MS:
        return None
    seconds = elapsed_ms / 1000
    return Metrics(files_per_sec=int(files / seconds), lines_per_sec=int(lines / seconds))


class PipelineMonitor:
    """Tracks the stages of a run"""

    def __init__(self):
        self.stage_metrics: Dict[str, StageMetrics] = {}
        self._lock = threading.Lock()
        self._process = psutil.Process()

    def _memory_used(self) -> int:
        try:
            return self._process.memory_info().rss
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            logger.debug(f"Cannot read process memory: {e}")
            return 0

    def stage_start(self, stage_name: str) -> StageMetrics:
        """Mark stage start"""
        memory = self._memory_used()
        stage = StageMetrics(
            stage_name=stage_name,
            start_time=time.perf_counter(),
            memory_start=memory,
            memory_peak=memory,
        )
        with self._lock:
            self.stage_metrics[stage_name] = stage
        return stage

    def stage_end(self, stage_name: str) -> StageMetrics:
        """Mark stage completion"""
        with self._lock:
            stage = self.stage_metrics[stage_name]
            stage.end_time = time.perf_counter()
            stage.memory_peak = max(stage.memory_peak, self._memory_used())
        logger.info(f"Stage {stage_name} finished in {stage.duration_ms:.0f}ms "
                    f"({stage.items_processed} items, {stage.errors} errors)")
        return stage

    def update_stage_progress(self, stage_name: str, items: int = 0, bytes_count: int = 0):
        """Update stage progress with thread safety"""
        with self._lock:
            stage = self.stage_metrics.get(stage_name)
            if stage is not None:
                stage.items_processed += items
                stage.bytes_processed += bytes_count

    def record_error(self, stage_name: str):
        with self._lock:
            stage = self.stage_metrics.get(stage_name)
            if stage is not None:
                stage.errors += 1

    def stage(self, stage_name: str) -> 'MonitoredStage':
        return MonitoredStage(self, stage_name)

    @property
    def peak_memory(self) -> int:
        return max((s.memory_peak for s in self.stage_metrics.values()), default=0)

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics for every stage"""
        return {
            name: {
                'duration_ms': round(stage.duration_ms, 1),
                'items': stage.items_processed,
                'bytes': stage.bytes_processed,
                'errors': stage.errors,
                'throughput': round(stage.throughput_items_per_sec, 1),
                'memory_peak': stage.memory_peak,
            }
            for name, stage in self.stage_metrics.items()
        }


class MonitoredStage:
    """Context manager for a monitored stage"""

    def __init__(self, monitor: PipelineMonitor, stage_name: str):
        self.monitor = monitor
        self.stage_name = stage_name
        self.metrics: Optional[StageMetrics] = None

    def __enter__(self):
        self.metrics = self.monitor.stage_start(self.stage_name)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.monitor.record_error(self.stage_name)
        self.monitor.stage_end(self.stage_name)
        return False

    def update_progress(self, items: int = 0, bytes_count: int = 0):
        self.monitor.update_stage_progress(self.stage_name, items, bytes_count)
