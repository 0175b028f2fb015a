"""
Lightweight in-process timing for recommendation and feedback operations.
"""

import time
import threading
from datetime import datetime, timezone
from typing import Dict, Any, Optional
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)

MAX_RECORDED_ERRORS = 100


def _empty_metrics() -> Dict[str, Any]:
    return {
        'operations': {},
        'errors': [],
        'last_error_time': None
    }


class PerformanceMonitor:
    """Collects call counts, durations and outcomes per named operation."""

    def __init__(self):
        self._lock = threading.Lock()
        self.metrics = _empty_metrics()

    @contextmanager
    def measure_time(self, operation: str):
        """Context manager that logs how long a block took"""
        start = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start
            logger.debug(
                f"Operation timing: {operation}",
                extra={
                    'operation': operation,
                    'duration': duration
                }
            )

    @contextmanager
    def monitor_operation(self, operation_name: str):
        """Record duration and success/error outcome of the wrapped block"""
        start = time.perf_counter()
        result = 'success'
        try:
            yield
        except Exception as e:
            result = 'error'
            self.record_error(operation_name, str(e))
            raise
        finally:
            duration = time.perf_counter() - start
            with self._lock:
                metrics = self.metrics['operations'].setdefault(operation_name, {
                    'count': 0,
                    'success': 0,
                    'error': 0,
                    'total_duration': 0.0,
                    'max_duration': 0.0,
                    'last_call_time': None
                })
                metrics['count'] += 1
                metrics[result] += 1
                metrics['total_duration'] += duration
                metrics['max_duration'] = max(metrics['max_duration'], duration)
                metrics['last_call_time'] = datetime.now(timezone.utc).isoformat()
            logger.debug(
                f"Operation {operation_name} finished",
                extra={'operation': operation_name, 'duration': duration, 'result': result}
            )

    def record_error(self, operation: str, error_message: str):
        """Record an error occurrence"""
        error_time = datetime.now(timezone.utc)
        error_entry = {
            'operation': operation,
            'message': error_message,
            'timestamp': error_time.isoformat()
        }

        with self._lock:
            self.metrics['errors'].append(error_entry)
            del self.metrics['errors'][:-MAX_RECORDED_ERRORS]
            self.metrics['last_error_time'] = error_time.isoformat()

        logger.error(f"Operation '{operation}' failed: {error_message}")

    def get_metrics(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Snapshot of collected metrics, with mean durations filled in"""
        with self._lock:
            operations = {}
            for name, values in self.metrics['operations'].items():
                if operation is not None and name != operation:
                    continue
                snapshot = dict(values)
                snapshot['mean_duration'] = (
                    values['total_duration'] / values['count'] if values['count'] else 0.0
                )
                operations[name] = snapshot
            return {
                'operations': operations,
                'errors': list(self.metrics['errors']),
                'last_error_time': self.metrics['last_error_time']
            }

    def reset_metrics(self):
        """Reset all collected metrics"""
        with self._lock:
            self.metrics = _empty_metrics()


# Shared by the services and exposed at /api/metrics
performance_monitor = PerformanceMonitor()
