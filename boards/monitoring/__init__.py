"""
Monitoring package for tracking operation timings and outcomes.
"""

from .performance import PerformanceMonitor, performance_monitor

__all__ = ['PerformanceMonitor', 'performance_monitor']
