"""
Observability module for sleepcore.

This module provides:
- Metrics collection with Prometheus
"""

__all__ = ["metrics"]
