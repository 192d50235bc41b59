"""Metrics — Prometheus metrics collection and exposure."""

from __future__ import annotations

from algo_gateway.metrics.collector import GatewayMetrics, MetricsCollector

__all__ = ["GatewayMetrics", "MetricsCollector"]
