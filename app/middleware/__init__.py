"""Middleware package initialization"""
from app.middleware.prometheus import PrometheusMiddleware, meeting_joins_total, metrics_endpoint

__all__ = ["PrometheusMiddleware", "meeting_joins_total", "metrics_endpoint"]
