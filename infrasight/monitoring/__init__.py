from .metrics import MetricsCollector

__all__ = ['MetricsCollector']
