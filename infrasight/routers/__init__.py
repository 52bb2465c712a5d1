from . import analytics, cache, devices, health, metadata, metrics, readings

__all__ = ['analytics', 'cache', 'devices', 'health', 'metadata', 'metrics', 'readings']
