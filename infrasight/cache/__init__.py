from .client import RedisCache
from .invalidation import (
    CacheInvalidator, InvalidationDirective, InvalidationEvent, directive_for_event
)
from . import keys

__all__ = [
    'RedisCache', 'CacheInvalidator', 'InvalidationDirective',
    'InvalidationEvent', 'directive_for_event', 'keys'
]
