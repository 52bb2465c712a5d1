from .application import create_app
from .startup import startup_handler, shutdown_handler

__all__ = ['create_app', 'startup_handler', 'shutdown_handler']
