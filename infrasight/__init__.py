from .config import SERVICE_VERSION

__version__ = SERVICE_VERSION
