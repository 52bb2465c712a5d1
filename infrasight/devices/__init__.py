from .store import DeviceStore, DeviceNotFoundError, DeviceExistsError

__all__ = ['DeviceStore', 'DeviceNotFoundError', 'DeviceExistsError']
