"""
In-memory cookie storage implementation.

Provides non-persistent storage for testing and throwaway clients.
"""
import copy
from typing import Optional

from .protocols import CookieStorage
from .models import SessionData


class MemoryCookieStore(CookieStorage):
    """
    In-memory cookie storage.
    
    Data is lost when the object is destroyed.
    
    Example:
        >>> store = MemoryCookieStore()
        >>> store.save(session_data)
        >>> loaded = store.load()
    """
    
    def __init__(self):
        self._data: Optional[SessionData] = None
    
    def load(self) -> Optional[SessionData]:
        return copy.deepcopy(self._data)
    
    def save(self, data: SessionData) -> None:
        data.update_timestamp()
        self._data = copy.deepcopy(data)
    
    async def save_async(self, data: SessionData) -> None:
        self.save(data)
    
    def delete(self) -> None:
        self._data = None
    
    def exists(self) -> bool:
        return self._data is not None
    
    def close(self) -> None:
        """Close storage (no-op for memory storage)."""
        pass
    
    def __enter__(self) -> 'MemoryCookieStore':
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
