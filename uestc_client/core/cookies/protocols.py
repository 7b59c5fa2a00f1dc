"""
Cookie storage protocols.

Defines interfaces for cookie storage implementations.
"""
from typing import Protocol, Optional, runtime_checkable
from .models import SessionData


@runtime_checkable
class CookieStorage(Protocol):
    """
    Protocol for cookie storage implementations.
    
    ``load`` returns None when nothing has been stored yet and raises
    ``CookieFileCorruptError`` when stored data cannot be read back.
    """
    
    def load(self) -> Optional[SessionData]:
        """
        Load session data from storage.
        
        Returns:
            SessionData if session exists, None otherwise
        """
        ...
    
    def save(self, data: SessionData) -> None:
        """
        Save session data to storage, replacing what was there.
        
        Args:
            data: Session data to save
        """
        ...
    
    def delete(self) -> None:
        """
        Delete session data from storage.
        """
        ...
    
    def exists(self) -> bool:
        """
        Check if session exists in storage.
        
        Returns:
            True if session exists
        """
        ...
    
    def close(self) -> None:
        """
        Release resources held by the storage.
        """
        ...


@runtime_checkable
class AsyncCookieStorage(Protocol):
    """
    Storage that can also write without blocking the event loop.
    """
    
    async def save_async(self, data: SessionData) -> None:
        """Save session data asynchronously."""
        ...
