"""
Cookie session module.

Persists the client's cookie jar so sessions survive restarts.
"""
from .models import CookieRecord, SessionData
from .protocols import CookieStorage, AsyncCookieStorage
from .json_store import JSONCookieStore
from .memory_store import MemoryCookieStore
from .jar import RequestsJarAdapter, AiohttpJarAdapter

__all__ = [
    'CookieRecord',
    'SessionData',
    'CookieStorage',
    'AsyncCookieStorage',
    'JSONCookieStore',
    'MemoryCookieStore',
    'RequestsJarAdapter',
    'AiohttpJarAdapter',
]
