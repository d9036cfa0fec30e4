"""
Adapters layer - Lesson storage and coach profile collaborators.
"""

from .memory_store import InMemoryLessonStore, InMemoryProfileClient
from .rpc_client import RpcSchedulingClient

__all__ = ["InMemoryLessonStore", "InMemoryProfileClient", "RpcSchedulingClient"]
