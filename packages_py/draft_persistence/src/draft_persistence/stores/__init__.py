"""
Draft stores
"""
from .memory import MemoryDraftStore, create_memory_draft_store
from .file import FileDraftStore, create_file_draft_store
from .redis import RedisDraftStore, create_redis_draft_store

__all__ = [
    "MemoryDraftStore",
    "create_memory_draft_store",
    "FileDraftStore",
    "create_file_draft_store",
    "RedisDraftStore",
    "create_redis_draft_store",
]
