from .base import Document, PopulateSpec, ResourceStore, StoreError
from .memory import MemoryCollection, MemoryDatabase
from .seed import load_seed_file

__all__ = [
    "Document",
    "MemoryCollection",
    "MemoryDatabase",
    "PopulateSpec",
    "ResourceStore",
    "StoreError",
    "load_seed_file",
]
