from .base import Base

# import models so metadata.create_all() can discover mappers
from .state import PersistedRecord  # noqa: F401

__all__ = [
    "Base",
    "PersistedRecord",
]
