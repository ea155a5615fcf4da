# Infrastructure Adapters Package
from .fsrs_oracle import FsrsOracle
from .memory_storage import InMemoryStorage

__all__ = ["FsrsOracle", "InMemoryStorage"]
