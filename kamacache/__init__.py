"""Named cache groups over LRU/LFU stores, with consistent hashing, request coalescing and retries."""

__version__ = "0.1.0"