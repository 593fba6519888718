"""Byte-bounded key-value stores with LRU and LFU eviction and per-key expiration."""