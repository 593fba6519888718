"""Consistent hash ring with virtual nodes and load-driven rebalancing."""

from __future__ import annotations

import logging
import threading
import weakref
import zlib
from bisect import bisect_left, insort
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

_MIN_SAMPLES = 1000


@dataclass
class Config:
    """Ring settings.

    ``balance_interval`` is the number of seconds between load checks.
    """

    default_virtual_nodes: int = 50
    min_virtual_nodes: int = 10
    max_virtual_nodes: int = 200
    hash_func: Callable[[bytes], int] = zlib.crc32
    load_balance_threshold: float = 0.25
    balance_interval: float = 1.0


class ConsistentHashingMap:
    """Maps keys to nodes on a hash ring.

    A background thread watches how requests spread over the nodes and, once
    enough requests were seen and the spread is uneven beyond the threshold,
    gives overloaded nodes fewer virtual nodes and idle ones more.
    """

    def __init__(self, config: Config | None = None) -> None:
        self._config = config if config is not None else Config()
        self._lock = threading.RLock()
        self._circle: list[int] = []
        self._ring: dict[int, str] = {}
        self._virtual_nodes: dict[str, int] = {}
        self._node_counts: dict[str, int] = {}
        self._total_requests = 0
        self._stop = threading.Event()
        threading.Thread(
            target=self._balance_loop,
            args=(weakref.ref(self), self._stop, self._config.balance_interval),
            name="hash-ring-balancer",
            daemon=True,
        ).start()

    @staticmethod
    def _balance_loop(ref, stop: threading.Event, interval: float) -> None:
        while not stop.wait(interval):
            ring = ref()
            if ring is None:
                return
            ring._check_and_rebalance()
            del ring

    def __enter__(self) -> ConsistentHashingMap:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _hash(self, text: str) -> int:
        return int(self._config.hash_func(text.encode("utf-8")))

    def add(self, *nodes: str) -> None:
        """Place each non-empty node on the ring with the default replica count."""
        if not nodes:
            raise ValueError("no nodes provided")
        with self._lock:
            for node in nodes:
                if node:
                    self._add_virtual_nodes(node, self._config.default_virtual_nodes)

    def get(self, key: str) -> str | None:
        """Return the node owning ``key``, or None for an empty key or ring."""
        if not key:
            return None
        with self._lock:
            if not self._circle:
                return None
            index = bisect_left(self._circle, self._hash(key))
            if index == len(self._circle):
                index = 0
            node = self._ring[self._circle[index]]
            self._node_counts[node] = self._node_counts.get(node, 0) + 1
            self._total_requests += 1
            return node

    def remove(self, node: str) -> None:
        """Take ``node`` and all its virtual nodes off the ring."""
        if not node:
            raise ValueError("invalid node, remove failed")
        with self._lock:
            self._remove_node(node)

    def get_stats(self) -> dict[str, float]:
        """Return each node's share of the requests since the last rebalance."""
        with self._lock:
            total = self._total_requests
            if total == 0:
                return {}
            return {node: count / total for node, count in self._node_counts.items()}

    def close(self) -> None:
        """Stop the background balancer."""
        self._stop.set()

    def _add_virtual_nodes(self, node: str, count: int) -> None:
        for i in range(count):
            point = self._hash(f"{node}-{i}")
            insort(self._circle, point)
            self._ring[point] = node
        self._virtual_nodes[node] = count

    def _remove_node(self, node: str) -> None:
        replicas = self._virtual_nodes.get(node, 0)
        if not replicas:
            raise KeyError(f"node {node} not found")
        for i in range(replicas):
            point = self._hash(f"{node}-{i}")
            self._ring.pop(point, None)
            index = bisect_left(self._circle, point)
            if index < len(self._circle) and self._circle[index] == point:
                del self._circle[index]
        del self._virtual_nodes[node]
        self._node_counts.pop(node, None)

    def _check_and_rebalance(self) -> None:
        with self._lock:
            if self._total_requests < _MIN_SAMPLES or not self._virtual_nodes:
                return
            average = self._total_requests / len(self._virtual_nodes)
            max_diff = max(
                (abs(count - average) / average for count in self._node_counts.values()),
                default=0.0,
            )
            if max_diff > self._config.load_balance_threshold:
                self._rebalance(average)

    def _rebalance(self, average: float) -> None:
        cfg = self._config
        for node, count in list(self._node_counts.items()):
            current = self._virtual_nodes.get(node, 0)
            ratio = count / average
            if ratio > 1:
                target = int(current / ratio)
            else:
                target = int(current * (2 - ratio))
            target = max(cfg.min_virtual_nodes, min(cfg.max_virtual_nodes, target))
            if target == current:
                continue
            try:
                self._remove_node(node)
            except KeyError:
                continue
            self._add_virtual_nodes(node, target)
            logger.debug("rebalanced node %s: %d -> %d virtual nodes", node, current, target)

        for node in self._node_counts:
            self._node_counts[node] = 0
        self._total_requests = 0