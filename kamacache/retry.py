"""Retrying of operations with exponential back-off."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

_MAX_SHIFT = 62


def _retry_on_any(exc: BaseException | None) -> bool:
    return exc is not None


class RetryError(Exception):
    """Raised when an operation did not succeed; holds every error seen."""

    def __init__(self, errors: list[BaseException]) -> None:
        self.errors = list(errors)
        lines = [f"#{n}: {err}" for n, err in enumerate(self.errors, start=1)]
        super().__init__("All attempts fail:\n" + "\n".join(lines))


@dataclass
class RetryConfig:
    """Retry policy.

    ``max_attempts`` of 0 retries until success; ``delay`` is the first pause
    in seconds and doubles after every failed attempt.
    """

    max_attempts: int = 3
    delay: float = 1e-6
    retry_if: Callable[[BaseException], bool] = _retry_on_any
    sleep: Callable[[float], None] = time.sleep

    def run(
        self,
        fn: Callable[[], Any],
        on_retry: Callable[[int, BaseException], None] | None = None,
    ) -> Any:
        """Call ``fn`` until it returns, retrying on errors the policy accepts.

        ``on_retry`` gets the zero-based attempt number and its error.
        Raises RetryError once attempts run out or an error is not retried.
        """
        errors: list[BaseException] = []
        attempt = 0
        while self.max_attempts == 0 or attempt < self.max_attempts:
            try:
                return fn()
            except Exception as exc:
                errors.append(exc)
                if not self.retry_if(exc):
                    break
                if on_retry is not None:
                    on_retry(attempt, exc)
                if attempt == self.max_attempts - 1:
                    break
                self.sleep(self.delay * (1 << min(attempt, _MAX_SHIFT)))
            attempt += 1
        error = RetryError(errors)
        if errors:
            raise error from errors[-1]
        raise error