"""Cooperative cancellation for long-running sync operations."""

from __future__ import annotations

import threading
from typing import Optional


class OperationCancelled(Exception):
    """The caller cancelled the operation; writes already acknowledged by Graph stay."""


class CancelToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Operation was cancelled")


def check(token: Optional[CancelToken]) -> None:
    if token is not None:
        token.raise_if_cancelled()
