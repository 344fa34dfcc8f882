from __future__ import annotations

import copy
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class OptimisticCommand:
    """
    Apply a local change before the server confirms it.

    run() snapshots `state`, applies the tentative change in place, then
    issues the request. If the request raises, the snapshot is restored into
    `state` and the error propagates; nothing is retried.
    """

    def __init__(self, state: Any, apply: Callable[[Any], None], request: Callable[[], Any]):
        self.state = state
        self._apply = apply
        self._request = request
        self._snapshot = None

    def run(self):
        self._snapshot = copy.deepcopy(self.state)
        self._apply(self.state)
        try:
            return self._request()
        except Exception:
            logger.warning("Optimistic update failed, restoring previous state", exc_info=True)
            self.rollback()
            raise

    def rollback(self) -> None:
        if self._snapshot is None:
            return
        restored = self._snapshot
        if isinstance(self.state, dict):
            self.state.clear()
            self.state.update(restored)
        elif isinstance(self.state, list):
            self.state[:] = restored
        else:
            self.state.__dict__.clear()
            self.state.__dict__.update(restored.__dict__)
        self._snapshot = None
