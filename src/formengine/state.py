"""
State store contract and helpers.

A form session's state is one dict per session key:

    {
        "checkBeforeYouStart": {"ukPassport": True},
        "numberOfApplicants": 2,
        "progress": ["/uk-passport", "/how-many-people"],
        "upload": {"/cv": {"upload": {...}, "files": [...]}},
    }

Writers never overwrite the record. They send a patch which is deep
merged into what is stored (read-modify-write).
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

PROGRESS_KEY = "progress"


def merge(
    target: Dict[str, Any],
    patch: Dict[str, Any],
    null_override: bool = True,
    merge_arrays: bool = False,
) -> Dict[str, Any]:
    """
    Deep merge `patch` into a copy of `target`.

    - nested dicts merge key by key
    - None in the patch overwrites only when `null_override`
    - lists replace the stored list unless `merge_arrays`, which appends
    """
    result = copy.deepcopy(target) if target else {}
    for key, value in (patch or {}).items():
        current = result.get(key)
        if value is None:
            if null_override:
                result[key] = None
        elif isinstance(value, dict) and isinstance(current, dict):
            result[key] = merge(current, value, null_override, merge_arrays)
        elif isinstance(value, list) and isinstance(current, list) and merge_arrays:
            result[key] = current + copy.deepcopy(value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def push_progress(progress: Optional[List[str]], path: str, max_entries: int = 100) -> List[str]:
    """
    Record a page visit on the progress stack.

    Revisiting the page on top is a no-op, visiting the page below the
    top is a step back (pop), anything else is pushed. The oldest entry
    is dropped once the stack is longer than `max_entries`.
    """
    progress = list(progress or [])

    if progress and progress[-1].split("?")[0] == path.split("?")[0]:
        return progress

    if len(progress) >= 2 and progress[-2].split("?")[0] == path.split("?")[0]:
        progress.pop()
        return progress

    progress.append(path)
    while len(progress) > max_entries:
        progress.pop(0)
    return progress


class StateStore(ABC):
    """Storage for form session state."""

    @abstractmethod
    def get_state(self, key: str) -> Dict[str, Any]:
        """Return the stored state, or {} when there is none."""

    @abstractmethod
    def merge_state(
        self,
        key: str,
        patch: Dict[str, Any],
        null_override: bool = True,
        merge_arrays: bool = False,
    ) -> Dict[str, Any]:
        """Deep merge `patch` into the stored state and return the result."""

    @abstractmethod
    def clear_state(self, key: str) -> None:
        """Forget everything stored for `key`."""


class InMemoryStateStore(StateStore):
    """
    Dict-backed store for tests, demos and single-process use.

    Values are deep copied in and out so callers cannot mutate what is stored.
    """

    def __init__(self):
        self._states: Dict[str, Dict[str, Any]] = {}

    def get_state(self, key):
        return copy.deepcopy(self._states.get(key, {}))

    def merge_state(self, key, patch, null_override=True, merge_arrays=False):
        merged = merge(self._states.get(key, {}), patch, null_override, merge_arrays)
        self._states[key] = merged
        logger.debug("Merged %d key(s) into state %s", len(patch or {}), key)
        return copy.deepcopy(merged)

    def clear_state(self, key):
        self._states.pop(key, None)
