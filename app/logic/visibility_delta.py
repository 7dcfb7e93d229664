"""Helpers to compute visibility deltas and suppressed answers.

Exposes the set arithmetic shared by the answer store and the session routes:
which questions became visible or hidden, and which held answers that a
purge removed.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Tuple

from app.logic.answer_canonical import is_unanswered


def compute_visibility_delta(
    pre_visible: Iterable[str],
    post_visible: Iterable[str],
) -> Tuple[List[str], List[str]]:
    """Compute visibility delta.

    - now_visible: questions newly visible (in post but not in pre)
    - now_hidden: questions newly hidden (in pre but not in post)
    """
    pre_set = {str(k) for k in pre_visible if k}
    post_set = {str(k) for k in post_visible if k}
    return sorted(post_set - pre_set), sorted(pre_set - post_set)


def suppressed_answers(purged: Iterable[str], snapshot: Mapping[str, Any]) -> List[str]:
    """Return the purged keys that held a real answer in ``snapshot``."""
    return sorted(k for k in set(purged) if not is_unanswered(snapshot.get(k)))


__all__ = ["compute_visibility_delta", "suppressed_answers"]
