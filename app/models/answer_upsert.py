"""Pydantic model for answer upsert payloads.

Declares the body accepted by the session answer route without coupling it
to the route implementation file. A scalar ``value`` toggles membership for
multiple-choice questions; a list replaces the selection.
"""

from __future__ import annotations

from typing import List, Union

from pydantic import BaseModel


class AnswerUpsertModel(BaseModel):
    value: Union[str, int, float, bool, List[Union[str, int, float]], None] = None


__all__ = ["AnswerUpsertModel"]
