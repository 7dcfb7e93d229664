"""QuestionKind constants for audit template questions.

Provides a simple constants container instead of an Enum to keep imports
lightweight in architectural tests; pydantic models use the matching
``Literal`` aliases below.
"""

from __future__ import annotations

from typing import Literal


class QuestionKind:
    TEXT = "text"
    NUMERIC = "numeric"
    SINGLE = "single"
    MULTIPLE = "multiple"
    DROPDOWN = "dropdown"
    DATE = "date"
    FILE = "file"
    BARCODE = "barcode"


QuestionKindName = Literal[
    "text", "numeric", "single", "multiple", "dropdown", "date", "file", "barcode"
]

# Kinds that carry an option list (at least two options required)
CHOICE_KINDS = frozenset({QuestionKind.SINGLE, QuestionKind.MULTIPLE, QuestionKind.DROPDOWN})

# Kinds scored as yes/no
YES_NO_KINDS = frozenset({QuestionKind.SINGLE, QuestionKind.DROPDOWN})


__all__ = ["QuestionKind", "QuestionKindName", "CHOICE_KINDS", "YES_NO_KINDS"]
