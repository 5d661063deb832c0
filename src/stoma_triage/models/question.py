"""Question and option models for the stoma triage graph.

Every question is a single-select prompt: the user picks exactly one option
and the option's action decides the next node.  Option order is significant;
the UI renders options in order and reports the chosen position as the
answer index.

Questions are authored in YAML under a content group (``emergency``,
``class_1`` .. ``class_3``, ``common``).  The store stamps the group onto
each question at load time so callers never have to infer it from the qid.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .action import Action, DynamicStartAction, GotoAction, ResultAction


class Option(BaseModel):
    """A selectable answer with its display label and routing action.

    ``action`` is optional only so that malformed content can still be
    loaded with ``validate=False``; the validator rejects options without
    one, and the engine falls back to the safe result if it meets one.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    action: Optional[Action] = None

    @property
    def dynamic_start(self) -> bool:
        """True if this option branches on the classification code."""
        return isinstance(self.action, DynamicStartAction)

    @property
    def next(self) -> Optional[str]:
        """Target id of a static link (question or result), or None.

        Always None for dynamic-start options: that mechanism wins.
        """
        if isinstance(self.action, GotoAction):
            return self.action.qid
        if isinstance(self.action, ResultAction):
            return self.action.rid
        return None


class Question(BaseModel):
    """A triage question with its ordered, non-empty option list."""

    model_config = ConfigDict(frozen=True)

    type: Literal["question"] = "question"
    qid: str
    question: str
    options: tuple[Option, ...] = Field(min_length=1)
    # Provisional label shown while this question is on screen
    temp_diagnosis: Optional[str] = None
    group: Optional[str] = None

    @property
    def labels(self) -> list[str]:
        return [o.label for o in self.options]

    def option_index(self, label: str) -> int:
        """Return the index of the option whose label is *label*.

        Raises:
            ValueError: if no option has that label.
        """
        for i, opt in enumerate(self.options):
            if opt.label == label:
                return i
        raise ValueError(f"Option '{label}' not found in question {self.qid}")
