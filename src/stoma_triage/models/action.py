"""Action models for stoma triage options.

An action defines what happens after the user picks an option:
  - GotoAction: move to another question by qid
  - ResultAction: end the questionnaire with a terminal result by rid
  - DynamicStartAction: enter the class-specific subgraph picked by the
    image classification code

The discriminated ``Action`` union uses the ``action`` field as its discriminator
so Pydantic can deserialise YAML dicts directly into the correct type.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class GotoAction(BaseModel):
    """Navigate to a follow-up question by qid."""

    model_config = ConfigDict(frozen=True)

    action: Literal["goto"] = "goto"
    qid: str


class ResultAction(BaseModel):
    """Terminate with the result identified by rid."""

    model_config = ConfigDict(frozen=True)

    action: Literal["result"] = "result"
    rid: str


class DynamicStartAction(BaseModel):
    """Branch on the classification code into a class entry question."""

    model_config = ConfigDict(frozen=True)

    action: Literal["dynamic_start"] = "dynamic_start"


# Discriminated union: Pydantic picks the right type based on the "action" field.
Action = Annotated[
    Union[GotoAction, ResultAction, DynamicStartAction],
    Field(discriminator="action"),
]
