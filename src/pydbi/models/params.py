"""Bind parameter models.

A statement is bound either by position (``?``) or by name (``:name``).
The two styles are separate model types sharing a ``kind`` discriminator,
so the style is fixed when the params object is built rather than guessed
from the shape of a container at execute time.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Positional(BaseModel):
    """Values matched to ``?`` placeholders in order."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["positional"] = "positional"
    values: list[Any] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)


class Named(BaseModel):
    """Values matched to ``:name`` placeholders by name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["named"] = "named"
    values: dict[str, Any] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.values)


BindParams = Annotated[Positional | Named, Field(discriminator="kind")]


def positional(*values: Any) -> Positional:
    """Build positional params: ``positional(5, "x")``."""
    return Positional(values=list(values))


def named(**values: Any) -> Named:
    """Build named params: ``named(whizz=2.0)``."""
    return Named(values=values)
