"""
Rich Document Model.

An in-memory styled-text document: an ordered list of runs, each run a
piece of text with one set of character attributes.
"""

from pydantic import BaseModel, ConfigDict, Field


class TextRun(BaseModel):
    """A span of text sharing one style."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    text: str
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    font_size: float | None = Field(default=None, gt=0)
    color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")

    def style(self) -> tuple:
        """Attributes other than text, for run merging."""
        return (
            self.bold,
            self.italic,
            self.underline,
            self.strikethrough,
            self.font_size,
            self.color,
        )


class RichDocument(BaseModel):
    """A styled-text document."""

    model_config = ConfigDict(extra="forbid")

    runs: list[TextRun] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "RichDocument":
        return cls()

    @classmethod
    def from_plain_text(cls, text: str | None) -> "RichDocument":
        if not text:
            return cls()
        return cls(runs=[TextRun(text=text)])

    def plain_text(self) -> str:
        return "".join(run.text for run in self.runs)

    @property
    def is_empty(self) -> bool:
        return not any(run.text for run in self.runs)

    def normalized(self) -> "RichDocument":
        """Copy with empty runs dropped and adjacent same-style runs merged."""
        merged: list[TextRun] = []
        for run in self.runs:
            if not run.text:
                continue
            if merged and merged[-1].style() == run.style():
                merged[-1] = merged[-1].model_copy(update={"text": merged[-1].text + run.text})
            else:
                merged.append(run)
        return RichDocument(runs=merged)
