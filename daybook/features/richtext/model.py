"""
daybook/features/richtext/model.py

In-memory styled text: visible text plus a list of maximal style runs.

Every operation is a pure function returning a new StyledText. Runs are kept
normalized (non-empty, contiguous, covering the whole text, neighbours never
share a style set) so two values are equal exactly when their text and
per-character styles are equal.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple

BULLET = "• "


class Style(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"


StyleSet = FrozenSet[Style]
NO_STYLE: StyleSet = frozenset()


@dataclass(frozen=True)
class StyleRun:
    start: int
    end: int
    styles: StyleSet = NO_STYLE

    def __post_init__(self):
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"invalid run range [{self.start}, {self.end})")
        object.__setattr__(self, "styles", frozenset(Style(s) for s in self.styles))

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class StyledText:
    text: str = ""
    runs: Tuple[StyleRun, ...] = field(default_factory=tuple)

    def __post_init__(self):
        runs = tuple(self.runs)
        if not self.text:
            if runs:
                raise ValueError("empty text cannot carry style runs")
            object.__setattr__(self, "runs", ())
            return

        position = 0
        for run in runs:
            if run.start != position:
                raise ValueError(f"style runs must be contiguous (gap or overlap at {run.start})")
            position = run.end
        if position != len(self.text):
            raise ValueError(f"style runs cover {position} of {len(self.text)} characters")

        object.__setattr__(self, "runs", _merge(runs))

    # construction ---------------------------------------------------------

    @classmethod
    def plain(cls, text: str) -> "StyledText":
        if not text:
            return cls()
        return cls(text, (StyleRun(0, len(text)),))

    @classmethod
    def _from_char_styles(cls, text: str, char_styles: List[StyleSet]) -> "StyledText":
        runs: List[StyleRun] = []
        start = 0
        for index in range(1, len(text) + 1):
            if index == len(text) or char_styles[index] != char_styles[start]:
                runs.append(StyleRun(start, index, char_styles[start]))
                start = index
        return cls(text, tuple(runs))

    # inspection -----------------------------------------------------------

    def __len__(self) -> int:
        return len(self.text)

    @property
    def plain_text(self) -> str:
        """Visible text without styling; never use it to rebuild styled content."""
        return self.text

    def styles_at(self, index: int) -> StyleSet:
        for run in self.runs:
            if run.start <= index < run.end:
                return run.styles
        raise IndexError(index)

    def has_style(self, style: Style, start: int, end: int) -> bool:
        """True when every character in [start, end) carries ``style``."""
        self._check_range(start, end)
        if start == end:
            return False
        return all(style in styles for styles in self._char_styles()[start:end])

    # editing --------------------------------------------------------------

    def toggle_style(self, style: Style, start: int, end: int) -> "StyledText":
        """Remove ``style`` if the whole range has it, otherwise apply it to the whole range."""
        self._check_range(start, end)
        if start == end:
            return self
        style = Style(style)
        remove = self.has_style(style, start, end)
        char_styles = self._char_styles()
        for index in range(start, end):
            if remove:
                char_styles[index] = char_styles[index] - {style}
            else:
                char_styles[index] = char_styles[index] | {style}
        return self._from_char_styles(self.text, char_styles)

    def toggle_bold(self, start: int, end: int) -> "StyledText":
        return self.toggle_style(Style.BOLD, start, end)

    def toggle_italic(self, start: int, end: int) -> "StyledText":
        return self.toggle_style(Style.ITALIC, start, end)

    def toggle_underline(self, start: int, end: int) -> "StyledText":
        return self.toggle_style(Style.UNDERLINE, start, end)

    def replace(self, start: int, end: int, text: str, styles: Optional[Iterable[Style]] = None) -> "StyledText":
        """Replace [start, end) with ``text``.

        New characters take ``styles`` when given, otherwise the styles of the
        first replaced character, else of the character before the insertion
        point, else of the first character.
        """
        self._check_range(start, end)
        if styles is None:
            inherited = self._inherited_styles(start, end)
        else:
            inherited = frozenset(Style(s) for s in styles)
        char_styles = self._char_styles()
        new_text = self.text[:start] + text + self.text[end:]
        new_styles = char_styles[:start] + [inherited] * len(text) + char_styles[end:]
        if not new_text:
            return StyledText()
        return self._from_char_styles(new_text, new_styles)

    def insert(self, position: int, text: str, styles: Optional[Iterable[Style]] = None) -> "StyledText":
        return self.replace(position, position, text, styles)

    def append(self, text: str) -> "StyledText":
        return self.insert(len(self.text), text)

    def delete(self, start: int, end: int) -> "StyledText":
        return self.replace(start, end, "")

    def paragraph_bounds(self, start: int, end: Optional[int] = None) -> Tuple[int, int]:
        """[first, last) of the lines touched by the caret/selection, newline excluded."""
        end = start if end is None else end
        self._check_range(start, end)
        line_start = self.text.rfind("\n", 0, start) + 1
        last = end - 1 if end > start else end
        line_end = self.text.find("\n", last)
        if line_end == -1:
            line_end = len(self.text)
        return line_start, max(line_end, line_start)

    def toggle_bullet_for_paragraph(self, start: int, end: Optional[int] = None) -> "StyledText":
        """Prefix every touched line that lacks the bullet marker.

        Lines already carrying the marker are left alone, so applying this
        twice gives the same text as applying it once.
        """
        line_start, line_end = self.paragraph_bounds(start, end)
        offsets = [line_start]
        for index in range(line_start, line_end):
            if self.text[index] == "\n":
                offsets.append(index + 1)

        result = self
        # right to left keeps earlier offsets valid
        for offset in reversed(offsets):
            newline = self.text.find("\n", offset)
            line = self.text[offset:newline if newline != -1 else len(self.text)]
            if line.lstrip(" \t").startswith(BULLET):
                continue
            result = result.insert(offset, BULLET, styles=NO_STYLE)
        return result

    # helpers --------------------------------------------------------------

    def _check_range(self, start: int, end: int) -> None:
        if not 0 <= start <= end <= len(self.text):
            raise ValueError(f"range [{start}, {end}) outside text of length {len(self.text)}")

    def _char_styles(self) -> List[StyleSet]:
        out: List[StyleSet] = []
        for run in self.runs:
            out.extend([run.styles] * run.length)
        return out

    def _inherited_styles(self, start: int, end: int) -> StyleSet:
        if not self.text:
            return NO_STYLE
        if start < end:
            return self.styles_at(start)
        if start > 0:
            return self.styles_at(start - 1)
        return self.styles_at(0)


def _merge(runs: Tuple[StyleRun, ...]) -> Tuple[StyleRun, ...]:
    merged: List[StyleRun] = []
    for run in runs:
        if merged and merged[-1].styles == run.styles:
            merged[-1] = StyleRun(merged[-1].start, run.end, run.styles)
        else:
            merged.append(run)
    return tuple(merged)
