"""Source text access for location fallbacks."""

from __future__ import annotations

import bisect

from coverplane.core.errors import TreeError
from coverplane.tree.models import Position, SourceRange

_WHITESPACE = frozenset(" \t\r\n\f\v")


class SourceBuffer:
    """Maps line/column positions onto a unit's source text.

    Without text (the parser did not ship it), positions cannot be advanced
    and `skip_to_content_start` returns the range end unchanged.
    """

    def __init__(self, text: str | None = None) -> None:
        self._text = text
        self._line_starts: list[int] = [0]
        if text is not None:
            for offset, char in enumerate(text):
                if char == "\n":
                    self._line_starts.append(offset + 1)

    @property
    def text(self) -> str | None:
        return self._text

    def offset(self, position: Position) -> int:
        if self._text is None:
            raise TreeError.invalid_range(position, "no source text available")
        if not 1 <= position.line <= len(self._line_starts):
            raise TreeError.invalid_range(position, "line outside source")
        offset = self._line_starts[position.line - 1] + position.column
        if offset > len(self._text):
            raise TreeError.invalid_range(position, "column outside source")
        return offset

    def position(self, offset: int) -> Position:
        line = bisect.bisect_right(self._line_starts, offset)
        return Position(line, offset - self._line_starts[line - 1])

    def skip_to_content_start(self, source_range: SourceRange) -> Position:
        """Position right after `source_range`, past whitespace and `#` comments."""
        if self._text is None:
            return source_range.end
        text = self._text
        i = self.offset(source_range.end)
        while i < len(text):
            if text[i] in _WHITESPACE:
                i += 1
            elif text[i] == "#":
                newline = text.find("\n", i)
                i = len(text) if newline == -1 else newline
            else:
                break
        return self.position(i)

    def empty_marker(self, source_range: SourceRange) -> SourceRange:
        """Zero-width range where an empty clause after `source_range` is reported."""
        return SourceRange.at(self.skip_to_content_start(source_range))
