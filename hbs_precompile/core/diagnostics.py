"""
Common diagnostic structure for the parser and the precompile pass.

A diagnostic is a message plus a span; `render_code_frame` turns it into the
familiar `file: message (line:col)` header followed by a source excerpt with
a caret under the offending column.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .span import Span

_CONTEXT_LINES = 2


@dataclass
class Diagnostic:
	"""Represents a compiler diagnostic (error/warning/etc.)."""

	message: str
	code: str | None = None
	# Which part of the pipeline produced the diagnostic: "parser", "config",
	# "static-eval", "usage" or "compile".
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Source location (Span() denotes unknown).
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def header(self) -> str:
		where = self.span.file or "unknown"
		if self.span.known:
			return f"{where}: {self.message} ({self.span.line}:{self.span.column})"
		return f"{where}: {self.message}"

	def render(self, source: Optional[str] = None) -> str:
		"""Header plus a code frame when both the source and a location are known."""
		text = self.header()
		if source is not None and self.span.known:
			frame = render_code_frame(source, self.span.line, self.span.column)
			if frame:
				text = f"{text}\n\n{frame}"
		for note in self.notes:
			text = f"{text}\nnote: {note}"
		return text

	def to_json(self) -> dict:
		return {
			"phase": self.phase,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}


def render_code_frame(source: str, line: int, column: Optional[int] = None) -> str:
	"""
	Render `source` around `line` (1-based) with a caret at `column` (1-based).

	Lines outside the source yield an empty string.
	"""
	lines = source.splitlines()
	if line < 1 or line > len(lines):
		return ""
	first = max(1, line - _CONTEXT_LINES)
	last = min(len(lines), line + _CONTEXT_LINES)
	width = len(str(last))
	out: list[str] = []
	for number in range(first, last + 1):
		marker = ">" if number == line else " "
		text = lines[number - 1]
		gutter = f"{marker} {str(number).rjust(width)} |"
		out.append(f"{gutter} {text}" if text else gutter)
		if number == line and column is not None and column >= 1:
			pad = "".join(ch if ch == "\t" else " " for ch in text[: column - 1])
			out.append(f"  {' ' * width} | {pad}^")
	return "\n".join(out)


__all__ = ["Diagnostic", "render_code_frame"]
