# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Exceptions raised by the parser and the precompile pass.

Every error carries a `Diagnostic`; `str(err)` is the rendered code frame so
errors read well when they escape to a build log.
"""

from __future__ import annotations

from typing import Any, Optional

from .diagnostics import Diagnostic
from .span import Span


class PrecompileError(Exception):
	"""Base class for every diagnostic raised while processing a unit."""

	phase = "precompile"

	def __init__(
		self,
		message: str,
		*,
		loc: Any = None,
		source: Optional[str] = None,
		file: Optional[str] = None,
	) -> None:
		self.message = message
		self.source = source
		self.diagnostic = Diagnostic(message=message, phase=self.phase, span=Span.from_loc(loc, file))
		super().__init__(self.diagnostic.render(source))

	@property
	def span(self) -> Span:
		return self.diagnostic.span


class ConfigurationError(PrecompileError):
	"""Contradictory or missing compiler configuration."""

	phase = "config"


class ParseError(PrecompileError):
	"""The unit (or a compiler payload) is not in the supported JavaScript subset."""

	phase = "parser"


class StaticEvaluationError(PrecompileError):
	"""An option expression is not a fully static literal."""

	phase = "static-eval"


class UsagePolicyError(PrecompileError):
	"""A template binding is used in a way its policy or the pass forbids."""

	phase = "usage"


class TemplateCompileError(PrecompileError):
	"""The external template compiler rejected a template."""

	phase = "compile"


__all__ = [
	"PrecompileError",
	"ConfigurationError",
	"ParseError",
	"StaticEvaluationError",
	"UsagePolicyError",
	"TemplateCompileError",
]
