"""
hbs_precompile: rewrite inline templates in JavaScript modules into
precompiled template factory calls.

Subpackages:
  - core: diagnostics, spans and the exception hierarchy
  - parser: JavaScript module front-end (parser, AST, printer, paths, scope)
  - transform: the precompile pass itself
"""

from .core.errors import (
	ConfigurationError,
	ParseError,
	PrecompileError,
	StaticEvaluationError,
	TemplateCompileError,
	UsagePolicyError,
)
from .options import ModuleOptions, Options
from .parser.parser import parse_expression_source, parse_module
from .parser.printer import format_expr, format_program
from .transform.rewriter import InlinePrecompiler, precompile_source

__all__ = [
	"Options",
	"ModuleOptions",
	"InlinePrecompiler",
	"precompile_source",
	"parse_module",
	"parse_expression_source",
	"format_program",
	"format_expr",
	"PrecompileError",
	"ConfigurationError",
	"ParseError",
	"StaticEvaluationError",
	"UsagePolicyError",
	"TemplateCompileError",
]
