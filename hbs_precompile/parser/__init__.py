"""
JavaScript module front-end used by the precompile pass: lark grammar and
post-lexer, comment attachment, dataclass AST, printer, node paths and
program scope.
"""

from .parser import parse_expression_source, parse_module
from .paths import NodePath, SourceUnit, Visitor, traverse
from .printer import format_expr, format_program
from .scope import ProgramScope

__all__ = [
	"parse_module",
	"parse_expression_source",
	"format_program",
	"format_expr",
	"NodePath",
	"SourceUnit",
	"Visitor",
	"traverse",
	"ProgramScope",
]
