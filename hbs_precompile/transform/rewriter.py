# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Site rewriting: the traversal that replaces every tagged template and call
using a resolved virtual-module binding with a template factory call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from ..core.errors import UsagePolicyError
from ..options import Options
from ..parser import ast
from ..parser.parser import parse_module
from ..parser.paths import NodePath, SourceUnit, Visitor, traverse
from ..parser.printer import format_program
from ..parser.scope import ProgramScope
from .bindings import BindingPolicy, resolve_bindings
from .compile import FACTORY_EXPORT, FACTORY_MODULE, compile_template
from .imports import ImportInjector
from .static_eval import parse_object_expression

logger = logging.getLogger(__name__)


@dataclass
class UnitState:
	"""Everything the pass knows about one compilation unit; never shared."""

	program: ast.Program
	unit: SourceUnit
	scope: ProgramScope
	imports: ImportInjector
	bindings: Dict[str, BindingPolicy] = field(default_factory=dict)


class InlinePrecompiler:
	"""
	Rewrites inline templates in a parsed module.

	The compiler function is resolved once here; `transform` may then be
	called for any number of units. Each call mutates the given program in
	place. A raised PrecompileError leaves that program partially rewritten
	and it should be discarded.
	"""

	def __init__(self, options: Options) -> None:
		self.options = options
		self.precompile = options.resolve_precompile()
		self.modules = options.configured_modules()

	def transform(self, program: ast.Program, source: Optional[str] = None, filename: Optional[str] = None) -> ast.Program:
		scope = ProgramScope(program)
		state = UnitState(
			program=program,
			unit=SourceUnit(source=source, filename=filename),
			scope=scope,
			imports=ImportInjector(program, scope, self.options.module_overrides),
		)
		state.bindings = resolve_bindings(program, scope, self.modules)
		if state.bindings:
			traverse(program, SiteRewriter(self, state), state.unit)
		return program


class SiteRewriter(Visitor):
	def __init__(self, precompiler: InlinePrecompiler, state: UnitState) -> None:
		self.precompiler = precompiler
		self.state = state

	def _policy(self, node: ast.Expr) -> Optional[BindingPolicy]:
		if isinstance(node, ast.Name):
			return self.state.bindings.get(node.ident)
		return None

	def visit_TaggedTemplate(self, path: NodePath) -> None:
		node: ast.TaggedTemplate = path.node
		policy = self._policy(node.tag)
		if policy is None:
			return
		name = policy.original_local_name
		if policy.disable_template_literal:
			raise path.build_code_frame_error(
				f"Attempted to use `{name}` as a template tag, but it can only be called as a function "
				f"with a string passed to it: {name}('content here')",
				UsagePolicyError,
			)
		if node.quasi.expressions:
			raise path.build_code_frame_error(
				"placeholders inside a tagged template string are not supported", UsagePolicyError
			)

		template = "".join(quasi.cooked for quasi in node.quasi.quasis)
		factory = self.state.imports.ensure_import(FACTORY_EXPORT, FACTORY_MODULE)
		options = {"isProduction": self.precompiler.options.is_production, "locals": None, "strictMode": False}
		self._replace(path, template, factory, options)

	def visit_Call(self, path: NodePath) -> None:
		node: ast.Call = path.node
		policy = self._policy(node.func)
		if policy is None:
			return
		name = policy.original_local_name
		if policy.disable_function_call:
			raise path.build_code_frame_error(
				f"Attempted to use `{name}` as a function call, but it can only be used as a template tag: "
				f"{name}`content here`",
				UsagePolicyError,
			)

		args = path.get("args")
		first = args[0].node if args else None
		if ast.is_string_literal(first):
			template = first.value
		elif isinstance(first, ast.TemplateLiteral):
			if first.expressions:
				raise path.build_code_frame_error(
					"placeholders inside a template string are not supported", UsagePolicyError
				)
			template = "".join(quasi.cooked for quasi in first.quasis)
		elif isinstance(first, ast.TaggedTemplate):
			raise path.build_code_frame_error(
				f"tagged template strings inside {name} are not supported", UsagePolicyError
			)
		else:
			raise path.build_code_frame_error(
				"hbs should be invoked with at least a single argument: the template string", UsagePolicyError
			)

		options: Dict[str, Any] = {}
		if len(args) > 1:
			if not isinstance(args[1].node, ast.ObjectLiteral):
				raise self._arity_error(path)
			# options are evaluated before the argument count is checked
			options = parse_object_expression(name, args[1], should_parse_scope=True)
		if len(args) > 2:
			raise self._arity_error(path)
		if "isProduction" not in options:
			options["isProduction"] = self.precompiler.options.is_production

		factory = self.state.imports.ensure_import(FACTORY_EXPORT, FACTORY_MODULE)
		self._replace(path, template, factory, options)

	@staticmethod
	def _arity_error(path: NodePath) -> UsagePolicyError:
		return path.build_code_frame_error(
			"hbs can only be invoked with 2 arguments: the template string, and any static options",
			UsagePolicyError,
		)

	def _replace(self, path: NodePath, template: str, factory: ast.Name, options: Dict[str, Any]) -> None:
		replacement = compile_template(self.precompiler.precompile, template, factory, options, path)
		replacement.loc = path.node.loc
		path.replace_with(replacement)
		logger.debug("rewrote inline template at %s", path.node.loc)


def precompile_source(
	source: str,
	options: Union[Options, Mapping[str, Any]],
	filename: Optional[str] = None,
) -> str:
	"""Parse, transform and print one module."""
	if not isinstance(options, Options):
		options = Options.from_mapping(options)
	program = parse_module(source, filename)
	InlinePrecompiler(options).transform(program, source=source, filename=filename)
	return format_program(program)


__all__ = ["InlinePrecompiler", "SiteRewriter", "UnitState", "precompile_source"]
