# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Virtual module binding resolution.

Runs once per unit before any site is rewritten: every import of a
configured virtual module is consumed (the specifier, or the whole
declaration when it was the only one) and its local name is renamed to a
fresh uid that keys the resulting `BindingPolicy`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from ..options import ModuleOptions
from ..parser import ast
from ..parser.paths import NodePath
from ..parser.scope import ProgramScope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BindingPolicy:
	export_name: str
	module_specifier: str
	original_local_name: str
	should_parse_scope: bool = False
	disable_template_literal: bool = False
	disable_function_call: bool = False


def resolve_bindings(
	program: ast.Program,
	scope: ProgramScope,
	modules: Mapping[str, ModuleOptions],
) -> Dict[str, BindingPolicy]:
	"""Consume configured virtual-module imports; returns renamed local name -> policy."""
	registry: Dict[str, BindingPolicy] = {}
	for module_specifier, module_options in modules.items():
		declarations = [
			stmt
			for stmt in program.body
			if isinstance(stmt, ast.ImportDecl) and stmt.source.value == module_specifier
		]
		for decl in declarations:
			if not any(stmt is decl for stmt in program.body):
				continue
			spec = _find_specifier(decl, module_options.export)
			if spec is None:
				continue
			local_name = spec.local.ident
			uid = scope.generate_uid_based_on_node(decl)
			scope.rename(local_name, uid)

			decl_path = NodePath(decl, program, "body", _index_of(program.body, decl))
			if len(decl.specifiers) == 1:
				decl_path.remove()
			else:
				spec_path = NodePath(spec, decl, "specifiers", _index_of(decl.specifiers, spec))
				spec_path.remove()

			registry[uid] = BindingPolicy(
				export_name=module_options.export,
				module_specifier=module_specifier,
				original_local_name=local_name,
				should_parse_scope=module_options.should_parse_scope,
				disable_template_literal=module_options.disable_template_literal,
				disable_function_call=module_options.disable_function_call,
			)
			logger.debug("bound %s from %s as %s", local_name, module_specifier, uid)
	return registry


def _index_of(items, node) -> int:
	return next(pos for pos, item in enumerate(items) if item is node)


def _find_specifier(decl: ast.ImportDecl, export_name: str) -> Optional[ast.ImportSpecifierLike]:
	for spec in decl.specifiers:
		if export_name == "default":
			if isinstance(spec, ast.ImportDefaultSpecifier):
				return spec
		elif isinstance(spec, ast.ImportSpecifier) and ast.name_of(spec.imported) == export_name:
			return spec
	return None


__all__ = ["BindingPolicy", "resolve_bindings"]
