# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Program-level name bookkeeping for the precompile pass.

The pass only ever introduces or renames module-level names, so a single
`ProgramScope` per unit is enough: it knows every identifier the unit
mentions, hands out fresh `_name`/`_name2` identifiers that collide with none
of them, and renames a module-level binding everywhere it is not shadowed.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Set

from . import ast
from .paths import child_slots, iter_nodes

logger = logging.getLogger(__name__)

_IDENT_CHAR = re.compile(r"[A-Za-z0-9_$]")
_VALID_IDENT = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_UID_NAME_LIMIT = 20

_RESERVED = frozenset(
	"""
	break case catch class const continue debugger default delete do else
	export extends false finally for function if import in instanceof new
	null return super switch this throw true try typeof var void while with
	yield let static enum await implements package protected interface
	private public arguments eval
	""".split()
)


def to_identifier(text: str) -> str:
	"""
	Turn arbitrary text into a camelCased identifier:
	`@ember/template-factory` -> `emberTemplateFactory`.
	"""
	name = "".join(ch if _IDENT_CHAR.match(ch) else "-" for ch in text)
	name = re.sub(r"^[-0-9]+", "", name)
	name = re.sub(r"[-\s]+(.)?", lambda m: m.group(1).upper() if m.group(1) else "", name)
	if not _VALID_IDENT.match(name) or name in _RESERVED:
		name = f"_{name}"
	return name or "_"


class ProgramScope:
	def __init__(self, program: ast.Program) -> None:
		self.program = program
		self.bindings: Set[str] = set(_declared_names(program.body, include_vars=True))
		self.references: Set[str] = {node.ident for node in iter_nodes(program) if isinstance(node, ast.Name)}
		self.uids: Set[str] = set()

	def has_binding(self, name: str) -> bool:
		return name in self.bindings

	def register_binding(self, name: str) -> None:
		self.bindings.add(name)
		self.references.add(name)

	def _taken(self, name: str) -> bool:
		return name in self.bindings or name in self.references or name in self.uids or name in _RESERVED

	def generate_uid(self, name: str = "temp") -> str:
		base = re.sub(r"\d+$", "", to_identifier(name).lstrip("_"))
		i = 1
		while True:
			uid = f"_{base}{i if i > 1 else ''}"
			if not self._taken(uid):
				break
			i += 1
		self.references.add(uid)
		self.uids.add(uid)
		return uid

	def generate_uid_based_on_node(self, node: ast.Node, default: str = "ref") -> str:
		"""A uid named after what `node` refers to (an import is named after its source)."""
		parts = _node_parts(node)
		base = "$".join(parts)
		base = re.sub(r"^_", "", base) or default
		return self.generate_uid(base[:_UID_NAME_LIMIT])

	def rename(self, old: str, new: str) -> None:
		"""Rename the module-level binding `old` to `new` wherever it is not shadowed."""
		logger.debug("renaming %s -> %s", old, new)
		for stmt in self.program.body:
			_rename(stmt, old, new)
		if old in self.bindings:
			self.bindings.discard(old)
			self.bindings.add(new)
		self.references.add(new)


def _node_parts(node: Optional[ast.Node]) -> List[str]:
	if node is None:
		return []
	if isinstance(node, ast.ImportDecl):
		return [node.source.value]
	if isinstance(node, ast.Name):
		return [node.ident]
	if isinstance(node, ast.Literal):
		return [str(node.value)] if node.value is not None else []
	if isinstance(node, ast.Attr):
		return _node_parts(node.value) + [node.attr]
	if isinstance(node, ast.Call):
		return _node_parts(node.func)
	if isinstance(node, ast.VarDeclarator):
		return _node_parts(node.name)
	return []


def _declared_names(statements: Iterable[ast.Stmt], include_vars: bool) -> Iterable[str]:
	"""
	Names a statement list declares in its own scope. `var` declarations hoist
	out of nested blocks; they are only collected when `include_vars` is set
	(function bodies and the program).
	"""
	for stmt in statements:
		if isinstance(stmt, ast.ExportNamed) and stmt.declaration is not None:
			stmt = stmt.declaration
		if isinstance(stmt, ast.ImportDecl):
			for spec in stmt.specifiers:
				yield spec.local.ident
		elif isinstance(stmt, (ast.FunctionDecl, ast.ClassDecl)):
			yield stmt.name.ident
		elif isinstance(stmt, ast.VarDecl):
			if stmt.kind != "var" or include_vars:
				for decl in stmt.declarations:
					yield decl.name.ident
		if include_vars:
			yield from _hoisted_vars(stmt)


def _hoisted_vars(stmt: Optional[ast.Node]) -> Iterable[str]:
	"""`var` names declared anywhere under `stmt`, without entering functions."""
	if isinstance(stmt, ast.VarDecl):
		if stmt.kind == "var":
			for decl in stmt.declarations:
				yield decl.name.ident
		return
	nested: List[Optional[ast.Node]] = []
	if isinstance(stmt, ast.Block):
		nested = list(stmt.statements)
	elif isinstance(stmt, ast.IfStmt):
		nested = [stmt.then_branch, stmt.else_branch]
	elif isinstance(stmt, ast.ForStmt):
		nested = [stmt.init, stmt.body]
	elif isinstance(stmt, ast.ForInStmt):
		if stmt.kind == "var":
			yield stmt.name.ident
		nested = [stmt.body]
	elif isinstance(stmt, (ast.WhileStmt, ast.DoWhileStmt)):
		nested = [stmt.body]
	elif isinstance(stmt, ast.TryStmt):
		nested = [stmt.block, stmt.handler.body if stmt.handler is not None else None, stmt.finalizer]
	for inner in nested:
		yield from _hoisted_vars(inner)


def _function_shadows(params: List[ast.Param], body: ast.Node, name: str, own_name: Optional[ast.Name] = None) -> bool:
	if own_name is not None and own_name.ident == name:
		return True
	if any(param.name.ident == name for param in params):
		return True
	if isinstance(body, ast.Block):
		return name in set(_declared_names(body.statements, include_vars=True))
	return False


def _rename(node: ast.Node, old: str, new: str) -> None:
	if isinstance(node, ast.Name):
		if node.ident == old:
			node.ident = new
		return
	if isinstance(node, (ast.FunctionDecl, ast.FunctionExpr, ast.ArrowFunction, ast.ObjectMethod, ast.ClassMethod)):
		if isinstance(node, ast.FunctionDecl) and node.name.ident == old:
			node.name.ident = new
		own_name = node.name if isinstance(node, ast.FunctionExpr) else None
		if isinstance(node, (ast.ObjectMethod, ast.ClassMethod)) and node.computed:
			_rename(node.key, old, new)
		if _function_shadows(node.params, node.body, old, own_name):
			return
		for param in node.params:
			if param.default is not None:
				_rename(param.default, old, new)
		_rename(node.body, old, new)
		return
	if isinstance(node, ast.Block):
		if old in set(_declared_names(node.statements, include_vars=False)):
			return
		for stmt in node.statements:
			_rename(stmt, old, new)
		return
	if isinstance(node, ast.ClassExpr) and node.name is not None and node.name.ident == old:
		# the class's own name shadows `old` inside its body
		if node.superclass is not None:
			_rename(node.superclass, old, new)
		return
	if isinstance(node, ast.ClassProperty):
		if node.computed:
			_rename(node.key, old, new)
		if node.value is not None:
			_rename(node.value, old, new)
		return
	if isinstance(node, ast.ForStmt):
		if isinstance(node.init, ast.VarDecl) and node.init.kind != "var":
			if any(decl.name.ident == old for decl in node.init.declarations):
				return
	if isinstance(node, ast.ForInStmt) and node.kind != "var" and node.name.ident == old:
		_rename(node.iterable, old, new)
		return
	if isinstance(node, ast.CatchClause):
		if node.param is None or node.param.ident != old:
			_rename(node.body, old, new)
		return
	if isinstance(node, ast.Property):
		if node.computed:
			_rename(node.key, old, new)
		if node.shorthand and isinstance(node.value, ast.Name) and node.value.ident == old:
			node.value = ast.Name(new, loc=node.value.loc)
			node.shorthand = False
			return
		_rename(node.value, old, new)
		return
	if isinstance(node, ast.ImportSpecifier):
		_rename(node.local, old, new)
		return
	if isinstance(node, ast.ExportNamed):
		if node.declaration is not None:
			_rename(node.declaration, old, new)
		if node.source is None:
			for spec in node.specifiers:
				if isinstance(spec.local, ast.Name) and spec.local.ident == old:
					if spec.exported is None:
						spec.exported = ast.Name(old, loc=spec.local.loc)
					spec.local = ast.Name(new, loc=spec.local.loc)
		return
	for _key, _idx, child in child_slots(node):
		_rename(child, old, new)


__all__ = ["ProgramScope", "to_identifier"]
