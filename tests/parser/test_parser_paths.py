# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from hbs_precompile.core.errors import UsagePolicyError
from hbs_precompile.parser import ast
from hbs_precompile.parser.parser import parse_module
from hbs_precompile.parser.paths import NodePath, SourceUnit, Visitor, traverse
from hbs_precompile.parser.printer import format_program


class _Collect(Visitor):
	def __init__(self) -> None:
		self.names: list[str] = []

	def visit_Name(self, path: NodePath) -> None:
		self.names.append(path.node.ident)


def test_traverse_visits_in_source_order() -> None:
	prog = parse_module("a(b, c.d);\nconst e = [f];\n")
	visitor = _Collect()
	traverse(prog, visitor)
	assert visitor.names == ["a", "b", "c", "e", "f"]


class _ReplaceCalls(Visitor):
	def __init__(self, program: ast.Program) -> None:
		self.program = program

	def visit_Call(self, path: NodePath) -> None:
		if isinstance(path.node.func, ast.Name) and path.node.func.ident == "old":
			self.program.body.insert(0, ast.ImportDecl([], ast.Literal("side")))
			path.replace_with(ast.Call(ast.Name("fresh"), path.node.args))


def test_replace_and_insert_sibling_during_traversal() -> None:
	prog = parse_module("old(1);\nold(2);\nkeep(old(3));\n")
	traverse(prog, _ReplaceCalls(prog))
	assert format_program(prog) == (
		'import "side";\n'
		'import "side";\n'
		'import "side";\n'
		"fresh(1);\n"
		"fresh(2);\n"
		"keep(fresh(3));\n"
	)


def test_remove_from_list() -> None:
	prog = parse_module("a();\nb();\n")
	path = NodePath(prog).get("body")[0]
	path.remove()
	assert path.removed
	assert format_program(prog) == "b();\n"


def test_replace_root_is_rejected() -> None:
	with pytest.raises(ValueError):
		NodePath(ast.Program()).replace_with(ast.Program())


def test_build_code_frame_error() -> None:
	source = "const a = 1;\nhbs`x`;\n"
	prog = parse_module(source)
	path = NodePath(prog, unit=SourceUnit(source, "t.js")).get("body")[1].get("value")
	err = path.build_code_frame_error("nope", UsagePolicyError)
	assert isinstance(err, UsagePolicyError)
	assert err.diagnostic.phase == "usage"
	assert str(err).startswith("t.js: nope (2:1)")
	assert "> 2 | hbs`x`;" in str(err)


def test_removed_statement_hands_comments_to_next_sibling() -> None:
	prog = parse_module("// header\nfirst();\nsecond();\n")
	NodePath(prog).get("body")[0].remove()
	assert format_program(prog) == "// header\nsecond();\n"


def test_removed_last_statement_leaves_comments_at_block_end() -> None:
	prog = parse_module("function f() {\n  // gone\n  g();\n}\n")
	statements = NodePath(prog).get("body")[0].get("body").get("statements")
	statements[0].remove()
	assert format_program(prog) == "function f() {\n  // gone\n}\n"


def test_replacement_keeps_comments_of_replaced_node() -> None:
	prog = parse_module("keep(/* c */ old(3));\n")
	NodePath(prog).get("body")[0].get("value").get("args")[0].replace_with(ast.Name("y"))
	assert format_program(prog) == "keep(/* c */y);\n"
