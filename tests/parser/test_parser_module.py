# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from hbs_precompile.core.errors import ParseError
from hbs_precompile.parser import ast
from hbs_precompile.parser.parser import parse_expression_source, parse_module


def test_parse_import_forms() -> None:
	prog = parse_module(
		"""
import hbs from "htmlbars-inline-precompile";
import { a, b as c, default as d } from 'mod';
import * as ns from "ns";
import "side-effect";
"""
	)
	default_import, named, namespace, bare = prog.body
	assert isinstance(default_import, ast.ImportDecl)
	assert default_import.source.value == "htmlbars-inline-precompile"
	assert isinstance(default_import.specifiers[0], ast.ImportDefaultSpecifier)
	assert default_import.specifiers[0].local.ident == "hbs"
	assert [(ast.name_of(s.imported), s.local.ident) for s in named.specifiers] == [("a", "a"), ("b", "c"), ("default", "d")]
	assert isinstance(namespace.specifiers[0], ast.ImportNamespaceSpecifier)
	assert namespace.specifiers[0].local.ident == "ns"
	assert bare.specifiers == []
	assert bare.source.value == "side-effect"


def test_parse_exports() -> None:
	prog = parse_module(
		"""
export default hbs`hello`;
export const x = 1, y = 2;
export function f() {}
export { x as z, y };
export { w } from "elsewhere";
"""
	)
	default, const, func, named, reexport = prog.body
	assert isinstance(default, ast.ExportDefault)
	assert isinstance(default.value, ast.TaggedTemplate)
	assert isinstance(const.declaration, ast.VarDecl)
	assert [d.name.ident for d in const.declaration.declarations] == ["x", "y"]
	assert isinstance(func.declaration, ast.FunctionDecl)
	assert [(s.local.ident, s.exported.ident if s.exported else None) for s in named.specifiers] == [("x", "z"), ("y", None)]
	assert reexport.source.value == "elsewhere"


def test_automatic_semicolons() -> None:
	prog = parse_module(
		"""
const a = 1
let b = a
  + 2
foo()
"""
	)
	assert len(prog.body) == 3
	b = prog.body[1].declarations[0]
	assert isinstance(b.init, ast.Binary)
	assert b.init.op == "+"
	assert isinstance(prog.body[2], ast.ExprStmt)


def test_blocks_after_functions_do_not_leave_empty_statements() -> None:
	prog = parse_module(
		"""
function f() {
  if (x) {
    y()
  }
}
const z = 1
"""
	)
	assert [type(stmt) for stmt in prog.body] == [ast.FunctionDecl, ast.VarDecl]
	if_stmt = prog.body[0].body.statements[0]
	assert isinstance(if_stmt, ast.IfStmt)
	assert len(if_stmt.then_branch.statements) == 1


def test_explicit_semicolon_is_an_empty_statement() -> None:
	prog = parse_module("a();;")
	assert [type(stmt) for stmt in prog.body] == [ast.ExprStmt, ast.EmptyStmt]


def test_object_members() -> None:
	expr = parse_expression_source("{ default: 1, scope() { return { a } }, [k]: 2, ...rest, a, 'b-c': 3 }")
	assert isinstance(expr, ast.ObjectLiteral)
	default, method, computed, spread, shorthand, quoted = expr.properties
	assert isinstance(default, ast.Property) and default.key.ident == "default"
	assert isinstance(method, ast.ObjectMethod) and method.key.ident == "scope"
	assert isinstance(method.body.statements[0], ast.ReturnStmt)
	assert isinstance(method.body.statements[0].value, ast.ObjectLiteral)
	assert computed.computed
	assert isinstance(spread, ast.Spread)
	assert shorthand.shorthand and shorthand.value.ident == "a"
	assert quoted.key.value == "b-c"


def test_arrow_functions() -> None:
	expr = parse_expression_source("(a, b = 1, ...c) => a")
	assert isinstance(expr, ast.ArrowFunction)
	assert [p.name.ident for p in expr.params] == ["a", "b", "c"]
	assert expr.params[1].default.value == 1
	assert expr.params[2].rest

	concise = parse_expression_source("() => ({ a })")
	assert concise.params == []
	assert isinstance(concise.body, ast.ObjectLiteral)

	block = parse_expression_source("x => { return x; }")
	assert [p.name.ident for p in block.params] == ["x"]
	assert isinstance(block.body, ast.Block)


def test_parenthesized_expression_is_not_an_arrow() -> None:
	expr = parse_expression_source("(a + b) * c")
	assert isinstance(expr, ast.Binary)
	assert expr.op == "*"
	assert isinstance(expr.left, ast.Binary)


def test_template_literal_holes() -> None:
	expr = parse_expression_source("`a${b}c\\n`")
	assert isinstance(expr, ast.TemplateLiteral)
	assert [q.cooked for q in expr.quasis] == ["a", "c\n"]
	assert [q.raw for q in expr.quasis] == ["a", "c\\n"]
	assert isinstance(expr.expressions[0], ast.Name)
	assert expr.expressions[0].ident == "b"


def test_string_escapes() -> None:
	expr = parse_expression_source(r"'it\'s A\x42\n'")
	assert expr.value == "it's AB\n"


def test_keyword_property_access() -> None:
	expr = parse_expression_source("Ember.default.new")
	assert isinstance(expr, ast.Attr)
	assert expr.attr == "new"
	assert expr.value.attr == "default"


def test_locations_are_one_based() -> None:
	prog = parse_module("const a = 1;\nexport default hbs`x`;\n")
	value = prog.body[1].value
	assert value.loc == ast.Located(line=2, column=16)


def test_parse_error_has_code_frame() -> None:
	with pytest.raises(ParseError) as excinfo:
		parse_module("const a = 1;\nconst = 2;\n", "bad.js")
	err = excinfo.value
	assert err.span.line == 2
	assert err.span.file == "bad.js"
	assert "> 2 | const = 2;" in str(err)


def test_out_of_range_code_point_is_a_parse_error() -> None:
	with pytest.raises(ParseError) as excinfo:
		parse_module("const s = '\\u{110000}';\n", "bad.js")
	err = excinfo.value
	assert (err.span.line, err.span.column) == (1, 11)
	assert "code point out of bounds" in err.message
	assert "> 1 | const s = '\\u{110000}';" in str(err)


def test_async_test_callback() -> None:
	prog = parse_module("test('x', async function (assert) { await render(hbs`<Foo />`); });\n")
	call = prog.body[0].value
	callback = call.args[1]
	assert isinstance(callback, ast.FunctionExpr)
	assert callback.is_async
	awaited = callback.body.statements[0].value
	assert isinstance(awaited, ast.Unary) and awaited.op == "await"
	assert isinstance(awaited.operand.args[0], ast.TaggedTemplate)


def test_async_arrows_and_declarations() -> None:
	prog = parse_module("async function load() {}\nconst f = async () => 1;\nconst g = async x => x;\nasync(1);\n")
	assert prog.body[0].is_async
	assert prog.body[1].declarations[0].init.is_async
	assert prog.body[2].declarations[0].init.is_async
	plain_call = prog.body[3].value
	assert isinstance(plain_call, ast.Call) and plain_call.func.ident == "async"


def test_export_default_class() -> None:
	prog = parse_module("export default class Foo extends Component {}\n")
	value = prog.body[0].value
	assert isinstance(value, ast.ClassExpr)
	assert value.name.ident == "Foo"
	assert value.superclass.ident == "Component"
	assert value.body.members == []


def test_class_members() -> None:
	prog = parse_module(
		"""
class Foo extends Component {
  static x = 1;
  #count = 0;
  get count() { return this.#count; }
  async load() { await this.fetch(); }
  [key]() {}
  increment() { this.#count++; }
}
"""
	)
	decl = prog.body[0]
	assert isinstance(decl, ast.ClassDecl)
	static_field, private_field, getter, loader, computed, increment = decl.body.members
	assert isinstance(static_field, ast.ClassProperty) and static_field.static
	assert static_field.value.value == 1
	assert private_field.key.ident == "#count"
	assert isinstance(getter, ast.ClassMethod) and getter.kind == "get"
	assert loader.is_async and loader.key.ident == "load"
	assert computed.computed and computed.key.ident == "key"
	update = increment.body.statements[0].value
	assert isinstance(update, ast.Update) and update.op == "++" and not update.prefix


def test_loops_and_try() -> None:
	prog = parse_module(
		"""
for (let i = 0; i < n; i++) { total += i }
for (const item of items) use(item)
for (var k in obj) {}
while (x) x--
do { y() } while (y)
try { a() } catch (e) { b(e) } finally { c() }
for (;;) break
"""
	)
	for_stmt, for_of, for_in, while_stmt, do_while, try_stmt, bare_for = prog.body
	assert isinstance(for_stmt.init, ast.VarDecl) and for_stmt.init.kind == "let"
	assert for_stmt.test.op == "<"
	assert isinstance(for_stmt.update, ast.Update)
	assert (for_of.kind, for_of.name.ident, for_of.operator) == ("const", "item", "of")
	assert isinstance(for_of.body, ast.ExprStmt)
	assert (for_in.kind, for_in.operator) == ("var", "in")
	assert isinstance(while_stmt.body.value, ast.Update)
	assert isinstance(do_while, ast.DoWhileStmt) and do_while.condition.ident == "y"
	assert try_stmt.handler.param.ident == "e"
	assert isinstance(try_stmt.finalizer, ast.Block)
	assert (bare_for.init, bare_for.test, bare_for.update) == (None, None, None)
	assert isinstance(bare_for.body, ast.BreakStmt)


def test_else_after_bare_statement_on_next_line() -> None:
	prog = parse_module("if (a) b()\nelse c()\n")
	if_stmt = prog.body[0]
	assert isinstance(if_stmt.then_branch, ast.ExprStmt)
	assert isinstance(if_stmt.else_branch, ast.ExprStmt)


def test_optional_chaining() -> None:
	expr = parse_expression_source("a?.b?.[c]?.(d)")
	assert isinstance(expr, ast.Call) and expr.optional
	assert isinstance(expr.func, ast.Index) and expr.func.optional
	assert isinstance(expr.func.value, ast.Attr) and expr.func.value.optional
	ternary = parse_expression_source("a ?.5 : 1")
	assert isinstance(ternary, ast.Ternary)


def test_template_hole_with_braces() -> None:
	expr = parse_expression_source("`${ {a: 1}.a } and ${ `in${ {b} }` }`")
	first, second = expr.expressions
	assert isinstance(first, ast.Attr) and isinstance(first.value, ast.ObjectLiteral)
	assert isinstance(second, ast.TemplateLiteral)
	assert isinstance(second.expressions[0], ast.ObjectLiteral)


def test_comments_attach_to_following_statement() -> None:
	prog = parse_module(
		"""// head
const a = 1;
function f() {
  // inside
  g();
  // end of body
}
// tail
"""
	)
	assert prog.body[0].leading_comments == ("// head",)
	body = prog.body[1].body
	assert body.statements[0].leading_comments == ("// inside",)
	assert body.trailing_comments == ["// end of body"]
	assert prog.trailing_comments == ["// tail"]


def test_comment_inside_expression_attaches_to_operand() -> None:
	expr = parse_expression_source("f(/* note */ x)")
	assert expr.args[0].leading_comments == ("/* note */",)
