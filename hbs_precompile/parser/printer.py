# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from typing import List, Optional, Sequence

from . import ast

_INDENT = "  "

# Binding power of each expression form; a child printed in a slot that needs
# more than the child provides gets parenthesized.
_PREC_ASSIGN = 1
_PREC_TERNARY = 2
_PREC_POSTFIX = 13
_PREC_PRIMARY = 14

_BINARY_PREC = {
	"??": 3,
	"||": 4,
	"&&": 5,
	"==": 6,
	"!=": 6,
	"===": 6,
	"!==": 6,
	"<": 7,
	">": 7,
	"<=": 7,
	">=": 7,
	"instanceof": 7,
	"in": 7,
	"+": 8,
	"-": 8,
	"*": 9,
	"/": 9,
	"%": 9,
}
_PREC_UNARY = 10
_PREC_UPDATE = 11

# `??` may not be mixed with `||` / `&&` without parentheses.
_LOGICAL = {"||", "&&"}


def format_program(program: ast.Program) -> str:
	lines = [format_stmt(stmt, 0) for stmt in program.body]
	lines.extend(program.trailing_comments)
	return "\n".join(lines) + ("\n" if lines else "")


def format_stmt(stmt: ast.Stmt, level: int) -> str:
	pad = _INDENT * level
	return _comment_lines(stmt.leading_comments, pad) + pad + _format_stmt_inner(stmt, level)


def _format_stmt_inner(stmt: ast.Stmt, level: int) -> str:
	"""A statement without its leading comments or indentation."""
	if isinstance(stmt, ast.ImportDecl):
		return _format_import(stmt)
	if isinstance(stmt, ast.ExportDefault):
		value = format_expr(stmt.value, level, _PREC_ASSIGN)
		if isinstance(stmt.value, (ast.FunctionExpr, ast.ClassExpr)) and not stmt.value.leading_comments:
			return f"export default {value}"
		return f"export default {value};"
	if isinstance(stmt, ast.ExportNamed):
		if stmt.declaration is not None:
			return f"export {_format_stmt_inner(stmt.declaration, level)}"
		specs = ", ".join(_format_export_spec(spec) for spec in stmt.specifiers)
		source = f" from {_format_string(stmt.source.value)}" if stmt.source is not None else ""
		return f"export {{ {specs} }}{source};" if specs else f"export {{}}{source};"
	if isinstance(stmt, ast.VarDecl):
		return _format_var_decl(stmt, level) + ";"
	if isinstance(stmt, ast.FunctionDecl):
		params = _format_params(stmt.params, level)
		prefix = "async " if stmt.is_async else ""
		return f"{prefix}function {stmt.name.ident}({params}) {_format_block(stmt.body, level)}"
	if isinstance(stmt, ast.ClassDecl):
		return _format_class(stmt.name, stmt.superclass, stmt.body, level)
	if isinstance(stmt, ast.Block):
		return _format_block(stmt, level)
	if isinstance(stmt, ast.IfStmt):
		text = f"if ({format_expr(stmt.condition, level)})" + _format_body(stmt.then_branch, level)
		if stmt.else_branch is not None:
			text += " else" + _format_body(stmt.else_branch, level)
		return text
	if isinstance(stmt, ast.ForStmt):
		return _format_for(stmt, level)
	if isinstance(stmt, ast.ForInStmt):
		head = f"{stmt.kind} {stmt.name.ident} {stmt.operator} {format_expr(stmt.iterable, level, _PREC_ASSIGN)}"
		return f"for ({head})" + _format_body(stmt.body, level)
	if isinstance(stmt, ast.WhileStmt):
		return f"while ({format_expr(stmt.condition, level)})" + _format_body(stmt.body, level)
	if isinstance(stmt, ast.DoWhileStmt):
		return "do" + _format_body(stmt.body, level) + f" while ({format_expr(stmt.condition, level)});"
	if isinstance(stmt, ast.TryStmt):
		text = "try " + _format_block(stmt.block, level)
		if stmt.handler is not None:
			param = f"({stmt.handler.param.ident}) " if stmt.handler.param is not None else ""
			text += f" catch {param}{_format_block(stmt.handler.body, level)}"
		if stmt.finalizer is not None:
			text += " finally " + _format_block(stmt.finalizer, level)
		return text
	if isinstance(stmt, ast.ReturnStmt):
		if stmt.value is None:
			return "return;"
		return f"return {format_expr(stmt.value, level)};"
	if isinstance(stmt, ast.ThrowStmt):
		return f"throw {format_expr(stmt.value, level)};"
	if isinstance(stmt, ast.BreakStmt):
		return "break;"
	if isinstance(stmt, ast.ContinueStmt):
		return "continue;"
	if isinstance(stmt, ast.ExprStmt):
		text = format_expr(stmt.value, level)
		if _needs_statement_parens(stmt.value):
			text = f"({text})"
		return f"{text};"
	if isinstance(stmt, ast.EmptyStmt):
		return ";"
	raise TypeError(f"cannot print statement {type(stmt).__name__}")


def format_expr(expr: ast.Expr, level: int = 0, min_prec: int = 0) -> str:
	text = _format_expr_inner(expr, level)
	if _precedence(expr) < min_prec:
		text = f"({text})"
	return _inline_comments(expr.leading_comments) + text


def _format_expr_inner(expr: ast.Expr, level: int) -> str:
	if isinstance(expr, ast.Name):
		return expr.ident
	if isinstance(expr, ast.Literal):
		return _format_literal(expr.value)
	if isinstance(expr, ast.TemplateLiteral):
		return _format_template(expr, level)
	if isinstance(expr, ast.TaggedTemplate):
		return format_expr(expr.tag, level, _PREC_POSTFIX) + _format_template(expr.quasi, level)
	if isinstance(expr, ast.Spread):
		return "..." + format_expr(expr.value, level, _PREC_ASSIGN)
	if isinstance(expr, ast.Call):
		dot = "?." if expr.optional else ""
		return f"{format_expr(expr.func, level, _PREC_POSTFIX)}{dot}({_format_args(expr.args, level)})"
	if isinstance(expr, ast.New):
		return f"new {format_expr(expr.func, level, _PREC_POSTFIX)}({_format_args(expr.args, level)})"
	if isinstance(expr, ast.Attr):
		dot = "?." if expr.optional else "."
		return f"{format_expr(expr.value, level, _PREC_POSTFIX)}{dot}{expr.attr}"
	if isinstance(expr, ast.Index):
		dot = "?." if expr.optional else ""
		return f"{format_expr(expr.value, level, _PREC_POSTFIX)}{dot}[{format_expr(expr.index, level)}]"
	if isinstance(expr, ast.ArrayLiteral):
		return "[" + _format_args(expr.elements, level) + "]"
	if isinstance(expr, ast.ObjectLiteral):
		return _format_object(expr, level)
	if isinstance(expr, ast.ArrowFunction):
		params = _format_params(expr.params, level)
		if isinstance(expr.body, ast.Block):
			body = _format_block(expr.body, level)
		else:
			body = format_expr(expr.body, level, _PREC_ASSIGN)
			if isinstance(expr.body, ast.ObjectLiteral):
				body = f"({body})"
		prefix = "async " if expr.is_async else ""
		return f"{prefix}({params}) => {body}"
	if isinstance(expr, ast.FunctionExpr):
		name = f" {expr.name.ident}" if expr.name is not None else ""
		params = _format_params(expr.params, level)
		prefix = "async " if expr.is_async else ""
		return f"{prefix}function{name}({params}) {_format_block(expr.body, level)}"
	if isinstance(expr, ast.ClassExpr):
		return _format_class(expr.name, expr.superclass, expr.body, level)
	if isinstance(expr, ast.Unary):
		operand = format_expr(expr.operand, level, _PREC_UNARY)
		sep = " " if expr.op.isalpha() or operand.startswith(expr.op[0]) else ""
		return f"{expr.op}{sep}{operand}"
	if isinstance(expr, ast.Update):
		operand = format_expr(expr.operand, level, _PREC_POSTFIX)
		return f"{expr.op}{operand}" if expr.prefix else f"{operand}{expr.op}"
	if isinstance(expr, ast.Binary):
		prec = _BINARY_PREC[expr.op]
		left = _format_operand(expr, expr.left, level, prec)
		right = _format_operand(expr, expr.right, level, prec + 1)
		return f"{left} {expr.op} {right}"
	if isinstance(expr, ast.Ternary):
		cond = format_expr(expr.condition, level, _PREC_TERNARY + 1)
		then_value = format_expr(expr.then_value, level, _PREC_ASSIGN)
		else_value = format_expr(expr.else_value, level, _PREC_ASSIGN)
		return f"{cond} ? {then_value} : {else_value}"
	if isinstance(expr, ast.Assign):
		target = format_expr(expr.target, level, _PREC_POSTFIX)
		return f"{target} {expr.op} {format_expr(expr.value, level, _PREC_ASSIGN)}"
	raise TypeError(f"cannot print expression {type(expr).__name__}")


def _format_operand(parent: ast.Binary, child: ast.Expr, level: int, min_prec: int) -> str:
	if isinstance(child, ast.Binary) and _mixes_nullish(parent.op, child.op):
		return _inline_comments(child.leading_comments) + f"({_format_expr_inner(child, level)})"
	return format_expr(child, level, min_prec)


def _mixes_nullish(outer: str, inner: str) -> bool:
	return (outer == "??" and inner in _LOGICAL) or (outer in _LOGICAL and inner == "??")


def _precedence(expr: ast.Expr) -> int:
	if isinstance(expr, (ast.Assign, ast.ArrowFunction, ast.FunctionExpr, ast.ClassExpr, ast.Spread)):
		return _PREC_ASSIGN
	if isinstance(expr, ast.Ternary):
		return _PREC_TERNARY
	if isinstance(expr, ast.Binary):
		return _BINARY_PREC[expr.op]
	if isinstance(expr, ast.Unary):
		return _PREC_UNARY
	if isinstance(expr, ast.Update):
		return _PREC_UNARY if expr.prefix else _PREC_UPDATE
	if isinstance(expr, (ast.Call, ast.New, ast.Attr, ast.Index, ast.TaggedTemplate)):
		return _PREC_POSTFIX
	return _PREC_PRIMARY


def _comment_lines(comments: Sequence[str], pad: str) -> str:
	return "".join(f"{pad}{comment}\n" for comment in comments)


def _inline_comments(comments: Sequence[str]) -> str:
	out = []
	for comment in comments:
		if comment.startswith("//"):
			comment = "/*" + comment[2:].replace("*/", "*\\/") + "*/"
		out.append(comment)
	return "".join(out)


def _format_literal(value: object) -> str:
	if value is None:
		return "null"
	if isinstance(value, bool):
		return "true" if value else "false"
	if isinstance(value, int):
		return str(value)
	if isinstance(value, float):
		if value.is_integer() and abs(value) < 1e21:
			return str(int(value))
		return repr(value)
	if isinstance(value, str):
		return _format_string(value)
	raise TypeError(f"cannot print literal {value!r}")


def _format_string(value: str) -> str:
	return json.dumps(value, ensure_ascii=False).replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")


def _format_template(expr: ast.TemplateLiteral, level: int) -> str:
	parts: List[str] = []
	for idx, quasi in enumerate(expr.quasis):
		parts.append(quasi.raw)
		if idx < len(expr.expressions):
			parts.append("${" + format_expr(expr.expressions[idx], level) + "}")
	return "`" + "".join(parts) + "`"


def _format_args(args: List[ast.Expr], level: int) -> str:
	return ", ".join(format_expr(arg, level, _PREC_ASSIGN) for arg in args)


def _format_params(params: List[ast.Param], level: int) -> str:
	out = []
	for param in params:
		if param.rest:
			out.append(f"...{param.name.ident}")
		elif param.default is not None:
			out.append(f"{param.name.ident} = {format_expr(param.default, level, _PREC_ASSIGN)}")
		else:
			out.append(param.name.ident)
	return ", ".join(out)


def _format_block(block: ast.Block, level: int) -> str:
	if not block.statements and not block.trailing_comments:
		return "{}"
	inner = [format_stmt(stmt, level + 1) for stmt in block.statements]
	inner.extend(_INDENT * (level + 1) + comment for comment in block.trailing_comments)
	return "{\n" + "\n".join(inner) + "\n" + _INDENT * level + "}"


def _format_body(stmt: ast.Stmt, level: int) -> str:
	"""The statement after a loop or `if` head, on the same line as the head."""
	return " " + _inline_comments(stmt.leading_comments) + _format_stmt_inner(stmt, level)


def _format_for(stmt: ast.ForStmt, level: int) -> str:
	if stmt.init is None:
		init = ""
	elif isinstance(stmt.init, ast.VarDecl):
		init = _format_var_decl(stmt.init, level)
	else:
		init = format_expr(stmt.init, level)
	test = f" {format_expr(stmt.test, level)}" if stmt.test is not None else ""
	update = f" {format_expr(stmt.update, level)}" if stmt.update is not None else ""
	return f"for ({init};{test};{update})" + _format_body(stmt.body, level)


def _format_var_decl(stmt: ast.VarDecl, level: int) -> str:
	decls = ", ".join(_format_declarator(decl, level) for decl in stmt.declarations)
	return f"{stmt.kind} {decls}"


def _format_class(name: Optional[ast.Name], superclass: Optional[ast.Expr], body: ast.ClassBody, level: int) -> str:
	text = "class"
	if name is not None:
		text += f" {name.ident}"
	if superclass is not None:
		text += f" extends {format_expr(superclass, level, _PREC_POSTFIX)}"
	if not body.members and not body.trailing_comments:
		return text + " {}"
	pad = _INDENT * (level + 1)
	lines = [_comment_lines(member.leading_comments, pad) + pad + _format_class_member(member, level + 1) for member in body.members]
	lines.extend(pad + comment for comment in body.trailing_comments)
	return text + " {\n" + "\n".join(lines) + "\n" + _INDENT * level + "}"


def _format_class_member(member: ast.Node, level: int) -> str:
	prefix = "static " if member.static else ""
	key = _format_key(member.key, member.computed, level)
	if isinstance(member, ast.ClassProperty):
		if member.value is None:
			return f"{prefix}{key};"
		return f"{prefix}{key} = {format_expr(member.value, level, _PREC_ASSIGN)};"
	return prefix + _format_method(member, key, level)


def _format_method(method, key: str, level: int) -> str:
	prefix = "async " if method.is_async else ""
	if method.kind != "method":
		prefix += method.kind + " "
	params = _format_params(method.params, level)
	return f"{prefix}{key}({params}) {_format_block(method.body, level)}"


def _format_key(key: ast.Expr, computed: bool, level: int) -> str:
	if computed:
		return f"[{format_expr(key, level, _PREC_ASSIGN)}]"
	return format_expr(key, level)


def _format_object(expr: ast.ObjectLiteral, level: int) -> str:
	if not expr.properties:
		return "{}"
	inner_pad = _INDENT * (level + 1)
	members = []
	for prop in expr.properties:
		comments = _comment_lines(prop.leading_comments, inner_pad)
		if isinstance(prop, ast.Spread):
			member = "..." + format_expr(prop.value, level + 1, _PREC_ASSIGN)
		elif isinstance(prop, ast.ObjectMethod):
			member = _format_method(prop, _format_key(prop.key, prop.computed, level + 1), level + 1)
		elif prop.shorthand and isinstance(prop.value, ast.Name) and isinstance(prop.key, ast.Name) and prop.key.ident == prop.value.ident:
			member = prop.key.ident
		else:
			key = _format_key(prop.key, prop.computed, level + 1)
			member = f"{key}: {format_expr(prop.value, level + 1, _PREC_ASSIGN)}"
		members.append(comments + inner_pad + member)
	return "{\n" + ",\n".join(members) + "\n" + _INDENT * level + "}"


def _format_import(stmt: ast.ImportDecl) -> str:
	source = _format_string(stmt.source.value)
	if not stmt.specifiers:
		return f"import {source};"
	head: List[str] = []
	named: List[str] = []
	for spec in stmt.specifiers:
		if isinstance(spec, ast.ImportDefaultSpecifier):
			head.append(spec.local.ident)
		elif isinstance(spec, ast.ImportNamespaceSpecifier):
			head.append(f"* as {spec.local.ident}")
		else:
			imported = _format_module_name(spec.imported)
			if imported == spec.local.ident:
				named.append(imported)
			else:
				named.append(f"{imported} as {spec.local.ident}")
	if named:
		head.append("{ " + ", ".join(named) + " }")
	return f"import {', '.join(head)} from {source};"


def _format_export_spec(spec: ast.ExportSpecifier) -> str:
	local = _format_module_name(spec.local)
	if spec.exported is None:
		return local
	exported = _format_module_name(spec.exported)
	return local if exported == local else f"{local} as {exported}"


def _format_module_name(node: ast.Expr) -> str:
	if isinstance(node, ast.Name):
		return node.ident
	return _format_string(ast.name_of(node))


def _format_declarator(decl: ast.VarDeclarator, level: int) -> str:
	if decl.init is None:
		return decl.name.ident
	return f"{decl.name.ident} = {format_expr(decl.init, level, _PREC_ASSIGN)}"


def _needs_statement_parens(expr: ast.Expr) -> bool:
	"""An expression statement may not start with `{`, `function` or `class`."""
	head = expr
	while True:
		if isinstance(head, (ast.ObjectLiteral, ast.FunctionExpr, ast.ClassExpr)):
			return True
		if isinstance(head, ast.Call):
			nxt = head.func
		elif isinstance(head, (ast.Attr, ast.Index)):
			nxt = head.value
		elif isinstance(head, ast.TaggedTemplate):
			nxt = head.tag
		elif isinstance(head, ast.Update) and not head.prefix:
			nxt = head.operand
		elif isinstance(head, ast.Binary):
			nxt = head.left
		elif isinstance(head, ast.Assign):
			nxt = head.target
		elif isinstance(head, ast.Ternary):
			nxt = head.condition
		else:
			return False
		if _precedence(nxt) < _PREC_POSTFIX and not isinstance(head, (ast.Binary, ast.Assign, ast.Ternary)):
			# the child gets its own parentheses
			return False
		head = nxt


__all__ = ["format_program", "format_stmt", "format_expr"]
