# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
AST for the JavaScript module subset the precompile pass reads and writes.

Nodes are plain dataclasses. `loc` is the 1-based line/column of the first
token of the node; nodes synthesized by the pass have `loc=None`.

Comments are kept as their full source text (`/* ... */` or `// ...`).
A comment sits in the `leading_comments` of the node it precedes; comments
after the last statement of a block, class body or program go into that
container's `trailing_comments`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(frozen=True)
class Located:
	line: int
	column: int


class Node:
	loc: Optional[Located]
	leading_comments: tuple = ()


class Stmt(Node):
	pass


class Expr(Node):
	pass


def add_comment(node: Node, text: str) -> Node:
	"""Attach a leading block comment (`/*text*/`) to `node`."""
	node.leading_comments = tuple(node.leading_comments) + ("/*" + text + "*/",)
	return node


# Expressions


@dataclass
class Name(Expr):
	ident: str
	loc: Optional[Located] = None


@dataclass
class Literal(Expr):
	"""String, number, boolean or null (`value is None`) literal."""

	value: object
	loc: Optional[Located] = None


@dataclass
class TemplateElement(Node):
	raw: str
	cooked: str
	loc: Optional[Located] = None


@dataclass
class TemplateLiteral(Expr):
	quasis: List[TemplateElement]
	expressions: List[Expr] = field(default_factory=list)
	loc: Optional[Located] = None


@dataclass
class TaggedTemplate(Expr):
	tag: Expr
	quasi: TemplateLiteral
	loc: Optional[Located] = None


@dataclass
class Spread(Expr):
	value: Expr
	loc: Optional[Located] = None


@dataclass
class Call(Expr):
	func: Expr
	args: List[Expr] = field(default_factory=list)
	loc: Optional[Located] = None
	optional: bool = False


@dataclass
class New(Expr):
	func: Expr
	args: List[Expr] = field(default_factory=list)
	loc: Optional[Located] = None


@dataclass
class Attr(Expr):
	"""`value.attr`, or `value?.attr` when `optional`; `attr` may be a `#private` name."""

	value: Expr
	attr: str
	loc: Optional[Located] = None
	optional: bool = False


@dataclass
class Index(Expr):
	value: Expr
	index: Expr
	loc: Optional[Located] = None
	optional: bool = False


@dataclass
class ArrayLiteral(Expr):
	elements: List[Expr] = field(default_factory=list)
	loc: Optional[Located] = None


@dataclass
class Property(Node):
	"""`key: value`; `shorthand` marks `{ key }`, `computed` marks `[key]: value`."""

	key: Expr
	value: Expr
	computed: bool = False
	shorthand: bool = False
	loc: Optional[Located] = None


@dataclass
class Param(Node):
	name: Name
	default: Optional[Expr] = None
	rest: bool = False
	loc: Optional[Located] = None


@dataclass
class ObjectMethod(Node):
	"""A method member; `kind` is "method", "get" or "set"."""

	key: Expr
	params: List[Param]
	body: "Block"
	computed: bool = False
	loc: Optional[Located] = None
	kind: str = "method"
	is_async: bool = False


@dataclass
class ObjectLiteral(Expr):
	properties: List[Union[Property, ObjectMethod, Spread]] = field(default_factory=list)
	loc: Optional[Located] = None


@dataclass
class ArrowFunction(Expr):
	params: List[Param]
	body: Union["Block", Expr]
	loc: Optional[Located] = None
	is_async: bool = False


@dataclass
class FunctionExpr(Expr):
	name: Optional[Name]
	params: List[Param]
	body: "Block"
	loc: Optional[Located] = None
	is_async: bool = False


@dataclass
class ClassExpr(Expr):
	name: Optional[Name]
	superclass: Optional[Expr]
	body: "ClassBody"
	loc: Optional[Located] = None


@dataclass
class Unary(Expr):
	op: str
	operand: Expr
	loc: Optional[Located] = None


@dataclass
class Update(Expr):
	"""`++x` / `x--`; `prefix` tells which side the operator is on."""

	op: str
	operand: Expr
	prefix: bool
	loc: Optional[Located] = None


@dataclass
class Binary(Expr):
	op: str
	left: Expr
	right: Expr
	loc: Optional[Located] = None


@dataclass
class Ternary(Expr):
	condition: Expr
	then_value: Expr
	else_value: Expr
	loc: Optional[Located] = None


@dataclass
class Assign(Expr):
	op: str
	target: Expr
	value: Expr
	loc: Optional[Located] = None


# Statements


@dataclass
class Block(Stmt):
	statements: List[Stmt] = field(default_factory=list)
	loc: Optional[Located] = None
	end: Optional[Located] = field(default=None, compare=False, repr=False)
	trailing_comments: List[str] = field(default_factory=list, compare=False)


@dataclass
class ExprStmt(Stmt):
	value: Expr
	loc: Optional[Located] = None


@dataclass
class EmptyStmt(Stmt):
	loc: Optional[Located] = None


@dataclass
class ReturnStmt(Stmt):
	value: Optional[Expr]
	loc: Optional[Located] = None


@dataclass
class ThrowStmt(Stmt):
	value: Expr
	loc: Optional[Located] = None


@dataclass
class BreakStmt(Stmt):
	loc: Optional[Located] = None


@dataclass
class ContinueStmt(Stmt):
	loc: Optional[Located] = None


@dataclass
class IfStmt(Stmt):
	condition: Expr
	then_branch: Stmt
	else_branch: Optional[Stmt] = None
	loc: Optional[Located] = None


@dataclass
class VarDeclarator(Node):
	name: Name
	init: Optional[Expr] = None
	loc: Optional[Located] = None


@dataclass
class VarDecl(Stmt):
	kind: str
	declarations: List[VarDeclarator]
	loc: Optional[Located] = None


@dataclass
class ForStmt(Stmt):
	"""`for (init; test; update) body`; every head part is optional."""

	init: Optional[Union[VarDecl, Expr]]
	test: Optional[Expr]
	update: Optional[Expr]
	body: Stmt
	loc: Optional[Located] = None


@dataclass
class ForInStmt(Stmt):
	"""`for (kind name of|in iterable) body`; `operator` is "of" or "in"."""

	kind: str
	name: Name
	operator: str
	iterable: Expr
	body: Stmt
	loc: Optional[Located] = None


@dataclass
class WhileStmt(Stmt):
	condition: Expr
	body: Stmt
	loc: Optional[Located] = None


@dataclass
class DoWhileStmt(Stmt):
	body: Stmt
	condition: Expr
	loc: Optional[Located] = None


@dataclass
class CatchClause(Node):
	param: Optional[Name]
	body: Block
	loc: Optional[Located] = None


@dataclass
class TryStmt(Stmt):
	block: Block
	handler: Optional[CatchClause] = None
	finalizer: Optional[Block] = None
	loc: Optional[Located] = None


@dataclass
class FunctionDecl(Stmt):
	name: Name
	params: List[Param]
	body: Block
	loc: Optional[Located] = None
	is_async: bool = False


@dataclass
class ClassMethod(Node):
	key: Expr
	params: List[Param]
	body: Block
	computed: bool = False
	static: bool = False
	kind: str = "method"
	is_async: bool = False
	loc: Optional[Located] = None


@dataclass
class ClassProperty(Node):
	key: Expr
	value: Optional[Expr] = None
	computed: bool = False
	static: bool = False
	loc: Optional[Located] = None


@dataclass
class ClassBody(Node):
	members: List[Union[ClassMethod, ClassProperty]] = field(default_factory=list)
	loc: Optional[Located] = None
	end: Optional[Located] = field(default=None, compare=False, repr=False)
	trailing_comments: List[str] = field(default_factory=list, compare=False)


@dataclass
class ClassDecl(Stmt):
	name: Name
	superclass: Optional[Expr]
	body: ClassBody
	loc: Optional[Located] = None


@dataclass
class ImportDefaultSpecifier(Node):
	local: Name
	loc: Optional[Located] = None


@dataclass
class ImportNamespaceSpecifier(Node):
	local: Name
	loc: Optional[Located] = None


@dataclass
class ImportSpecifier(Node):
	"""`imported as local`; `imported` is a Name or a string Literal."""

	imported: Expr
	local: Name
	loc: Optional[Located] = None


ImportSpecifierLike = Union[ImportDefaultSpecifier, ImportNamespaceSpecifier, ImportSpecifier]


@dataclass
class ImportDecl(Stmt):
	specifiers: List[ImportSpecifierLike]
	source: Literal
	loc: Optional[Located] = None


@dataclass
class ExportSpecifier(Node):
	local: Expr
	exported: Optional[Expr] = None
	loc: Optional[Located] = None


@dataclass
class ExportNamed(Stmt):
	declaration: Optional[Stmt] = None
	specifiers: List[ExportSpecifier] = field(default_factory=list)
	source: Optional[Literal] = None
	loc: Optional[Located] = None


@dataclass
class ExportDefault(Stmt):
	value: Expr
	loc: Optional[Located] = None


@dataclass
class Program(Node):
	body: List[Stmt] = field(default_factory=list)
	loc: Optional[Located] = None
	trailing_comments: List[str] = field(default_factory=list, compare=False)


def name_of(node: Expr) -> str:
	"""Text of an identifier or string-literal key/specifier."""
	if isinstance(node, Name):
		return node.ident
	if isinstance(node, Literal) and isinstance(node.value, str):
		return node.value
	raise TypeError(f"expected identifier or string literal, got {type(node).__name__}")


def is_string_literal(node: object) -> bool:
	return isinstance(node, Literal) and isinstance(node.value, str)


def describe(node: Node) -> str:
	"""Short human-readable description of a node for diagnostics."""
	if isinstance(node, Name):
		return f"identifier `{node.ident}`"
	if isinstance(node, Literal):
		if node.value is None:
			return "null literal"
		return f"literal {node.value!r}"
	return type(node).__name__
