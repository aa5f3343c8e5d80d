# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import re
from dataclasses import fields
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from ..core.errors import ParseError
from .ast import (
	ArrayLiteral,
	ArrowFunction,
	Assign,
	Attr,
	Binary,
	Block,
	BreakStmt,
	Call,
	CatchClause,
	ClassBody,
	ClassDecl,
	ClassExpr,
	ClassMethod,
	ClassProperty,
	ContinueStmt,
	DoWhileStmt,
	EmptyStmt,
	ExportDefault,
	ExportNamed,
	ExportSpecifier,
	Expr,
	ExprStmt,
	ForInStmt,
	ForStmt,
	FunctionDecl,
	FunctionExpr,
	IfStmt,
	ImportDecl,
	ImportDefaultSpecifier,
	ImportNamespaceSpecifier,
	ImportSpecifier,
	Index,
	Literal,
	Located,
	Name,
	New,
	Node,
	ObjectLiteral,
	ObjectMethod,
	Param,
	Program,
	Property,
	ReturnStmt,
	Spread,
	Stmt,
	TaggedTemplate,
	TemplateElement,
	TemplateLiteral,
	Ternary,
	ThrowStmt,
	TryStmt,
	Unary,
	Update,
	VarDecl,
	VarDeclarator,
	WhileStmt,
)
from .comments import attach_comments

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

KEYWORDS = frozenset(
	{
		"IMPORT",
		"EXPORT",
		"DEFAULT",
		"FUNCTION",
		"CLASS",
		"EXTENDS",
		"RETURN",
		"THROW",
		"IF",
		"ELSE",
		"FOR",
		"WHILE",
		"DO",
		"TRY",
		"CATCH",
		"FINALLY",
		"BREAK",
		"CONTINUE",
		"CONST",
		"LET",
		"VAR",
		"NEW",
		"TRUE",
		"FALSE",
		"NULL",
		"TYPEOF",
		"VOID",
		"DELETE",
		"AWAIT",
		"INSTANCEOF",
		"IN",
	}
)


class TerminatorInserter:
	"""
	Post-lexer turning the raw token stream into what the LALR grammar expects.

	- `;` and line breaks that end a statement become TERMINATOR (automatic
	  semicolon insertion: only inside statement blocks and class bodies, only
	  after a token that can end an expression, and not when the next line
	  continues it). `else` and the `while` of a do-loop also end a bare
	  statement body in front of them.
	- `{` becomes BLOCK_LBRACE when it opens a statement block and
	  CLASS_LBRACE when it opens a class body, rather than an object literal.
	- `(` becomes ARROW_LPAR when its matching `)` is followed by `=>`.
	- `function` and `class` at statement start become DECL_FUNCTION and
	  DECL_CLASS.
	- keywords used as property names (`x.default`, `{ default: 1 }`) become NAME.
	- soft keywords become their own terminals where they act as keywords:
	  `from`/`as` in import/export clauses, `of` in a for head, `async`,
	  `get`/`set` and `static` in front of members and functions.
	"""

	always_accept = ("NEWLINE", "SEMI")

	TERMINABLE = {
		"NAME",
		"PRIVATE_NAME",
		"NUMBER",
		"STRING",
		"TEMPLATE",
		"TRUE",
		"FALSE",
		"NULL",
		"RPAR",
		"RSQB",
		"RBRACE",
		"RETURN",
		"BREAK",
		"CONTINUE",
		"INCR",
		"DECR",
	}

	# A line starting with one of these continues the previous expression.
	CONTINUATION = {
		"DOT",
		"OPTIONAL_CHAIN",
		"LPAR",
		"LSQB",
		"TEMPLATE",
		"ELSE",
		"CATCH",
		"FINALLY",
		"EXTENDS",
		"ARROW",
		"QMARK",
		"COLON",
		"COMMA",
		"EQUAL",
		"PLUS_EQUAL",
		"MINUS_EQUAL",
		"STAR_EQUAL",
		"SLASH_EQUAL",
		"PERCENT_EQUAL",
		"OR_EQUAL",
		"AND_EQUAL",
		"NULLISH_EQUAL",
		"STRICT_EQ",
		"STRICT_NE",
		"EQ",
		"NE",
		"LE",
		"GE",
		"LT",
		"GT",
		"NULLISH",
		"OR",
		"AND",
		"PLUS",
		"MINUS",
		"STAR",
		"SLASH",
		"PERCENT",
		"INSTANCEOF",
		"IN",
	}

	BLOCK_OPENERS = {"RPAR", "ARROW", "ELSE", "DO", "TRY", "CATCH", "FINALLY"}

	# `(` right after these opens a statement head, not a call or a group.
	HEAD_KEYWORDS = {"IF", "FOR", "WHILE", "CATCH"}

	MEMBER_KEY_START = {"NAME", "STRING", "NUMBER", "PRIVATE_NAME", "LSQB"} | KEYWORDS
	MEMBER_KEY_END = {"COLON", "LPAR", "EQUAL", "SEMI", "RBRACE", "COMMA"}

	def __init__(self, statements: bool = True) -> None:
		# `statements=False` is used for standalone expressions (compiler
		# payloads, template holes): no statement context, no terminators.
		self.statements = statements
		self._reset()

	def _reset(self) -> None:
		self.stack: List[str] = ["block" if self.statements else "paren"]
		self.can_terminate = False
		self.last_type: Optional[str] = None
		self.module_clause = False
		self.closed: Optional[str] = None
		self.pending_class: List[int] = []
		self.pending_do: List[int] = []
		self.head_next: Optional[str] = None
		self.async_decl = False
		self.force_terminator = False

	def process(self, stream: Iterable[Token]) -> Iterator[Token]:
		self._reset()
		tokens = list(stream)
		significant = [idx for idx, tok in enumerate(tokens) if tok.type != "NEWLINE"]
		next_of = {idx: (significant[pos + 1] if pos + 1 < len(significant) else None) for pos, idx in enumerate(significant)}
		arrow_parens = self._arrow_parens(tokens, significant)
		pending_newline = False
		last: Optional[Token] = None
		for idx, token in enumerate(tokens):
			ttype = token.type
			if ttype == "NEWLINE":
				pending_newline = True
				continue
			if ttype == "SEMI":
				pending_newline = False
				yield self._terminator(token)
				continue
			nxt_idx = next_of.get(idx)
			nxt = tokens[nxt_idx] if nxt_idx is not None else None
			after_idx = next_of.get(nxt_idx) if nxt_idx is not None else None
			after = tokens[after_idx] if after_idx is not None else None
			do_tail = self._is_do_tail(token)
			if (ttype == "ELSE" or do_tail) and self._ends_branch():
				yield self._terminator(token)
			if pending_newline:
				pending_newline = False
				if self._in_block() and self.can_terminate and ttype not in self.CONTINUATION and not do_tail:
					yield self._terminator(token)
			if ttype == "RBRACE" and self._in_block() and self.can_terminate:
				yield self._terminator(token)
			token = self._retype(token, nxt, after, idx in arrow_parens, nxt_idx in arrow_parens)
			if do_tail:
				self.pending_do.pop()
				self.head_next = "dohead"
			self._update(token)
			last = token
			yield token
			if self.force_terminator:
				# a do-while head ends its statement even without `;`
				self.force_terminator = False
				if nxt is None or nxt.type != "SEMI":
					yield self._terminator(token)
		if last is not None and self.statements and self.can_terminate:
			yield self._terminator(last)

	def _arrow_parens(self, tokens: List[Token], significant: List[int]) -> set[int]:
		"""Indexes of `(` tokens whose matching `)` is directly followed by `=>`."""
		result: set[int] = set()
		open_stack: List[int] = []
		for pos, idx in enumerate(significant):
			ttype = tokens[idx].type
			if ttype == "LPAR":
				open_stack.append(idx)
			elif ttype == "RPAR" and open_stack:
				opener = open_stack.pop()
				if pos + 1 < len(significant) and tokens[significant[pos + 1]].type == "ARROW":
					result.add(opener)
		return result

	def _terminator(self, token: Token) -> Token:
		self.can_terminate = False
		self.last_type = "TERMINATOR"
		self.module_clause = False
		return Token.new_borrow_pos("TERMINATOR", token.value, token)

	def _in_block(self) -> bool:
		return self.stack[-1] in ("block", "class")

	def _at_statement_start(self) -> bool:
		return self.stack[-1] == "block" and self.last_type in (None, "TERMINATOR", "BLOCK_LBRACE")

	def _at_member_start(self) -> bool:
		top = self.stack[-1]
		if top == "object":
			return self.last_type in ("LBRACE", "COMMA", "ASYNC", "GET", "SET")
		if top == "class":
			return self.last_type in ("CLASS_LBRACE", "TERMINATOR", "RBRACE", "STATIC", "ASYNC", "GET", "SET")
		return False

	def _is_do_tail(self, token: Token) -> bool:
		return (
			token.type == "WHILE"
			and bool(self.pending_do)
			and self.pending_do[-1] == len(self.stack)
			and self.last_type != "DO"
		)

	def _ends_branch(self) -> bool:
		"""A bare statement body is still open in front of `else` / do-loop `while`."""
		if not self._in_block() or not self.can_terminate:
			return False
		return not (self.last_type == "RBRACE" and self.closed == "block")

	def _retype(
		self,
		token: Token,
		nxt: Optional[Token],
		after: Optional[Token],
		arrow_paren: bool,
		nxt_arrow_paren: bool,
	) -> Token:
		ttype = token.type
		nxt_type = nxt.type if nxt is not None else None
		if ttype == "LBRACE":
			if self.pending_class and self.pending_class[-1] == len(self.stack):
				return Token.new_borrow_pos("CLASS_LBRACE", token.value, token)
			if self.last_type in self.BLOCK_OPENERS or self._at_statement_start():
				return Token.new_borrow_pos("BLOCK_LBRACE", token.value, token)
			return token
		if ttype == "LPAR" and arrow_paren:
			return Token.new_borrow_pos("ARROW_LPAR", token.value, token)
		declaration = self._at_statement_start() or self.last_type == "EXPORT"
		if ttype == "FUNCTION" and (declaration or (self.last_type == "ASYNC" and self.async_decl)):
			return Token.new_borrow_pos("DECL_FUNCTION", token.value, token)
		if ttype == "CLASS" and declaration:
			return Token.new_borrow_pos("DECL_CLASS", token.value, token)
		if ttype in KEYWORDS:
			if self.last_type in ("DOT", "OPTIONAL_CHAIN") or (self._at_member_start() and nxt_type in self.MEMBER_KEY_END):
				return Token.new_borrow_pos("NAME", token.value, token)
			return token
		if ttype != "NAME":
			return token
		value = token.value
		if self.module_clause:
			if value == "from" and nxt_type == "STRING":
				return Token.new_borrow_pos("FROM", value, token)
			if value == "as" and nxt_type in ("NAME", "STRING", "DEFAULT"):
				return Token.new_borrow_pos("AS", value, token)
		if value == "of" and self.stack[-1] == "head" and self.last_type == "NAME":
			return Token.new_borrow_pos("OF", value, token)
		if value == "async" and nxt is not None and nxt.line == token.line:
			arrow_head = (nxt_type == "NAME" and after is not None and after.type == "ARROW") or (
				nxt_type == "LPAR" and nxt_arrow_paren
			)
			if nxt_type == "FUNCTION" or arrow_head:
				return Token.new_borrow_pos("ASYNC", value, token)
		if self._at_member_start() and self.last_type not in ("ASYNC", "GET", "SET") and nxt_type in self.MEMBER_KEY_START:
			if value in ("async", "get", "set"):
				return Token.new_borrow_pos(value.upper(), value, token)
			if value == "static" and self.stack[-1] == "class" and self.last_type != "STATIC":
				return Token.new_borrow_pos("STATIC", value, token)
		return token

	def _update(self, token: Token) -> None:
		ttype = token.type
		if ttype in ("IMPORT", "EXPORT") and self._at_statement_start():
			self.module_clause = True
		elif ttype in ("DEFAULT", "CONST", "LET", "VAR", "DECL_FUNCTION", "DECL_CLASS", "ASYNC") and self.last_type == "EXPORT":
			self.module_clause = False
		if ttype == "ASYNC":
			self.async_decl = self._at_statement_start() or self.last_type == "EXPORT"
		elif ttype in ("CLASS", "DECL_CLASS"):
			self.pending_class.append(len(self.stack))
		elif ttype == "DO":
			self.pending_do.append(len(self.stack))
		popped: Optional[str] = None
		if ttype == "BLOCK_LBRACE":
			self.stack.append("block")
		elif ttype == "CLASS_LBRACE":
			self.pending_class.pop()
			self.stack.append("class")
		elif ttype == "LBRACE":
			self.stack.append("object")
		elif ttype == "LPAR":
			self.stack.append(self.head_next or "paren")
		elif ttype == "ARROW_LPAR":
			self.stack.append("paren")
		elif ttype == "LSQB":
			self.stack.append("bracket")
		elif ttype in ("RPAR", "RSQB", "RBRACE") and len(self.stack) > 1:
			popped = self.closed = self.stack.pop()
		if ttype in self.HEAD_KEYWORDS:
			self.head_next = self.head_next or "head"
		else:
			self.head_next = None
		self.can_terminate = ttype in self.TERMINABLE
		if popped == "head":
			self.can_terminate = False
		elif popped == "dohead":
			self.force_terminator = True
		self.last_type = ttype


class _CommentCollector:
	"""Lexer callback keeping the comment tokens the grammar ignores."""

	def __init__(self) -> None:
		self.tokens: List[Token] = []

	def __call__(self, token: Token) -> Token:
		self.tokens.append(token)
		return token

	def take(self) -> List[Token]:
		tokens, self.tokens = self.tokens, []
		return tokens


_MODULE_COMMENTS = _CommentCollector()
_EXPR_COMMENTS = _CommentCollector()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="program",
	propagate_positions=True,
	maybe_placeholders=False,
	postlex=TerminatorInserter(statements=True),
	lexer_callbacks={"LINE_COMMENT": _MODULE_COMMENTS, "BLOCK_COMMENT": _MODULE_COMMENTS},
)

_EXPR_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="expr",
	propagate_positions=True,
	maybe_placeholders=False,
	postlex=TerminatorInserter(statements=False),
	lexer_callbacks={"LINE_COMMENT": _EXPR_COMMENTS, "BLOCK_COMMENT": _EXPR_COMMENTS},
)


class _InvalidLiteral(Exception):
	"""A literal the lexer accepted but whose value is out of range."""

	def __init__(self, message: str, loc: Optional[Located] = None) -> None:
		super().__init__(message)
		self.message = message
		self.loc = loc


def parse_module(source: str, filename: Optional[str] = None) -> Program:
	"""Parse a JavaScript module into a `Program`; raises ParseError."""
	_MODULE_COMMENTS.take()
	try:
		tree = _PARSER.parse(source)
	except UnexpectedInput as err:
		_MODULE_COMMENTS.take()
		raise _parse_error(err, source, filename) from err
	comments = _MODULE_COMMENTS.take()
	try:
		program = _build_program(tree)
	except _InvalidLiteral as err:
		raise ParseError(err.message, loc=err.loc, source=source, file=filename) from err
	attach_comments(program, comments)
	return program


def parse_expression_source(source: str, filename: Optional[str] = None) -> Expr:
	"""
	Parse a standalone JavaScript expression.

	Used for template compiler payloads and for `${...}` holes in template
	literals.
	"""
	_EXPR_COMMENTS.take()
	try:
		tree = _EXPR_PARSER.parse(source)
	except UnexpectedInput as err:
		_EXPR_COMMENTS.take()
		raise _parse_error(err, source, filename) from err
	comments = _EXPR_COMMENTS.take()
	try:
		expr = _build_expr(tree)
	except _InvalidLiteral as err:
		raise ParseError(err.message, loc=err.loc, source=source, file=filename) from err
	attach_comments(expr, comments)
	return expr


def _parse_error(err: UnexpectedInput, source: str, filename: Optional[str]) -> ParseError:
	if isinstance(err, UnexpectedCharacters):
		message = f"unexpected character {source[err.pos_in_stream]!r}"
	elif isinstance(err, UnexpectedEOF):
		message = "unexpected end of input"
	elif isinstance(err, UnexpectedToken):
		if err.token.type == "$END":
			message = "unexpected end of input"
		else:
			message = f"unexpected token {err.token.value!r}"
	else:
		message = "invalid syntax"
	line = getattr(err, "line", None)
	column = getattr(err, "column", None)
	loc = Located(line=line, column=column) if isinstance(line, int) and line > 0 else None
	return ParseError(message, loc=loc, source=source, file=filename)


# String decoding

_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_LINE_CONTINUATIONS = {"\n", "\r", "\r\n", "\u2028", "\u2029"}
_MAX_CODE_POINT = 0x10FFFF


def _decode_string_fragment(raw: str) -> str:
	"""Decode JavaScript escape sequences in the body of a string or template chunk."""

	def replace(match: re.Match) -> str:
		esc = match.group(1)
		if esc.startswith("u{"):
			code = int(esc[2:-1], 16)
			if code > _MAX_CODE_POINT:
				raise _InvalidLiteral(f"code point out of bounds in escape \\{esc}")
			return chr(code)
		if len(esc) == 5 and esc[0] == "u":
			return chr(int(esc[1:], 16))
		if len(esc) == 3 and esc[0] == "x":
			return chr(int(esc[1:], 16))
		if esc in _LINE_CONTINUATIONS:
			return ""
		return _SIMPLE_ESCAPES.get(esc, esc)

	return _ESCAPE_RE.sub(replace, raw)


def _decode_at(raw: str, tok: Token) -> str:
	try:
		return _decode_string_fragment(raw)
	except _InvalidLiteral as err:
		err.loc = _loc_from_token(tok)
		raise


def _decode_number_token(tok: Token) -> int | float:
	text = tok.value
	if text[:2] in ("0x", "0X"):
		return int(text, 16)
	if any(ch in text for ch in ".eE"):
		return float(text)
	return int(text)


# Tree building


def _build_program(tree: Tree) -> Program:
	return Program(body=_build_statements(tree.children), loc=_loc(tree))


def _build_statements(children: Iterable) -> List[Stmt]:
	statements: List[Stmt] = []
	for child in children:
		if isinstance(child, Tree):
			if _name(child) == "empty_stmt" and child.children[0].value != ";":
				# terminator inserted after a block-ending `}`
				continue
			statements.append(_build_stmt(child))
	return statements


def _build_stmt(tree: Tree) -> Stmt:
	kind = _name(tree)
	loc = _loc(tree)
	if kind == "import_decl":
		return _build_import_decl(tree)
	if kind == "import_bare":
		source = _first_token(tree, "STRING")
		return ImportDecl(specifiers=[], source=_string_literal(source), loc=loc)
	if kind == "export_default":
		value = _build_expr(_trees(tree)[0])
		return ExportDefault(value=value, loc=loc)
	if kind == "export_declaration":
		return ExportNamed(declaration=_build_stmt(_trees(tree)[0]), loc=loc)
	if kind == "export_decl":
		return _build_export_named(tree)
	if kind == "function_decl":
		name_tok = _first_token(tree, "NAME")
		params, body = _build_params_and_block(tree)
		return FunctionDecl(name=_name_node(name_tok), params=params, body=body, loc=loc, is_async=_has_token(tree, "ASYNC"))
	if kind == "class_decl":
		name_tok = _first_token(tree, "NAME")
		superclass, body = _build_class_tail(tree)
		return ClassDecl(name=_name_node(name_tok), superclass=superclass, body=body, loc=loc)
	if kind == "var_decl":
		return _build_var_decl(tree)
	if kind == "if_stmt":
		parts = _trees(tree)
		else_branch = _build_stmt(parts[2]) if len(parts) > 2 else None
		return IfStmt(condition=_build_expr(parts[0]), then_branch=_build_stmt(parts[1]), else_branch=else_branch, loc=loc)
	if kind == "for_stmt":
		return _build_for_stmt(tree)
	if kind == "for_in_stmt":
		kind_tok = next(child for child in tree.children if isinstance(child, Token) and child.type in ("CONST", "LET", "VAR"))
		operator = next(child for child in tree.children if isinstance(child, Token) and child.type in ("OF", "IN"))
		iterable, body = _trees(tree)
		return ForInStmt(
			kind=kind_tok.value,
			name=_name_node(_first_token(tree, "NAME")),
			operator=operator.value,
			iterable=_build_expr(iterable),
			body=_build_stmt(body),
			loc=loc,
		)
	if kind == "while_stmt":
		condition, body = _trees(tree)
		return WhileStmt(condition=_build_expr(condition), body=_build_stmt(body), loc=loc)
	if kind == "do_while_stmt":
		body, condition = _trees(tree)
		return DoWhileStmt(body=_build_stmt(body), condition=_build_expr(condition), loc=loc)
	if kind == "try_stmt":
		return _build_try_stmt(tree)
	if kind == "block":
		return _build_block(tree)
	if kind == "return_stmt":
		parts = _trees(tree)
		value = _build_expr(parts[0]) if parts else None
		return ReturnStmt(value=value, loc=loc)
	if kind == "throw_stmt":
		return ThrowStmt(value=_build_expr(_trees(tree)[0]), loc=loc)
	if kind == "break_stmt":
		return BreakStmt(loc=loc)
	if kind == "continue_stmt":
		return ContinueStmt(loc=loc)
	if kind == "expr_stmt":
		return ExprStmt(value=_build_expr(_trees(tree)[0]), loc=loc)
	if kind == "empty_stmt":
		return EmptyStmt(loc=loc)
	raise ValueError(f"Unsupported statement node: {kind}")


def _build_block(tree: Tree) -> Block:
	return Block(statements=_build_statements(tree.children), loc=_loc(tree), end=_end_loc(tree))


def _build_var_decl(tree: Tree) -> VarDecl:
	kind_tok = next(child for child in tree.children if isinstance(child, Token) and child.type in ("CONST", "LET", "VAR"))
	declarations = [_build_var_declarator(child) for child in _trees(tree)]
	return VarDecl(kind=kind_tok.value, declarations=declarations, loc=_loc(tree))


def _build_var_declarator(tree: Tree) -> VarDeclarator:
	name_tok = _first_token(tree, "NAME")
	parts = _trees(tree)
	init = _build_expr(parts[0]) if parts else None
	return VarDeclarator(name=_name_node(name_tok), init=init, loc=_loc(tree))


def _build_for_stmt(tree: Tree) -> ForStmt:
	# children: [init] TERMINATOR [test] TERMINATOR [update] body [TERMINATOR]
	sections: List[List[Tree]] = [[], [], []]
	section = 0
	for child in tree.children:
		if isinstance(child, Token):
			if child.type == "TERMINATOR" and section < 2:
				section += 1
			continue
		sections[section].append(child)
	init_part, test_part, tail = sections
	init = None
	if init_part:
		init = _build_var_decl(init_part[0]) if _name(init_part[0]) == "var_decl" else _build_expr(init_part[0])
	test = _build_expr(test_part[0]) if test_part else None
	update = _build_expr(tail[0]) if len(tail) > 1 else None
	return ForStmt(init=init, test=test, update=update, body=_build_stmt(tail[-1]), loc=_loc(tree))


def _build_try_stmt(tree: Tree) -> TryStmt:
	parts = _trees(tree)
	handler = None
	finalizer = None
	for part in parts[1:]:
		if _name(part) == "catch_clause":
			param_tok = next((child for child in part.children if isinstance(child, Token) and child.type == "NAME"), None)
			param = _name_node(param_tok) if param_tok is not None else None
			handler = CatchClause(param=param, body=_build_block(_trees(part)[0]), loc=_loc(part))
		else:
			finalizer = _build_block(_trees(part)[0])
	return TryStmt(block=_build_block(parts[0]), handler=handler, finalizer=finalizer, loc=_loc(tree))


def _build_import_decl(tree: Tree) -> ImportDecl:
	clause = next(child for child in _trees(tree) if _name(child) == "import_clause")
	specifiers = []
	for part in _trees(clause):
		kind = _name(part)
		if kind == "import_default":
			local = _first_token(part, "NAME")
			specifiers.append(ImportDefaultSpecifier(local=_name_node(local), loc=_loc(part)))
		elif kind == "import_namespace":
			local = _first_token(part, "NAME")
			specifiers.append(ImportNamespaceSpecifier(local=_name_node(local), loc=_loc(part)))
		elif kind == "import_named":
			for spec in _trees(part):
				specifiers.append(_build_import_spec(spec))
	source = _first_token(tree, "STRING")
	return ImportDecl(specifiers=specifiers, source=_string_literal(source), loc=_loc(tree))


def _build_import_spec(tree: Tree) -> ImportSpecifier:
	toks = [child for child in tree.children if isinstance(child, Token) and child.type != "AS"]
	imported = _export_name_node(toks[0])
	if len(toks) > 1:
		local = _name_node(toks[1])
	elif isinstance(imported, Name):
		local = Name(ident=imported.ident, loc=imported.loc)
	else:
		raise ValueError("string import names require an `as` clause")
	return ImportSpecifier(imported=imported, local=local, loc=_loc(tree))


def _build_export_named(tree: Tree) -> ExportNamed:
	named = next(child for child in _trees(tree) if _name(child) == "export_named")
	specifiers = []
	for spec in _trees(named):
		toks = [child for child in spec.children if isinstance(child, Token) and child.type != "AS"]
		local = _export_name_node(toks[0])
		exported = _export_name_node(toks[1]) if len(toks) > 1 else None
		specifiers.append(ExportSpecifier(local=local, exported=exported, loc=_loc(spec)))
	source_tok = next((child for child in tree.children if isinstance(child, Token) and child.type == "STRING"), None)
	source = _string_literal(source_tok) if source_tok is not None else None
	return ExportNamed(specifiers=specifiers, source=source, loc=_loc(tree))


def _export_name_node(tok: Token) -> Expr:
	if tok.type == "STRING":
		return _string_literal(tok)
	return _name_node(tok)


def _build_params(tree: Optional[Tree]) -> List[Param]:
	if tree is None:
		return []
	params: List[Param] = []
	for child in _trees(tree):
		name_tok = _first_token(child, "NAME")
		if _name(child) == "rest_param":
			params.append(Param(name=_name_node(name_tok), rest=True, loc=_loc(child)))
			continue
		parts = _trees(child)
		default = _build_expr(parts[0]) if parts else None
		params.append(Param(name=_name_node(name_tok), default=default, loc=_loc(child)))
	return params


def _build_params_and_block(tree: Tree) -> Tuple[List[Param], Block]:
	params_node = next((child for child in _trees(tree) if _name(child) == "params"), None)
	block_node = next(child for child in _trees(tree) if _name(child) == "block")
	return _build_params(params_node), _build_block(block_node)


# Classes


def _build_class_tail(tree: Tree) -> Tuple[Optional[Expr], ClassBody]:
	"""(superclass, body) of a class declaration or expression."""
	superclass = None
	body = None
	for part in _trees(tree):
		if _name(part) == "class_body":
			body = _build_class_body(part)
		else:
			superclass = _build_expr(part)
	return superclass, body


def _build_class_body(tree: Tree) -> ClassBody:
	members = []
	for part in _trees(tree):
		static = _has_token(part, "STATIC")
		if _name(part) == "class_method":
			method = _trees(part)[0]
			key, computed, _rest = _member_key(method)
			params, body = _build_params_and_block(method)
			members.append(
				ClassMethod(
					key=key,
					params=params,
					body=body,
					computed=computed,
					static=static,
					kind=_method_kind(method),
					is_async=_has_token(method, "ASYNC"),
					loc=_loc(part),
				)
			)
		else:
			key, computed, rest = _member_key(part)
			value = _build_expr(rest[0]) if rest else None
			members.append(ClassProperty(key=key, value=value, computed=computed, static=static, loc=_loc(part)))
	return ClassBody(members=members, loc=_loc(tree), end=_end_loc(tree))


def _member_key(tree: Tree) -> Tuple[Expr, bool, List[Tree]]:
	"""(key, computed, trees after the key) of a member rule."""
	for pos, child in enumerate(tree.children):
		if isinstance(child, Token) and child.type in ("NAME", "STRING", "NUMBER", "PRIVATE_NAME"):
			key, computed = _key_node(child), False
		elif isinstance(child, Tree) and _name(child) == "computed_key":
			key, computed = _build_expr(_trees(child)[0]), True
		else:
			continue
		rest = [item for item in tree.children[pos + 1 :] if isinstance(item, Tree)]
		return key, computed, rest
	raise ValueError(f"member without a key: {_name(tree)}")


def _method_kind(tree: Tree) -> str:
	if _has_token(tree, "GET"):
		return "get"
	if _has_token(tree, "SET"):
		return "set"
	return "method"


# Expressions


def _build_expr(node) -> Expr:
	if not isinstance(node, Tree):
		raise TypeError(f"Unexpected node type: {type(node)}")
	name = _name(node)
	loc = _loc(node)
	if name == "var":
		return _name_node(node.children[0])
	if name == "string":
		return _string_literal(node.children[0])
	if name == "number":
		return Literal(value=_decode_number_token(node.children[0]), loc=loc)
	if name == "true":
		return Literal(value=True, loc=loc)
	if name == "false":
		return Literal(value=False, loc=loc)
	if name == "null":
		return Literal(value=None, loc=loc)
	if name == "template":
		return _build_template(node.children[0])
	if name == "array":
		return ArrayLiteral(elements=[_build_expr(child) for child in _trees(node)], loc=loc)
	if name == "object":
		return ObjectLiteral(properties=[_build_member(child) for child in _trees(node)], loc=loc)
	if name == "spread":
		return Spread(value=_build_expr(_trees(node)[0]), loc=loc)
	if name == "function_expr":
		name_tok = next((child for child in node.children if isinstance(child, Token) and child.type == "NAME"), None)
		params, body = _build_params_and_block(node)
		fn_name = _name_node(name_tok) if name_tok is not None else None
		return FunctionExpr(name=fn_name, params=params, body=body, loc=loc, is_async=_has_token(node, "ASYNC"))
	if name == "class_expr":
		name_tok = next((child for child in node.children if isinstance(child, Token) and child.type == "NAME"), None)
		superclass, body = _build_class_tail(node)
		class_name = _name_node(name_tok) if name_tok is not None else None
		return ClassExpr(name=class_name, superclass=superclass, body=body, loc=loc)
	if name == "arrow_fn":
		return _build_arrow(node)
	if name == "assign":
		target, op_tok, value = node.children
		return Assign(op=op_tok.value, target=_build_expr(target), value=_build_expr(value), loc=loc)
	if name == "ternary":
		cond, then_value, else_value = _trees(node)
		return Ternary(
			condition=_build_expr(cond),
			then_value=_build_expr(then_value),
			else_value=_build_expr(else_value),
			loc=loc,
		)
	if name == "binary":
		left, op_tok, right = node.children
		return Binary(op=op_tok.value, left=_build_expr(left), right=_build_expr(right), loc=loc)
	if name == "unary":
		op_tok, operand = node.children
		return Unary(op=op_tok.value, operand=_build_expr(operand), loc=loc)
	if name == "prefix_update":
		op_tok, operand = node.children
		return Update(op=op_tok.value, operand=_build_expr(operand), prefix=True, loc=loc)
	if name == "postfix_update":
		operand, op_tok = node.children
		return Update(op=op_tok.value, operand=_build_expr(operand), prefix=False, loc=loc)
	if name == "member":
		value, attr_tok = node.children
		return Attr(value=_build_expr(value), attr=attr_tok.value, loc=loc)
	if name == "optional_member":
		value, _chain, attr_tok = node.children
		return Attr(value=_build_expr(value), attr=attr_tok.value, loc=loc, optional=True)
	if name in ("index", "optional_index"):
		value, index = _trees(node)
		return Index(value=_build_expr(value), index=_build_expr(index), loc=loc, optional=name == "optional_index")
	if name in ("call", "optional_call"):
		func, args = _trees(node)
		return Call(func=_build_expr(func), args=_build_arguments(args), loc=loc, optional=name == "optional_call")
	if name == "new_expr":
		parts = _trees(node)
		args = _build_arguments(parts[1]) if len(parts) > 1 else []
		return New(func=_build_expr(parts[0]), args=args, loc=loc)
	if name == "tagged_template":
		tag, template_tok = node.children
		return TaggedTemplate(tag=_build_expr(tag), quasi=_build_template(template_tok), loc=loc)
	raise ValueError(f"Unsupported expression node: {name}")


def _build_arguments(tree: Tree) -> List[Expr]:
	return [_build_expr(child) for child in _trees(tree)]


def _build_arrow(tree: Tree) -> ArrowFunction:
	params_node = next((child for child in _trees(tree) if _name(child) == "params"), None)
	if params_node is not None:
		params = _build_params(params_node)
	else:
		first = next((child for child in tree.children if isinstance(child, Token) and child.type == "NAME"), None)
		params = [Param(name=_name_node(first), loc=_loc_from_token(first))] if first is not None else []
	body_node = _trees(tree)[-1]
	body = _build_block(body_node) if _name(body_node) == "block" else _build_expr(body_node)
	return ArrowFunction(params=params, body=body, loc=_loc(tree), is_async=_has_token(tree, "ASYNC"))


def _build_member(tree: Tree):
	kind = _name(tree)
	loc = _loc(tree)
	if kind == "spread":
		return _build_expr(tree)
	if kind == "shorthand":
		tok = tree.children[0]
		return Property(key=_name_node(tok), value=_name_node(tok), shorthand=True, loc=loc)
	if kind == "property":
		key, computed, rest = _member_key(tree)
		return Property(key=key, value=_build_expr(rest[0]), computed=computed, loc=loc)
	if kind == "method":
		key, computed, _rest = _member_key(tree)
		params, body = _build_params_and_block(tree)
		return ObjectMethod(
			key=key,
			params=params,
			body=body,
			computed=computed,
			loc=loc,
			kind=_method_kind(tree),
			is_async=_has_token(tree, "ASYNC"),
		)
	raise ValueError(f"Unsupported object member: {kind}")


def _key_node(tok: Token) -> Expr:
	if tok.type == "STRING":
		return _string_literal(tok)
	if tok.type == "NUMBER":
		return Literal(value=_decode_number_token(tok), loc=_loc_from_token(tok))
	return _name_node(tok)


# Template literals


def _split_template(body: str) -> Tuple[List[str], List[Tuple[str, int]]]:
	"""
	Split the inside of a template literal into raw chunks and `${...}` holes.

	Returns (chunks, holes) where len(chunks) == len(holes) + 1 and each hole is
	(source, offset of the source within `body`).
	"""
	chunks: List[str] = []
	holes: List[Tuple[str, int]] = []
	start = 0
	idx = 0
	while idx < len(body):
		ch = body[idx]
		if ch == "\\":
			idx += 2
			continue
		if body.startswith("${", idx):
			end = _hole_end(body, idx + 2)
			chunks.append(body[start:idx])
			holes.append((body[idx + 2 : end], idx + 2))
			idx = end + 1
			start = idx
			continue
		idx += 1
	chunks.append(body[start:])
	return chunks, holes


def _hole_end(text: str, idx: int) -> int:
	"""Index of the `}` closing a `${` hole whose source starts at `idx`."""
	depth = 0
	while True:
		ch = text[idx]
		if ch in "'\"":
			idx = _string_end(text, idx)
			continue
		if ch == "`":
			idx = _template_end(text, idx + 1)
			continue
		if ch == "{":
			depth += 1
		elif ch == "}":
			if not depth:
				return idx
			depth -= 1
		idx += 1


def _string_end(text: str, idx: int) -> int:
	quote = text[idx]
	idx += 1
	while text[idx] != quote:
		idx += 2 if text[idx] == "\\" else 1
	return idx + 1


def _template_end(text: str, idx: int) -> int:
	"""Index just past the backtick closing a nested template whose body starts at `idx`."""
	while text[idx] != "`":
		if text[idx] == "\\":
			idx += 2
		elif text.startswith("${", idx):
			idx = _hole_end(text, idx + 2) + 1
		else:
			idx += 1
	return idx + 1


def _build_template(tok: Token) -> TemplateLiteral:
	body = tok.value[1:-1]
	chunks, holes = _split_template(body)
	quasis = [TemplateElement(raw=chunk, cooked=_decode_at(chunk, tok)) for chunk in chunks]
	expressions: List[Expr] = []
	for hole_src, offset in holes:
		expr = parse_expression_source(hole_src)
		line, column = _offset_position(tok, body, offset)
		_relocate(expr, line, column)
		expressions.append(expr)
	return TemplateLiteral(quasis=quasis, expressions=expressions, loc=_loc_from_token(tok))


def _offset_position(tok: Token, body: str, offset: int) -> Tuple[int, int]:
	"""Source line/column of `body[offset]` where body starts right after the backtick."""
	before = body[:offset]
	newlines = before.count("\n")
	if newlines:
		return tok.line + newlines, len(before) - before.rindex("\n")
	return tok.line, tok.column + 1 + offset


def _relocate(node: Node, line: int, column: int) -> None:
	"""Shift locations parsed from a fragment so they point into the enclosing source."""
	loc = getattr(node, "loc", None)
	if loc is not None:
		node.loc = _shift(loc, line, column)
	end = getattr(node, "end", None)
	if isinstance(end, Located):
		node.end = _shift(end, line, column)
	for f in fields(node):
		value = getattr(node, f.name)
		if isinstance(value, Node):
			_relocate(value, line, column)
		elif isinstance(value, list):
			for item in value:
				if isinstance(item, Node):
					_relocate(item, line, column)


def _shift(loc: Located, line: int, column: int) -> Located:
	if loc.line == 1:
		return Located(line=line, column=column + loc.column - 1)
	return Located(line=line + loc.line - 1, column=loc.column)


# Helpers


def _string_literal(tok: Token) -> Literal:
	return Literal(value=_decode_at(tok.value[1:-1], tok), loc=_loc_from_token(tok))


def _name_node(tok: Token) -> Name:
	return Name(ident=tok.value, loc=_loc_from_token(tok))


def _trees(tree: Tree) -> List[Tree]:
	return [child for child in tree.children if isinstance(child, Tree)]


def _first_token(tree: Tree, ttype: str) -> Token:
	return next(child for child in tree.children if isinstance(child, Token) and child.type == ttype)


def _has_token(tree: Tree, ttype: str) -> bool:
	return any(isinstance(child, Token) and child.type == ttype for child in tree.children)


def _loc(tree: Tree) -> Optional[Located]:
	meta = tree.meta
	line = getattr(meta, "line", None)
	if line is None:
		return None
	return Located(line=line, column=meta.column)


def _end_loc(tree: Tree) -> Optional[Located]:
	meta = tree.meta
	line = getattr(meta, "end_line", None)
	if line is None:
		return None
	return Located(line=line, column=meta.end_column)


def _loc_from_token(token: Token) -> Optional[Located]:
	if token.line is None:
		return None
	return Located(line=token.line, column=token.column)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


__all__ = ["parse_module", "parse_expression_source", "TerminatorInserter"]
