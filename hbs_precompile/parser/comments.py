# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Placing source comments on the tree.

The grammar skips comments; the lexer hands them over separately and they are
attached here. A comment goes in front of the first printable node that
starts at or after its end, unless the innermost block, class body or program
holding the comment closes first, in which case it trails that container.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import fields
from typing import List, Optional, Sequence, Tuple

from lark import Token

from . import ast

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# Slots the printer writes without going through node printing, so comments
# placed there would be lost.
_UNPRINTED = {
	(ast.FunctionDecl, "name"),
	(ast.FunctionExpr, "name"),
	(ast.ClassDecl, "name"),
	(ast.ClassExpr, "name"),
	(ast.Param, "name"),
	(ast.VarDeclarator, "name"),
	(ast.ForInStmt, "name"),
	(ast.CatchClause, "param"),
	(ast.TaggedTemplate, "quasi"),
	(ast.ImportDecl, "specifiers"),
	(ast.ImportDecl, "source"),
	(ast.ExportNamed, "specifiers"),
	(ast.ExportNamed, "source"),
}

# Statement lists and member lists: one entry per printed line.
_LINE_SLOTS = {
	(ast.Program, "body"),
	(ast.Block, "statements"),
	(ast.ClassBody, "members"),
	(ast.ObjectLiteral, "properties"),
}

# Single statements printed after a head (`if (...) body`).
_BODY_SLOTS = {
	(ast.IfStmt, "then_branch"),
	(ast.IfStmt, "else_branch"),
	(ast.ForStmt, "body"),
	(ast.ForInStmt, "body"),
	(ast.WhileStmt, "body"),
	(ast.DoWhileStmt, "body"),
}


def attach_comments(root: ast.Node, tokens: Sequence[Token]) -> None:
	"""Attach comment tokens (as collected by the lexer) to the tree under `root`."""
	if not tokens:
		return
	anchors: List[Tuple[Position, ast.Node]] = []
	containers: List[Tuple[Position, Optional[Position], ast.Node]] = []
	if isinstance(root, ast.Program):
		containers.append(((0, 0), None, root))
	else:
		_add_anchor(anchors, root)
	_collect(root, anchors, containers)
	anchors.sort(key=lambda item: item[0])
	positions = [pos for pos, _node in anchors]
	for tok in tokens:
		start = (tok.line, tok.column)
		end = (tok.end_line, tok.end_column)
		idx = bisect.bisect_left(positions, end)
		anchor = anchors[idx] if idx < len(anchors) else None
		container = _innermost(containers, start, end)
		if container is not None:
			_c_start, c_end, c_node = container
			if anchor is None or (c_end is not None and anchor[0] >= c_end):
				c_node.trailing_comments.append(tok.value)
				continue
		target = anchor[1] if anchor is not None else root
		target.leading_comments = tuple(target.leading_comments) + (tok.value,)
	logger.debug("attached %d comment(s)", len(tokens))


def _add_anchor(anchors: List[Tuple[Position, ast.Node]], node: ast.Node) -> None:
	loc = getattr(node, "loc", None)
	if loc is not None:
		anchors.append(((loc.line, loc.column), node))


def _collect(
	node: ast.Node,
	anchors: List[Tuple[Position, ast.Node]],
	containers: List[Tuple[Position, Optional[Position], ast.Node]],
) -> None:
	if isinstance(node, (ast.Block, ast.ClassBody)) and node.loc is not None:
		end = (node.end.line, node.end.column) if node.end is not None else None
		containers.append(((node.loc.line, node.loc.column), end, node))
	for f in fields(node):
		slot = (type(node), f.name)
		if slot in _UNPRINTED:
			continue
		value = getattr(node, f.name)
		items = value if isinstance(value, list) else [value]
		for child in items:
			if not isinstance(child, ast.Node):
				continue
			if _is_anchor(child, slot):
				_add_anchor(anchors, child)
			_collect(child, anchors, containers)


def _is_anchor(child: ast.Node, slot: Tuple[type, str]) -> bool:
	if slot in _LINE_SLOTS or slot in _BODY_SLOTS:
		return True
	# statements outside statement positions (function bodies, for-init, the
	# declaration of an export) print without their own comments
	return isinstance(child, ast.Expr)


def _innermost(
	containers: List[Tuple[Position, Optional[Position], ast.Node]],
	start: Position,
	end: Position,
) -> Optional[Tuple[Position, Optional[Position], ast.Node]]:
	best = None
	for container in containers:
		c_start, c_end, _node = container
		if c_start <= start and (c_end is None or end <= c_end):
			if best is None or c_start >= best[0]:
				best = container
	return best


__all__ = ["attach_comments"]
