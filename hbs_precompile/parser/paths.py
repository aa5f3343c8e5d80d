# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Node paths and depth-first traversal over the AST.

A `NodePath` is a handle on one slot of the tree: the parent node, the
attribute name and (for list attributes) the index. Replacing or removing
through a path rewrites that slot, so other paths never alias a stale node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Iterator, List, Optional, Type

from ..core.errors import PrecompileError
from . import ast

logger = logging.getLogger(__name__)


@dataclass
class SourceUnit:
	"""The source text a tree was parsed from, used to render code frames."""

	source: Optional[str] = None
	filename: Optional[str] = None


class NodePath:
	def __init__(
		self,
		node: Any,
		parent: Optional[ast.Node] = None,
		key: Optional[str] = None,
		index: Optional[int] = None,
		unit: Optional[SourceUnit] = None,
	) -> None:
		self.node = node
		self.parent = parent
		self.key = key
		self.index = index
		self.unit = unit or SourceUnit()
		self.removed = False

	def __repr__(self) -> str:
		return f"NodePath({type(self.node).__name__}, key={self.key!r}, index={self.index!r})"

	def get(self, key: str) -> Any:
		"""
		Child path(s) for attribute `key`: a NodePath, a list of NodePaths for
		list attributes, or None when the attribute is empty.
		"""
		value = getattr(self.node, key)
		if isinstance(value, list):
			return [NodePath(item, self.node, key, idx, self.unit) for idx, item in enumerate(value)]
		if value is None:
			return None
		return NodePath(value, self.node, key, None, self.unit)

	def replace_with(self, replacement: ast.Node) -> None:
		"""Put `replacement` in this slot; the old node's comments stay in front of it."""
		if self.parent is None:
			raise ValueError("cannot replace the root node")
		if replacement is not self.node and self.node.leading_comments:
			replacement.leading_comments = tuple(self.node.leading_comments) + tuple(replacement.leading_comments)
		if self.index is None:
			setattr(self.parent, self.key, replacement)
		else:
			getattr(self.parent, self.key)[self.index] = replacement
		self.node = replacement

	def remove(self) -> None:
		"""
		Remove this node from its parent list (or clear an optional attribute).

		Comments in front of the node move to the next sibling, or to the end of
		the enclosing block when the node was the last one.
		"""
		if self.parent is None:
			raise ValueError("cannot remove the root node")
		container = getattr(self.parent, self.key)
		if self.index is None:
			setattr(self.parent, self.key, None)
		else:
			for idx, item in enumerate(container):
				if item is self.node:
					del container[idx]
					self._hand_over_comments(container, idx)
					break
		self.removed = True

	def _hand_over_comments(self, container: List[Any], idx: int) -> None:
		comments = tuple(self.node.leading_comments)
		if not comments:
			return
		if idx < len(container):
			sibling = container[idx]
			sibling.leading_comments = comments + tuple(sibling.leading_comments)
		elif hasattr(self.parent, "trailing_comments"):
			self.parent.trailing_comments[:0] = comments
		else:
			logger.debug("dropping %d comment(s) of removed %s", len(comments), type(self.node).__name__)

	def build_code_frame_error(self, message: str, error_cls: Type[PrecompileError] = PrecompileError) -> PrecompileError:
		return error_cls(
			message,
			loc=getattr(self.node, "loc", None),
			source=self.unit.source,
			file=self.unit.filename,
		)


def child_slots(node: ast.Node) -> Iterator[tuple[str, Optional[int], ast.Node]]:
	"""(attribute, index, child) for every direct child node, in source order."""
	for f in fields(node):
		value = getattr(node, f.name)
		if isinstance(value, ast.Node):
			yield f.name, None, value
		elif isinstance(value, list):
			for idx, item in enumerate(value):
				if isinstance(item, ast.Node):
					yield f.name, idx, item


def iter_nodes(node: ast.Node) -> Iterator[ast.Node]:
	"""Pre-order walk over `node` and all of its descendants."""
	yield node
	for _key, _idx, child in child_slots(node):
		yield from iter_nodes(child)


class Visitor:
	"""
	Base class for traversals: `visit_<NodeClass>(path)` is called on entry to
	each node of that class. A visitor may replace the node through the path;
	traversal then continues into the replacement.
	"""

	def enter(self, path: NodePath) -> None:
		method = getattr(self, f"visit_{type(path.node).__name__}", None)
		if method is not None:
			method(path)


def traverse(root: ast.Node, visitor: Visitor, unit: Optional[SourceUnit] = None) -> None:
	_walk(NodePath(root, unit=unit), visitor)


def _walk(path: NodePath, visitor: Visitor) -> None:
	visitor.enter(path)
	if path.removed:
		return
	node = path.node
	# Siblings may be inserted or removed while children are visited, so each
	# child's slot is looked up again right before descending into it.
	children: List[tuple[str, Optional[int], ast.Node]] = list(child_slots(node))
	for key, idx, child in children:
		value = getattr(node, key)
		if idx is not None:
			idx = next((pos for pos, item in enumerate(value) if item is child), None)
			if idx is None:
				continue
		elif value is not child:
			continue
		_walk(NodePath(child, node, key, idx, path.unit), visitor)
