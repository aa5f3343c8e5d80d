# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Static option evaluation.

Reduces the literal subset of JavaScript allowed in template options (strings,
numbers, booleans, arrays and plain objects) to Python values. Anything that
would need to run code is rejected with a StaticEvaluationError; there is no
partial result.
"""

from __future__ import annotations

from typing import Dict, List, Union

from ..core.errors import StaticEvaluationError
from ..parser import ast
from ..parser.paths import NodePath

StaticValue = Union[str, bool, int, float, List["StaticValue"], Dict[str, "StaticValue"]]


def parse_expression(invoked_name: str, path: NodePath) -> StaticValue:
	node = path.node
	if isinstance(node, ast.ObjectLiteral):
		return parse_object_expression(invoked_name, path)
	if isinstance(node, ast.ArrayLiteral):
		return parse_array_expression(invoked_name, path)
	if isinstance(node, ast.Literal) and node.value is not None:
		return node.value
	raise path.build_code_frame_error(
		f"{invoked_name} can only accept static options but you passed {ast.describe(node)}",
		StaticEvaluationError,
	)


def parse_array_expression(invoked_name: str, path: NodePath) -> List[StaticValue]:
	values = []
	for element in path.get("elements"):
		if isinstance(element.node, ast.Spread):
			raise element.build_code_frame_error("spread element is not allowed here", StaticEvaluationError)
		values.append(parse_expression(invoked_name, element))
	return values


def parse_object_expression(invoked_name: str, path: NodePath, should_parse_scope: bool = False) -> Dict[str, StaticValue]:
	"""
	Reduce an object literal to a dict. With `should_parse_scope`, a `scope`
	property is read by `parse_scope` and stored under `locals`.
	"""
	result: Dict[str, StaticValue] = {}
	for prop in path.get("properties"):
		node = prop.node
		if isinstance(node, ast.Spread):
			raise prop.build_code_frame_error(f"{invoked_name} does not allow spread element", StaticEvaluationError)
		if node.computed or not isinstance(node.key, ast.Name) and not ast.is_string_literal(node.key):
			raise prop.build_code_frame_error(f"{invoked_name} can only accept static property names", StaticEvaluationError)

		property_name = ast.name_of(node.key)
		if should_parse_scope and property_name == "scope":
			result["locals"] = parse_scope(invoked_name, prop)
			continue
		if isinstance(node, ast.ObjectMethod):
			raise prop.build_code_frame_error(
				f"{invoked_name} does not accept a method for {property_name}", StaticEvaluationError
			)
		result[property_name] = parse_expression(invoked_name, prop.get("value"))
	return result


def parse_scope(invoked_name: str, path: NodePath) -> List[str]:
	"""
	Names listed by a `scope` property: `scope: () => ({ a, b })`,
	`scope() { return { a, b }; }` or a function expression of the same shape.
	"""
	node = path.node
	body = None
	if isinstance(node, ast.ObjectMethod):
		body = node.body
	else:
		value = node.value
		if isinstance(value, ast.ObjectLiteral):
			raise path.build_code_frame_error(
				"Passing an object as the `scope` property to inline templates is no longer supported. "
				"Please pass a function that returns an object expression instead.",
				StaticEvaluationError,
			)
		if isinstance(value, (ast.FunctionExpr, ast.ArrowFunction)):
			body = value.body

	obj = None
	if isinstance(body, ast.ObjectLiteral):
		obj = body
	elif isinstance(body, ast.Block):
		if len(body.statements) != 1 or not isinstance(body.statements[0], ast.ReturnStmt):
			raise path.build_code_frame_error(
				"Scope functions can only consist of a single return statement which returns an object "
				"expression containing references to in-scope values",
				StaticEvaluationError,
			)
		obj = body.statements[0].value

	if not isinstance(obj, ast.ObjectLiteral):
		raise path.build_code_frame_error(
			f"Scope objects for `{invoked_name}` must be an object expression containing only references to "
			"in-scope values, or a function that returns an object expression containing only references to "
			"in-scope values",
			StaticEvaluationError,
		)

	names: List[str] = []
	for prop in obj.properties:
		if isinstance(prop, ast.Spread):
			raise path.build_code_frame_error(
				f"Scope objects for `{invoked_name}` may not contain spread elements", StaticEvaluationError
			)
		if isinstance(prop, ast.ObjectMethod):
			raise path.build_code_frame_error(
				f"Scope objects for `{invoked_name}` may not contain methods", StaticEvaluationError
			)
		if prop.computed or not isinstance(prop.key, ast.Name) and not ast.is_string_literal(prop.key):
			raise path.build_code_frame_error(
				f"Scope objects for `{invoked_name}` may only contain static property names", StaticEvaluationError
			)
		prop_name = ast.name_of(prop.key)
		if not isinstance(prop.value, ast.Name) or prop.value.ident != prop_name:
			raise path.build_code_frame_error(
				f"Scope objects for `{invoked_name}` may only contain direct references to in-scope values, "
				f"e.g. {{ {prop_name} }} or {{ {prop_name}: {prop_name} }}",
				StaticEvaluationError,
			)
		names.append(prop_name)
	return names


__all__ = ["StaticValue", "parse_expression", "parse_array_expression", "parse_object_expression", "parse_scope"]
