# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from hbs_precompile.core.errors import StaticEvaluationError
from hbs_precompile.parser.parser import parse_expression_source
from hbs_precompile.parser.paths import NodePath, SourceUnit
from hbs_precompile.transform.static_eval import parse_expression, parse_object_expression


def _path(source: str) -> NodePath:
	return NodePath(parse_expression_source(source), unit=SourceUnit(source, "opts.js"))


def _options(source: str, should_parse_scope: bool = True):
	return parse_object_expression("hbs", _path(source), should_parse_scope)


def test_literals_arrays_and_objects() -> None:
	assert _options("{ a: 1, b: 'two', c: true, d: [1, 2.5, false], e: { f: 'g' }, 'h-i': 0x10 }") == {
		"a": 1,
		"b": "two",
		"c": True,
		"d": [1, 2.5, False],
		"e": {"f": "g"},
		"h-i": 16,
	}


def test_parse_expression_passes_literals_through() -> None:
	assert parse_expression("hbs", _path("'x'")) == "x"
	assert parse_expression("hbs", _path("[[1], {}]")) == [[1], {}]


@pytest.mark.parametrize(
	"source, match",
	[
		("{ a: { [k]: 1 } }", "hbs can only accept static property names"),
		("{ [k]: 1 }", "hbs can only accept static property names"),
		("{ 1: 'x' }", "hbs can only accept static property names"),
		("{ ...x }", "hbs does not allow spread element"),
		("{ a: [...x] }", "spread element is not allowed here"),
		("{ a() {} }", "hbs does not accept a method for a"),
		("{ a: null }", "hbs can only accept static options but you passed null literal"),
		("{ a: b }", "hbs can only accept static options but you passed identifier `b`"),
		("{ a: `x` }", "hbs can only accept static options"),
		("{ a: f() }", "hbs can only accept static options"),
		("{ a: -1 }", "hbs can only accept static options"),
	],
)
def test_rejects_dynamic_options(source, match) -> None:
	with pytest.raises(StaticEvaluationError, match=match):
		_options(source)


def test_scope_arrow_with_object_body() -> None:
	assert _options("{ scope: () => ({ a, b }) }") == {"locals": ["a", "b"]}


def test_scope_method_and_function_forms() -> None:
	assert _options("{ scope() { return { a, b: b, 'c': c }; } }") == {"locals": ["a", "b", "c"]}
	assert _options("{ scope: function () { return { a }; } }") == {"locals": ["a"]}
	assert _options("{ scope: () => { return { a }; } }") == {"locals": ["a"]}


def test_scope_keeps_duplicates_in_order() -> None:
	assert _options("{ scope: () => ({ b, a, b }) }") == {"locals": ["b", "a", "b"]}


def test_scope_is_a_plain_option_without_scope_parsing() -> None:
	with pytest.raises(StaticEvaluationError, match="can only accept static options"):
		_options("{ scope: () => ({ a }) }", should_parse_scope=False)


@pytest.mark.parametrize(
	"source, match",
	[
		("{ scope: { a } }", "Passing an object as the `scope` property to inline templates is no longer supported"),
		("{ scope: () => ({ a: notA }) }", r"may only contain direct references to in-scope values, e.g. \{ a \} or \{ a: a \}"),
		("{ scope: () => ({ ...a }) }", "Scope objects for `hbs` may not contain spread elements"),
		("{ scope: () => ({ a() {} }) }", "Scope objects for `hbs` may not contain methods"),
		("{ scope: () => ({ [a]: a }) }", "Scope objects for `hbs` may only contain static property names"),
		("{ scope: () => { foo(); return { a }; } }", "Scope functions can only consist of a single return statement"),
		("{ scope: () => a }", "Scope objects for `hbs` must be an object expression"),
		("{ scope: 'a' }", "Scope objects for `hbs` must be an object expression"),
	],
)
def test_rejects_malformed_scope(source, match) -> None:
	with pytest.raises(StaticEvaluationError, match=match):
		_options(source)


def test_error_points_at_offending_property() -> None:
	with pytest.raises(StaticEvaluationError) as excinfo:
		_options("{\n  a: 1,\n  [k]: 2\n}")
	assert excinfo.value.span.line == 3
	assert excinfo.value.span.file == "opts.js"
