# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from hbs_precompile.parser.parser import parse_module
from hbs_precompile.parser.printer import format_program
from hbs_precompile.parser.scope import ProgramScope, to_identifier


def test_to_identifier_camel_cases() -> None:
	assert to_identifier("@ember/template-factory") == "emberTemplateFactory"
	assert to_identifier("htmlbars-inline-precompile") == "htmlbarsInlinePrecompile"
	assert to_identifier("123abc") == "abc"
	assert to_identifier("default") == "_default"


def test_generate_uid_is_unique() -> None:
	scope = ProgramScope(parse_module("const _foo = 1;\nuse(_bar2);\n"))
	assert scope.generate_uid("foo") == "_foo2"
	assert scope.generate_uid("createTemplateFactory") == "_createTemplateFactory"
	assert scope.generate_uid("createTemplateFactory") == "_createTemplateFactory2"
	assert scope.generate_uid("bar9") == "_bar"
	assert scope.generate_uid("@ember/template-factory") == "_emberTemplateFactory"


def test_generate_uid_based_on_import_uses_source() -> None:
	prog = parse_module('import hbs from "htmlbars-inline-precompile";\n')
	scope = ProgramScope(prog)
	assert scope.generate_uid_based_on_node(prog.body[0]) == "_htmlbarsInlinePrec"


def test_rename_respects_shadowing() -> None:
	prog = parse_module(
		"""
import hbs from "m";
function a(hbs) {
  return hbs;
}
function b() {
  if (x) {
    var hbs = 2;
  }
  return hbs;
}
{
  let hbs = 3;
  use(hbs);
}
const c = () => hbs;
use(hbs);
"""
	)
	ProgramScope(prog).rename("hbs", "_t")
	assert format_program(prog) == (
		'import _t from "m";\n'
		"function a(hbs) {\n"
		"  return hbs;\n"
		"}\n"
		"function b() {\n"
		"  if (x) {\n"
		"    var hbs = 2;\n"
		"  }\n"
		"  return hbs;\n"
		"}\n"
		"{\n"
		"  let hbs = 3;\n"
		"  use(hbs);\n"
		"}\n"
		"const c = () => _t;\n"
		"use(_t);\n"
	)


def test_rename_expands_shorthand_and_keeps_export_name() -> None:
	prog = parse_module(
		"""
import hbs from "m";
const o = { hbs, other: hbs.compile, hbs2: 1 };
export { hbs };
"""
	)
	scope = ProgramScope(prog)
	scope.rename("hbs", "_t")
	assert format_program(prog) == (
		'import _t from "m";\n'
		"const o = {\n"
		"  hbs: _t,\n"
		"  other: _t.compile,\n"
		"  hbs2: 1\n"
		"};\n"
		"export { _t as hbs };\n"
	)
	assert scope.has_binding("_t")
	assert not scope.has_binding("hbs")


def test_rename_through_classes_loops_and_catch() -> None:
	prog = parse_module(
		"""
import hbs from "m";
class A extends hbs {
  [hbs]() {}
  hbs(hbs) {
    return hbs;
  }
  static hbs = hbs;
}
for (let hbs = 0; hbs < 1; hbs++) {}
try {} catch (hbs) {
  hbs();
}
for (const hbs of hbs) use(hbs);
function d() {
  for (var hbs in o) {}
  return hbs;
}
"""
	)
	ProgramScope(prog).rename("hbs", "_t")
	assert format_program(prog) == (
		'import _t from "m";\n'
		"class A extends _t {\n"
		"  [_t]() {}\n"
		"  hbs(hbs) {\n"
		"    return hbs;\n"
		"  }\n"
		"  static hbs = _t;\n"
		"}\n"
		"for (let hbs = 0; hbs < 1; hbs++) {}\n"
		"try {} catch (hbs) {\n"
		"  hbs();\n"
		"}\n"
		"for (const hbs of _t) use(hbs);\n"
		"function d() {\n"
		"  for (var hbs in o) {}\n"
		"  return hbs;\n"
		"}\n"
	)
