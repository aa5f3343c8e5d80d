# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from hbs_precompile.parser.parser import parse_module
from hbs_precompile.parser.printer import format_program
from hbs_precompile.parser.scope import ProgramScope
from hbs_precompile.transform.imports import CREATED, REUSED, ImportInjector


def _injector(source: str, overrides=None) -> ImportInjector:
	prog = parse_module(source)
	return ImportInjector(prog, ProgramScope(prog), overrides)


def test_creates_named_import_once() -> None:
	injector = _injector("foo();\n")
	first = injector.ensure_import("createTemplateFactory", "@ember/template-factory")
	second = injector.ensure_import("createTemplateFactory", "@ember/template-factory")
	assert first.ident == second.ident == "_createTemplateFactory"
	assert first is not second
	assert format_program(injector.program) == (
		'import { createTemplateFactory as _createTemplateFactory } from "@ember/template-factory";\nfoo();\n'
	)
	entry = injector.cache[("@ember/template-factory", "createTemplateFactory")]
	assert entry.source_kind == CREATED
	assert entry.declaration is injector.program.body[0]


def test_default_import_is_named_after_module() -> None:
	injector = _injector("")
	assert injector.ensure_import("default", "@ember/template-factory").ident == "_emberTemplateFactory"
	assert format_program(injector.program) == 'import _emberTemplateFactory from "@ember/template-factory";\n'


def test_reuses_existing_specifiers() -> None:
	injector = _injector('import Factory, { make as m } from "runtime";\nimport * as ns from "other";\n')
	assert injector.ensure_import("default", "runtime").ident == "Factory"
	assert injector.ensure_import("make", "runtime").ident == "m"
	assert injector.cache[("runtime", "make")].source_kind == REUSED
	assert len(injector.program.body) == 2


def test_missing_specifier_in_existing_module_creates_import() -> None:
	injector = _injector('import { other } from "runtime";\n')
	assert injector.ensure_import("make", "runtime").ident == "_make"
	assert len(injector.program.body) == 2


def test_uid_avoids_existing_names() -> None:
	injector = _injector("const _createTemplateFactory = 1;\n")
	assert injector.ensure_import("createTemplateFactory", "@ember/template-factory").ident == "_createTemplateFactory2"


def test_override_applies_before_lookup() -> None:
	injector = _injector(
		'import { makeTemplate } from "custom/runtime";\n',
		{"@ember/template-factory": {"createTemplateFactory": ("makeTemplate", "custom/runtime")}},
	)
	assert injector.ensure_import("createTemplateFactory", "@ember/template-factory").ident == "makeTemplate"
	assert len(injector.program.body) == 1
