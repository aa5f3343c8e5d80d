# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from hbs_precompile.core.errors import ConfigurationError
from hbs_precompile.options import DEFAULT_MODULE, ModuleOptions, Options


def _precompile(template, options):
	return "null"


def test_from_mapping_reads_camel_case_keys() -> None:
	opts = Options.from_mapping(
		{
			"precompile": _precompile,
			"isProduction": True,
			"modules": {"a": "hbs", "b": {"export": "default", "disableFunctionCall": True}},
			"modulePaths": ["c"],
			"moduleOverrides": {"m": {"e": ["real", "r"]}},
		}
	)
	assert opts.is_production is True
	assert opts.modules == {
		"a": ModuleOptions(export="hbs"),
		"b": ModuleOptions(export="default", disable_function_call=True),
	}
	assert opts.module_overrides == {"m": {"e": ("real", "r")}}
	assert opts.configured_modules() == {
		"a": ModuleOptions(export="hbs"),
		"b": ModuleOptions(export="default", disable_function_call=True),
		"c": ModuleOptions(export="default"),
	}


def test_default_modules() -> None:
	opts = Options(precompile=_precompile)
	assert opts.configured_modules() == {DEFAULT_MODULE: ModuleOptions(export="default", should_parse_scope=False)}


def test_module_paths_extend_default_modules() -> None:
	opts = Options(precompile=_precompile, module_paths=["ember-cli-htmlbars"])
	assert set(opts.configured_modules()) == {DEFAULT_MODULE, "ember-cli-htmlbars"}


def test_unknown_option_is_rejected() -> None:
	with pytest.raises(ConfigurationError, match="unknown option"):
		Options.from_mapping({"precompile": _precompile, "isProd": True})


@pytest.mark.parametrize(
	"modules, match",
	[
		({"a": {"shouldParseScope": True}}, "needs an `export`"),
		({"a": {"export": "default", "bogus": 1}}, "unknown option"),
		({"a": 3}, "must map to an export name"),
	],
)
def test_malformed_modules(modules, match) -> None:
	with pytest.raises(ConfigurationError, match=match):
		Options(precompile=_precompile, modules=modules)


def test_malformed_module_override() -> None:
	with pytest.raises(ConfigurationError, match=r"\[exportName, moduleName\]"):
		Options(precompile=_precompile, module_overrides={"m": {"e": "real"}})


def test_resolve_precompile_callable() -> None:
	assert Options(precompile=_precompile).resolve_precompile() is _precompile


def test_resolve_precompile_requires_one_source() -> None:
	with pytest.raises(ConfigurationError, match="required"):
		Options().resolve_precompile()
	with pytest.raises(ConfigurationError, match="mutually exclusive"):
		Options(precompile=_precompile, template_compiler_path="x").resolve_precompile()


def test_resolve_precompile_from_file(tmp_path) -> None:
	path = tmp_path / "compiler.py"
	path.write_text("def precompile(template, options):\n\treturn repr(template)\n")
	precompile = Options(template_compiler_path=str(path)).resolve_precompile()
	assert precompile("x", {}) == "'x'"


def test_resolve_precompile_from_module_name(tmp_path, monkeypatch) -> None:
	(tmp_path / "hbs_test_compiler_mod.py").write_text("def precompile(template, options):\n\treturn '1'\n")
	monkeypatch.syspath_prepend(str(tmp_path))
	precompile = Options(template_compiler_path="hbs_test_compiler_mod").resolve_precompile()
	assert precompile("x", {}) == "1"


def test_resolve_precompile_errors(tmp_path) -> None:
	with pytest.raises(ConfigurationError, match="cannot import"):
		Options(template_compiler_path="no_such_hbs_compiler_module").resolve_precompile()
	with pytest.raises(ConfigurationError, match="not found"):
		Options(template_compiler_path=str(tmp_path / "missing.py")).resolve_precompile()
	path = tmp_path / "empty.py"
	path.write_text("precompile = 1\n")
	with pytest.raises(ConfigurationError, match="does not expose a `precompile` function"):
		Options(template_compiler_path=str(path)).resolve_precompile()
