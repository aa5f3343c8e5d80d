# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Configuration for the precompile pass.

`Options` can be built directly or from the camelCase mapping a build
pipeline hands over (`Options.from_mapping`). Module entries are normalized
into `ModuleOptions` up front so the pass never sees the string shorthand.
"""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .core.errors import ConfigurationError

logger = logging.getLogger(__name__)

PrecompileFn = Callable[[str, Dict[str, Any]], str]

DEFAULT_MODULE = "htmlbars-inline-precompile"


@dataclass(frozen=True)
class ModuleOptions:
	"""How one virtual module specifier is bound (`export` plus usage flags)."""

	export: str = "default"
	should_parse_scope: bool = False
	disable_template_literal: bool = False
	disable_function_call: bool = False

	@classmethod
	def coerce(cls, specifier: str, value: Union[str, "ModuleOptions", Mapping[str, Any]]) -> "ModuleOptions":
		if isinstance(value, ModuleOptions):
			return value
		if isinstance(value, str):
			return cls(export=value)
		if isinstance(value, Mapping):
			unknown = set(value) - set(_MODULE_KEYS)
			if unknown:
				raise ConfigurationError(f"unknown option(s) for module `{specifier}`: {', '.join(sorted(unknown))}")
			export = value.get("export")
			if not isinstance(export, str) or not export:
				raise ConfigurationError(f"module `{specifier}` needs an `export` name")
			return cls(**{_MODULE_KEYS[key]: value[key] for key in value})
		raise ConfigurationError(f"module `{specifier}` must map to an export name or an options object")


_MODULE_KEYS = {
	"export": "export",
	"shouldParseScope": "should_parse_scope",
	"disableTemplateLiteral": "disable_template_literal",
	"disableFunctionCall": "disable_function_call",
}

_OPTION_KEYS = {
	"templateCompilerPath": "template_compiler_path",
	"precompile": "precompile",
	"moduleOverrides": "module_overrides",
	"modules": "modules",
	"modulePaths": "module_paths",
	"isProduction": "is_production",
}


@dataclass
class Options:
	template_compiler_path: Optional[str] = None
	precompile: Optional[PrecompileFn] = None
	# module -> export -> (real export, real module)
	module_overrides: Dict[str, Dict[str, Tuple[str, str]]] = field(default_factory=dict)
	modules: Optional[Dict[str, ModuleOptions]] = None
	module_paths: List[str] = field(default_factory=list)
	is_production: Optional[bool] = None

	def __post_init__(self) -> None:
		if self.modules is not None:
			if not isinstance(self.modules, Mapping):
				raise ConfigurationError("`modules` must be a mapping of module specifier to options")
			self.modules = {spec: ModuleOptions.coerce(spec, value) for spec, value in self.modules.items()}
		overrides: Dict[str, Dict[str, Tuple[str, str]]] = {}
		for module_name, exports in (self.module_overrides or {}).items():
			if not isinstance(exports, Mapping):
				raise ConfigurationError(f"`moduleOverrides` entry for `{module_name}` must be a mapping")
			overrides[module_name] = {}
			for export_name, target in exports.items():
				if isinstance(target, str) or len(target) != 2 or not all(isinstance(part, str) for part in target):
					raise ConfigurationError(
						f"`moduleOverrides` entry `{module_name}`.`{export_name}` must be [exportName, moduleName]"
					)
				overrides[module_name][export_name] = (target[0], target[1])
		self.module_overrides = overrides
		if isinstance(self.module_paths, str):
			raise ConfigurationError("`modulePaths` must be a list of module specifiers")
		self.module_paths = list(self.module_paths or [])

	@classmethod
	def from_mapping(cls, mapping: Mapping[str, Any]) -> "Options":
		"""Build Options from the camelCase keys used by build configurations."""
		unknown = set(mapping) - set(_OPTION_KEYS)
		if unknown:
			raise ConfigurationError(f"unknown option(s): {', '.join(sorted(unknown))}")
		return cls(**{_OPTION_KEYS[key]: value for key, value in mapping.items()})

	def configured_modules(self) -> Dict[str, ModuleOptions]:
		"""Virtual module specifier -> binding options, `modulePaths` included."""
		if self.modules is None:
			modules = {DEFAULT_MODULE: ModuleOptions(export="default", should_parse_scope=False)}
		else:
			modules = dict(self.modules)
		for path in self.module_paths:
			modules[path] = ModuleOptions(export="default")
		return modules

	def resolve_precompile(self) -> PrecompileFn:
		"""Return the template compiler function, loading `templateCompilerPath` if needed."""
		if self.template_compiler_path and self.precompile is not None:
			raise ConfigurationError("`templateCompilerPath` and `precompile` are mutually exclusive; pass only one")
		if self.precompile is not None:
			if not callable(self.precompile):
				raise ConfigurationError("`precompile` must be callable")
			return self.precompile
		if not self.template_compiler_path:
			raise ConfigurationError("either `templateCompilerPath` or `precompile` is required")
		module = load_compiler_module(self.template_compiler_path)
		precompile = getattr(module, "precompile", None)
		if not callable(precompile):
			raise ConfigurationError(f"template compiler `{self.template_compiler_path}` does not expose a `precompile` function")
		logger.debug("loaded template compiler from %s", self.template_compiler_path)
		return precompile


def _unique_module_name(path: str) -> str:
	base = os.path.basename(path)
	digest = hashlib.sha256(os.path.abspath(path).encode("utf-8")).hexdigest()[:12]
	safe = "".join(ch if ch.isalnum() else "_" for ch in base)
	return f"hbs_compiler_{safe}_{digest}"


def load_compiler_module(path: str) -> Any:
	"""Import a compiler by dotted module name or from a `.py` file path."""
	if path.endswith(".py") or os.sep in path:
		if not os.path.exists(path):
			raise ConfigurationError(f"template compiler not found: {path}")
		spec = importlib.util.spec_from_file_location(_unique_module_name(path), path)
		if spec is None or spec.loader is None:
			raise ConfigurationError(f"failed to load template compiler: {path}")
		module = importlib.util.module_from_spec(spec)
		try:
			spec.loader.exec_module(module)
		except Exception as err:
			raise ConfigurationError(f"failed to load template compiler `{path}`: {err}") from err
		return module
	try:
		return importlib.import_module(path)
	except ImportError as err:
		raise ConfigurationError(f"cannot import template compiler `{path}`: {err}") from err


__all__ = ["Options", "ModuleOptions", "PrecompileFn", "DEFAULT_MODULE", "load_compiler_module"]
