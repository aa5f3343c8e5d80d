# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Import injection: hand out one local name per (module, export) pair per unit,
reusing an existing import when the unit already has one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from ..parser import ast
from ..parser.scope import ProgramScope

logger = logging.getLogger(__name__)

REUSED = "reused"
CREATED = "created"


@dataclass(frozen=True)
class ImportCacheEntry:
	local_name: str
	source_kind: str  # REUSED or CREATED
	declaration: Optional[ast.ImportDecl] = None


class ImportInjector:
	def __init__(
		self,
		program: ast.Program,
		scope: ProgramScope,
		module_overrides: Optional[Mapping[str, Mapping[str, Tuple[str, str]]]] = None,
	) -> None:
		self.program = program
		self.scope = scope
		self.module_overrides = module_overrides or {}
		self.cache: Dict[Tuple[str, str], ImportCacheEntry] = {}

	def ensure_import(self, export_name: str, module_name: str) -> ast.Name:
		"""
		Local identifier bound to `export_name` of `module_name` (after any
		`moduleOverrides` redirection). The first call for a pair may prepend
		an import declaration; later calls return the same name.
		"""
		key = (module_name, export_name)
		entry = self.cache.get(key)
		if entry is None:
			real_export, real_module = self.module_overrides.get(module_name, {}).get(
				export_name, (export_name, module_name)
			)
			entry = self._find_existing(real_export, real_module) or self._create(real_export, real_module)
			self.cache[key] = entry
		return ast.Name(entry.local_name)

	def _find_existing(self, export_name: str, module_name: str) -> Optional[ImportCacheEntry]:
		for stmt in self.program.body:
			if not isinstance(stmt, ast.ImportDecl) or stmt.source.value != module_name:
				continue
			for spec in stmt.specifiers:
				if export_name == "default":
					matches = isinstance(spec, ast.ImportDefaultSpecifier)
				else:
					matches = isinstance(spec, ast.ImportSpecifier) and ast.name_of(spec.imported) == export_name
				if matches:
					logger.debug("reusing import of %s from %s as %s", export_name, module_name, spec.local.ident)
					return ImportCacheEntry(spec.local.ident, REUSED, stmt)
		return None

	def _create(self, export_name: str, module_name: str) -> ImportCacheEntry:
		uid = self.scope.generate_uid(module_name if export_name == "default" else export_name)
		if export_name == "default":
			spec: ast.ImportSpecifierLike = ast.ImportDefaultSpecifier(ast.Name(uid))
		else:
			spec = ast.ImportSpecifier(ast.Name(export_name), ast.Name(uid))
		decl = ast.ImportDecl([spec], ast.Literal(module_name))
		self.program.body.insert(0, decl)
		self.scope.register_binding(uid)
		logger.debug("injected import of %s from %s as %s", export_name, module_name, uid)
		return ImportCacheEntry(uid, CREATED, decl)


__all__ = ["ImportInjector", "ImportCacheEntry", "REUSED", "CREATED"]
