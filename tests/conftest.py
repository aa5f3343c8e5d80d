# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import pytest

from hbs_precompile.transform.rewriter import precompile_source


class RecordingCompiler:
	"""
	Stand-in template compiler: records every call and returns
	`precompiled("<template>")`, or raises when `error` is set.
	"""

	def __init__(self) -> None:
		self.calls: List[Tuple[str, Dict[str, Any]]] = []
		self.error: Optional[str] = None

	def __call__(self, template: str, options: Dict[str, Any]) -> str:
		self.calls.append((template, dict(options)))
		if self.error is not None:
			raise RuntimeError(self.error)
		return f"precompiled({json.dumps(template)})"

	@property
	def templates(self) -> List[str]:
		return [template for template, _options in self.calls]

	@property
	def last_options(self) -> Dict[str, Any]:
		return self.calls[-1][1]


@pytest.fixture
def compiler() -> RecordingCompiler:
	return RecordingCompiler()


@pytest.fixture
def transform(compiler):
	"""Run the whole pass on a source string; extra keyword args are camelCase options."""

	def run(source: str, **options: Any) -> str:
		return precompile_source(source, {"precompile": compiler, **options}, filename="app.js")

	return run
