"""
The inline template precompile pass.

Modules:
  - static_eval: static option evaluation and `scope` parsing
  - imports: per-unit import injection
  - bindings: virtual module binding resolution
  - compile: template compiler invocation
  - rewriter: site rewriting traversal and `precompile_source`
"""

from .bindings import BindingPolicy, resolve_bindings
from .rewriter import InlinePrecompiler, UnitState, precompile_source

__all__ = ["BindingPolicy", "resolve_bindings", "InlinePrecompiler", "UnitState", "precompile_source"]
