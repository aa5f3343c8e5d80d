"""
hbs_precompile.core: shared diagnostics and location types used by the
parser and the precompile pass.

Modules:
  - span: source span attached to diagnostics
  - diagnostics: Diagnostic record and code-frame rendering
  - errors: exception hierarchy raised by the parser and the pass
"""

__all__ = [
	"span",
	"diagnostics",
	"errors",
]
