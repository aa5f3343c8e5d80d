# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver: parse a module, rewrite its inline templates and print
the result.

	python -m hbs_precompile app.js --template-compiler my_compiler -o out.js
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .core.diagnostics import Diagnostic
from .core.errors import ConfigurationError, PrecompileError
from .options import Options
from .parser.parser import parse_module
from .parser.printer import format_program
from .transform.rewriter import InlinePrecompiler


@dataclass
class LogConfig:
	level: int = logging.WARNING
	format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(config: LogConfig | None = None) -> logging.Logger:
	if config is None:
		config = LogConfig()

	logger = logging.getLogger("hbs_precompile")
	logger.setLevel(config.level)
	logger.handlers.clear()

	handler = logging.StreamHandler(sys.stderr)
	handler.setLevel(config.level)
	handler.setFormatter(logging.Formatter(config.format))
	logger.addHandler(handler)
	return logger


def _diag_to_json(diag: Diagnostic, source: Path) -> dict:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	data = diag.to_json()
	if data["file"] is None:
		data["file"] = str(source)
	return data


def _parse_module_flag(value: str) -> tuple[str, str]:
	specifier, sep, export = value.partition("=")
	if not specifier or (sep and not export):
		raise argparse.ArgumentTypeError(f"expected SPEC or SPEC=EXPORT, got {value!r}")
	return specifier, export or "default"


def build_options(args: argparse.Namespace) -> Options:
	"""Merge a JSON config file (if any) with command-line flags; flags win."""
	mapping: Dict[str, Any] = {}
	if args.config is not None:
		try:
			mapping = json.loads(args.config.read_text(encoding="utf-8"))
		except (OSError, ValueError) as err:
			raise ConfigurationError(f"cannot read config {args.config}: {err}", file=str(args.config)) from err
		if not isinstance(mapping, dict):
			raise ConfigurationError("config file must contain a JSON object", file=str(args.config))
	if args.template_compiler:
		mapping["templateCompilerPath"] = args.template_compiler
	if args.production:
		mapping["isProduction"] = True
	if args.modules:
		modules = dict(mapping.get("modules") or {})
		modules.update(dict(args.modules))
		mapping["modules"] = modules
	if args.module_paths:
		mapping["modulePaths"] = list(mapping.get("modulePaths") or []) + list(args.module_paths)
	return Options.from_mapping(mapping)


def main(argv: List[str] | None = None) -> int:
	"""
	Rewrite the inline templates of one JavaScript module.

	With --json, prints `{"exit_code", "diagnostics"}` (plus `"code"` when no
	output file is given); otherwise the rewritten module goes to stdout or
	--output and diagnostics go to stderr as code frames.
	"""
	parser = argparse.ArgumentParser(description="Precompile inline templates in a JavaScript module")
	parser.add_argument("source", type=Path, help="Path to the JavaScript module")
	parser.add_argument(
		"-c",
		"--template-compiler",
		help="Template compiler: dotted module name or path to a .py file exposing precompile(template, options)",
	)
	parser.add_argument("--config", type=Path, help="JSON file with options (templateCompilerPath, modules, ...)")
	parser.add_argument("--production", action="store_true", help="Pass isProduction=true to the compiler")
	parser.add_argument(
		"-m",
		"--module",
		dest="modules",
		action="append",
		type=_parse_module_flag,
		help="Virtual module to rewrite, as SPEC or SPEC=EXPORT (repeatable)",
	)
	parser.add_argument(
		"--module-path",
		dest="module_paths",
		action="append",
		help="Virtual module whose default export is the template function (repeatable)",
	)
	parser.add_argument("-o", "--output", type=Path, help="Write the rewritten module here instead of stdout")
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/message/severity/file/line/column)",
	)
	parser.add_argument("-v", "--verbose", action="store_true", help="Log pass activity to stderr")
	args = parser.parse_args(argv)

	if args.verbose:
		configure_logging(LogConfig(level=logging.DEBUG))

	source_path: Path = args.source
	source: Optional[str] = None
	try:
		source = source_path.read_text(encoding="utf-8")
		options = build_options(args)
		program = parse_module(source, str(source_path))
		InlinePrecompiler(options).transform(program, source=source, filename=str(source_path))
		code = format_program(program)
	except OSError as err:
		msg = f"cannot read {source_path}: {err.strerror or err}"
		if args.json:
			diag = Diagnostic(message=msg, phase="io")
			print(json.dumps({"exit_code": 1, "diagnostics": [_diag_to_json(diag, source_path)]}))
		else:
			print(f"{source_path}: error: {msg}", file=sys.stderr)
		return 1
	except PrecompileError as err:
		if args.json:
			print(json.dumps({"exit_code": 1, "diagnostics": [_diag_to_json(err.diagnostic, source_path)]}))
		else:
			print(err.diagnostic.render(err.source), file=sys.stderr)
		return 1

	if args.output is not None:
		args.output.write_text(code, encoding="utf-8")
	if args.json:
		result: Dict[str, Any] = {"exit_code": 0, "diagnostics": []}
		if args.output is None:
			result["code"] = code
		print(json.dumps(result))
	elif args.output is None:
		sys.stdout.write(code)
	return 0


if __name__ == "__main__":
	sys.exit(main())
