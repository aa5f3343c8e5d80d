# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Template compilation: call the external compiler and turn its payload into
`factory(<payload>)`, or into a runtime-throw stub when `insertRuntimeErrors`
asks for deferred failures.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..core.errors import TemplateCompileError
from ..options import PrecompileFn
from ..parser import ast
from ..parser.parser import parse_expression_source
from ..parser.paths import NodePath

logger = logging.getLogger(__name__)

FACTORY_EXPORT = "createTemplateFactory"
FACTORY_MODULE = "@ember/template-factory"

_PAYLOAD_FILENAME = "<template compiler output>"


def compile_template(
	precompile: PrecompileFn,
	template: str,
	factory: ast.Name,
	options: Dict[str, Any],
	path: NodePath,
) -> ast.Expr:
	compile_options = {"contents": template, **options}
	try:
		payload = precompile(template, compile_options)
	except Exception as err:
		message = error_message(err)
		if compile_options.get("insertRuntimeErrors"):
			logger.debug("template compile failed, inserting runtime error: %s", message)
			return runtime_error_iife(message)
		raise path.build_code_frame_error(message, TemplateCompileError) from err

	expr = parse_expression_source(payload, _PAYLOAD_FILENAME)
	ast.add_comment(expr, "\n  " + template.replace("*/", "*\\/") + "\n")
	return ast.Call(factory, [expr])


def runtime_error_iife(message: str) -> ast.Call:
	"""`(function () { throw new Error(message); })()`"""
	throw = ast.ThrowStmt(ast.New(ast.Name("Error"), [ast.Literal(message)]))
	return ast.Call(ast.FunctionExpr(None, [], ast.Block([throw])), [])


def error_message(err: BaseException) -> str:
	message = getattr(err, "message", None)
	if isinstance(message, str):
		return message
	return str(err)


__all__ = ["FACTORY_EXPORT", "FACTORY_MODULE", "compile_template", "runtime_error_iife", "error_message"]
