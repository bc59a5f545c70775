# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
dmpl: compiler for the DMPL dialogue/process-control language.

Stages:
  parser:   source text → AST (lark grammar in grammar.lark)
  compiler: AST → JSON-compatible IR for the external runtime

Typical use:

	from dmpl import compile
	ir = compile('if X == 0 { act "zero" } else { act "other" }')
"""

from .compiler import Compiler, compile, compile_ast
from .errors import CompileError, DmplError, ParseError, PrefArgumentError
from .parser import parse

__all__ = [
	"Compiler",
	"compile",
	"compile_ast",
	"parse",
	"DmplError",
	"ParseError",
	"CompileError",
	"PrefArgumentError",
]
