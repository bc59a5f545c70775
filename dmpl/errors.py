# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Errors raised by the DMPL front-end.

Both parse and compile failures are fatal: there is no partial output and no
recovery path.
"""

from __future__ import annotations

from typing import Optional

from .ast import Located


class DmplError(Exception):
	"""Base class for every error raised by this package."""


class ParseError(DmplError):
	"""
	Source text does not match the grammar.

	`line` is 1-based; `snippet` is the failing source line with leading
	whitespace removed.
	"""

	def __init__(self, message: str, *, line: int, column: int = 0, snippet: str = "") -> None:
		self.message = message
		self.line = line
		self.column = column
		self.snippet = snippet
		super().__init__(f"{message}\n  Line {line}: {snippet}\n")


class CompileError(DmplError):
	"""AST cannot be mapped to IR (unknown node, bad target shape, ...)."""

	def __init__(self, message: str, *, loc: Optional[Located] = None) -> None:
		self.message = message
		self.loc = loc
		if loc is not None:
			message = f"{message} (line {loc.line})"
		super().__init__(message)


class PrefArgumentError(CompileError, TypeError):
	"""`pref(...)` called with values it cannot flip."""


__all__ = ["DmplError", "ParseError", "CompileError", "PrefArgumentError"]
