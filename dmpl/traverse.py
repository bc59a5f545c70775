# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Depth-first AST walking and in-place identifier renaming."""

from __future__ import annotations

from dataclasses import fields
from typing import Callable

from .ast import Identifier, Node


def traverse(node: Node, fn: Callable[[Node], None]) -> None:
	"""Call `fn` on `node`, then on every node reachable through its fields."""
	fn(node)
	for f in fields(node):
		child = getattr(node, f.name)
		if isinstance(child, Node):
			traverse(child, fn)
		elif isinstance(child, list):
			for item in child:
				if isinstance(item, Node):
					traverse(item, fn)


def rename_identifier(node: Node, old: str, new: str) -> None:
	"""Rewrite, in place, every `Identifier` named `old` under `node` to `new`."""

	def _rename(n: Node) -> None:
		if isinstance(n, Identifier) and n.name == old:
			n.name = new

	traverse(node, _rename)


__all__ = ["traverse", "rename_identifier"]
