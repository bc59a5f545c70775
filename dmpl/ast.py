# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
DMPL abstract syntax tree.

Pipeline placement:
  Surface syntax (grammar.lark) → AST (this file) → IR (compiler.py)

The node class is the discriminant: the compiler dispatches on
`type(node).__name__` and `NODE_KINDS` enumerates every concrete kind.
Trees are single-owner and mutable; the compiler renames identifiers in
place, so a parsed tree is compiled at most once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(frozen=True)
class Located:
	line: int
	column: int


class Node:
	"""Base class for all AST nodes."""
	pass


class Stmt(Node):
	"""Base class for statements."""
	pass


class Expr(Node):
	"""Base class for expressions."""
	pass


def _loc():
	return field(default=None, compare=False, repr=False)


# Expressions

@dataclass
class Identifier(Expr):
	"""Name reference. `null` is the null sentinel."""
	name: str
	loc: Optional[Located] = _loc()


@dataclass
class Literal(Expr):
	value: Union[str, int, float, bool]
	loc: Optional[Located] = _loc()


@dataclass
class BinOp(Expr):
	op: str
	left: Expr
	right: Expr
	loc: Optional[Located] = _loc()


@dataclass
class UnaryOp(Expr):
	op: str
	target: Expr
	loc: Optional[Located] = _loc()


@dataclass
class FunCall(Expr):
	callee: Expr
	args: List[Expr] = field(default_factory=list)
	loc: Optional[Located] = _loc()


@dataclass
class Member(Expr):
	"""Indexed access `target[property]`."""
	target: Expr
	property: Expr
	loc: Optional[Located] = _loc()


@dataclass
class Array(Expr):
	elements: List[Expr] = field(default_factory=list)
	loc: Optional[Located] = _loc()


@dataclass
class Property(Node):
	name: Identifier
	value: Expr
	loc: Optional[Located] = _loc()


@dataclass
class Object(Expr):
	properties: List[Property] = field(default_factory=list)
	loc: Optional[Located] = _loc()


@dataclass
class Spread(Expr):
	"""
	Fragment whose elements splice into the enclosing array.

	Never produced by the parser; builtin expansions (see pref.py) return it.
	"""
	elements: List[Expr] = field(default_factory=list)
	loc: Optional[Located] = _loc()


@dataclass
class CSArray(Node):
	"""Comma-separated assignment targets (`X, Y = ...`)."""
	elements: List[Expr] = field(default_factory=list)
	loc: Optional[Located] = _loc()


@dataclass
class EditReference(Node):
	"""Indexed write target: `a[0]["k"] = v` is EditReference(a, [0, "k"])."""
	target: Expr
	keys: List[Expr] = field(default_factory=list)
	loc: Optional[Located] = _loc()


# Statements

@dataclass
class StatementList(Node):
	list: List[Stmt] = field(default_factory=list)
	loc: Optional[Located] = _loc()


@dataclass
class ForkBranch(Node):
	"""One fork arm; `condition is None` marks the default (`_` / `else`) arm."""
	condition: Optional[Expr]
	body: StatementList
	loc: Optional[Located] = _loc()


@dataclass
class Fork(Stmt):
	conditions: List[ForkBranch] = field(default_factory=list)
	scheme: Optional[Object] = None
	loc: Optional[Located] = _loc()


@dataclass
class Input(Stmt):
	result: Identifier
	fork: Fork
	loc: Optional[Located] = _loc()


@dataclass
class Await(Stmt):
	condition: Expr
	body: StatementList
	loc: Optional[Located] = _loc()


@dataclass
class Once(Stmt):
	body: StatementList
	loc: Optional[Located] = _loc()


@dataclass
class Act(Stmt):
	value: Expr
	loc: Optional[Located] = _loc()


@dataclass
class Hop(Stmt):
	value: Expr
	loc: Optional[Located] = _loc()


@dataclass
class Pop(Stmt):
	value: Expr
	loc: Optional[Located] = _loc()


@dataclass
class Set(Stmt):
	target: Union[Identifier, CSArray, EditReference]
	value: Expr
	loc: Optional[Located] = _loc()


@dataclass
class Run(Stmt):
	name: Expr
	args: List[Expr] = field(default_factory=list)
	result: Optional[Identifier] = None
	fork: Optional[Fork] = None
	loc: Optional[Located] = _loc()


@dataclass
class Use(Stmt):
	name: Literal
	imports: List[Literal] = field(default_factory=list)
	loc: Optional[Located] = _loc()


@dataclass
class Def(Stmt):
	name: Identifier
	args: List[Identifier]
	body: StatementList
	loc: Optional[Located] = _loc()


@dataclass
class Program(Node):
	body: StatementList
	loc: Optional[Located] = _loc()


NODE_KINDS = (
	Program,
	StatementList,
	Fork,
	ForkBranch,
	Input,
	Await,
	Once,
	Act,
	Hop,
	Pop,
	Set,
	Run,
	Use,
	Def,
	BinOp,
	UnaryOp,
	FunCall,
	Member,
	Identifier,
	Literal,
	Array,
	Object,
	Property,
	Spread,
	CSArray,
	EditReference,
)


__all__ = [cls.__name__ for cls in NODE_KINDS] + ["Located", "Node", "Stmt", "Expr", "NODE_KINDS"]
