# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
DMPL parser: source text → AST.

The grammar lives in `grammar.lark` and is parsed with lark's LALR parser.
The resulting parse tree is rebuilt into the dataclasses of `dmpl.ast` by the
`_build_*` helpers below. Syntax errors surface as `dmpl.errors.ParseError`.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from .ast import (
	Act,
	Array,
	Await,
	BinOp,
	CSArray,
	Def,
	EditReference,
	Expr,
	Fork,
	ForkBranch,
	FunCall,
	Hop,
	Identifier,
	Input,
	Literal,
	Located,
	Member,
	Object,
	Once,
	Pop,
	Program,
	Property,
	Run,
	Set,
	StatementList,
	Stmt,
	UnaryOp,
	Use,
)
from .errors import ParseError

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start="program",
	propagate_positions=True,
	maybe_placeholders=False,
)

IF_IN_CONDITION = "conditions do not need an `if`, remove it"

_ESCAPES = {"b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t"}
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)")


class _BranchConditionError(ValueError):
	"""
	Raised while building the AST for a branch written as `if cond { ... }`.

	Carries the location so `parse` can turn it into a `ParseError` quoting
	the offending source line.
	"""

	def __init__(self, message: str, *, loc: Optional[Located]) -> None:
		super().__init__(message)
		self.loc = loc


def parse(source: str) -> Program:
	"""Parse DMPL source into a `Program`. Raises `ParseError` on bad input."""
	try:
		tree = _PARSER.parse(source)
	except UnexpectedInput as err:
		raise _error_from_lark(source, err) from None
	try:
		return _build_program(tree)
	except _BranchConditionError as err:
		line = err.loc.line if err.loc else 1
		column = err.loc.column if err.loc else 0
		raise _error_at(source, str(err), line, column) from None


def _error_from_lark(source: str, err: UnexpectedInput) -> ParseError:
	line = getattr(err, "line", None)
	column = getattr(err, "column", None) or 0
	if isinstance(err, UnexpectedToken):
		if err.token.type == "$END":
			message = "unexpected end of input"
		else:
			message = f"unexpected {err.token.value!r}"
	elif isinstance(err, UnexpectedCharacters):
		message = f"unexpected character {err.char!r}"
	else:
		message = "unexpected end of input"
	if not isinstance(line, int) or line < 1:
		line = max(len(source.splitlines()), 1)
	return _error_at(source, message, line, column)


def _error_at(source: str, message: str, line: int, column: int) -> ParseError:
	lines = source.splitlines()
	snippet = lines[line - 1].lstrip() if 0 < line <= len(lines) else ""
	return ParseError(message, line=line, column=column, snippet=snippet)


# Statements

def _build_program(tree: Tree) -> Program:
	body = StatementList(list=[_build_stmt(child) for child in _subtrees(tree)], loc=_loc(tree))
	return Program(body=body, loc=_loc(tree))


def _build_block(tree: Tree) -> StatementList:
	return StatementList(list=[_build_stmt(child) for child in _subtrees(tree)], loc=_loc(tree))


def _build_stmt(tree: Tree) -> Stmt:
	kind = _name(tree)
	if kind == "if_stmt":
		return _build_if_stmt(tree)
	if kind == "fork_stmt":
		return _build_fork_stmt(tree)
	if kind == "input_stmt":
		return _build_input_stmt(tree)
	if kind == "await_stmt":
		condition, block = _subtrees(tree)
		return Await(condition=_build_expr(condition), body=_build_block(block), loc=_loc(tree))
	if kind == "once_stmt":
		return Once(body=_build_block(tree.children[0]), loc=_loc(tree))
	if kind == "act_stmt":
		return Act(value=_build_expr(tree.children[0]), loc=_loc(tree))
	if kind == "hop_stmt":
		return Hop(value=_build_expr(tree.children[0]), loc=_loc(tree))
	if kind == "pop_stmt":
		return Pop(value=_build_expr(tree.children[0]), loc=_loc(tree))
	if kind == "set_stmt":
		return _build_set_stmt(tree)
	if kind == "run_stmt":
		return _build_run_stmt(tree)
	if kind == "use_stmt":
		return _build_use_stmt(tree)
	if kind == "def_stmt":
		return _build_def_stmt(tree)
	raise ValueError(f"Unsupported statement node: {kind}")


def _build_if_stmt(tree: Tree) -> Fork:
	"""
	Desugar `if`/`else if`/`else` into one Fork.

	An `else if` chain is flattened into the outer fork's branch list; a bare
	`else` becomes the default branch. A scheme on a nested `if` is dropped.
	"""
	children = _subtrees(tree)
	scheme = None
	if _name(children[0]) == "scheme":
		scheme = _build_object(children.pop(0).children[0])
	condition_node, block_node = children[0], children[1]
	conditions = [
		ForkBranch(condition=_build_expr(condition_node), body=_build_block(block_node), loc=_loc(condition_node))
	]
	if len(children) > 2:
		else_node = children[2].children[0]
		if _name(else_node) == "if_stmt":
			conditions.extend(_build_if_stmt(else_node).conditions)
		else:
			conditions.append(ForkBranch(condition=None, body=_build_block(else_node), loc=_loc(children[2])))
	return Fork(conditions=conditions, scheme=scheme, loc=_loc(tree))


def _build_fork_stmt(tree: Tree) -> Fork:
	children = _subtrees(tree)
	scheme = None
	if children and _name(children[0]) == "scheme":
		scheme = _build_object(children.pop(0).children[0])
	return Fork(conditions=_build_branches(children), scheme=scheme, loc=_loc(tree))


def _build_branches(nodes: List[Tree]) -> List[ForkBranch]:
	branches: List[ForkBranch] = []
	for node in nodes:
		kind = _name(node)
		if kind == "default_branch":
			branches.append(ForkBranch(condition=None, body=_build_block(node.children[0]), loc=_loc(node)))
		elif kind == "cond_branch":
			condition, block = node.children
			branches.append(ForkBranch(condition=_build_expr(condition), body=_build_block(block), loc=_loc(node)))
		elif kind == "if_branch":
			raise _BranchConditionError(IF_IN_CONDITION, loc=_loc(node))
		else:
			raise ValueError(f"Unexpected branch node: {kind}")
	return branches


def _build_input_stmt(tree: Tree) -> Input:
	name_token = tree.children[0]
	fork = Fork(conditions=_build_branches(_subtrees(tree)), loc=_loc(tree))
	return Input(result=_identifier(name_token), fork=fork, loc=_loc(tree))


def _build_set_stmt(tree: Tree) -> Set:
	targets_node, value_node = _subtrees(tree)
	targets = [_build_expr(child) for child in targets_node.children]
	if len(targets) == 1 and isinstance(targets[0], Member):
		target = _edit_reference(targets[0])
	else:
		target = CSArray(elements=targets, loc=_loc(targets_node))
	return Set(target=target, value=_build_expr(value_node), loc=_loc(tree))


def _edit_reference(member: Member) -> EditReference:
	"""Unfold `a[k1][k2]` into EditReference(a, [k1, k2])."""
	keys: List[Expr] = []
	node: Expr = member
	while isinstance(node, Member):
		keys.append(node.property)
		node = node.target
	keys.reverse()
	return EditReference(target=node, keys=keys, loc=member.loc)


def _build_run_stmt(tree: Tree) -> Run:
	children = _subtrees(tree)
	run = Run(name=_build_expr(children[0]), loc=_loc(tree))
	for child in children[1:]:
		kind = _name(child)
		if kind == "run_args":
			run.args = _build_arguments(child.children[0]) if child.children else []
		elif kind == "run_result":
			run.result = _identifier(child.children[0])
			branch_nodes = _subtrees(child)
			if branch_nodes:
				run.fork = Fork(conditions=_build_branches(_subtrees(branch_nodes[0])), loc=_loc(branch_nodes[0]))
		else:
			raise ValueError(f"Unexpected run child: {kind}")
	return run


def _build_use_stmt(tree: Tree) -> Use:
	module_token, names_node = tree.children
	imports = [Literal(value=tok.value, loc=_loc_from_token(tok)) for tok in names_node.children]
	name = Literal(value=_decode_string(module_token), loc=_loc_from_token(module_token))
	return Use(name=name, imports=imports, loc=_loc(tree))


def _build_def_stmt(tree: Tree) -> Def:
	name_token = tree.children[0]
	params: List[Identifier] = []
	body_node = tree.children[-1]
	if len(tree.children) == 3:
		params = [_identifier(tok) for tok in tree.children[1].children]
	return Def(name=_identifier(name_token), args=params, body=_build_block(body_node), loc=_loc(tree))


# Expressions

def _build_expr(node) -> Expr:
	if isinstance(node, Tree):
		name = _name(node)
	else:
		raise TypeError(f"Unexpected node type: {type(node)}")

	if name == "binop":
		left, op_token, right = node.children
		return BinOp(op=op_token.value, left=_build_expr(left), right=_build_expr(right), loc=_loc_from_token(op_token))
	if name == "not_op":
		return UnaryOp(op="!", target=_build_expr(node.children[0]), loc=_loc(node))
	if name == "funcall":
		callee = _build_expr(node.children[0])
		args = _build_arguments(node.children[1]) if len(node.children) > 1 else []
		return FunCall(callee=callee, args=args, loc=_loc(node))
	if name == "member":
		target, prop = node.children
		return Member(target=_build_expr(target), property=_build_expr(prop), loc=_loc(node))
	if name == "identifier":
		return _identifier(node.children[0])
	if name == "string":
		return Literal(value=_decode_string(node.children[0]), loc=_loc(node))
	if name == "number":
		text = "".join(tok.value for tok in node.children)
		return Literal(value=_number(text), loc=_loc(node))
	if name == "true_lit":
		return Literal(value=True, loc=_loc(node))
	if name == "false_lit":
		return Literal(value=False, loc=_loc(node))
	if name == "array":
		elements = _build_arguments(node.children[0]) if node.children else []
		return Array(elements=elements, loc=_loc(node))
	if name == "object":
		return _build_object(node)
	raise ValueError(f"Unsupported expression node: {name}")


def _build_arguments(tree: Tree) -> List[Expr]:
	return [_build_expr(child) for child in tree.children]


def _build_object(tree: Tree) -> Object:
	properties: List[Property] = []
	for prop in tree.children:
		key_token, value_node = prop.children
		if key_token.type == "STRING":
			key = Identifier(name=_decode_string(key_token), loc=_loc_from_token(key_token))
		else:
			key = _identifier(key_token)
		properties.append(Property(name=key, value=_build_expr(value_node), loc=_loc(prop)))
	return Object(properties=properties, loc=_loc(tree))


def _identifier(token: Token) -> Identifier:
	return Identifier(name=token.value, loc=_loc_from_token(token))


def _number(text: str):
	if "." in text:
		return float(text)
	return int(text)


def _decode_string(token: Token) -> str:
	"""Strip the quotes of a STRING token and interpret its escapes."""

	def _unescape(match: re.Match) -> str:
		escape = match.group(1)
		if len(escape) == 5 and escape[0] == "u":
			return chr(int(escape[1:], 16))
		return _ESCAPES.get(escape, escape)

	return _ESCAPE_RE.sub(_unescape, token.value[1:-1])


# Tree helpers

def _subtrees(tree: Tree) -> List[Tree]:
	return [child for child in tree.children if isinstance(child, Tree)]


def _loc(tree: Tree) -> Optional[Located]:
	meta = tree.meta
	line = getattr(meta, "line", None)
	if line is None:
		return None
	return Located(line=line, column=meta.column)


def _loc_from_token(token: Token) -> Optional[Located]:
	if token.line is None:
		return None
	return Located(line=token.line, column=token.column)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


__all__ = ["parse", "IF_IN_CONDITION"]
