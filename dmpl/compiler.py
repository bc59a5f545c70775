# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
AST → IR compilation.

Pipeline placement:
  source → parser.parse → AST → Compiler.compile (this file) → IR

The IR is plain JSON-compatible data (dict/list/str/number/bool/None) read by
an external runtime. Conventions kept bit-for-bit for that runtime:

  - `@fork`, `@do`, `@act`, `@hop`, `@pop`, `@set`/`val`, `@run`/`args`,
    `@use`/`import`, `@def`/`val` keyed objects;
  - backtick-quoted strings (`` `text` ``) are literal text, bare strings are
    names;
  - a list headed by `""` is a literal list, any other list is an operator
    application (`["+", 1, 2]`).

Compilation is destructive: `Input` and `Run` rename their bound result
identifier inside the AST before compiling it. Re-parse to compile the same
source twice.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from . import ast
from . import pref
from .errors import CompileError
from .parser import parse
from .traverse import rename_identifier

logger = logging.getLogger(__name__)

# Internal names the runtime binds for received input and sub-program results.
INPUT_BINDING = "_nlu"
RETURN_BINDING = "_return"

# Sentinel heading every literal list in the IR.
LIST_SENTINEL = ""


def quote(text: str) -> str:
	"""Mark `text` as literal text rather than a name."""
	return f"`{text}`"


class Compiler:
	"""
	Single-dispatch AST → IR compiler.

	`compile` looks up `_compile_<NodeKind>` for the node's class; every kind in
	`ast.NODE_KINDS` has one (see `missing_handlers`).
	"""

	def __init__(self, source: Optional[str] = None) -> None:
		self.source = source
		self.ast = parse(source) if source is not None else None

	def get_source(self) -> Any:
		"""Compile the tree parsed from `source`, without top-level simplification."""
		if self.ast is None:
			raise CompileError("Compiler has no source to compile")
		return self.compile(self.ast)

	def compile(self, node: ast.Node) -> Any:
		if not isinstance(node, ast.Node):
			raise CompileError(f"Invalid node: {node!r}")
		method = getattr(self, f"_compile_{type(node).__name__}", None)
		if method is None:
			raise CompileError(f"Unknown node type: {type(node).__name__}", loc=getattr(node, "loc", None))
		return method(node)

	# Statements

	def _compile_Program(self, node: ast.Program) -> Any:
		return self.compile(node.body)

	def _compile_StatementList(self, node: ast.StatementList) -> Dict[str, Any]:
		return {"@do": [self.compile(stmt) for stmt in node.list]}

	def _compile_ForkBranch(self, node: ast.ForkBranch) -> Dict[str, Any]:
		branch = self.compile(node.body)
		if node.condition is not None:
			branch["if"] = self.compile(node.condition)
		return branch

	def _compile_Fork(self, node: ast.Fork) -> Dict[str, Any]:
		fork: Dict[str, Any] = {"@fork": [self.compile(branch) for branch in node.conditions]}
		if node.scheme is not None:
			fork["scheme"] = self.compile(node.scheme)
		return fork

	def _compile_Input(self, node: ast.Input) -> Dict[str, Any]:
		logger.debug("input binding %r renamed to %r", node.result.name, INPUT_BINDING)
		rename_identifier(node.fork, node.result.name, INPUT_BINDING)
		body = self.compile(node.fork)
		body["await"] = ["input"]
		return body

	def _compile_Await(self, node: ast.Await) -> Dict[str, Any]:
		body = self.compile(node.body)
		body["await"] = self.compile(node.condition)
		return body

	def _compile_Once(self, node: ast.Once) -> Dict[str, Any]:
		body = self.compile(node.body)
		body["once"] = True
		return body

	def _compile_Act(self, node: ast.Act) -> Dict[str, Any]:
		return {"@act": self.compile(node.value)}

	def _compile_Hop(self, node: ast.Hop) -> Dict[str, Any]:
		return {"@hop": self.compile(node.value)}

	def _compile_Pop(self, node: ast.Pop) -> Dict[str, Any]:
		return {"@pop": self.compile(node.value)}

	def _compile_Set(self, node: ast.Set) -> Dict[str, Any]:
		target = node.target
		if isinstance(target, ast.CSArray) and len(target.elements) == 1:
			target = target.elements[0]

		if isinstance(target, ast.Identifier):
			return {"@set": quote(target.name), "val": self.compile(node.value)}
		if isinstance(target, ast.EditReference):
			if not isinstance(target.target, ast.Identifier):
				raise CompileError("indexed assignment must start from a name", loc=node.loc)
			return {"@set": quote(target.target.name), "val": self._compile_edit(target, node.value)}
		if isinstance(target, ast.CSArray):
			names = [LIST_SENTINEL]
			for element in target.elements:
				if not isinstance(element, ast.Identifier):
					raise CompileError("only names can be assigned in a multi-target assignment", loc=node.loc)
				names.append(quote(element.name))
			return {"@set": names, "val": self.compile(node.value)}
		raise CompileError(f"Unsupported assignment target: {type(target).__name__}", loc=node.loc)

	def _compile_edit(self, ref: ast.EditReference, value: ast.Expr) -> List[Any]:
		return [quote("edit"), self.compile(ref.target), self.compile(value), *(self.compile(key) for key in ref.keys)]

	def _compile_Run(self, node: ast.Run) -> Dict[str, Any]:
		steps: List[Any] = [
			{"@run": self.compile(node.name), "args": self._literal_list(node.args)},
		]
		if node.result is not None:
			if node.fork is not None:
				logger.debug("run result %r renamed to %r", node.result.name, RETURN_BINDING)
				rename_identifier(node.fork, node.result.name, RETURN_BINDING)
			else:
				node.fork = _assign_return_fork(node.result)
			result = self.compile(node.fork)
			result["await"] = ["return"]
			steps.append(result)
		return {"@do": steps}

	def _compile_Use(self, node: ast.Use) -> Dict[str, Any]:
		return {"@use": self.compile(node.name), "import": self._literal_list(node.imports)}

	def _compile_Def(self, node: ast.Def) -> Dict[str, Any]:
		header = [LIST_SENTINEL, quote(node.name.name), *(quote(arg.name) for arg in node.args)]
		return {"@def": header, "val": self.compile(node.body)}

	# Expressions

	def _compile_BinOp(self, node: ast.BinOp) -> List[Any]:
		op = "==" if node.op == "is" else node.op
		return [op, self.compile(node.left), self.compile(node.right)]

	def _compile_UnaryOp(self, node: ast.UnaryOp) -> List[Any]:
		return [node.op, self.compile(node.target)]

	def _compile_FunCall(self, node: ast.FunCall) -> Any:
		if isinstance(node.callee, ast.Identifier):
			if node.callee.name == "exists":
				if len(node.args) != 1:
					raise CompileError("exists takes exactly one argument", loc=node.loc)
				return ["?", self.compile(node.args[0])]
			if node.callee.name == "pref":
				return self.compile(pref.expand(node))
		return [self.compile(node.callee), *(self.compile(arg) for arg in node.args)]

	def _compile_Member(self, node: ast.Member) -> List[Any]:
		return ["get", self.compile(node.property), self.compile(node.target)]

	def _compile_Identifier(self, node: ast.Identifier) -> Optional[str]:
		if node.name == "null":
			return None
		return node.name

	def _compile_Literal(self, node: ast.Literal) -> Any:
		if isinstance(node.value, str):
			return quote(node.value)
		return node.value

	def _compile_Array(self, node: ast.Array) -> List[Any]:
		array: List[Any] = [LIST_SENTINEL]
		for element in node.elements:
			element = _expand_builtin(element)
			if isinstance(element, ast.Spread):
				array.extend(self.compile(inner) for inner in element.elements)
			else:
				array.append(self.compile(element))
		return array

	def _compile_Spread(self, node: ast.Spread) -> List[Any]:
		# Outside an array there is nothing to splice into.
		return self._literal_list(node.elements)

	def _compile_Object(self, node: ast.Object) -> Dict[str, Any]:
		return {quote(prop.name.name): self.compile(prop.value) for prop in node.properties}

	def _compile_Property(self, node: ast.Property) -> Dict[str, Any]:
		return {quote(node.name.name): self.compile(node.value)}

	def _compile_CSArray(self, node: ast.CSArray) -> List[Any]:
		return self._literal_list(node.elements)

	def _compile_EditReference(self, node: ast.EditReference) -> List[Any]:
		raise CompileError("indexed reference is only valid as an assignment target", loc=node.loc)

	def _literal_list(self, nodes: List[ast.Node]) -> List[Any]:
		return [LIST_SENTINEL, *(self.compile(n) for n in nodes)]


def _expand_builtin(node: ast.Expr) -> ast.Expr:
	"""Expand `pref(...)` at the AST level so arrays can splice its Spread."""
	if (
		isinstance(node, ast.FunCall)
		and isinstance(node.callee, ast.Identifier)
		and node.callee.name == "pref"
	):
		return pref.expand(node)
	return node


def _assign_return_fork(result: ast.Identifier) -> ast.Fork:
	"""Default handling of `run X () -> name`: a single branch doing `name = _return`."""
	assign = ast.Set(
		target=ast.CSArray(elements=[ast.Identifier(name=result.name, loc=result.loc)]),
		value=ast.Identifier(name=RETURN_BINDING),
		loc=result.loc,
	)
	branch = ast.ForkBranch(condition=None, body=ast.StatementList(list=[assign]))
	return ast.Fork(conditions=[branch], loc=result.loc)


def missing_handlers() -> List[str]:
	"""Node kinds the Compiler has no `_compile_<Kind>` method for."""
	return [kind.__name__ for kind in ast.NODE_KINDS if not hasattr(Compiler, f"_compile_{kind.__name__}")]


def simplify(ir: Any) -> Any:
	"""
	Drop the program-level `@do` wrapper around a lone fork.

	`{"@do": [{"@fork": [...]}]}` becomes `{"@fork": [...]}`; anything else is
	returned unchanged.
	"""
	if not isinstance(ir, dict):
		return ir
	steps = ir.get("@do")
	if isinstance(steps, list) and len(steps) == 1 and isinstance(steps[0], dict) and "@fork" in steps[0]:
		logger.debug("program is a single fork, unwrapping top-level @do")
		return steps[0]
	return ir


def compile_ast(program: ast.Program, *, simplify_ir: bool = True) -> Any:
	"""Compile a parsed program. Mutates `program`; do not compile it twice."""
	ir = Compiler().compile(program)
	if simplify_ir:
		ir = simplify(ir)
	return ir


def compile(source: str, *, simplify_ir: bool = True) -> Any:
	"""Parse and compile DMPL source text into IR."""
	return compile_ast(parse(source), simplify_ir=simplify_ir)


__all__ = [
	"Compiler",
	"compile",
	"compile_ast",
	"simplify",
	"missing_handlers",
	"quote",
	"INPUT_BINDING",
	"RETURN_BINDING",
	"LIST_SENTINEL",
]
