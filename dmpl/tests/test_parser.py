# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from dmpl import ast
from dmpl.errors import ParseError
from dmpl.parser import IF_IN_CONDITION, parse


def _stmts(src: str) -> list:
	prog = parse(src)
	assert isinstance(prog, ast.Program)
	return prog.body.list


def test_empty_program_has_no_statements() -> None:
	assert _stmts("") == []
	assert _stmts("  // only a comment\n") == []


def test_if_else_if_else_flattens_into_one_fork() -> None:
	(fork,) = _stmts(
		"""
if X == 0 {
	act First
}
else if X == 1 {
	act Second
}
else {
	act DoNothing
}
"""
	)
	assert isinstance(fork, ast.Fork)
	assert fork.scheme is None
	assert len(fork.conditions) == 3
	first, second, default = fork.conditions
	assert first.condition == ast.BinOp(op="==", left=ast.Identifier("X"), right=ast.Literal(0))
	assert second.condition == ast.BinOp(op="==", left=ast.Identifier("X"), right=ast.Literal(1))
	assert default.condition is None
	assert default.body.list == [ast.Act(value=ast.Identifier("DoNothing"))]


def test_fork_branches_and_scheme() -> None:
	(fork,) = _stmts(
		"""
#{depth: 2}
fork {
	X == 0 { act First }
	_ { act Third }
}
"""
	)
	assert fork.scheme == ast.Object(properties=[ast.Property(name=ast.Identifier("depth"), value=ast.Literal(2))])
	assert [b.condition is None for b in fork.conditions] == [False, True]


def test_fork_branch_starting_with_if_is_reported() -> None:
	src = """
fork {
	X == 0 { act First }
	if X == 1 { act Second }
}
"""
	with pytest.raises(ParseError) as excinfo:
		parse(src)
	err = excinfo.value
	assert err.message == IF_IN_CONDITION
	assert err.line == 4
	assert err.snippet == "if X == 1 { act Second }"
	assert "Line 4" in str(err)


def test_input_branch_starting_with_if_is_reported() -> None:
	with pytest.raises(ParseError, match="remove it"):
		parse("input -> r {\n  if r == 1 { act A }\n}")


def test_default_branch_cannot_carry_a_condition() -> None:
	with pytest.raises(ParseError):
		parse("fork {\n  _ X == 1 { act A }\n}")


def test_syntax_error_reports_line_and_snippet() -> None:
	with pytest.raises(ParseError) as excinfo:
		parse("act A\n    act = = 3\n")
	assert excinfo.value.line == 2
	assert excinfo.value.snippet == "act = = 3"


def test_unterminated_block_reports_end_of_input() -> None:
	with pytest.raises(ParseError, match="end of input"):
		parse("once {\n  act A\n")


def test_input_binds_result_name() -> None:
	(stmt,) = _stmts("input -> answer {\n answer == 1 { act A }\n _ { act B }\n}")
	assert isinstance(stmt, ast.Input)
	assert stmt.result.name == "answer"
	assert len(stmt.fork.conditions) == 2


def test_await_once_act_hop_pop() -> None:
	stmts = _stmts("await X == 5 { act Hello }\nonce { hop 3 }\npop X")
	assert [type(s) for s in stmts] == [ast.Await, ast.Once, ast.Pop]
	assert stmts[1].body.list == [ast.Hop(value=ast.Literal(3))]


def test_set_targets() -> None:
	single, multi, edit = _stmts('X = value\nX, Y, Z = value\na[0]["a"] = 1')
	assert single.target == ast.CSArray(elements=[ast.Identifier("X")])
	assert [e.name for e in multi.target.elements] == ["X", "Y", "Z"]
	assert edit.target == ast.EditReference(target=ast.Identifier("a"), keys=[ast.Literal(0), ast.Literal("a")])
	assert edit.value == ast.Literal(1)


def test_run_forms() -> None:
	bare, with_args, with_result, with_fork = _stmts(
		"""
run "MyComponent"
run "Questions" (foo, bar)
run "MyComponent" () -> result
run "Questions" (foo) -> answer {
	_ { act answer }
}
"""
	)
	assert bare == ast.Run(name=ast.Literal("MyComponent"))
	assert with_args.args == [ast.Identifier("foo"), ast.Identifier("bar")]
	assert with_result.args == []
	assert with_result.result == ast.Identifier("result")
	assert with_result.fork is None
	assert with_fork.result == ast.Identifier("answer")
	assert len(with_fork.fork.conditions) == 1


def test_run_name_glued_to_parens_is_a_call() -> None:
	(run,) = _stmts("run Lookup(a)")
	assert run.name == ast.FunCall(callee=ast.Identifier("Lookup"), args=[ast.Identifier("a")])
	assert run.args == []


def test_use_records_imports_as_string_literals() -> None:
	(use,) = _stmts('use "Questions" import foo, bar')
	assert use.name == ast.Literal("Questions")
	assert use.imports == [ast.Literal("foo"), ast.Literal("bar")]


def test_def_with_params() -> None:
	(fn,) = _stmts("def Pow(x, y) {\n pop x * y\n}")
	assert fn.name == ast.Identifier("Pow")
	assert fn.args == [ast.Identifier("x"), ast.Identifier("y")]
	assert isinstance(fn.body.list[0], ast.Pop)


def test_binary_precedence_climbs_left_associative() -> None:
	(act,) = _stmts("act 1 - 2 - 3 * 4")
	expected = ast.BinOp(
		op="-",
		left=ast.BinOp(op="-", left=ast.Literal(1), right=ast.Literal(2)),
		right=ast.BinOp(op="*", left=ast.Literal(3), right=ast.Literal(4)),
	)
	assert act.value == expected


def test_logical_operators_bind_loosest() -> None:
	(act,) = _stmts("act a && b || c is d")
	assert act.value.op == "||"
	assert act.value.left.op == "&&"
	assert act.value.right == ast.BinOp(op="is", left=ast.Identifier("c"), right=ast.Identifier("d"))


def test_in_requires_following_whitespace() -> None:
	(act,) = _stmts("act 1 in [1, 2]")
	assert act.value.op == "in"
	assert isinstance(act.value.right, ast.Array)
	(act,) = _stmts("act index")
	assert act.value == ast.Identifier("index")


def test_postfix_chains_fold_left() -> None:
	(stmt,) = _stmts('x = d(a)["b"](c)')
	call = stmt.value
	assert isinstance(call, ast.FunCall)
	assert call.args == [ast.Identifier("c")]
	member = call.callee
	assert member == ast.Member(
		target=ast.FunCall(callee=ast.Identifier("d"), args=[ast.Identifier("a")]),
		property=ast.Literal("b"),
	)


def test_unary_not_and_literals() -> None:
	(act,) = _stmts('act !exists(X)')
	assert act.value == ast.UnaryOp(op="!", target=ast.FunCall(callee=ast.Identifier("exists"), args=[ast.Identifier("X")]))
	(stmt,) = _stmts('a = [true, false, -1, 2.5, "q\\"uote\\n"]')
	assert [e.value for e in stmt.value.elements] == [True, False, -1, 2.5, 'q"uote\n']


def test_object_keys_may_be_names_strings_or_numbers() -> None:
	(stmt,) = _stmts('a = {1: 12, "-1": -1, a: 11}')
	assert [p.name.name for p in stmt.value.properties] == ["1", "-1", "a"]
	assert stmt.value.properties[1].value == ast.Literal(-1)


def test_comments_are_whitespace() -> None:
	(fork,) = _stmts(
		"""
// leading comment
if X == 0 {
	act 1 +
		// inside an expression
		(4 * 10) /
		pow(5)
}
"""
	)
	value = fork.conditions[0].body.list[0].value
	assert value.op == "+"
	assert value.right.op == "/"
	assert value.right.right == ast.FunCall(callee=ast.Identifier("pow"), args=[ast.Literal(5)])


def test_comment_markers_inside_strings_are_text() -> None:
	(act,) = _stmts('act "http://x.y"')
	assert act.value == ast.Literal("http://x.y")
	(act,) = _stmts('act "x"//c\n')
	assert act.value == ast.Literal("x")


def test_statement_keywords_are_not_assignable() -> None:
	with pytest.raises(ParseError, match="unexpected '='"):
		parse("act = 1")
	with pytest.raises(ParseError) as excinfo:
		parse("once = 1")
	assert excinfo.value.snippet == "once = 1"


def test_nodes_carry_source_lines() -> None:
	stmts = _stmts("act A\n\nact B")
	assert [s.loc.line for s in stmts] == [1, 3]
