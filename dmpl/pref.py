# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
The `pref` builtin: preference-weighting expansion.

`pref({polite: true, refuse_counter: 0}, ["refuse_counter"])` expands, before
compilation, into literal arrays pairing the preference object with flipped
copies of it. The external runtime scores those variants; this module only
rewrites the call.

  - booleans flip by negation;
  - numbers flip up or down by `spread` (1 when the value is 0, else 3x the
    value);
  - with any numeric field the call becomes a `Spread` of two arrays
    (object + up, object + down) that splices into the enclosing array;
    a purely boolean object becomes a single array (object + flipped).

Only the fields named in the optional second argument flip; without it every
field does.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Union

from .ast import Array, FunCall, Literal, Object, Property, Spread
from .errors import CompileError, PrefArgumentError

logger = logging.getLogger(__name__)

UP = "up"
DOWN = "down"


def expand(call: FunCall) -> Union[Array, Spread]:
	"""Rewrite a `pref(...)` call into the arrays the compiler emits."""
	if not call.args or not isinstance(call.args[0], Object):
		raise CompileError("pref must be passed an object literal", loc=call.loc)
	prefs = call.args[0]
	flip_keys = _flip_keys(call)

	has_number = any(_is_number(prop.value) for prop in prefs.properties)
	logger.debug("expanding pref with flip keys %s (numeric=%s)", flip_keys, has_number)
	if has_number:
		return Spread(
			elements=[
				Array(elements=[prefs, _flip_object(prefs, flip_keys, UP)]),
				Array(elements=[prefs, _flip_object(prefs, flip_keys, DOWN)]),
			],
			loc=call.loc,
		)
	return Array(elements=[prefs, _flip_object(prefs, flip_keys, None)], loc=call.loc)


def flip_value(value: Union[bool, int, float], direction: Optional[str]) -> Union[bool, int, float]:
	if isinstance(value, bool):
		return not value
	spread = 1 if value == 0 else value * 3
	if direction == UP:
		return value + spread
	return value - spread


def _flip_keys(call: FunCall) -> List[str]:
	if len(call.args) < 2:
		return [prop.name.name for prop in call.args[0].properties]
	keys_node = call.args[1]
	if not isinstance(keys_node, Array):
		raise PrefArgumentError("pref array must only contain strings", loc=call.loc)
	keys: List[str] = []
	for element in keys_node.elements:
		if not isinstance(element, Literal) or not isinstance(element.value, str):
			raise PrefArgumentError("pref array must only contain strings", loc=call.loc)
		keys.append(element.value)
	return keys


def _flip_object(prefs: Object, flip_keys: List[str], direction: Optional[str]) -> Object:
	properties: List[Property] = []
	for prop in prefs.properties:
		if not isinstance(prop.value, Literal) or not isinstance(prop.value.value, (bool, int, float)):
			raise PrefArgumentError(
				"pref must be passed an object with static true/false values or numbers",
				loc=prop.loc,
			)
		if prop.name.name in flip_keys:
			flipped = replace(prop.value, value=flip_value(prop.value.value, direction))
			prop = replace(prop, value=flipped)
		properties.append(prop)
	return replace(prefs, properties=properties)


def _is_number(node) -> bool:
	return isinstance(node, Literal) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool)


__all__ = ["expand", "flip_value"]
