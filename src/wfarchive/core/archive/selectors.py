"""Label selector translation for archive queries.

Each label requirement compiles to an EXISTS or NOT EXISTS sub-query over
the label index, correlated to the candidate record on (clustername, uid).
A requirement set is the conjunction of its requirements, matching
Kubernetes set-selector semantics.

Negative operators are not existence-qualified: ``env!=prod`` and
``env notin (prod)`` also match records that have no ``env`` label.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from sqlalchemy import Integer, and_, cast, select, true
from sqlalchemy.sql.elements import ColumnElement

from wfarchive.contracts.enums import SelectorOperator
from wfarchive.contracts.errors import SelectorSyntaxError, UnsupportedSelectorError
from wfarchive.contracts.selectors import LabelRequirement
from wfarchive.core.archive.dialects import Dialect, value_in
from wfarchive.core.archive.schema import archived_workflow_labels_table, archived_workflows_table

_labels = archived_workflow_labels_table.c
_wf = archived_workflows_table.c

_SINGLE_VALUE_OPERATORS = frozenset(
    {
        SelectorOperator.EQUALS,
        SelectorOperator.DOUBLE_EQUALS,
        SelectorOperator.NOT_EQUALS,
        SelectorOperator.GREATER_THAN,
        SelectorOperator.LESS_THAN,
    }
)


def _label_exists(key: str, *value_conds: ColumnElement[bool]) -> ColumnElement[bool]:
    subquery = select(_labels.uid).where(
        _labels.clustername == _wf.clustername,
        _labels.uid == _wf.uid,
        _labels.name == key,
        *value_conds,
    )
    return subquery.exists()


def _integer_operand(requirement: LabelRequirement) -> int:
    try:
        return int(requirement.values[0])
    except ValueError:
        raise UnsupportedSelectorError(
            requirement.key,
            str(requirement.operator),
            f"operand {requirement.values[0]!r} is not an integer",
        ) from None


def requirement_clause(requirement: LabelRequirement, dialect: Dialect) -> ColumnElement[bool]:
    """Translate a single requirement.

    Raises:
        UnsupportedSelectorError: Unknown operator, or wrong number of values for it
    """
    try:
        op = SelectorOperator(requirement.operator)
    except ValueError:
        raise UnsupportedSelectorError(requirement.key, str(requirement.operator)) from None

    values = requirement.values
    if op in _SINGLE_VALUE_OPERATORS and len(values) != 1:
        raise UnsupportedSelectorError(requirement.key, op.value, f"expected exactly one value, got {len(values)}")
    if op in (SelectorOperator.IN, SelectorOperator.NOT_IN) and not values:
        raise UnsupportedSelectorError(requirement.key, op.value, "expected at least one value")

    match op:
        case SelectorOperator.EQUALS | SelectorOperator.DOUBLE_EQUALS | SelectorOperator.IN:
            return _label_exists(requirement.key, value_in(_labels.value, values, dialect))
        case SelectorOperator.NOT_EQUALS | SelectorOperator.NOT_IN:
            return ~_label_exists(requirement.key, value_in(_labels.value, values, dialect))
        case SelectorOperator.EXISTS:
            return _label_exists(requirement.key)
        case SelectorOperator.DOES_NOT_EXIST:
            return ~_label_exists(requirement.key)
        case SelectorOperator.GREATER_THAN:
            return _label_exists(requirement.key, cast(_labels.value, Integer) > _integer_operand(requirement))
        case SelectorOperator.LESS_THAN:
            return _label_exists(requirement.key, cast(_labels.value, Integer) < _integer_operand(requirement))
    raise UnsupportedSelectorError(requirement.key, op.value)


def label_clause(requirements: Iterable[LabelRequirement] | None, dialect: Dialect) -> ColumnElement[bool]:
    """Conjunction of all requirements; true() when there are none.

    Every requirement is translated before anything runs, so one
    unsupported operator fails the whole query.
    """
    if not requirements:
        return true()
    return and_(true(), *(requirement_clause(r, dialect) for r in requirements))


# === Selector string parsing ===

_KEY = r"[^\s!=<>(),]+"
_SET_RE = re.compile(rf"^({_KEY})\s+(in|notin)\s*\(([^()]*)\)$")
_COMPARE_RE = re.compile(rf"^({_KEY})\s*(==|!=|=|>|<)\s*([^\s!=<>(),]*)$")
_NOT_EXISTS_RE = re.compile(rf"^!\s*({_KEY})$")
_EXISTS_RE = re.compile(rf"^({_KEY})$")

_COMPARE_OPERATORS = {
    "=": SelectorOperator.EQUALS,
    "==": SelectorOperator.DOUBLE_EQUALS,
    "!=": SelectorOperator.NOT_EQUALS,
    ">": SelectorOperator.GREATER_THAN,
    "<": SelectorOperator.LESS_THAN,
}


def _split_top_level(text: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise SelectorSyntaxError(f"unbalanced ')' in selector {text!r}")
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    if depth != 0:
        raise SelectorSyntaxError(f"unbalanced '(' in selector {text!r}")
    parts.append("".join(current))
    return parts


def _parse_requirement(part: str, selector: str) -> LabelRequirement:
    if m := _SET_RE.match(part):
        values = tuple(v.strip() for v in m.group(3).split(","))
        if not any(values):
            raise SelectorSyntaxError(f"empty value set for key {m.group(1)!r} in selector {selector!r}")
        return LabelRequirement(m.group(1), SelectorOperator(m.group(2)), values)
    if m := _COMPARE_RE.match(part):
        op = _COMPARE_OPERATORS[m.group(2)]
        value = m.group(3)
        if op in (SelectorOperator.GREATER_THAN, SelectorOperator.LESS_THAN) and not value.lstrip("-").isdigit():
            raise SelectorSyntaxError(f"{op.value} requires an integer value, got {value!r} in selector {selector!r}")
        return LabelRequirement(m.group(1), op, (value,))
    if m := _NOT_EXISTS_RE.match(part):
        return LabelRequirement(m.group(1), SelectorOperator.DOES_NOT_EXIST)
    if m := _EXISTS_RE.match(part):
        return LabelRequirement(m.group(1), SelectorOperator.EXISTS)
    raise SelectorSyntaxError(f"cannot parse requirement {part!r} in selector {selector!r}")


def parse_selector(selector: str) -> list[LabelRequirement]:
    """Parse a Kubernetes label selector string.

    Supports ``k=v``, ``k==v``, ``k!=v``, ``k in (a,b)``, ``k notin (a,b)``,
    ``k`` (exists), ``!k`` (does not exist), ``k>N`` and ``k<N``, separated
    by commas. An empty selector selects everything.

    Raises:
        SelectorSyntaxError: If the string is malformed
    """
    if not selector.strip():
        return []
    requirements = []
    for part in _split_top_level(selector):
        stripped = part.strip()
        if not stripped:
            raise SelectorSyntaxError(f"empty requirement in selector {selector!r}")
        requirements.append(_parse_requirement(stripped, selector))
    return requirements
