"""
Compiles `where` specifications into point predicates.

A where spec maps a field name to one comparator clause, or a list of
them::

    {"time": [{"is": ">", "than": t0}, {"is": "<", "than": t1}],
     "host": {"is": "=", "than": "web-1"}}

Every clause on every field must hold for a point to match.
"""

from numbers import Real
from typing import Any, Callable, Dict, List, Optional

from .exceptions import MalformedPredicateError, UnknownComparatorError
from .point import Point


OPERATORS = (">", "<", "=")

Predicate = Callable[[Point], bool]


def _kind(value: Any) -> str:
    # bool is checked first, it subclasses int
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, Real):
        return "number"
    if isinstance(value, str):
        return "string"
    return "other"


def _orderable(left: Any, right: Any) -> bool:
    kind = _kind(left)
    return kind in ("number", "string") and kind == _kind(right)


def compare(operator: str, value: Any, operand: Any) -> bool:
    """
    Evaluates ``value <operator> operand``.

    Ordering is only defined between two real numbers or two strings; any
    other pairing does not match. Equality requires both sides to be of
    the same kind, so ``1`` never equals ``True``.
    """
    if operator == "=":
        return _kind(value) == _kind(operand) and value == operand
    if operator == ">":
        return _orderable(value, operand) and value > operand
    if operator == "<":
        return _orderable(value, operand) and value < operand
    raise UnknownComparatorError(operator)


def clauses_for(where: Optional[Dict[str, Any]], column: str) -> List[Dict[str, Any]]:
    """Returns the clauses on ``column`` as a list, empty if there are none."""
    if not where:
        return []
    clause = where.get(column)
    if not clause:
        return []
    return list(clause) if isinstance(clause, (list, tuple)) else [clause]


def _check_clause(column: str, clause: Any):
    if not isinstance(clause, dict):
        raise MalformedPredicateError(
            f"Clause on '{column}' must be a mapping with 'is' and 'than', got {clause!r}"
        )
    if "is" not in clause or "than" not in clause:
        raise MalformedPredicateError(
            f"Clause on '{column}' must have both 'is' and 'than', got {clause!r}"
        )
    if clause["is"] not in OPERATORS:
        raise UnknownComparatorError(clause["is"])


def _clause_predicate(column: str, operator: str, operand: Any) -> Predicate:
    def predicate(pt: Point) -> bool:
        if not pt.has(column):
            return False
        return compare(operator, pt.get(column), operand)

    return predicate


def build_predicate(where: Optional[Dict[str, Any]]) -> Predicate:
    """
    Converts a `where` spec into a predicate function.

    The whole spec is validated up front, so a bad operator or clause shape
    raises before any point is examined.
    """
    if where is None:
        where = {}
    if not isinstance(where, dict):
        raise MalformedPredicateError(f"where must be a mapping of field to clauses, got {where!r}")

    fns: List[Predicate] = []
    for column, clause in where.items():
        if isinstance(clause, (list, tuple)):
            comparators = list(clause)
        else:
            comparators = [clause]
        for comp in comparators:
            _check_clause(column, comp)
            fns.append(_clause_predicate(column, comp["is"], comp["than"]))

    def matches(pt: Point) -> bool:
        for fn in fns:
            if not fn(pt):
                return False
        return True

    return matches
