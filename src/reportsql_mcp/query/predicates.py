"""Dialect-independent filter and sort model.

Operators, connectors and sort directions are closed enums. Their SQL tokens
and display strings come from pure lookup functions rather than methods on
the members.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, NamedTuple

from fastmcp.utilities.logging import get_logger

from reportsql_mcp.catalog.types import LogicalKind

_logger = get_logger(__name__)


class Operator(Enum):
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    CONTAINS = "CONTAINS"
    STARTS_WITH = "STARTS_WITH"
    ENDS_WITH = "ENDS_WITH"
    GREATER_THAN = "GREATER_THAN"
    GREATER_OR_EQUAL = "GREATER_OR_EQUAL"
    LESS_THAN = "LESS_THAN"
    LESS_OR_EQUAL = "LESS_OR_EQUAL"
    IS_NULL = "IS_NULL"
    IS_NOT_NULL = "IS_NOT_NULL"
    IN = "IN"
    NOT_IN = "NOT_IN"
    BETWEEN = "BETWEEN"


class Connector(Enum):
    """Logical join of a condition with the one before it."""

    AND = "AND"
    OR = "OR"


class SortDirection(Enum):
    ASC = "ASC"
    DESC = "DESC"


class OperatorInfo(NamedTuple):
    sql: str
    display: str


_OPERATOR_INFO: Final[dict[Operator, OperatorInfo]] = {
    Operator.EQUALS: OperatorInfo("=", "equals"),
    Operator.NOT_EQUALS: OperatorInfo("!=", "does not equal"),
    Operator.CONTAINS: OperatorInfo("LIKE", "contains"),
    Operator.STARTS_WITH: OperatorInfo("LIKE", "starts with"),
    Operator.ENDS_WITH: OperatorInfo("LIKE", "ends with"),
    Operator.GREATER_THAN: OperatorInfo(">", "greater than"),
    Operator.GREATER_OR_EQUAL: OperatorInfo(">=", "greater than or equal to"),
    Operator.LESS_THAN: OperatorInfo("<", "less than"),
    Operator.LESS_OR_EQUAL: OperatorInfo("<=", "less than or equal to"),
    Operator.IS_NULL: OperatorInfo("IS NULL", "is empty"),
    Operator.IS_NOT_NULL: OperatorInfo("IS NOT NULL", "is not empty"),
    Operator.IN: OperatorInfo("IN", "is one of"),
    Operator.NOT_IN: OperatorInfo("NOT IN", "is not one of"),
    Operator.BETWEEN: OperatorInfo("BETWEEN", "between"),
}

# Symbols and legacy spellings accepted from callers in addition to member names.
_OPERATOR_ALIASES: Final[dict[str, Operator]] = {
    "=": Operator.EQUALS,
    "!=": Operator.NOT_EQUALS,
    "<>": Operator.NOT_EQUALS,
    "LIKE": Operator.CONTAINS,
    ">": Operator.GREATER_THAN,
    ">=": Operator.GREATER_OR_EQUAL,
    "GREATER_THAN_OR_EQUAL": Operator.GREATER_OR_EQUAL,
    "<": Operator.LESS_THAN,
    "<=": Operator.LESS_OR_EQUAL,
    "LESS_THAN_OR_EQUAL": Operator.LESS_OR_EQUAL,
}

VALUELESS_OPERATORS: Final[frozenset[Operator]] = frozenset(
    {Operator.IS_NULL, Operator.IS_NOT_NULL}
)


def operator_info(op: Operator) -> OperatorInfo:
    """Return the SQL token and display string for an operator."""
    return _OPERATOR_INFO[op]


def parse_operator(token: Operator | str) -> Operator:
    """Resolve an operator from a member, member name or SQL symbol.

    Unrecognized tokens are logged and resolved to ``Operator.EQUALS``.
    """
    if isinstance(token, Operator):
        return token
    key = token.strip().upper()
    try:
        return Operator(key)
    except ValueError:
        pass
    if key in _OPERATOR_ALIASES:
        return _OPERATOR_ALIASES[key]
    _logger.warning("Unknown operator: %s; rendering as EQUALS", token)
    return Operator.EQUALS


def parse_connector(token: Connector | str | None) -> Connector:
    if isinstance(token, Connector):
        return token
    return Connector.OR if (token or "").strip().upper() == "OR" else Connector.AND


def parse_direction(token: SortDirection | str | None) -> SortDirection:
    if isinstance(token, SortDirection):
        return token
    return SortDirection.DESC if (token or "").strip().upper() == "DESC" else SortDirection.ASC


@dataclass(frozen=True)
class FilterCondition:
    """One WHERE-clause term.

    ``operator`` may be given as a raw token; it is kept verbatim and resolved
    at render time so an unknown token still produces the EQUALS fallback.
    ``connector`` joins this condition with the previous one and is ignored
    for the first condition.
    """

    column_name: str
    operator: Operator | str
    value: str = ""
    column_kind: LogicalKind | None = None
    connector: Connector = Connector.AND

    @property
    def resolved_operator(self) -> Operator:
        return parse_operator(self.operator)

    def is_valid(self) -> bool:
        if not self.column_name or not self.column_name.strip():
            return False
        if isinstance(self.operator, str) and not self.operator.strip():
            return False
        if self.resolved_operator in VALUELESS_OPERATORS:
            return True
        return bool(self.value and self.value.strip())


def describe_condition(condition: FilterCondition) -> str:
    """Human-readable rendering, e.g. ``OR total greater than 100``."""
    op = condition.resolved_operator
    parts: list[str] = []
    if condition.connector is not Connector.AND:
        parts.append(condition.connector.value)
    parts.extend([condition.column_name, operator_info(op).display])
    if op not in VALUELESS_OPERATORS:
        parts.append(condition.value)
    return " ".join(parts)


@dataclass(frozen=True)
class SortSpec:
    column_name: str
    direction: SortDirection = SortDirection.ASC
    priority: int = 0

    def is_valid(self) -> bool:
        return bool(self.column_name and self.column_name.strip())


def order_sort_specs(sort: list[SortSpec]) -> list[SortSpec]:
    """Order by priority; ``sorted`` is stable so ties keep insertion order."""
    return sorted(sort, key=lambda spec: spec.priority)
