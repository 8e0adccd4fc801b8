"""Executor-neutral ordering terms and boolean predicates.

Boundary chains describe what a page query needs in these terms; executors
translate them into whatever their backend understands (SQL text, Python
comparisons, ...).
"""

from typing import Any, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict

SortOrder = Literal["asc", "desc"]


class ValueOrder(BaseModel):
    """Order rows by the values of a column."""

    model_config = ConfigDict(frozen=True)

    column: str
    order: SortOrder


class NullPlacementOrder(BaseModel):
    """Order rows by whether a column is null.

    Rows are ordered by the boolean ``column IS NULL``, with false sorting
    before true, so ``desc`` places nulls first and ``asc`` places them last.
    """

    model_config = ConfigDict(frozen=True)

    column: str
    order: SortOrder


OrderTerm = Union[NullPlacementOrder, ValueOrder]


class Comparison(BaseModel):
    """``column <operator> value``; unknown when either side is null."""

    model_config = ConfigDict(frozen=True)

    column: str
    operator: Literal[">", "<", "="]
    value: Any


class IsNull(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str


class Not(BaseModel):
    model_config = ConfigDict(frozen=True)

    term: "Predicate"


class And(BaseModel):
    """Conjunction of terms. An empty conjunction is always true."""

    model_config = ConfigDict(frozen=True)

    terms: Tuple["Predicate", ...] = ()


class Or(BaseModel):
    """Disjunction of terms. An empty disjunction is always false."""

    model_config = ConfigDict(frozen=True)

    terms: Tuple["Predicate", ...] = ()


Predicate = Union[Comparison, IsNull, Not, And, Or]

Not.model_rebuild()
And.model_rebuild()
Or.model_rebuild()

ALWAYS = And()
NEVER = Or()


def compare(column: str, operator: str, value: Any) -> Comparison:
    return Comparison(column=column, operator=operator, value=value)


def is_null(column: str) -> IsNull:
    return IsNull(column=column)


def is_not_null(column: str) -> Not:
    return Not(term=IsNull(column=column))


def and_(*terms: Predicate) -> And:
    return And(terms=terms)


def or_(*terms: Predicate) -> Or:
    return Or(terms=terms)
