"""Relationship cardinality definitions and normalization helpers.

Cardinality is matched exhaustively by the code generator.
"""

from __future__ import annotations

from enum import Enum
from typing import Tuple

from DBML2ORM.ir.models.ast import RelationOperator


class Cardinality(str, Enum):
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"

    def reciprocal(self) -> Cardinality:
        """Cardinality of the same relationship seen from the other endpoint."""
        if self is Cardinality.MANY_TO_ONE:
            return Cardinality.ONE_TO_MANY
        if self is Cardinality.ONE_TO_MANY:
            return Cardinality.MANY_TO_ONE
        return self


def cardinality_from_operator(operator: RelationOperator) -> Tuple[Cardinality, bool]:
    """Classify a DBML operator.

    Returns (cardinality seen from the foreign-key owner, swap) where ``swap``
    tells whether the right endpoint is the owner (only for ``<``).
    """
    if operator is RelationOperator.MANY_TO_ONE:
        return Cardinality.MANY_TO_ONE, False
    if operator is RelationOperator.ONE_TO_MANY:
        return Cardinality.MANY_TO_ONE, True
    if operator is RelationOperator.ONE_TO_ONE:
        return Cardinality.ONE_TO_ONE, False
    return Cardinality.MANY_TO_MANY, False
