"""
Condition Evaluator

Evaluates one atomic comparison between a submitted attribute value and
a condition threshold. Comparisons are strict: a string never equals a
number, and operands that cannot be ordered against each other make the
condition fail rather than raise.
"""

import operator
from typing import Any, Callable

from src.models.catalog import Condition
from src.models.enums import ConditionType


_OPERATORS: dict[ConditionType, Callable[[Any, Any], bool]] = {
    ConditionType.EQ: operator.eq,
    ConditionType.NEQ: operator.ne,
    ConditionType.LTEQ: operator.le,
    ConditionType.GT: operator.gt,
}


def _same_kind(value: Any, threshold: Any) -> bool:
    if isinstance(value, bool) or isinstance(threshold, bool):
        return type(value) is type(threshold)
    numeric = (int, float)
    if isinstance(value, numeric) and isinstance(threshold, numeric):
        return True
    return type(value) is type(threshold)


def evaluate(value: Any, condition: Condition) -> bool:
    """
    Return True when *value* satisfies *condition*.

    EQ/NEQ compare without type coercion, so ``"30"`` is never equal
    to ``30``. LTEQ/GT on incomparable operands (``None``, text against
    a number) are False.
    """
    compare = _OPERATORS[condition.type]
    threshold = condition.threshold

    if not _same_kind(value, threshold):
        return condition.type == ConditionType.NEQ

    try:
        return bool(compare(value, threshold))
    except TypeError:
        return False
