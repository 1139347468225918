import operator as op

from .enum import Operator
from .exceptions import InvalidOperatorException


_OPERATIONS = {
    Operator.EQUAL: op.eq,
    Operator.NOT_EQUAL: op.ne,
    Operator.GREATER_THAN: op.gt,
    Operator.LESS_THAN: op.lt,
    Operator.GREATER_OR_EQUAL: op.ge,
    Operator.LESS_OR_EQUAL: op.le,
}


def compare(actual, expected, operator: Operator) -> bool:
    '''Compare the value read from the stream with the expected one.

    Both operands must have the same width and signedness, nothing is
    widened here. Operator.ANY matches whatever the operands are.'''
    if operator is Operator.ANY:
        return True

    if not isinstance(operator, Operator):
        raise InvalidOperatorException(operator)

    return _OPERATIONS[operator](actual, expected)
