from enum import Enum


class Operator(Enum):
    '''How the value read from the stream is compared with the expected one'''
    EQUAL            = 0
    NOT_EQUAL        = 1
    GREATER_THAN     = 2
    LESS_THAN        = 3
    GREATER_OR_EQUAL = 4
    LESS_OR_EQUAL    = 5
    ANY              = 6
