class MagicProbeException(Exception):
    '''Base class to extend in order to throw exception in magicprobe.'''
    pass


class ParseException(MagicProbeException):
    '''A rule line that can't be compiled.

    It carries the offending line, its number (when known) and the reason.'''

    def __init__(self, line, reason, lineno=None):
        self.line = line
        self.reason = reason
        self.lineno = lineno
        where = f'line {lineno}' if lineno is not None else 'line'
        super().__init__(f'invalid {where} \'{line}\': {reason}')


class StreamException(MagicProbeException, IOError):
    '''The stream can't be read at all: this is not a short read.'''
    pass


class InvalidOperatorException(MagicProbeException):
    '''The operator is not supported by the comparator or by a kind of test.'''

    def __init__(self, operator, kind=None):
        self.operator = operator
        self.kind = kind
        suffix = f' for {kind} tests' if kind else ''
        super().__init__(f'invalid operator {operator!r}{suffix}')
