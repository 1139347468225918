"""
Core module: the rules and their evaluation.

A Rule is a test with a message and, eventually, some children; the children
make sense only if the parent matched, so that the evaluation is a
depth-first walk where each matching rule contributes its message to the
final description.
"""
import importlib
import logging
from contextlib import nullcontext
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

from .streams import Stream
from .testers import DefaultTester


logger = logging.getLogger(__name__)


DEFAULT_DESCRIPTION = 'data'

# the rules shipped with the package, in the order they are probed
BUILTIN_CONTRIBUTORS = (
    ('elf', 'magicprobe.executables.elf'),
    ('png', 'magicprobe.images.png'),
    ('zip', 'magicprobe.compression.zip'),
    ('kernel', 'magicprobe.executables.kernel'),
    ('scripts', 'magicprobe.text.scripts'),
)

_BACKSPACE = '\\b'


class Rule(object):

    def __init__(self, test, message='', children=None):
        self.test = test
        self.message = message
        self.children: List["Rule"] = list(children or [])

    def __repr__(self):
        return '<%s(%r, %r, children=%d)>' % (
            self.__class__.__name__,
            self.test,
            self.message,
            len(self.children),
        )

    def add_child(self, rule: "Rule") -> None:
        '''Used while building the tree, a compiled tree is never modified.'''
        self.children.append(rule)

    @property
    def is_default(self):
        return isinstance(self.test, DefaultTester)

    def evaluate(self, stream):
        return self.test.evaluate(stream, self.message)

    def match(self, stream) -> Optional[List[str]]:
        '''Returns the messages of this rule and of all the matching rules
        below it, None if this rule doesn't match.

        A "default" child is taken into consideration only if none of the
        siblings before it matched.'''
        outcome = self.evaluate(stream)
        if not outcome.matched:
            return None

        messages = [outcome.message]
        sibling_matched = False

        for child in self.children:
            if child.is_default and sibling_matched:
                continue

            child_messages = child.match(stream)
            if child_messages is None:
                continue

            sibling_matched = True
            messages.extend(child_messages)

        return messages


def describe(messages: Iterable[str]) -> str:
    '''Join the messages with a space, unless a message starts with "\\b"
    that means "attach me to the previous one".'''
    description = ''
    for message in messages:
        if not message:
            continue

        if message.startswith(_BACKSPACE):
            description += message[len(_BACKSPACE):]
        elif description:
            description += ' ' + message
        else:
            description = message

    return description.strip()


class Database(object):
    '''An immutable sequence of top-level rules.'''

    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules: Tuple[Rule, ...] = tuple(rules)

    def __repr__(self):
        return f'<{self.__class__.__name__}({len(self)} rules)>'

    def __len__(self):
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)

    def __getitem__(self, item):
        return self._rules[item]

    def __add__(self, other):
        return Database(tuple(self) + tuple(other))

    def match(self, stream) -> Optional[List[str]]:
        '''Messages of the first top-level rule that matches.'''
        stream = Stream.wrap(stream)
        for rule in self._rules:
            messages = rule.match(stream)
            if messages is not None:
                logger.debug('matched %r' % rule)
                return messages

        return None

    def probe(self, stream) -> str:
        messages = self.match(stream)
        if messages is None:
            return DEFAULT_DESCRIPTION

        return describe(messages) or DEFAULT_DESCRIPTION


class Registry(object):
    '''Collect the rules of different contributors, each one with a name,
    and build a Database out of them.'''

    def __init__(self):
        self._contributors: List[Tuple[str, Tuple[Rule, ...]]] = []

    def __repr__(self):
        return f'<{self.__class__.__name__}({", ".join(self.names)})>'

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self._contributors]

    def register(self, name: str, rules: Iterable[Rule]) -> None:
        if name in self.names:
            raise ValueError(f'contributor \'{name}\' is already registered')

        rules = tuple(rules)
        logger.debug('registering %d rules from \'%s\'' % (len(rules), name))
        self._contributors.append((name, rules))

    def build(self) -> Database:
        return Database(rule for _, rules in self._contributors for rule in rules)


def builtin_registry(contributors=BUILTIN_CONTRIBUTORS) -> Registry:
    '''Each contributor is a module exposing a rules() function.'''
    registry = Registry()
    for name, module_name in contributors:
        module = importlib.import_module(module_name)
        registry.register(name, module.rules())

    return registry


@lru_cache
def builtin_database() -> Database:
    '''The database of the rules shipped with the package, compiled the first
    time it's needed: being immutable it can be shared.'''
    return builtin_registry().build()


def probe(obj, database: Optional[Database] = None) -> str:
    '''Describe the content of obj (bytes, a path or a file object).

    A file object passed by the caller is not closed.'''
    database = database if database is not None else builtin_database()

    with nullcontext(obj) if isinstance(obj, Stream) else Stream(obj) as stream:
        return database.probe(stream)
