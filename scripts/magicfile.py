#!/usr/bin/env python3
'''
Reimplementation of the file(1) utility using the rules of magicprobe.

If the environment variable MAGIC contains a path, the rules in that file
are tried before the built-in ones.
'''
import os
import sys
import logging

from magicprobe.compiler import parse_file
from magicprobe.core import Database, builtin_database, probe
from magicprobe.exceptions import MagicProbeException


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)
logger = logging.getLogger(__name__)


def usage(progname):
    print(f'usage: {progname} <file>')
    sys.exit(1)


def get_database():
    database = builtin_database()

    path_magic = os.environ.get('MAGIC')
    if path_magic:
        logger.debug(f'loading rules from \'{path_magic}\'')
        database = Database(parse_file(path_magic)) + database

    return database


if __name__ == '__main__':
    if len(sys.argv) != 2:
        usage(sys.argv[0])

    path = sys.argv[1]

    try:
        description = probe(path, database=get_database())
    except (MagicProbeException, OSError) as e:
        logger.error(f'error getting type of file {path}: {e}')
        sys.exit(1)

    print(f'file {path} is type {description}')
