'''
# Scripts

Text files starting with "#!": the interpreter is looked for in the first
line only.
'''
from ..compiler import parse_source


MAGIC = r'''
0	string	#!	script text
>2	regex/1l	python[0-9.]*	\b, Python
>2	regex/1l	(ba|z|k|da)?sh\b	\b, shell
>2	regex/1l	perl	\b, Perl
>2	default	x	\b, executable
'''


def rules():
    return parse_source(MAGIC)
