'''
# ELF format

The identification bytes tell the class (32 or 64 bits) and the data
encoding, that decides the byte order of everything else in the header.

Reference to <http://www.sco.com/developers/gabi/latest/ch4.eheader.html>.
'''
from ..compiler import parse_source


MAGIC = r'''
0	ubelong	0x7f454c46	ELF
>4	byte	1	32-bit
>4	byte	2	64-bit
>5	byte	1	LSB
>>16	uleshort	1	relocatable
>>16	uleshort	2	executable
>>16	uleshort	3	shared object
>>16	uleshort	4	core file
>>18	uleshort	3	\b, Intel 80386
>>18	uleshort	8	\b, MIPS
>>18	uleshort	40	\b, ARM
>>18	uleshort	62	\b, x86-64
>>18	uleshort	183	\b, ARM aarch64
>>18	uleshort	243	\b, RISC-V
>>20	ulelong	1	\b, version 1
>5	byte	2	MSB
>>16	ubeshort	1	relocatable
>>16	ubeshort	2	executable
>>16	ubeshort	3	shared object
>>16	ubeshort	4	core file
>>18	ubeshort	2	\b, SPARC
>>18	ubeshort	8	\b, MIPS
>>18	ubeshort	20	\b, PowerPC
>>18	ubeshort	21	\b, 64-bit PowerPC
>>18	ubeshort	22	\b, IBM S/390
>>20	ubelong	1	\b, version 1
'''


def rules():
    return parse_source(MAGIC)
