'''
# Linux kernel boot image

The x86 boot protocol puts the "HdrS" signature at 0x202 and the usual boot
sector signature 0xAA55 at 0x1fe; the version string is reachable via the
pointer at 0x20e, relative to 0x200.

Reference to <https://www.kernel.org/doc/html/latest/arch/x86/boot.html>.
'''
from ..compiler import parse_source


MAGIC = r'''
514	string	HdrS	Linux kernel
>510	uleshort	0xAA55	x86 boot executable
>>518	uleshort	>0x1ff
>>>529	byte	0	\b, zImage
>>>529	byte	1	\b, bzImage
>>>526	ulelong	>0
>>>>(526.s+0x200)	byte	>0
>>>>>(526.s+0x200)	default	x	\b, version %s
>>498	uleshort	1	\b, RO-rootFS
>>498	uleshort	0	\b, RW-rootFS
>>508	uleshort	>0	\b, root_dev %#X
>>502	uleshort	>0	\b, swap_dev %#X
>>504	uleshort	>0	\b, RAMdisksize %u KB
>>506	uleshort	0xffff	\b, Normal VGA
>>506	uleshort	0xfffe	\b, Extended VGA
>>506	uleshort	0xfffd	\b, Prompt for Videomode
>>506	leshort	>0	\b, Video mode %d
'''


def rules():
    return parse_source(MAGIC)
