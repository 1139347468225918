'''
# PNG format

The signature is followed by the IHDR chunk whose data start at 16: width,
height, bit depth, color type, compression, filter and interlace method.

Reference to <https://www.w3.org/TR/png/>.
'''
from ..compiler import parse_source


MAGIC = r'''
0	ubelong	0x89504e47
>4	ubelong	0x0d0a1a0a	PNG image data
>>12	string	IHDR
>>>25	byte	0	\b, grayscale
>>>25	byte	2	\b, RGB
>>>25	byte	3	\b, colormap
>>>25	byte	4	\b, gray+alpha
>>>25	byte	6	\b, RGBA
>>>28	byte	0	\b, non-interlaced
>>>28	byte	1	\b, interlaced
'''


def rules():
    return parse_source(MAGIC)
