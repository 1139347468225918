'''
# ZIP format

Only the local file header of the first entry is inspected: documents that
are zip containers declare themselves with the name (and for some of them
the content) of that entry.

Reference to <https://pkware.cachefly.net/webdocs/casestudies/APPNOTE.TXT>.
'''
from ..compiler import parse_source


MAGIC = r'''
0	ulelong	0x04034b50	Zip archive data
>26	uleshort	8
>>30	string	mimetype
>>>38	string	application/epub+zip	\b, EPUB document
>>>38	string	application/vnd.oasis.opendocument.text	\b, OpenDocument Text
>>>38	default	x	\b, starting with mimetype
>30	regex/64c	^\[content_types\]\.xml	\b, Microsoft OOXML
0	ulelong	0x06054b50	Zip archive data (empty)
'''


def rules():
    return parse_source(MAGIC)
