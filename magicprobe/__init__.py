"""
# magicprobe: file type identification with magic rules.

The type of a file is found by running a database of rules against its
content; each rule reads something at an offset and compares it with an
expected value, like the classic magic(5) files:

    514         string   HdrS     Linux kernel
    >510        uleshort 0xAA55   x86 boot executable

The main pieces are

 1. the compiler: from the textual rules to trees of Rule instances
    (magicprobe.compiler)

 2. the testers: one for each kind of data, they resolve the offset, read,
    decode and compare (magicprobe.testers)

 3. the renderer: builds the message of a matching rule, reading again from
    the stream when the message contains conversions like '%s' or '%d'
    (magicprobe.message)

 4. the evaluator: walks the rules depth-first, a child being considered only
    if its parent matched (magicprobe.core)

A short read, i.e. a test looking beyond the end of the data, is never an
error: the test simply doesn't match.
"""
