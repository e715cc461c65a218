"""
A small combinator-style parsing library.

Build parsers by combining terminal parsers (`plit`, `preg`, `pspaces`, ...)
with combinators, then run them with `parse`:

```
from parcomb import parse, plit, plit_sp, psepby1

p = plit_sp("[") >> psepby1(plit("a"), plit(",")) << plit_sp("]")
o = parse(p, "[a,a,a]")
if o:
    ... # `o` is a `Success`: `o.result`, `o.remaining.rest`
else:
    ... # `o` is a `Failure`: `o.fail_pos`, `o.explanation`
```

See `parcomb.json` for a complete recursive grammar.
"""

from parcomb.combinator import (
    InfiniteParsingLoop,
    UndefinedParser,
    ParserRedefinition,
    Input,
    Outcome,
    Success,
    Failure,
    Absent,
    ABSENT,
    Parser,
    ParserCell,
    parse,
    presult,
    pzero,
    pbind,
    pseq,
    cause,
    alt,
    transform,
    pfresult,
    pmany0,
    pmany1,
    popt,
    pskip,
    pleft,
    pright,
    pbetween,
    psepby1,
    psepby0,
    pdebug,
    prc,
    recparser,
)
from parcomb.text import (
    pitem,
    psat,
    plit,
    preg,
    pspaces,
    plit_sp,
    peof,
)
