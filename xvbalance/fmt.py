"""Minimal printf-style formatting understanding %d, %x, %p, %s, %c and %%."""

from __future__ import annotations

from typing import Any, Iterator

_DIGITS = "0123456789ABCDEF"
_WORD = 1 << 32


def _number(value: int, base: int, signed: bool) -> str:
    x = value & (_WORD - 1)
    negative = False
    if signed and x >= _WORD // 2:
        negative = True
        x = _WORD - x
    digits = []
    while True:
        x, digit = divmod(x, base)
        digits.append(_DIGITS[digit])
        if x == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _take(values: Iterator[Any]) -> Any:
    try:
        return next(values)
    except StopIteration:
        raise TypeError("not enough arguments for format string") from None


def format_message(fmt: str, *args: Any) -> str:
    """Format ``fmt`` with ``args``.

    Integers are treated as 32-bit words: %d prints them signed in decimal,
    %x and %p unsigned in upper-case hexadecimal. %s prints ``(null)`` for
    None. Unknown sequences are copied through unchanged and a lone trailing
    ``%`` is dropped.
    """
    out = []
    values = iter(args)
    pending = False
    for c in fmt:
        if not pending:
            if c == "%":
                pending = True
            else:
                out.append(c)
            continue
        pending = False
        if c == "d":
            out.append(_number(int(_take(values)), 10, signed=True))
        elif c in ("x", "p"):
            out.append(_number(int(_take(values)), 16, signed=False))
        elif c == "s":
            text = _take(values)
            out.append("(null)" if text is None else str(text))
        elif c == "c":
            char = _take(values)
            out.append(chr(char & 0xFF) if isinstance(char, int) else str(char))
        elif c == "%":
            out.append("%")
        else:
            out.append("%" + c)
    return "".join(out)