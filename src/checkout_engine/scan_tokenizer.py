from __future__ import annotations

import re
from dataclasses import dataclass

# Scanner shorthand. Codes that legitimately contain one of these separators
# can be split wrongly ("ABC-12" reads as code ABC, quantity 12).
SEPARATORS = "*xX|-"

_QTY_THEN_CODE = re.compile(r"^\s*(\d+)\s*[*xX|\-]\s*(.+)$")
_CODE_THEN_QTY = re.compile(r"^\s*(.+?)\s*[*xX|\-]\s*(\d+)\s*$")


@dataclass(frozen=True)
class ScanToken:
    code: str
    quantity: int = 1
    explicit_quantity: bool = False


def tokenize(text: str | None) -> ScanToken | None:
    if not text:
        return None
    trimmed = text.strip()
    if not trimmed:
        return None

    prefix = _QTY_THEN_CODE.match(trimmed)
    if prefix:
        return ScanToken(code=prefix.group(2).strip(), quantity=int(prefix.group(1)), explicit_quantity=True)

    suffix = _CODE_THEN_QTY.match(trimmed)
    if suffix:
        return ScanToken(code=suffix.group(1).strip(), quantity=int(suffix.group(2)), explicit_quantity=True)

    return ScanToken(code=trimmed)
