"""
icon_sheet.py
-------------
Stitches loaded icon SVGs into a single grid sheet.

Every icon occupies a 300x300 cell of the sheet's viewBox (256 of content plus
44 of gap). The sheet's display size is scaled so that one icon renders at
48px.
"""

from __future__ import annotations
import math
import re
from typing import List, Optional, Sequence, Union

CELL_UNIT = 300
DISPLAY_UNIT = 48
PAD = 44
SCALE = DISPLAY_UNIT / (CELL_UNIT - PAD)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

SVG_OPEN_TAG_RE = re.compile(r"<svg(?=[\s/>])")


def _num(value: float) -> Union[int, float]:
    return int(value) if float(value).is_integer() else value


def sheet_size(count: int, per_line: int) -> tuple:
    """Logical (width, height) of a sheet holding count icons, per_line to a row."""
    width = min(per_line, count) * CELL_UNIT - PAD
    height = math.ceil(count / per_line) * CELL_UNIT - PAD
    return width, height


def inner_markup(svg: str) -> str:
    """Drop the root <svg ...> and </svg> tags (and anything outside them)."""
    match = SVG_OPEN_TAG_RE.search(svg)
    if match is None:
        return svg
    open_end = svg.find(">", match.end())
    close = svg.rfind("</svg>")
    if open_end == -1:
        return svg
    if close == -1 or close < open_end:
        # self-closing root, nothing inside
        return "" if svg[open_end - 1] == "/" else svg[open_end + 1:]
    return svg[open_end + 1:close]


def compose(fragments: Sequence[Optional[str]], per_line: int) -> str:
    if per_line < 1:
        raise ValueError("per_line must be >= 1")

    width, height = sheet_size(len(fragments), per_line)

    groups: List[str] = []
    for index, icon_svg in enumerate(fragments):
        if not icon_svg:
            continue
        x = (index % per_line) * CELL_UNIT
        y = (index // per_line) * CELL_UNIT
        groups.append(f'<g transform="translate({x}, {y})">\n{inner_markup(icon_svg)}\n</g>')

    return (
        f'<svg width="{_num(width * SCALE)}" height="{_num(height * SCALE)}" '
        f'viewBox="0 0 {width} {height}" fill="none" '
        f'xmlns="{SVG_NS}" xmlns:xlink="{XLINK_NS}" version="1.1">\n'
        + "\n".join(groups)
        + "\n</svg>"
    )
