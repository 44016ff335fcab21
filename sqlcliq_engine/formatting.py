from __future__ import annotations

from typing import Any, List, Sequence

EMPTY_SET = "Empty set"


def format_scalar(value: Any) -> str:
    if value is None:
        return "NULL"
    return str(value)


def format_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> List[str]:
    rendered_rows = [[format_scalar(value) for value in row] for row in rows]

    widths = []
    for idx, header in enumerate(headers):
        cell_width = max((len(r[idx]) for r in rendered_rows), default=0)
        widths.append(max(len(header), cell_width))

    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def format_row(cells: Sequence[str]) -> str:
        return "| " + " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)) + " |"

    return [border, format_row(headers), border, *(format_row(r) for r in rendered_rows), border]
