"""
Free-text ingredient parsing.

Turns lines such as "2 cups chopped kale" or "1 clove garlic, minced" into
position-ordered ingredient entries. Steps get the same line cleanup.
"""

import re
from typing import Iterable, NamedTuple

from tastebase.schemas.recipe import IngredientEntry, StepEntry

QUANTITY_RE = re.compile(r"^\d+(?:[./]\d+)?$")
NOTE_RE = re.compile(r"[–—,]\s*(.+)$")

UNITS = frozenset({
    "cup", "cups", "tbsp", "tsp", "oz", "lb", "g", "kg", "ml", "l",
    "piece", "pieces", "clove", "cloves",
})


class ParsedIngredient(NamedTuple):
    quantity: str | None
    unit: str | None
    name: str
    note: str | None


def parse_ingredient_line(line: str) -> ParsedIngredient:
    line = line.strip()
    tokens = line.split()
    quantity = None
    unit = None
    name = line

    if len(tokens) >= 2 and QUANTITY_RE.match(tokens[0]):
        quantity = tokens[0]
        if len(tokens) >= 3 and tokens[1].lower() in UNITS:
            unit = tokens[1]
            name = " ".join(tokens[2:])
        else:
            name = " ".join(tokens[1:])

    note = None
    m = NOTE_RE.search(name)
    if m and name[:m.start()].strip():
        note = m.group(1).strip()
        name = name[:m.start()].strip()

    return ParsedIngredient(quantity, unit, name, note or None)


def clean_lines(lines: Iterable[str]) -> list[str]:
    return [line.strip() for line in lines if line and line.strip()]


def parse_ingredient_lines(lines: Iterable[str]) -> list[IngredientEntry]:
    return [
        IngredientEntry(position=i, **parse_ingredient_line(line)._asdict())
        for i, line in enumerate(clean_lines(lines))
    ]


def build_step_entries(lines: Iterable[str]) -> list[StepEntry]:
    return [
        StepEntry(position=i, instruction=line)
        for i, line in enumerate(clean_lines(lines))
    ]


def format_ingredient(entry: IngredientEntry) -> str:
    """Render an entry back into the single line the edit form shows."""
    text = " ".join(p for p in (entry.quantity, entry.unit, entry.name) if p)
    if entry.note:
        text = f"{text}, {entry.note}"
    return text
