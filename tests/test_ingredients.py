from tastebase.schemas.recipe import IngredientEntry
from tastebase.services.ingredients import (
    build_step_entries, format_ingredient, parse_ingredient_line, parse_ingredient_lines,
)


def test_quantity_unit_and_name():
    parsed = parse_ingredient_line("2 cups chopped kale")
    assert parsed.quantity == "2"
    assert parsed.unit == "cups"
    assert parsed.name == "chopped kale"
    assert parsed.note is None


def test_comma_note_is_split_off():
    parsed = parse_ingredient_line("1 clove garlic, minced")
    assert parsed == ("1", "clove", "garlic", "minced")


def test_dash_note_is_split_off():
    parsed = parse_ingredient_line("1 lemon — juiced")
    assert parsed.quantity == "1"
    assert parsed.unit is None
    assert parsed.name == "lemon"
    assert parsed.note == "juiced"


def test_no_leading_number_keeps_whole_line_as_name():
    parsed = parse_ingredient_line("salt to taste")
    assert parsed.quantity is None
    assert parsed.unit is None
    assert parsed.name == "salt to taste"


def test_fraction_quantity():
    parsed = parse_ingredient_line("1/2 cup all-purpose flour")
    assert parsed.quantity == "1/2"
    assert parsed.unit == "cup"
    assert parsed.name == "all-purpose flour"


def test_unit_word_alone_is_the_name():
    # With only two tokens there is nothing left to name after a unit
    parsed = parse_ingredient_line("3 cloves")
    assert parsed.quantity == "3"
    assert parsed.unit is None
    assert parsed.name == "cloves"


def test_unknown_unit_stays_in_name():
    parsed = parse_ingredient_line("2 large eggs")
    assert parsed.unit is None
    assert parsed.name == "large eggs"


def test_leading_comma_is_not_a_note():
    parsed = parse_ingredient_line(", pinch of salt")
    assert parsed.note is None
    assert parsed.name == ", pinch of salt"


def test_lines_are_trimmed_and_positioned_from_zero():
    entries = parse_ingredient_lines(["  2 cups flour ", "", "   ", "1 tsp salt"])
    assert [e.position for e in entries] == [0, 1]
    assert [e.name for e in entries] == ["flour", "salt"]


def test_steps_skip_blank_lines():
    steps = build_step_entries(["Mix.", " ", "Bake. "])
    assert [(s.position, s.instruction) for s in steps] == [(0, "Mix."), (1, "Bake.")]


def test_format_ingredient_round_trips_the_edit_line():
    entry = IngredientEntry(position=0, quantity="1", unit="clove", name="garlic", note="minced")
    assert format_ingredient(entry) == "1 clove garlic, minced"
    assert format_ingredient(IngredientEntry(position=1, name="salt to taste")) == "salt to taste"
