import pytest

from name_matching import match_record, name_variations, normalize_name, resolve_key, word_overlap


def test_normalize_name_lowercases_and_collapses_whitespace() -> None:
    assert normalize_name("  University   of\tExample ") == "university of example"
    assert normalize_name(None) == ""


def test_exact_match_wins() -> None:
    keys = ["example state university", "example university"]
    assert resolve_key("Example University", keys) == "example university"


def test_university_of_prefix_resolves_by_variation() -> None:
    """'University of Example' maps to the 'example' key without token fallback."""
    keys = ["example", "example technical institute"]
    assert resolve_key("University of Example", keys) == "example"


@pytest.mark.parametrize("name, key", [
    ("Northfield University", "northfield"),
    ("Riverside College", "riverside"),
    ("The Lakeshore Institute", "lakeshore institute"),
    ("Wilkes-Barre Area College", "wilkes barre area college"),
    ("St. Anselm College", "saint anselm college"),
    ("Saint Mary's University", "st. mary's university"),
])
def test_variations(name: str, key: str) -> None:
    assert resolve_key(name, [key, "unrelated school"]) == key


def test_variations_are_tried_in_order() -> None:
    variations = name_variations("the example university")
    assert variations[0] == "the example"
    assert variations[3] == "example university"


def test_token_overlap_requires_two_shared_words() -> None:
    keys = ["northern plains state university"]
    assert resolve_key("Plains State Tech", keys) == "northern plains state university"
    assert resolve_key("Plains Community", keys) is None


def test_token_overlap_ignores_short_words() -> None:
    # "of" and "at" never count towards the overlap.
    assert resolve_key("Center of Arts at Dover", ["center of arts"]) == "center of arts"
    assert resolve_key("Dover of at", ["dover of at university"]) is None


def test_token_overlap_tie_keeps_first_key() -> None:
    keys = ["western river college", "western river university"]
    assert resolve_key("Western River Academy", keys) == "western river college"
    assert resolve_key("Western River Academy", list(reversed(keys))) == "western river university"


def test_no_match_returns_none_without_raising() -> None:
    assert resolve_key("", ["anything"]) is None
    assert resolve_key("Completely Different", []) is None


def test_match_record_returns_mapped_value() -> None:
    mapping = {"example": ["row-1", "row-2"]}
    assert match_record("University of Example", mapping) == ["row-1", "row-2"]
    assert match_record("Nowhere", mapping) is None


def test_word_overlap_counts_unique_words() -> None:
    assert word_overlap("state state university", "state university") == 2
    assert word_overlap("a bc def", "a bc def", min_length=3) == 1
