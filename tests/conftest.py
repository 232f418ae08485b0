from __future__ import annotations

import pytest

from factories import couple, family, make_tree, parent_of, person
from models import FamilyTree


@pytest.fixture()
def sibling_tree() -> FamilyTree:
    # Root born between an older and a younger sibling.
    persons = [
        person("F", "male", 1955),
        person("M", "female", 1957),
        person("B", "male", 1990),
        person("R", "female", 1985),
        person("A", "male", 1980),
    ]
    relationships = [couple("F", "M")] + family("F", "M", children=["A", "R", "B"])
    return make_tree(persons, relationships, owner="R")


@pytest.fixture()
def thirteen_tree() -> FamilyTree:
    """
    Root, spouse, parents, an uncle, both sets of grandparents, paternal
    great-grandparents, a great-uncle and his daughter P13. P13 is only
    reachable through the great-uncle, whom no lineage pass visits.
    """
    persons = [
        person("R", "male", 1985),
        person("S", "female", 1986),
        person("F", "male", 1955),
        person("M", "female", 1957),
        person("U", "male", 1960),
        person("GF", "male", 1930),
        person("GM", "female", 1932),
        person("MGF", "male", 1928),
        person("MGM", "female", 1930),
        person("GGF", "male", 1900),
        person("GGM", "female", 1902),
        person("GU", "male", 1935),
        person("P13", "female", 1965),
    ]
    relationships = [
        couple("R", "S"),
        couple("F", "M"),
        couple("GF", "GM"),
        couple("MGF", "MGM"),
        couple("GGF", "GGM"),
        *family("F", "M", children=["R"]),
        *family("GF", "GM", children=["F", "U"]),
        *family("MGF", "MGM", children=["M"]),
        *family("GGF", "GGM", children=["GF", "GU"]),
        parent_of("GU", "P13"),
    ]
    return make_tree(persons, relationships, owner="R")
