from __future__ import annotations

import pytest

from factories import couple, family, make_tree, parent_of, person
from models import LayoutOptions
from services.connector_service import (
    build_connectors,
    couple_pairs,
    family_units,
    find_dashed_connectors,
)
from services.family_graph import build_family_graph
from services.layout_service import calculate_layout


def _assert_segments(actual, expected) -> None:
    assert len(actual) == len(expected)
    for got, want in zip(actual, expected):
        assert got == pytest.approx(want)


def test_single_parent_single_child_is_a_straight_drop() -> None:
    graph = build_family_graph([person("P"), person("C")], [parent_of("P", "C")])
    coords = {"P": (1.0, 1.0), "C": (1.0, 4.0)}

    connectors = build_connectors(graph, coords, LayoutOptions())

    _assert_segments(connectors, [(2.0, 2.95, 2.0, 3.5), (2.0, 3.5, 2.0, 4.05)])


def test_couple_with_two_children_gets_bar_drop_and_distribution() -> None:
    persons = [person("F"), person("M", "female"), person("C1", year=2000), person("C2", year=2002)]
    rels = [couple("F", "M")] + family("F", "M", children=["C1", "C2"])
    graph = build_family_graph(persons, rels)
    coords = {"F": (1.0, 1.0), "M": (3.5, 1.0), "C1": (1.0, 4.0), "C2": (3.5, 4.0)}

    connectors = build_connectors(graph, coords, LayoutOptions())

    _assert_segments(connectors, [
        (3.0, 2.0, 3.5, 2.0),
        (3.25, 2.0, 3.25, 3.5),
        (2.0, 3.5, 4.5, 3.5),
        (2.0, 3.5, 2.0, 4.05),
        (4.5, 3.5, 4.5, 4.05),
    ])


def test_misaligned_only_child_gets_a_jog() -> None:
    persons = [person("F"), person("M", "female"), person("C")]
    graph = build_family_graph(persons, family("F", "M", children=["C"]))
    coords = {"F": (1.0, 1.0), "M": (3.5, 1.0), "C": (1.0, 4.0)}

    connectors = build_connectors(graph, coords, LayoutOptions())

    _assert_segments(connectors, [
        (3.0, 2.0, 3.5, 2.0),
        (3.25, 2.0, 3.25, 3.5),
        (3.25, 3.5, 2.0, 3.5),
        (2.0, 3.5, 2.0, 4.05),
    ])


def test_children_grouped_by_their_exact_parent_set() -> None:
    persons = [person("F"), person("M", "female"), person("N", "female"), person("A"), person("B")]
    rels = family("F", "M", children=["A"]) + family("F", "N", children=["B"])
    graph = build_family_graph(persons, rels)
    coords = {pid: (float(i), 0.0) for i, pid in enumerate(["F", "M", "N", "A", "B"])}

    units = family_units(graph, coords)

    assert units == [(("F", "M"), ["A"]), (("F", "N"), ["B"])]


def test_childless_couple_gets_its_own_bar() -> None:
    graph = build_family_graph([person("A"), person("B", "female")], [couple("A", "B")])
    coords = {"A": (1.0, 1.0), "B": (3.5, 1.0)}

    connectors = build_connectors(graph, coords, LayoutOptions())

    _assert_segments(connectors, [(3.0, 2.0, 3.5, 2.0)])


def test_couple_on_different_rows_gets_no_bar() -> None:
    graph = build_family_graph([person("A"), person("B", "female")], [couple("A", "B")])
    coords = {"A": (1.0, 1.0), "B": (3.5, 4.0)}

    assert build_connectors(graph, coords, LayoutOptions()) == []


def test_couple_pairs_listed_once() -> None:
    graph = build_family_graph([person("B"), person("A", "female")],
                               [couple("B", "A", "divorced")])

    pairs = couple_pairs(graph)

    assert [(p.person1_id, p.person2_id, p.divorced) for p in pairs] == [("A", "B", True)]


def test_divorced_bar_is_dashed() -> None:
    tree = make_tree([person("R", "male", 1960), person("X", "female", 1962)],
                     [couple("R", "X", "divorced")], owner="R")

    result = calculate_layout(tree)

    assert len(result.connectors) == 1
    assert result.dashed == [0]


def test_married_bar_is_solid() -> None:
    tree = make_tree([person("R", "male", 1960), person("S", "female", 1962)],
                     [couple("R", "S")], owner="R")

    result = calculate_layout(tree)

    assert len(result.connectors) == 1
    assert result.dashed == []


def test_only_the_couple_bar_of_a_divorced_family_is_dashed() -> None:
    persons = [person("R", "male", 1960), person("X", "female", 1962), person("C", year=1990)]
    rels = [couple("R", "X", "divorced")] + family("R", "X", children=["C"])

    result = calculate_layout(make_tree(persons, rels, owner="R"))

    assert len(result.dashed) == 1
    x1, y1, x2, y2 = result.connectors[result.dashed[0]]
    assert y1 == y2
    top = {node.id: node.top for node in result.nodes}["R"]
    assert y1 == pytest.approx(top + LayoutOptions().node_span / 2)


def test_vertical_segments_are_never_dashed() -> None:
    persons = [person("A"), person("B", "female")]
    coords = {"A": (1.0, 1.0), "B": (3.5, 1.0)}
    pairs = couple_pairs(build_family_graph(persons, [couple("A", "B", "divorced")]))
    connectors = [(3.25, 2.0, 3.25, 3.5), (3.0, 2.0, 3.5, 2.0)]

    assert find_dashed_connectors(connectors, pairs, coords, LayoutOptions()) == [1]
