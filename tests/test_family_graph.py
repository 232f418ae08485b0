from __future__ import annotations

from datetime import date

from factories import couple, family, make_tree, parent_of, person
from models import ChildRelation
from services.family_graph import (
    SpouseLink,
    assign_generations,
    birth_sort_key,
    build_family_graph,
    compute_generations,
    generation_label,
)


def test_build_indexes_parents_children_and_spouses() -> None:
    persons = [person("M", "female"), person("F"), person("C", year=2000)]
    rels = [couple("F", "M")] + family("M", "F", children=["C"])

    graph = build_family_graph(persons, rels)

    assert graph.parents("C") == ["F", "M"]
    assert graph.children("F") == ["C"]
    assert graph.spouses("F") == [SpouseLink("M", False)]
    assert graph.spouses("M") == [SpouseLink("F", False)]
    assert graph.child_kinds[("F", "C")] == ChildRelation.BIOLOGICAL


def test_build_drops_unknown_and_self_references() -> None:
    persons = [person("A"), person("C")]
    rels = [
        parent_of("ghost", "C"),
        couple("A", "nobody"),
        couple("A", "A"),
        parent_of("A", "C"),
        parent_of("A", "C"),
    ]

    graph = build_family_graph(persons, rels)

    assert graph.parents("C") == ["A"]
    assert graph.partner_ids("A") == []
    assert graph.missing_parents == {"C": 1}


def test_children_are_kept_in_birth_order() -> None:
    persons = [person("P"), person("Y", year=1990), person("X"), person("O", year=1980)]
    graph = build_family_graph(persons, family("P", children=["Y", "X", "O"]))

    assert graph.children("P") == ["O", "Y", "X"]


def test_siblings_include_half_siblings() -> None:
    persons = [person("F"), person("M", "female"), person("N", "female"),
               person("A", year=1980), person("B", year=1985)]
    rels = family("F", "M", children=["A"]) + family("F", "N", children=["B"])

    graph = build_family_graph(persons, rels)

    assert graph.siblings("A") == ["B"]
    assert graph.siblings("B") == ["A"]
    assert graph.shared_children(["F", "M"]) == ["A"]


def test_divorced_pair_lookup() -> None:
    graph = build_family_graph([person("A"), person("B", "female")],
                               [couple("A", "B", "divorced")])

    assert graph.is_divorced_pair("A", "B")
    assert graph.is_divorced_pair("B", "A")


def test_widowed_is_not_divorced() -> None:
    graph = build_family_graph([person("A"), person("B", "female")],
                               [couple("A", "B", "widowed")])

    assert not graph.is_divorced_pair("A", "B")


def test_birth_sort_key_orders_years_dates_and_unknowns() -> None:
    people = [
        person("unknown"),
        person("march", birth_date=date(1980, 3, 1), birth_date_known=True),
        person("year_only", year=1980),
        person("january", birth_date=date(1980, 1, 5), birth_date_known=True),
        person("older", year=1975),
    ]

    ordered = [p.id for p in sorted(people, key=birth_sort_key)]

    assert ordered == ["older", "year_only", "january", "march", "unknown"]


def test_assign_generations_walks_up_down_and_across() -> None:
    persons = [person(pid) for pid in ("GP", "P", "R", "S", "K", "LONER")]
    rels = [
        parent_of("GP", "P"),
        parent_of("P", "R"),
        couple("R", "S"),
        parent_of("R", "K"),
    ]
    graph = build_family_graph(persons, rels)

    generations = assign_generations(graph, "R")

    assert generations == {"GP": -2, "P": -1, "R": 0, "S": 0, "K": 1, "LONER": 0}


def test_assign_generations_uses_shortest_path() -> None:
    # Child of the root's sibling sits one row below the root, not via a detour.
    persons = [person(pid) for pid in ("P", "R", "SIB", "NEPHEW")]
    rels = family("P", children=["R", "SIB"]) + [parent_of("SIB", "NEPHEW")]
    graph = build_family_graph(persons, rels)

    generations = assign_generations(graph, "R")

    assert generations["SIB"] == 0
    assert generations["NEPHEW"] == 1


def test_generation_labels() -> None:
    assert generation_label(0) == "You & siblings"
    assert generation_label(-2) == "Grandparents"
    assert generation_label(-6) == "Ancestors (generation 6)"
    assert generation_label(5) == "Descendants (generation 5)"


def test_compute_generations_groups_by_offset(thirteen_tree) -> None:
    groups = compute_generations(thirteen_tree)

    by_offset = {g.offset: g for g in groups}
    assert [g.number for g in groups] == [1, 2, 3, 4]
    assert set(by_offset[-3].person_ids) == {"GGF", "GGM"}
    assert set(by_offset[-2].person_ids) == {"GF", "GM", "MGF", "MGM", "GU"}
    assert set(by_offset[-1].person_ids) == {"F", "M", "U", "P13"}
    assert set(by_offset[0].person_ids) == {"R", "S"}
    assert by_offset[-3].label == "Great-grandparents"


def test_compute_generations_without_owner_returns_everyone() -> None:
    tree = make_tree([person("A"), person("B")], [])

    groups = compute_generations(tree)

    assert len(groups) == 1
    assert groups[0].label == "Everyone"
    assert groups[0].person_ids == ["A", "B"]
