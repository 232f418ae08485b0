"""
Relationship indexing and generation assignment for the family tree.
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from models import (
    ChildRelation,
    FamilyTree,
    Generation,
    Person,
    Relationship,
    RelationshipCategory,
)

logger = logging.getLogger(__name__)

GENERATION_LABELS = {
    -4: "Great-great-grandparents",
    -3: "Great-grandparents",
    -2: "Grandparents",
    -1: "Parents",
    0: "You & siblings",
    1: "Children",
    2: "Grandchildren",
    3: "Great-grandchildren",
}


@dataclass(frozen=True)
class SpouseLink:
    partner_id: str
    divorced: bool


@dataclass
class FamilyGraph:
    """Lookup structures derived from the flat relationship list."""
    persons: Dict[str, Person]
    parents_of: Dict[str, List[str]] = field(default_factory=dict)
    children_of: Dict[str, List[str]] = field(default_factory=dict)
    spouses_of: Dict[str, List[SpouseLink]] = field(default_factory=dict)
    child_kinds: Dict[Tuple[str, str], ChildRelation] = field(default_factory=dict)
    missing_parents: Dict[str, int] = field(default_factory=dict)

    def parents(self, person_id: str) -> List[str]:
        return self.parents_of.get(person_id, [])

    def children(self, person_id: str) -> List[str]:
        return self.children_of.get(person_id, [])

    def spouses(self, person_id: str) -> List[SpouseLink]:
        return self.spouses_of.get(person_id, [])

    def partner_ids(self, person_id: str) -> List[str]:
        return [link.partner_id for link in self.spouses(person_id)]

    def shared_children(self, parent_ids: Sequence[str]) -> List[str]:
        """Children common to every parent in ``parent_ids``, in birth order."""
        if not parent_ids:
            return []
        first, *rest = parent_ids
        others = [set(self.children(pid)) for pid in rest]
        return [c for c in self.children(first) if all(c in s for s in others)]

    def siblings(self, person_id: str) -> List[str]:
        """Persons sharing at least one parent, in birth order."""
        found: List[str] = []
        for parent_id in self.parents(person_id):
            for child_id in self.children(parent_id):
                if child_id != person_id and child_id not in found:
                    found.append(child_id)
        return sorted(found, key=lambda pid: birth_sort_key(self.persons[pid]))

    def neighbours(self, person_id: str) -> Set[str]:
        out = set(self.parents(person_id))
        out.update(self.children(person_id))
        out.update(self.siblings(person_id))
        out.update(self.partner_ids(person_id))
        return out

    def is_divorced_pair(self, a: str, b: str) -> bool:
        return any(link.partner_id == b and link.divorced for link in self.spouses(a))


def birth_sort_key(person: Person) -> Tuple:
    """Sort key: known years ascending, then full date when known, unknown last, id as tie-break."""
    year = person.known_birth_year
    if year is None:
        return (1, 0, "", person.id)
    exact = person.birth_date.isoformat() if person.birth_precision == "date" else ""
    return (0, year, exact, person.id)


def build_family_graph(persons: Sequence[Person], relationships: Sequence[Relationship]) -> FamilyGraph:
    """
    Index relationships into parent, child and spouse maps.

    Relationships pointing at persons outside ``persons`` are dropped; dropped
    parent links are counted per child so callers can flag truncated branches.
    """
    graph = FamilyGraph(persons={p.id: p for p in persons})
    known = graph.persons
    dropped = 0

    for rel in relationships:
        p1, p2 = rel.person1_id, rel.person2_id
        if p1 == p2:
            dropped += 1
            continue
        if p1 not in known or p2 not in known:
            dropped += 1
            if rel.category == RelationshipCategory.PARENT_CHILD and p2 in known:
                graph.missing_parents[p2] = graph.missing_parents.get(p2, 0) + 1
            continue

        if rel.category == RelationshipCategory.PARENT_CHILD:
            parents = graph.parents_of.setdefault(p2, [])
            if p1 not in parents:
                parents.append(p1)
                graph.children_of.setdefault(p1, []).append(p2)
                graph.child_kinds[(p1, p2)] = rel.child_relation or ChildRelation.BIOLOGICAL
        elif rel.category == RelationshipCategory.COUPLE:
            if p2 in graph.partner_ids(p1):
                continue
            graph.spouses_of.setdefault(p1, []).append(SpouseLink(p2, rel.is_divorced))
            graph.spouses_of.setdefault(p2, []).append(SpouseLink(p1, rel.is_divorced))

    if dropped:
        logger.debug("Dropped %d relationships referencing unknown persons", dropped)

    for parents in graph.parents_of.values():
        parents.sort()
    for children in graph.children_of.values():
        children.sort(key=lambda pid: birth_sort_key(known[pid]))
    for links in graph.spouses_of.values():
        links.sort(key=lambda link: link.partner_id)

    return graph


def assign_generations(graph: FamilyGraph, root_id: Optional[str]) -> Dict[str, int]:
    """
    Breadth-first generation offsets from ``root_id``.

    Parents are one generation up, children one down, spouses share the row.
    Persons never reached land in generation 0.
    """
    generations: Dict[str, int] = {}
    if root_id in graph.persons:
        generations[root_id] = 0
        queue = deque([root_id])
        while queue:
            current = queue.popleft()
            g = generations[current]
            steps = [(pid, g - 1) for pid in graph.parents(current)]
            steps += [(pid, g + 1) for pid in graph.children(current)]
            steps += [(pid, g) for pid in graph.partner_ids(current)]
            for pid, gen in steps:
                if pid not in generations:
                    generations[pid] = gen
                    queue.append(pid)

    for pid in graph.persons:
        generations.setdefault(pid, 0)
    return generations


def generation_label(offset: int) -> str:
    if offset in GENERATION_LABELS:
        return GENERATION_LABELS[offset]
    if offset < 0:
        return f"Ancestors (generation {abs(offset)})"
    return f"Descendants (generation {offset})"


def compute_generations(tree: FamilyTree) -> List[Generation]:
    """Group persons by generation relative to the tree owner."""
    owner = tree.owner_person_id
    if not tree.persons or owner not in {p.id for p in tree.persons}:
        return [Generation(number=1, offset=0, label="Everyone",
                           person_ids=[p.id for p in tree.persons])]

    graph = build_family_graph(tree.persons, tree.relationships)
    generations = assign_generations(graph, owner)

    groups: Dict[int, List[str]] = {}
    for person in tree.persons:
        groups.setdefault(generations[person.id], []).append(person.id)

    return [
        Generation(number=idx + 1, offset=offset, label=generation_label(offset),
                   person_ids=groups[offset])
        for idx, offset in enumerate(sorted(groups))
    ]
