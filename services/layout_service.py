"""
Layout service for arranging the family tree into generation rows.

The layout is a pure function of the persons, the relationships and a root
person. Each call builds a fresh PlacementContext and runs:

1. relationship indexing and BFS generation assignment (family_graph)
2. lineage placement: the root's siblings, parents, their siblings, grandparents
3. descendant placement below every placed couple or single parent
4. a per-row collision sweep
5. coverage completion for everyone the first passes did not reach
6. normalization to positive coordinates and canvas sizing
7. connector generation (connector_service)
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from models import (
    Canvas,
    ChildRelation,
    FamilyTree,
    Gender,
    GenerationRow,
    LayoutNode,
    LayoutOptions,
    LayoutResult,
    Person,
    Relationship,
    RelativeRef,
)
from services.connector_service import build_connectors, couple_pairs, find_dashed_connectors
from services.family_graph import (
    FamilyGraph,
    assign_generations,
    birth_sort_key,
    build_family_graph,
    generation_label,
)

logger = logging.getLogger(__name__)

EPSILON = 1e-9
MAX_SLIDE_STEPS = 100

# Anchor kinds for coverage completion, in order of preference
ANCHOR_PARENT = 0
ANCHOR_SIBLING = 1
ANCHOR_SPOUSE = 2
ANCHOR_CHILD = 3


@dataclass
class Position:
    left: float
    row: int


@dataclass
class PlacementContext:
    """Mutable state of a single layout run."""
    graph: FamilyGraph
    generations: Dict[str, int]
    options: LayoutOptions
    root_id: str
    positions: Dict[str, Position] = field(default_factory=dict)
    expanded: Set[str] = field(default_factory=set)
    # lefts of the first and last slot of the root's sibling block
    core: Optional[Tuple[float, float]] = None
    # row -> person the collision sweep never moves
    pinned: Dict[int, str] = field(default_factory=dict)

    @property
    def slot(self) -> float:
        return self.options.slot

    def person(self, person_id: str) -> Person:
        return self.graph.persons[person_id]

    def is_placed(self, person_id: str) -> bool:
        return person_id in self.positions

    def place(self, person_id: str, left: float, row: int) -> None:
        self.positions[person_id] = Position(left, row)
        self.generations[person_id] = row

    def left_of(self, person_id: str) -> float:
        return self.positions[person_id].left

    def row_of(self, person_id: str) -> int:
        return self.positions[person_id].row

    def row_lefts(self, row: int) -> List[float]:
        return [pos.left for pos in self.positions.values() if pos.row == row]

    def unplaced(self) -> List[str]:
        return [pid for pid in self.graph.persons if pid not in self.positions]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _sort_by_birth(ctx: PlacementContext, ids: Sequence[str]) -> List[str]:
    return sorted(ids, key=lambda pid: birth_sort_key(ctx.person(pid)))


def _ordered_parents(ctx: PlacementContext, person_id: str) -> List[str]:
    """Parents with fathers first, then by id."""
    return sorted(ctx.graph.parents(person_id),
                  key=lambda pid: (ctx.person(pid).gender != Gender.MALE, pid))


def _free_partner(ctx: PlacementContext, person_id: str, divorced: bool, taken: Set[str]) -> Optional[str]:
    for link in ctx.graph.spouses(person_id):
        if link.divorced != divorced:
            continue
        if link.partner_id in taken or ctx.is_placed(link.partner_id):
            continue
        return link.partner_id
    return None


def _spouse_units(ctx: PlacementContext, ids: Sequence[str]) -> List[List[str]]:
    """
    Expand each person into ``[ex-partner?, person, current partner?]``.

    Only unplaced persons are expanded and a partner is used once.
    """
    units = []
    taken = set(ids)
    for pid in ids:
        if ctx.is_placed(pid):
            units.append([pid])
            continue
        ex = _free_partner(ctx, pid, True, taken)
        if ex:
            taken.add(ex)
        current = _free_partner(ctx, pid, False, taken)
        if current:
            taken.add(current)
        units.append([p for p in (ex, pid, current) if p])
    return units


def _expand_with_spouses(ctx: PlacementContext, ids: Sequence[str]) -> List[str]:
    return [pid for unit in _spouse_units(ctx, ids) for pid in unit]


def _block_width(ctx: PlacementContext, count: int) -> float:
    return count * ctx.slot - ctx.options.gap


def _place_run(ctx: PlacementContext, slots: Sequence[str], start: float, row: int) -> List[str]:
    """Place slots left to right from ``start``; already placed ids keep their slot empty."""
    placed = []
    for i, pid in enumerate(slots):
        if not ctx.is_placed(pid):
            ctx.place(pid, start + i * ctx.slot, row)
            placed.append(pid)
    return placed


def _place_centered(ctx: PlacementContext, ids: Sequence[str], center: float, row: int) -> List[str]:
    start = center - _block_width(ctx, len(ids)) / 2
    return _place_run(ctx, ids, start, row)


def _span_center(ctx: PlacementContext, ids: Sequence[str]) -> float:
    lefts = [ctx.left_of(pid) for pid in ids]
    return (min(lefts) + max(lefts) + ctx.options.node_span) / 2


def _shift(ctx: PlacementContext, ids: Sequence[str], delta: float) -> None:
    for pid in ids:
        ctx.positions[pid].left += delta


# ---------------------------------------------------------------------------
# Lineage
# ---------------------------------------------------------------------------

def _order_root_siblings(ctx: PlacementContext, siblings: Sequence[str]) -> List[str]:
    """Order the root's sibling group as [older..., root, younger..., unknown...]."""
    root = ctx.root_id
    root_year = ctx.person(root).known_birth_year
    others = _sort_by_birth(ctx, [s for s in siblings if s != root])
    known = [s for s in others if ctx.person(s).known_birth_year is not None]
    unknown = [s for s in others if ctx.person(s).known_birth_year is None]

    if root_year is None:
        older, younger = known, []
    else:
        older = [s for s in known if ctx.person(s).known_birth_year <= root_year]
        younger = [s for s in known if ctx.person(s).known_birth_year > root_year]
    return older + [root] + younger + unknown


def _place_parent_siblings(ctx: PlacementContext, parent_id: str, direction: int) -> List[str]:
    """
    Place a parent's siblings on the parent's row, flanking away from the center.

    ``direction`` is -1 for the left (paternal) side and +1 for the right. The
    oldest sibling sits nearest the parent. Returns the parent's whole block.
    """
    block = [parent_id]
    grandparents = _ordered_parents(ctx, parent_id)[:2]
    if not grandparents:
        return block

    row = ctx.row_of(parent_id)
    x = ctx.left_of(parent_id) + direction * ctx.slot
    siblings = [s for s in ctx.graph.shared_children(grandparents) if s != parent_id]
    for sibling in _sort_by_birth(ctx, siblings):
        if ctx.is_placed(sibling):
            continue
        unit = _spouse_units(ctx, [sibling])[0]
        for pid in (unit if direction > 0 else reversed(unit)):
            ctx.place(pid, x, row)
            x += direction * ctx.slot
        block.extend(unit)
    return block


def _place_grandparents(ctx: PlacementContext, parent_id: str, block: Sequence[str]) -> List[str]:
    grandparents = _ordered_parents(ctx, parent_id)[:2]
    if not grandparents:
        return []
    # BFS may have reached a grandparent by a shorter path; keep it above the parent
    row = min(ctx.generations[grandparents[0]], ctx.row_of(parent_id) - 1)
    return _place_centered(ctx, grandparents, _span_center(ctx, block), row)


def _separate(ctx: PlacementContext, left_ids: Sequence[str], right_ids: Sequence[str]) -> None:
    """Push two groups on one row apart symmetrically until they no longer overlap."""
    if not left_ids or not right_ids:
        return
    if ctx.row_of(left_ids[0]) != ctx.row_of(right_ids[0]):
        return
    deficit = max(ctx.left_of(p) for p in left_ids) + ctx.slot - min(ctx.left_of(p) for p in right_ids)
    if deficit > EPSILON:
        _shift(ctx, left_ids, -deficit / 2)
        _shift(ctx, right_ids, deficit / 2)


def place_lineage(ctx: PlacementContext) -> None:
    """
    Place the root's sibling group, parents, parents' siblings and grandparents.

    The sibling block is centered on ``options.center``; everything above is
    centered over what it parents.
    """
    graph = ctx.graph
    root = ctx.root_id
    parents = _ordered_parents(ctx, root)[:2]

    siblings = list(graph.shared_children(parents)) if parents else []
    if root not in siblings:
        siblings.append(root)
    slots = _expand_with_spouses(ctx, _order_root_siblings(ctx, siblings))
    _place_centered(ctx, slots, ctx.options.center, 0)
    ctx.core = (ctx.left_of(slots[0]), ctx.left_of(slots[-1]))
    ctx.pinned[0] = root

    if not parents:
        return

    _place_centered(ctx, parents, ctx.options.center, ctx.generations[parents[0]])
    ctx.pinned[ctx.row_of(parents[0])] = parents[0]

    if len(parents) == 2:
        sides = [(parents[0], -1), (parents[1], 1)]
    else:
        sides = [(parents[0], -1 if ctx.person(parents[0]).gender == Gender.MALE else 1)]

    grandparent_groups = []
    for parent_id, direction in sides:
        block = _place_parent_siblings(ctx, parent_id, direction)
        grandparent_groups.append(_place_grandparents(ctx, parent_id, block))

    if len(grandparent_groups) == 2:
        _separate(ctx, *grandparent_groups)


# ---------------------------------------------------------------------------
# Descendants
# ---------------------------------------------------------------------------

def _row_anchor(ctx: PlacementContext, slots: Sequence[str], row: int) -> Optional[str]:
    anchored = [pid for pid in slots if ctx.is_placed(pid) and ctx.row_of(pid) == row]
    if not anchored:
        return None
    if ctx.root_id in anchored:
        return ctx.root_id
    return anchored[0]


def _beside_core(ctx: PlacementContext, center: float, start: float, count: int, row: int) -> float:
    """
    Keep a cousin block off the root's sibling block.

    Families centered left of the block end before it, the others start after
    it; the block then slides outward until it fits the row.
    """
    lo, hi = ctx.core
    if center < (lo + hi + ctx.options.node_span) / 2:
        start, step = min(start, lo - count * ctx.slot), -ctx.slot
    else:
        start, step = max(start, hi + ctx.slot), ctx.slot
    for _ in range(MAX_SLIDE_STEPS):
        if _fits(ctx, row, start, count):
            break
        start += step
    return start


def place_children_below(ctx: PlacementContext, parent_ids: Sequence[str]) -> None:
    """
    Place the family of ``parent_ids`` on the row below and recurse into it.

    A child that is already placed on that row is an anchor: the row is shifted
    so the anchor's ideal slot matches where it already is.
    """
    graph = ctx.graph
    if len(parent_ids) == 1:
        children = graph.children(parent_ids[0])
    else:
        children = graph.shared_children(parent_ids)
    children = _sort_by_birth(ctx, children)
    if not children:
        return

    row = max(ctx.row_of(pid) for pid in parent_ids) + 1
    slots = _expand_with_spouses(ctx, children)

    if any(not ctx.is_placed(c) for c in slots):
        start = _span_center(ctx, parent_ids) - _block_width(ctx, len(slots)) / 2
        anchor = _row_anchor(ctx, slots, row)
        if anchor is not None:
            start += ctx.left_of(anchor) - (start + slots.index(anchor) * ctx.slot)
        elif ctx.core is not None and row == ctx.row_of(ctx.root_id):
            start = _beside_core(ctx, _span_center(ctx, parent_ids), start, len(slots), row)
        _place_run(ctx, slots, start, row)

    for pid in slots:
        if ctx.is_placed(pid):
            place_families(ctx, pid)


def place_families(ctx: PlacementContext, person_id: str) -> None:
    """Place the children a person has with each placed partner, then the rest."""
    if person_id in ctx.expanded:
        return
    ctx.expanded.add(person_id)
    graph = ctx.graph

    links = sorted(graph.spouses(person_id), key=lambda link: (link.divorced, link.partner_id))
    for link in links:
        if ctx.is_placed(link.partner_id) and graph.shared_children([person_id, link.partner_id]):
            place_children_below(ctx, [person_id, link.partner_id])

    if any(not ctx.is_placed(c) for c in graph.children(person_id)):
        place_children_below(ctx, [person_id])


def place_descendants(ctx: PlacementContext) -> None:
    order = sorted(ctx.positions, key=lambda pid: (ctx.row_of(pid), ctx.left_of(pid), pid))
    for person_id in order:
        place_families(ctx, person_id)


# ---------------------------------------------------------------------------
# Collisions
# ---------------------------------------------------------------------------

def resolve_collisions(ctx: PlacementContext) -> bool:
    """
    Sweep every row, pushing nodes closer than one slot apart.

    Rows with a pinned person are swept outward from it: nodes to its right
    move right, nodes to its left move left. Other rows are swept left to
    right. Returns False when the pass budget ran out before the rows
    settled; the layout is still usable, only possibly overlapping.
    """
    slot = ctx.slot
    for _ in range(ctx.options.collision_passes):
        changed = False
        rows: Dict[int, List[str]] = {}
        for pid, pos in ctx.positions.items():
            rows.setdefault(pos.row, []).append(pid)

        for row in sorted(rows):
            ids = sorted(rows[row], key=lambda pid: (ctx.left_of(pid), pid))
            pin = ctx.pinned.get(row)
            first = ids.index(pin) + 1 if pin in ids else 1
            for i in range(first, len(ids)):
                gap = ctx.left_of(ids[i]) - ctx.left_of(ids[i - 1])
                if gap < slot - EPSILON:
                    _shift(ctx, ids[i:], slot - gap)
                    changed = True
            for i in range(first - 2, -1, -1):
                gap = ctx.left_of(ids[i + 1]) - ctx.left_of(ids[i])
                if gap < slot - EPSILON:
                    _shift(ctx, ids[:i + 1], gap - slot)
                    changed = True
        if not changed:
            return True

    logger.warning("Collision sweep did not settle after %d passes", ctx.options.collision_passes)
    return False


# ---------------------------------------------------------------------------
# Coverage completion
# ---------------------------------------------------------------------------

def _find_clusters(ctx: PlacementContext, unplaced: Sequence[str]) -> List[List[str]]:
    pending = set(unplaced)
    clusters = []
    for start in sorted(unplaced):
        if start not in pending:
            continue
        pending.discard(start)
        cluster = []
        stack = [start]
        while stack:
            current = stack.pop()
            cluster.append(current)
            for nb in sorted(ctx.graph.neighbours(current)):
                if nb in pending:
                    pending.discard(nb)
                    stack.append(nb)
        clusters.append(sorted(cluster))
    return clusters


def _find_anchor(ctx: PlacementContext, person_id: str) -> Optional[Tuple[int, str]]:
    graph = ctx.graph
    candidates = (
        (ANCHOR_PARENT, graph.parents(person_id)),
        (ANCHOR_SIBLING, graph.siblings(person_id)),
        (ANCHOR_SPOUSE, graph.partner_ids(person_id)),
        (ANCHOR_CHILD, graph.children(person_id)),
    )
    for kind, relatives in candidates:
        placed = [r for r in relatives if ctx.is_placed(r)]
        if placed:
            return kind, min(placed, key=lambda r: (ctx.left_of(r), r))
    return None


def _fits(ctx: PlacementContext, row: int, start: float, count: int) -> bool:
    occupied = ctx.row_lefts(row)
    for i in range(count):
        x = start + i * ctx.slot
        if any(abs(x - other) < ctx.slot - EPSILON for other in occupied):
            return False
    return True


def _centered_candidates(start: float, step: float) -> List[float]:
    out = [start]
    for k in range(1, MAX_SLIDE_STEPS + 1):
        out += [start - k * step, start + k * step]
    return out


def _sided_candidates(first: float, second: float, outward: int, step: float) -> List[float]:
    out = [first, second]
    for k in range(1, MAX_SLIDE_STEPS + 1):
        out += [first + outward * k * step, second - outward * k * step]
    return out


def _place_anchored(ctx: PlacementContext, seed: str, kind: int, anchor_id: str,
                    pending: Set[str]) -> List[str]:
    """Place ``seed`` and its pending siblings next to an already placed relative."""
    graph = ctx.graph
    slot = ctx.slot
    siblings = [s for s in graph.siblings(seed) if s in pending and not ctx.is_placed(s)]

    if kind == ANCHOR_PARENT:
        row = ctx.row_of(anchor_id) + 1
    elif kind == ANCHOR_CHILD:
        row = ctx.row_of(anchor_id) - 1
    else:
        row = ctx.row_of(anchor_id)

    if kind == ANCHOR_SPOUSE:
        units = _spouse_units(ctx, [seed] + siblings)
        prefer_left = graph.is_divorced_pair(seed, anchor_id)
        if prefer_left:
            units.reverse()
    else:
        units = _spouse_units(ctx, _sort_by_birth(ctx, [seed] + siblings))
        prefer_left = True
    slots = [pid for unit in units for pid in unit]
    count = len(slots)

    reference: List[str] = []
    if kind == ANCHOR_PARENT:
        reference = [c for c in graph.children(anchor_id) if ctx.is_placed(c) and ctx.row_of(c) == row]
    elif kind == ANCHOR_SIBLING:
        reference = [s for s in graph.siblings(seed) if ctx.is_placed(s) and ctx.row_of(s) == row]
    elif kind == ANCHOR_SPOUSE:
        reference = [anchor_id]

    if reference:
        lo = min(ctx.left_of(r) for r in reference)
        hi = max(ctx.left_of(r) for r in reference)
        left_start = lo - count * slot
        right_start = hi + slot
        if prefer_left:
            candidates = _sided_candidates(left_start, right_start, -1, slot)
        else:
            candidates = _sided_candidates(right_start, left_start, 1, slot)
    elif kind == ANCHOR_CHILD:
        children = [c for c in graph.children(seed) if ctx.is_placed(c)]
        couple = [seed] + [p for p in graph.partner_ids(seed)
                           if p in slots and set(children) & set(graph.children(p))]
        idxs = [slots.index(p) for p in couple]
        middle = (min(idxs) + max(idxs)) / 2
        start = _span_center(ctx, children) - (middle * slot + ctx.options.node_span / 2)
        candidates = _centered_candidates(start, slot)
    else:
        start = ctx.left_of(anchor_id) + ctx.options.node_span / 2 - _block_width(ctx, count) / 2
        candidates = _centered_candidates(start, slot)

    chosen = next((c for c in candidates if _fits(ctx, row, c, count)), candidates[0])
    return _place_run(ctx, slots, chosen, row)


def _local_generations(ctx: PlacementContext, cluster: Sequence[str]) -> Dict[str, int]:
    """Generation offsets inside a cluster, relative to its eldest member."""
    members = set(cluster)
    start = _sort_by_birth(ctx, cluster)[0]
    local = {start: 0}
    queue = deque([start])
    graph = ctx.graph
    while queue:
        current = queue.popleft()
        g = local[current]
        steps = [(pid, g - 1) for pid in graph.parents(current)]
        steps += [(pid, g + 1) for pid in graph.children(current)]
        steps += [(pid, g) for pid in graph.partner_ids(current)]
        for pid, gen in steps:
            if pid in members and pid not in local:
                local[pid] = gen
                queue.append(pid)
    for pid in cluster:
        local.setdefault(pid, 0)
    return local


def _place_at_right_edge(ctx: PlacementContext, cluster: Sequence[str]) -> List[str]:
    local = _local_generations(ctx, cluster)
    edge = max((pos.left + ctx.slot for pos in ctx.positions.values()), default=ctx.options.center)
    placed = []
    for gen in sorted(set(local.values())):
        members = _sort_by_birth(ctx, [p for p in cluster if local[p] == gen and not ctx.is_placed(p)])
        for pid in _expand_with_spouses(ctx, members):
            if ctx.is_placed(pid):
                continue
            ctx.place(pid, edge, gen)
            edge += ctx.slot
            placed.append(pid)
    return placed


def _place_cluster(ctx: PlacementContext, cluster: Sequence[str]) -> List[str]:
    placed: List[str] = []
    remaining = list(cluster)
    while remaining:
        best = None
        for pid in remaining:
            anchor = _find_anchor(ctx, pid)
            if anchor is None:
                continue
            key = (anchor[0], birth_sort_key(ctx.person(pid)))
            if best is None or key < best[0]:
                best = (key, pid, anchor)

        if best is None:
            placed.extend(_place_at_right_edge(ctx, remaining))
            logger.debug("Placed disconnected cluster of %d at the right edge", len(remaining))
            break

        _, seed, (kind, anchor_id) = best
        new_ids = _place_anchored(ctx, seed, kind, anchor_id, set(remaining))
        placed.extend(new_ids)
        before = set(ctx.positions)
        for pid in new_ids:
            place_families(ctx, pid)
        placed.extend(pid for pid in ctx.positions if pid not in before)
        remaining = [pid for pid in remaining if not ctx.is_placed(pid)]
    return placed


def complete_coverage(ctx: PlacementContext) -> List[str]:
    """
    Place every person the lineage and descendant passes missed.

    Unplaced persons are grouped into connected clusters; each cluster is placed
    once, next to an already placed relative when it has one, otherwise at the
    right edge of the canvas.
    """
    unplaced = ctx.unplaced()
    if not unplaced:
        return []
    placed = []
    for cluster in _find_clusters(ctx, unplaced):
        placed.extend(_place_cluster(ctx, cluster))
    logger.info("Coverage pass placed %d of %d missing persons", len(placed), len(unplaced))
    return placed


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def normalize(ctx: PlacementContext) -> Tuple[Dict[str, Tuple[float, float]], Canvas]:
    """Shift coordinates so the minimum is ``options.margin`` and size the canvas."""
    opts = ctx.options
    if not ctx.positions:
        return {}, Canvas()
    min_left = min(pos.left for pos in ctx.positions.values())
    min_top = min(pos.row for pos in ctx.positions.values()) * opts.row_height
    dx = opts.margin - min_left
    dy = opts.margin - min_top

    coordinates = {
        pid: (pos.left + dx, pos.row * opts.row_height + dy)
        for pid, pos in ctx.positions.items()
    }
    max_left = max(left for left, _ in coordinates.values())
    max_top = max(top for _, top in coordinates.values())
    canvas = Canvas(width=max_left + opts.node_span + opts.canvas_padding,
                    height=max_top + opts.node_span + opts.canvas_padding)
    return coordinates, canvas


def _kind_label(kind: ChildRelation) -> str:
    return "blood" if kind == ChildRelation.BIOLOGICAL else kind.value


def _has_sub_tree(ctx: PlacementContext, person_id: str) -> bool:
    graph = ctx.graph
    if graph.missing_parents.get(person_id):
        return True
    relatives = graph.parents(person_id) + graph.siblings(person_id)
    return any(not ctx.is_placed(r) for r in relatives)


def _build_nodes(ctx: PlacementContext, coordinates: Dict[str, Tuple[float, float]]) -> List[LayoutNode]:
    graph = ctx.graph
    nodes = []
    for pid, person in graph.persons.items():
        left, top = coordinates[pid]
        own_parents = set(graph.parents(pid))
        nodes.append(LayoutNode(
            id=pid,
            left=left,
            top=top,
            gender=person.gender,
            parents=[RelativeRef(id=p, type=_kind_label(graph.child_kinds[(p, pid)]))
                     for p in graph.parents(pid)],
            children=[RelativeRef(id=c, type=_kind_label(graph.child_kinds[(pid, c)]))
                      for c in graph.children(pid)],
            siblings=[RelativeRef(id=s, type="blood" if set(graph.parents(s)) == own_parents else "half")
                      for s in graph.siblings(pid)],
            spouses=[RelativeRef(id=link.partner_id, type="divorced" if link.divorced else "married")
                     for link in graph.spouses(pid)],
            has_sub_tree=_has_sub_tree(ctx, pid),
        ))
    return nodes


def _generation_rows(ctx: PlacementContext, coordinates: Dict[str, Tuple[float, float]]) -> List[GenerationRow]:
    root_top = coordinates[ctx.root_id][1]
    rows = []
    for top in sorted({top for _, top in coordinates.values()}):
        offset = round((top - root_top) / ctx.options.row_height)
        rows.append(GenerationRow(top=top, offset=offset, label=generation_label(offset)))
    return rows


def _resolve_root(graph: FamilyGraph, requested: Optional[str]) -> str:
    if requested in graph.persons:
        return requested
    fallback = next(iter(graph.persons))
    if requested:
        logger.warning("Root person not found: %s, using %s", requested, fallback)
    return fallback


def calculate_layout(tree: FamilyTree, options: Optional[LayoutOptions] = None) -> LayoutResult:
    """
    Calculate grid positions and connectors for every person in the tree.

    The root is ``options.root_person_id`` when given, else the tree owner,
    else the first person. The function never raises on structurally valid
    input: unknown references are ignored and unreachable persons are still
    placed.
    """
    options = options or LayoutOptions()
    if not tree.persons:
        return LayoutResult()

    graph = build_family_graph(tree.persons, tree.relationships)
    root_id = _resolve_root(graph, options.root_person_id or tree.owner_person_id)
    ctx = PlacementContext(
        graph=graph,
        generations=assign_generations(graph, root_id),
        options=options,
        root_id=root_id,
    )

    place_lineage(ctx)
    place_descendants(ctx)
    resolve_collisions(ctx)
    if complete_coverage(ctx):
        resolve_collisions(ctx)

    coordinates, canvas = normalize(ctx)
    couples = couple_pairs(graph)
    connectors = build_connectors(graph, coordinates, options)

    logger.info("Calculated layout for %d persons", len(coordinates))
    return LayoutResult(
        root_person_id=root_id,
        canvas=canvas,
        nodes=_build_nodes(ctx, coordinates),
        connectors=connectors,
        dashed=find_dashed_connectors(connectors, couples, coordinates, options),
        couples=couples,
        rows=_generation_rows(ctx, coordinates),
    )


def layout(persons: Sequence[Person], relationships: Sequence[Relationship],
           root_person_id: Optional[str] = None,
           options: Optional[LayoutOptions] = None) -> LayoutResult:
    """Shorthand for calculate_layout on loose persons and relationships."""
    tree = FamilyTree(persons=list(persons), relationships=list(relationships),
                      owner_person_id=root_person_id)
    return calculate_layout(tree, options)
