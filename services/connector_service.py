"""
Connector generation: line segments joining parents, children and couples.

Coordinates are grid units. A node spans ``node_span`` in both directions from
its (left, top) corner.
"""
import logging
from typing import Dict, List, Sequence, Set, Tuple

from models import Connector, CouplePair, LayoutOptions
from services.family_graph import FamilyGraph

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

EPSILON = 1e-9
JOG_TOLERANCE = 0.01
ROW_PROXIMITY = 0.5


def couple_pairs(graph: FamilyGraph) -> List[CouplePair]:
    """Every recorded couple once, ordered by ids."""
    pairs = []
    for person_id in sorted(graph.spouses_of):
        for link in graph.spouses(person_id):
            if person_id < link.partner_id:
                pairs.append(CouplePair(person1_id=person_id, person2_id=link.partner_id,
                                        divorced=link.divorced))
    return pairs


def family_units(graph: FamilyGraph, coordinates: Dict[str, Point]) -> List[Tuple[Tuple[str, ...], List[str]]]:
    """
    Group placed children by their exact set of placed parents.

    Co-parents are found through the children, so parents who were never
    recorded as a couple still share one unit.
    """
    units: Dict[Tuple[str, ...], List[str]] = {}
    for child_id in graph.persons:
        if child_id not in coordinates:
            continue
        parents = tuple(sorted(p for p in graph.parents(child_id) if p in coordinates))
        if parents:
            units.setdefault(parents, []).append(child_id)
    return sorted(units.items())


def build_connectors(graph: FamilyGraph, coordinates: Dict[str, Point],
                     options: LayoutOptions) -> List[Connector]:
    connectors: List[Connector] = []
    drawn_pairs: Set[Tuple[str, str]] = set()

    units = family_units(graph, coordinates)
    for parents, children in units:
        drawn_pairs.update(_family_connectors(parents, children, coordinates, options, connectors))

    span = options.node_span
    for pair in couple_pairs(graph):
        key = (pair.person1_id, pair.person2_id)
        if key in drawn_pairs:
            continue
        a = coordinates.get(pair.person1_id)
        b = coordinates.get(pair.person2_id)
        if a is None or b is None or abs(a[1] - b[1]) > EPSILON:
            continue
        left, right = sorted((a, b))
        y = left[1] + span / 2
        connectors.append((left[0] + span, y, right[0], y))

    logger.debug("Generated %d connectors for %d family units", len(connectors), len(units))
    return connectors


def _family_connectors(parents: Sequence[str], children: Sequence[str],
                       coordinates: Dict[str, Point], options: LayoutOptions,
                       out: List[Connector]) -> Set[Tuple[str, str]]:
    """Append the segments of one family unit; returns the couple pairs joined by a bar."""
    span = options.node_span
    half = span / 2
    overlap = options.connector_overlap
    joined: Set[Tuple[str, str]] = set()

    parent_ids = sorted(parents, key=lambda pid: (coordinates[pid][0], pid))
    parent_pos = [coordinates[pid] for pid in parent_ids]
    child_pos = sorted(coordinates[cid] for cid in children)

    parent_tops = {top for _, top in parent_pos}
    parent_bottom = max(parent_tops) + span - overlap
    child_top = min(top for _, top in child_pos) + overlap

    first_center = parent_pos[0][0] + half
    last_center = parent_pos[-1][0] + half
    drop_x = (first_center + last_center) / 2

    if len(parent_pos) >= 2 and len(parent_tops) == 1:
        couple_y = parent_pos[0][1] + half
        for i in range(len(parent_ids) - 1):
            out.append((parent_pos[i][0] + span, couple_y, parent_pos[i + 1][0], couple_y))
            joined.add(tuple(sorted((parent_ids[i], parent_ids[i + 1]))))
        start_y = couple_y
    else:
        start_y = parent_bottom

    mid_y = (parent_bottom + child_top) / 2
    out.append((drop_x, start_y, drop_x, mid_y))

    centers = [left + half for left, _ in child_pos]
    if len(centers) == 1:
        cx = centers[0]
        if abs(drop_x - cx) > JOG_TOLERANCE:
            out.append((drop_x, mid_y, cx, mid_y))
    else:
        out.append((min(centers[0], drop_x), mid_y, max(centers[-1], drop_x), mid_y))
    for (left, top), cx in zip(child_pos, centers):
        out.append((cx, mid_y, cx, top + overlap))

    return joined


def find_dashed_connectors(connectors: Sequence[Connector], couples: Sequence[CouplePair],
                           coordinates: Dict[str, Point], options: LayoutOptions) -> List[int]:
    """
    Indices of horizontal segments that are a divorced couple's bar.

    A segment qualifies when it sits at the couple's row center and runs
    between the partners' facing edges.
    """
    span = options.node_span
    bars = []
    for pair in couples:
        if not pair.divorced:
            continue
        a = coordinates.get(pair.person1_id)
        b = coordinates.get(pair.person2_id)
        if a is None or b is None or abs(a[1] - b[1]) > EPSILON:
            continue
        left, right = sorted((a, b))
        bars.append((left[0] + span, right[0], left[1] + span / 2))

    dashed = []
    for idx, (x1, y1, x2, y2) in enumerate(connectors):
        if abs(y1 - y2) > EPSILON:
            continue
        lo, hi = min(x1, x2), max(x1, x2)
        for start, end, y in bars:
            if (abs(y1 - y) < ROW_PROXIMITY and abs(lo - start) < ROW_PROXIMITY
                    and abs(hi - end) < ROW_PROXIMITY):
                dashed.append(idx)
                break
    return dashed
