"""
Tree layout API endpoints (layout, generation grouping, export).

Every endpoint receives the whole tree in the request body; nothing is stored
between requests.
"""
import logging
import os
from typing import Optional

from fastapi import APIRouter, Body, HTTPException
from fastapi.responses import FileResponse

from models import ExportOptions, FamilyTree, Generation, LayoutOptions, LayoutResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tree", tags=["tree"])


def _check_root(tree: FamilyTree, options: LayoutOptions):
    """Reject an explicitly requested root that is not part of the tree."""
    if options.root_person_id is None:
        return
    if options.root_person_id not in {p.id for p in tree.persons}:
        raise HTTPException(status_code=404, detail="Root person not found")


@router.post("/layout", response_model=LayoutResult)
async def auto_layout(tree: FamilyTree, options: Optional[LayoutOptions] = None):
    """Arrange the tree into generation rows with connectors."""
    options = options or LayoutOptions()
    _check_root(tree, options)

    from services.layout_service import calculate_layout

    result = calculate_layout(tree, options)
    logger.info("Computed layout with root: %s", result.root_person_id)
    return result


@router.post("/generations", response_model=list[Generation])
async def generations(tree: FamilyTree):
    """Group persons by generation relative to the tree owner."""
    from services.family_graph import compute_generations

    return compute_generations(tree)


@router.post("/export")
async def export_tree(tree: FamilyTree, options: ExportOptions,
                      layout_options: Optional[LayoutOptions] = Body(None, alias="layoutOptions")):
    """Export the laid-out tree as an image or PDF."""
    layout_options = layout_options or LayoutOptions()
    _check_root(tree, layout_options)

    from services.export_service import export_tree as do_export

    try:
        filepath = do_export(tree, options, layout_options)
        return FileResponse(
            filepath,
            media_type="application/octet-stream",
            filename=os.path.basename(filepath)
        )
    except Exception as e:
        logger.exception("Export failed")
        raise HTTPException(status_code=500, detail=str(e))
