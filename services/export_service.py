"""
Export service for rendering a laid-out tree as an image or PDF.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple

from models import ExportOptions, FamilyTree, Gender, LayoutOptions, LayoutResult, Person
from services.layout_service import calculate_layout

logger = logging.getLogger(__name__)

EXPORTS_DIR = Path("exports")

MARGIN = 50
DASH = (6, 4)
LINE_COLOR = "#94a3b8"
FILL_COLORS = {
    Gender.MALE: ("#d0e8ff", (0.816, 0.91, 1)),
    Gender.FEMALE: ("#ffd0e8", (1, 0.816, 0.91)),
}


def export_tree(tree: FamilyTree, options: ExportOptions,
                layout_options: Optional[LayoutOptions] = None,
                layout: Optional[LayoutResult] = None) -> str:
    """
    Export the family tree as an image or PDF.
    Returns the path to the generated file.
    """
    EXPORTS_DIR.mkdir(exist_ok=True)

    layout_options = layout_options or LayoutOptions()
    if layout is None:
        layout = calculate_layout(tree, layout_options)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    if options.format == "pdf":
        return export_pdf(tree, layout, layout_options, options, timestamp)
    else:
        return export_image(tree, layout, layout_options, options, timestamp)


def _life_years(person: Person) -> str:
    born = person.known_birth_year
    died = person.known_death_year
    if born and died:
        return f"{born} - {died}"
    if born:
        return f"b. {born}"
    if died:
        return f"d. {died}"
    return ""


def _fit_scale(layout: LayoutResult, options: ExportOptions, width: float, height: float) -> float:
    """Pixels per grid unit so the whole canvas fits inside the page margins."""
    tree_width = layout.canvas.width * options.unit_size
    tree_height = layout.canvas.height * options.unit_size
    available_width = width - 2 * MARGIN
    available_height = height - 2 * MARGIN

    scale_x = available_width / tree_width if tree_width > 0 else 1
    scale_y = available_height / tree_height if tree_height > 0 else 1
    return options.unit_size * min(scale_x, scale_y, 1)


def _dashed_points(x1: float, y1: float, x2: float, y2: float) -> list:
    """Split a straight segment into dash pieces."""
    length = ((x2 - x1) ** 2 + (y2 - y1) ** 2) ** 0.5
    if length == 0:
        return []
    on, off = DASH
    pieces = []
    pos = 0.0
    while pos < length:
        end = min(pos + on, length)
        pieces.append((
            (x1 + (x2 - x1) * pos / length, y1 + (y2 - y1) * pos / length),
            (x1 + (x2 - x1) * end / length, y1 + (y2 - y1) * end / length),
        ))
        pos += on + off
    return pieces


def export_pdf(tree: FamilyTree, layout: LayoutResult, layout_options: LayoutOptions,
               options: ExportOptions, timestamp: str) -> str:
    """Export tree as PDF."""
    from reportlab.lib.pagesizes import A3, A4, LEGAL, LETTER, landscape, portrait
    from reportlab.pdfgen import canvas

    page_sizes = {
        "A4": A4,
        "A3": A3,
        "Letter": LETTER,
        "Legal": LEGAL,
    }

    page_size = page_sizes.get(options.page_size, A4)
    if options.orientation == "landscape":
        page_size = landscape(page_size)
    else:
        page_size = portrait(page_size)

    filename = f"family_tree_{timestamp}.pdf"
    filepath = EXPORTS_DIR / filename

    c = canvas.Canvas(str(filepath), pagesize=page_size)
    width, height = page_size

    if not layout.nodes:
        c.drawString(50, height - 50, "Empty Family Tree")
        c.save()
        return str(filepath)

    unit = _fit_scale(layout, options, width, height)
    persons: Dict[str, Person] = {p.id: p for p in tree.persons}
    span = layout_options.node_span

    # PDF origin is bottom-left
    def transform(x: float, y: float) -> Tuple[float, float]:
        return MARGIN + x * unit, height - MARGIN - y * unit

    c.setStrokeColorRGB(0.58, 0.64, 0.72)
    c.setLineWidth(1)
    dashed = set(layout.dashed)
    for idx, (x1, y1, x2, y2) in enumerate(layout.connectors):
        if idx in dashed:
            c.setDash(*DASH)
        c.line(*transform(x1, y1), *transform(x2, y2))
        if idx in dashed:
            c.setDash()

    node_size = span * unit
    corner_radius = 0.15 * unit
    for node in layout.nodes:
        person = persons[node.id]
        x, y = transform(node.left, node.top + span)

        c.setFillColorRGB(*FILL_COLORS[node.gender][1])
        c.setStrokeColorRGB(0, 0, 0)
        c.roundRect(x, y, node_size, node_size, corner_radius, stroke=1, fill=1)

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", max(4, 0.2 * unit))
        c.drawCentredString(x + node_size / 2, y + node_size / 2, person.display_name)

        years = _life_years(person)
        if years:
            c.setFont("Helvetica", max(3, 0.15 * unit))
            c.drawCentredString(x + node_size / 2, y + node_size / 4, years)

    c.save()
    logger.info("Exported PDF: %s", filepath)
    return str(filepath)


def export_image(tree: FamilyTree, layout: LayoutResult, layout_options: LayoutOptions,
                 options: ExportOptions, timestamp: str) -> str:
    """Export tree as PNG or JPG image."""
    from PIL import Image, ImageDraw, ImageFont

    width = options.width
    height = options.height

    # Create image
    img = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(img)

    if not layout.nodes:
        draw.text((50, 50), "Empty Family Tree", fill="black")
    else:
        unit = _fit_scale(layout, options, width, height)
        persons: Dict[str, Person] = {p.id: p for p in tree.persons}
        span = layout_options.node_span

        def transform(x: float, y: float) -> Tuple[float, float]:
            return MARGIN + x * unit, MARGIN + y * unit

        # Draw connectors first so cards cover their ends
        dashed = set(layout.dashed)
        for idx, (x1, y1, x2, y2) in enumerate(layout.connectors):
            start, end = transform(x1, y1), transform(x2, y2)
            if idx in dashed:
                for piece in _dashed_points(*start, *end):
                    draw.line(piece, fill=LINE_COLOR, width=2)
            else:
                draw.line([start, end], fill=LINE_COLOR, width=2)

        try:
            font = ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", max(6, int(0.25 * unit)))
            small_font = ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", max(5, int(0.2 * unit)))
        except OSError:
            font = ImageFont.load_default()
            small_font = font

        for node in layout.nodes:
            person = persons[node.id]
            x0, y0 = transform(node.left, node.top)
            x1, y1 = transform(node.left + span, node.top + span)
            draw.rounded_rectangle([x0, y0, x1, y1], radius=5, fill=FILL_COLORS[node.gender][0],
                                   outline="black", width=1)

            cx = (x0 + x1) / 2
            bbox = draw.textbbox((0, 0), person.display_name, font=font)
            text_width = bbox[2] - bbox[0]
            draw.text((cx - text_width // 2, (y0 + y1) / 2 - 6), person.display_name, fill="black", font=font)

            years = _life_years(person)
            if years:
                bbox = draw.textbbox((0, 0), years, font=small_font)
                text_width = bbox[2] - bbox[0]
                draw.text((cx - text_width // 2, y1 - (y1 - y0) / 4), years, fill="gray", font=small_font)

    # Save image
    ext = options.format if options.format in ["png", "jpg", "jpeg"] else "png"
    filename = f"family_tree_{timestamp}.{ext}"
    filepath = EXPORTS_DIR / filename

    if ext in ["jpg", "jpeg"]:
        img.save(str(filepath), "JPEG", quality=options.quality)
    else:
        img.save(str(filepath), "PNG")

    logger.info("Exported image: %s", filepath)
    return str(filepath)
