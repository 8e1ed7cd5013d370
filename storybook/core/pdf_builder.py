"""
PDF export for finished storybooks.

Renders a decorated cover page followed by one page per story page
(illustration or placeholder box, then the wrapped story text).
"""

import logging
import re
from io import BytesIO
from typing import Any, Mapping, Optional, Sequence

from PIL import Image
from reportlab.lib.colors import Color
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

BROWN = Color(139 / 255, 69 / 255, 19 / 255)
ORANGE = Color(1, 165 / 255, 0)
PURPLE = Color(128 / 255, 0, 128 / 255)
GREY = Color(100 / 255, 100 / 255, 100 / 255)
LIGHT_GREY = Color(200 / 255, 200 / 255, 200 / 255)

MARGIN = 56


def pdf_filename(title: str) -> str:
    """Download filename for a story title."""
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', title)}_storybook.pdf"


def _wrap_text(text: str, font_name: str, font_size: float, max_width: float) -> list[str]:
    """Word-wrap using ReportLab font metrics."""
    if not text:
        return []

    lines: list[str] = []
    current: list[str] = []
    for word in text.replace("\r", " ").split():
        trial = " ".join(current + [word])
        if pdfmetrics.stringWidth(trial, font_name, font_size) <= max_width:
            current.append(word)
        else:
            if current:
                lines.append(" ".join(current))
            current = [word]

    if current:
        lines.append(" ".join(current))
    return lines


def _draw_centered(c: canvas.Canvas, text: str, y: float, width: float) -> None:
    text_width = pdfmetrics.stringWidth(text, c._fontname, c._fontsize)
    c.drawString(max(0, (width - text_width) / 2.0), y, text)


def _image_reader(image_bytes: bytes) -> Optional[ImageReader]:
    """Decode image bytes (PNG/JPEG/WebP) for drawing, or None if unreadable."""
    try:
        image = Image.open(BytesIO(image_bytes))
        return ImageReader(image.convert("RGB"))
    except Exception as e:
        logger.warning(f"Could not decode page image for PDF: {e}")
        return None


def _draw_cover(c: canvas.Canvas, title: str, author: str, width: float, height: float) -> None:
    c.setStrokeColor(BROWN)
    c.setLineWidth(6)
    c.rect(28, 28, width - 56, height - 56)

    c.setStrokeColor(ORANGE)
    c.setLineWidth(3)
    c.rect(42, 42, width - 84, height - 84)

    c.setFont("Helvetica-Bold", 28)
    c.setFillColor(PURPLE)
    title_lines = _wrap_text(title, "Helvetica-Bold", 28, width - 2 * MARGIN - 40) or ["Untitled Story"]
    line_height = 34
    title_y = height / 2 + (len(title_lines) * line_height) / 2
    for index, line in enumerate(title_lines):
        _draw_centered(c, line, title_y - index * line_height, width)

    c.setFont("Helvetica", 16)
    c.setFillColor(GREY)
    _draw_centered(c, f"By {author}", title_y - len(title_lines) * line_height - 30, width)
    c.showPage()


def _draw_story_page(
    c: canvas.Canvas,
    page: Mapping[str, Any],
    image_bytes: Optional[bytes],
    width: float,
    height: float,
) -> None:
    content_width = width - 2 * MARGIN

    c.setFont("Helvetica-Bold", 12)
    c.setFillColor(PURPLE)
    c.drawString(MARGIN, height - MARGIN, f"Page {page['page_number']}")

    image_height = height * 0.45
    image_y = height - MARGIN - 20 - image_height

    reader = _image_reader(image_bytes) if image_bytes else None
    if reader is not None:
        c.drawImage(
            reader,
            MARGIN,
            image_y,
            width=content_width,
            height=image_height,
            preserveAspectRatio=True,
            anchor="c",
        )
    else:
        c.setStrokeColor(LIGHT_GREY)
        c.setLineWidth(1)
        c.rect(MARGIN, image_y, content_width, image_height)
        c.setFont("Helvetica-Oblique", 10)
        c.setFillColor(GREY)
        _draw_centered(c, "[Image will be here]", image_y + image_height / 2, width)

    c.setFont("Helvetica", 14)
    c.setFillColor(Color(0, 0, 0))
    text_y = image_y - 36
    for line in _wrap_text(page.get("text") or "", "Helvetica", 14, content_width):
        if text_y < MARGIN + 20:
            break
        c.drawString(MARGIN, text_y, line)
        text_y -= 20

    c.setStrokeColor(ORANGE)
    c.setLineWidth(1)
    c.line(MARGIN, 40, width - MARGIN, 40)
    c.showPage()


def build_story_pdf(
    title: str,
    pages: Sequence[Mapping[str, Any]],
    images: Optional[Mapping[int, bytes]] = None,
    author: str = "You & AI",
) -> bytes:
    """
    Render a storybook to PDF bytes.

    Args:
        title: Story title for the cover
        pages: Page records with page_number and text
        images: Image bytes keyed by page number (missing pages get a placeholder)
        author: Byline for the cover

    Returns:
        The PDF document as bytes
    """
    images = images or {}
    buffer = BytesIO()
    width, height = A4
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(title)
    c.setAuthor(author)

    _draw_cover(c, title, author, width, height)
    for page in sorted(pages, key=lambda p: p["page_number"]):
        _draw_story_page(c, page, images.get(page["page_number"]), width, height)

    c.save()
    return buffer.getvalue()
