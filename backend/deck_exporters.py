"""
Deck exporters: PDF document, PowerPoint presentation and Word document.

All exporters share split_bullets so every format shows the same bullet
boundaries, never mutate their input, and produce byte-identical output for
identical input.
"""

import io
import logging
import re
import zipfile
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Tuple
from xml.sax.saxutils import escape

from docx import Document
from lxml import etree
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.text import PP_ALIGN
from pptx.oxml.ns import qn
from pptx.util import Inches, Pt
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import KeepInFrame, PageBreak, Paragraph, SimpleDocTemplate, Spacer

from deck_models import Slide, as_text

logger = logging.getLogger(__name__)

BULLET_SEPARATORS = re.compile(r"\n|•|-")
BULLET_CHAR = "•"

DOCUMENT_TITLE = "SlideGenius Pitch Deck"
DOCUMENT_AUTHOR = "SlideGenius"
EXPORT_BASENAME = "SlideGenius_PitchDeck"

# Fixed metadata so repeated exports are byte-identical
METADATA_TIMESTAMP = datetime(2024, 1, 1)
ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)

# PDF layout (points)
PDF_LEFT_MARGIN = 40
PDF_TOP_MARGIN = 58
PDF_BULLET_INDENT = 20
PDF_TEXT_WIDTH = 480
PDF_FRAME_PADDING = 6


def split_bullets(content: str) -> List[str]:
    """Split slide content on newlines, bullet glyphs and hyphens"""
    return [part.strip() for part in BULLET_SEPARATORS.split(as_text(content)) if part.strip()]


def _slide_fields(slide: Any, position: int) -> Tuple[int, str, str]:
    if not isinstance(slide, Slide):
        slide = Slide.from_dict(slide or {})
    number = slide.slide_number or position
    return number, as_text(slide.title), as_text(slide.content)


def _normalize_zip(data: bytes) -> bytes:
    """Rewrite an OOXML package with fixed entry timestamps"""
    output = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(data)) as source, \
            zipfile.ZipFile(output, 'w', zipfile.ZIP_DEFLATED) as target:
        for info in source.infolist():
            entry = zipfile.ZipInfo(info.filename, date_time=ZIP_TIMESTAMP)
            entry.compress_type = zipfile.ZIP_DEFLATED
            entry.external_attr = info.external_attr
            target.writestr(entry, source.read(info.filename))
    return output.getvalue()


def _stamp_core_properties(core_properties):
    core_properties.title = DOCUMENT_TITLE
    core_properties.author = DOCUMENT_AUTHOR
    core_properties.last_modified_by = DOCUMENT_AUTHOR
    core_properties.revision = 1
    core_properties.created = METADATA_TIMESTAMP
    core_properties.modified = METADATA_TIMESTAMP


# PDF

def export_pdf(slides: Iterable[Any]) -> bytes:
    """Render one A4 page per slide: bold title, then wrapped bullet lines"""
    title_style = ParagraphStyle(
        'SlideTitle',
        fontName='Helvetica-Bold',
        fontSize=22,
        leading=28,
        spaceAfter=14,
    )
    bullet_style = ParagraphStyle(
        'SlideBullet',
        fontName='Helvetica',
        fontSize=14,
        leading=18,
        leftIndent=PDF_BULLET_INDENT,
        bulletIndent=4,
        bulletFontName='Helvetica',
        spaceAfter=10,
    )

    buffer = io.BytesIO()
    page_width = A4[0]
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PDF_LEFT_MARGIN,
        rightMargin=page_width - PDF_LEFT_MARGIN - PDF_BULLET_INDENT - PDF_TEXT_WIDTH,
        topMargin=PDF_TOP_MARGIN,
        bottomMargin=40,
        title=DOCUMENT_TITLE,
        author=DOCUMENT_AUTHOR,
        invariant=1,
    )

    # Frames pad 6pt on each side; each slide is shrunk to fit a single page
    max_width = doc.width - 2 * PDF_FRAME_PADDING
    max_height = doc.height - 2 * PDF_FRAME_PADDING - 1

    story = []
    pages = 0
    for position, slide in enumerate(slides, start=1):
        number, title, content = _slide_fields(slide, position)
        pages = position
        if story:
            story.append(PageBreak())
        flowables = [Paragraph(escape(title or f"Slide {number}"), title_style)]
        for bullet in split_bullets(content):
            flowables.append(Paragraph(escape(bullet), bullet_style, bulletText=BULLET_CHAR))
        story.append(KeepInFrame(max_width, max_height, flowables, mode='shrink'))

    if not story:
        story.append(Spacer(1, 1))

    doc.build(story)
    logger.info(f"Exported PDF with {pages} pages")
    return buffer.getvalue()


# PowerPoint

def _apply_bullet(paragraph):
    """Give a text box paragraph a native bullet character"""
    pPr = paragraph._p.get_or_add_pPr()
    pPr.set('marL', str(Inches(0.3)))
    pPr.set('indent', str(-Inches(0.25)))
    bu_char = etree.SubElement(pPr, qn('a:buChar'))
    bu_char.set('char', BULLET_CHAR)


def _style_run(run, size: int, color: RGBColor, bold: bool = False):
    run.font.name = 'Arial'
    run.font.size = Pt(size)
    run.font.bold = bold
    run.font.color.rgb = color


def export_pptx(slides: Iterable[Any]) -> bytes:
    """Render one 16:9 slide per deck slide: centered title, bulleted body"""
    prs = Presentation()
    prs.slide_width = Inches(10)
    prs.slide_height = Inches(5.625)
    blank_layout = prs.slide_layouts[6]

    for position, slide in enumerate(slides, start=1):
        _, title, content = _slide_fields(slide, position)
        pptx_slide = prs.slides.add_slide(blank_layout)

        title_box = pptx_slide.shapes.add_textbox(Inches(0.5), Inches(0.5), Inches(9), Inches(1))
        title_frame = title_box.text_frame
        title_frame.word_wrap = True
        heading = title_frame.paragraphs[0]
        heading.alignment = PP_ALIGN.CENTER
        title_run = heading.add_run()
        title_run.text = title
        _style_run(title_run, 28, RGBColor(0x00, 0x33, 0x99), bold=True)

        bullets = split_bullets(content)
        if not bullets:
            continue

        body_box = pptx_slide.shapes.add_textbox(Inches(0.7), Inches(1.5), Inches(8.5), Inches(3.8))
        body_frame = body_box.text_frame
        body_frame.word_wrap = True
        for index, bullet in enumerate(bullets):
            paragraph = body_frame.paragraphs[0] if index == 0 else body_frame.add_paragraph()
            paragraph.alignment = PP_ALIGN.LEFT
            _apply_bullet(paragraph)
            run = paragraph.add_run()
            run.text = bullet
            _style_run(run, 18, RGBColor(0x22, 0x22, 0x22))

    _stamp_core_properties(prs.core_properties)
    logger.info(f"Exported PowerPoint with {len(prs.slides)} slides")

    buffer = io.BytesIO()
    prs.save(buffer)
    return _normalize_zip(buffer.getvalue())


# Word

def export_docx(slides: Iterable[Any]) -> bytes:
    """Render the deck as a Word document, one page per slide"""
    doc = Document()

    for position, slide in enumerate(slides, start=1):
        number, title, content = _slide_fields(slide, position)
        if position > 1:
            doc.add_page_break()
        heading = doc.add_heading(level=1)
        heading.add_run(title or f"Slide {number}").bold = True
        for bullet in split_bullets(content):
            doc.add_paragraph(bullet, style='List Bullet')

    _stamp_core_properties(doc.core_properties)

    buffer = io.BytesIO()
    doc.save(buffer)
    return _normalize_zip(buffer.getvalue())


class ExportFormat(NamedTuple):
    encoder: Callable[[Iterable[Any]], bytes]
    mimetype: str
    extension: str

    @property
    def filename(self) -> str:
        return f"{EXPORT_BASENAME}.{self.extension}"


EXPORT_FORMATS: Dict[str, ExportFormat] = {
    'pdf': ExportFormat(export_pdf, 'application/pdf', 'pdf'),
    'pptx': ExportFormat(
        export_pptx,
        'application/vnd.openxmlformats-officedocument.presentationml.presentation',
        'pptx',
    ),
    'docx': ExportFormat(
        export_docx,
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
        'docx',
    ),
}
