"""
PDF Renderer

Turns the inline-styled HTML produced by the document assembler (and
edited in the preview) into a PDF with reportlab.

Only the subset of HTML the assembler and the seed templates emit is
understood: block elements (div, p, h1-h6, li), tables, inline emphasis
(strong/b, em/i, u), <br/>, and a handful of inline style properties
(text-align, font-weight, font-size, text-decoration, margins, width,
border, page-break-inside). Anything else is rendered as plain text.
"""

import io
import logging
import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Dict, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

PAGE_SIZES = {'A4': A4, 'LETTER': LETTER}

BLOCK_TAGS = {'div', 'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'li', 'blockquote'}
CELL_TAGS = {'td', 'th'}
INLINE_MARKUP = {'strong': 'b', 'b': 'b', 'em': 'i', 'i': 'i', 'u': 'u'}
HEADING_SIZES = {'h1': 16, 'h2': 14, 'h3': 13, 'h4': 12, 'h5': 11, 'h6': 10}
ALIGNMENTS = {'left': TA_LEFT, 'center': TA_CENTER, 'right': TA_RIGHT, 'justify': TA_JUSTIFY}
BOLD_WEIGHTS = {'bold', 'bolder', '600', '700', '800', '900'}

BASE_FONT_SIZE = 12
LENGTH_PATTERN = re.compile(r'^\s*(-?[\d.]+)\s*(px|pt|%)?')
TAG_PATTERN = re.compile(r'<[^>]+>')


class PdfRenderError(Exception):
    """Raised when reportlab cannot lay out the document."""
    pass


@dataclass(frozen=True)
class PageGeometry:
    """Page size and uniform margin, in points."""
    page_size: tuple = A4
    margin: float = 40

    @property
    def frame_width(self) -> float:
        return self.page_size[0] - 2 * self.margin

    @classmethod
    def from_config(cls, config) -> 'PageGeometry':
        size = PAGE_SIZES.get(str(config.get('PDF_PAGE_SIZE', 'A4')).upper(), A4)
        return cls(page_size=size, margin=float(config.get('PDF_MARGIN', 40)))


def parse_style(style: Optional[str]) -> Dict[str, str]:
    """'a: b; c: d' -> {'a': 'b', 'c': 'd'} with lowercased property names."""
    declarations = {}
    for declaration in (style or '').split(';'):
        if ':' not in declaration:
            continue
        name, value = declaration.split(':', 1)
        declarations[name.strip().lower()] = value.strip()
    return declarations


def to_points(value: Optional[str]) -> Optional[float]:
    """CSS length to points. px are converted at 96dpi; unitless is taken as pt."""
    if not value:
        return None
    match = LENGTH_PATTERN.match(value)
    if not match or match.group(2) == '%':
        return None
    number = float(match.group(1))
    return number * 0.75 if match.group(2) == 'px' else number


def to_fraction(value: Optional[str]) -> Optional[float]:
    """'45%' -> 0.45; None for anything that is not a percentage."""
    match = LENGTH_PATTERN.match(value or '')
    if not match or match.group(2) != '%':
        return None
    return float(match.group(1)) / 100


def margin_points(css: Dict[str, str], side: str) -> float:
    """Top or bottom margin from margin-<side> or the margin shorthand."""
    explicit = to_points(css.get(f'margin-{side}'))
    if explicit is not None:
        return max(explicit, 0)
    parts = css.get('margin', '').split()
    if not parts:
        return 0
    index = 0 if side == 'top' else (2 if len(parts) > 2 else 0)
    return max(to_points(parts[index]) or 0, 0)


@dataclass
class _Block:
    tag: str
    css: Dict[str, str]
    alignment: int = TA_LEFT
    font_size: float = BASE_FONT_SIZE
    bold: bool = False
    underline: bool = False
    flowables: List = field(default_factory=list)


@dataclass
class _TableState:
    depth: int = 0
    rows: List[List[Optional[_Block]]] = field(default_factory=list)
    spans: List[tuple] = field(default_factory=list)
    row: Optional[List[Optional[_Block]]] = None


class _FlowableBuilder(HTMLParser):
    """
    Walks the HTML keeping a stack of open blocks.

    Inline text accumulates as reportlab paragraph markup and is flushed
    into the innermost block whenever a block boundary is crossed. Closed
    blocks hand their flowables to their parent; table cells are blocks
    too and are collected into rows.
    """

    def __init__(self, frame_width: float):
        super().__init__(convert_charrefs=True)
        self.frame_width = frame_width
        self.normal = getSampleStyleSheet()['Normal']
        self.blocks: List[_Block] = [_Block('root', {})]
        self.tables: List[_TableState] = []
        self.inline: List[str] = []
        self.open_inline: List[str] = []
        self.counter = 0

    # -- parsing -------------------------------------------------------

    def handle_starttag(self, tag, attrs):
        attrs = dict(attrs)
        css = parse_style(attrs.get('style'))

        if tag == 'br':
            self.inline.append('<br/>')
        elif tag in INLINE_MARKUP:
            markup = INLINE_MARKUP[tag]
            self.inline.append(f'<{markup}>')
            self.open_inline.append(markup)
        elif tag == 'table':
            self.flush()
            self.tables.append(_TableState(depth=len(self.blocks)))
        elif tag == 'tr' and self.tables:
            self.tables[-1].row = []
        elif tag in CELL_TAGS and self.tables and self.tables[-1].row is not None:
            self.flush()
            table = self.tables[-1]
            cell = self._child_block(tag, css)
            cell.bold = cell.bold or tag == 'th'
            colspan = max(int(attrs.get('colspan') or 1), 1)
            if colspan > 1:
                start, row_index = len(table.row), len(table.rows)
                table.spans.append(((start, row_index), (start + colspan - 1, row_index)))
            table.row.append(cell)
            table.row.extend([None] * (colspan - 1))
            self.blocks.append(cell)
        elif tag in BLOCK_TAGS:
            self.flush()
            self.blocks.append(self._child_block(tag, css))
            if tag == 'li':
                self.inline.append('&bull; ')

    def handle_endtag(self, tag):
        if tag in INLINE_MARKUP:
            markup = INLINE_MARKUP[tag]
            if markup in self.open_inline:
                self.open_inline.remove(markup)
                self.inline.append(f'</{markup}>')
        elif tag in CELL_TAGS:
            self._close_until(tag)
        elif tag == 'tr' and self.tables and self.tables[-1].row is not None:
            self._close_cells()
            table = self.tables[-1]
            table.rows.append(table.row)
            table.row = None
        elif tag == 'table' and self.tables:
            self._close_cells()
            self._emit_table(self.tables.pop())
        elif tag in BLOCK_TAGS:
            self._close_until(tag)

    def handle_data(self, data):
        text = re.sub(r'\s+', ' ', data)
        if text.strip() or self.inline:
            self.inline.append(escape(text))

    def close(self) -> List:
        super().close()
        while len(self.blocks) > 1:
            self._pop_block()
        self.flush()
        return self.blocks[0].flowables

    # -- blocks --------------------------------------------------------

    def _child_block(self, tag: str, css: Dict[str, str]) -> _Block:
        parent = self.blocks[-1]
        return _Block(
            tag=tag,
            css=css,
            alignment=ALIGNMENTS.get(css.get('text-align', '').lower(), parent.alignment),
            font_size=to_points(css.get('font-size')) or HEADING_SIZES.get(tag) or parent.font_size,
            bold=parent.bold or css.get('font-weight', '').lower() in BOLD_WEIGHTS or tag in HEADING_SIZES,
            underline=parent.underline or 'underline' in css.get('text-decoration', ''),
        )

    def _close_until(self, *tags: str) -> None:
        """Pop blocks up to and including the nearest one with a matching tag."""
        if not any(b.tag in tags for b in self.blocks[1:]):
            return
        while True:
            block = self._pop_block()
            if block.tag in tags:
                return

    def _close_cells(self) -> None:
        """Pop blocks opened inside the current table, i.e. an unclosed cell."""
        while len(self.blocks) > self.tables[-1].depth:
            self._pop_block()

    def _pop_block(self) -> _Block:
        self.flush()
        block = self.blocks.pop()
        if block.tag not in CELL_TAGS:
            self._emit_block(block)
        return block

    def flush(self) -> None:
        """Turn pending inline text into a paragraph of the innermost block."""
        closing = ''.join(f'</{t}>' for t in reversed(self.open_inline))
        text = (''.join(self.inline) + closing).strip()
        self.inline = [f'<{t}>' for t in self.open_inline]

        if not TAG_PATTERN.sub('', text).strip():
            return

        block = self.blocks[-1]
        if block.underline:
            text = f'<u>{text}</u>'
        self.counter += 1
        style = ParagraphStyle(
            name=f'Block{self.counter}',
            parent=self.normal,
            fontName='Times-Bold' if block.bold else 'Times-Roman',
            fontSize=block.font_size,
            leading=block.font_size * 1.4,
            alignment=block.alignment,
        )
        block.flowables.append(Paragraph(text, style))

    def _emit_block(self, block: _Block) -> None:
        flowables = block.flowables
        if not flowables:
            return

        if 'border' in block.css:
            box = Table([[flowables]], colWidths=[self.frame_width])
            box.setStyle(TableStyle([
                ('BOX', (0, 0), (-1, -1), 1.5, colors.black),
                ('LEFTPADDING', (0, 0), (-1, -1), 10),
                ('RIGHTPADDING', (0, 0), (-1, -1), 10),
                ('TOPPADDING', (0, 0), (-1, -1), 8),
                ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
            ]))
            flowables = [box]

        if 'avoid' in block.css.get('page-break-inside', ''):
            flowables = [KeepTogether(flowables)]

        target = self.blocks[-1].flowables
        top = margin_points(block.css, 'top')
        bottom = margin_points(block.css, 'bottom')
        if top:
            target.append(Spacer(1, top))
        target.extend(flowables)
        if bottom:
            target.append(Spacer(1, bottom))

    def _emit_table(self, table: _TableState) -> None:
        if table.row:
            table.rows.append(table.row)
        if not table.rows:
            return

        width = max(len(r) for r in table.rows)
        data = []
        for row in table.rows:
            cells = [c.flowables if c is not None and c.flowables else '' for c in row]
            cells.extend([''] * (width - len(cells)))
            data.append(cells)

        grid = Table(data, colWidths=self._column_widths(table.rows, width), hAlign='LEFT')
        commands = [('VALIGN', (0, 0), (-1, -1), 'TOP')]
        commands.extend(('SPAN', start, end) for start, end in table.spans)
        grid.setStyle(TableStyle(commands))
        self.blocks[-1].flowables.extend([grid, Spacer(1, 8)])

    def _column_widths(self, rows: List[List[Optional[_Block]]], width: int) -> List[float]:
        """Percent widths from the first row; the rest share what is left."""
        fractions: List[Optional[float]] = [None] * width
        for index, cell in enumerate(rows[0]):
            if cell is not None:
                fractions[index] = to_fraction(cell.css.get('width'))

        fixed = sum(f for f in fractions if f)
        open_columns = [i for i, f in enumerate(fractions) if not f]
        share = max(1 - fixed, 0) / len(open_columns) if open_columns else 0
        return [self.frame_width * (f if f else share) for f in fractions]


def html_to_flowables(html: str, frame_width: float = PageGeometry().frame_width) -> List:
    builder = _FlowableBuilder(frame_width)
    builder.feed(html or '')
    return builder.close()


def render_pdf(html: str, geometry: PageGeometry = PageGeometry(), title: str = '') -> bytes:
    """
    Render document HTML to PDF bytes.

    Raises:
        PdfRenderError: if the HTML cannot be laid out
    """
    buffer = io.BytesIO()

    doc = SimpleDocTemplate(
        buffer,
        pagesize=geometry.page_size,
        rightMargin=geometry.margin,
        leftMargin=geometry.margin,
        topMargin=geometry.margin,
        bottomMargin=geometry.margin,
        title=title,
    )

    try:
        story = html_to_flowables(html, geometry.frame_width)
        doc.build(story or [Spacer(1, 1)])
    except Exception as e:
        logger.error(f"PDF rendering failed: {e}")
        raise PdfRenderError(f"Could not render PDF: {e}") from e

    buffer.seek(0)
    return buffer.getvalue()
