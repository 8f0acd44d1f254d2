"""
Cleaning for document HTML edited in the preview.

The edited document is stored verbatim and later rendered back into the
page and the PDF, so scripts, event handlers and unknown tags are removed
first. Inline styles are kept (the assembler styles everything inline),
filtered down to layout and typography properties.
"""

import logging

import bleach
from bleach.css_sanitizer import CSSSanitizer

logger = logging.getLogger(__name__)

ALLOWED_TAGS = [
    'p', 'br', 'b', 'i', 'u', 'strong', 'em', 'div', 'span', 'ul', 'ol', 'li', 'blockquote',
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'table', 'thead', 'tbody', 'tr', 'td', 'th', 'hr',
]
ALLOWED_ATTRS = {
    '*': ['style', 'id'],
    'td': ['style', 'colspan', 'rowspan'],
    'th': ['style', 'colspan', 'rowspan'],
}
ALLOWED_CSS_PROPERTIES = [
    'text-align', 'text-decoration', 'font-weight', 'font-size', 'font-style', 'font-family',
    'line-height', 'letter-spacing', 'color', 'margin', 'margin-top', 'margin-bottom',
    'margin-left', 'margin-right', 'padding', 'padding-top', 'padding-bottom', 'padding-left',
    'padding-right', 'border', 'border-top', 'border-bottom', 'border-collapse', 'width',
    'vertical-align', 'page-break-inside',
]

css_sanitizer = CSSSanitizer(allowed_css_properties=ALLOWED_CSS_PROPERTIES)


def sanitize_document_html(html_content: str) -> str:
    """Sanitize edited document HTML before it is persisted."""
    if not html_content:
        return ''
    cleaned = bleach.clean(
        html_content,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRS,
        css_sanitizer=css_sanitizer,
        strip=True,
        strip_comments=True,
    )
    if len(cleaned) != len(html_content):
        logger.debug(f"Sanitizer changed document HTML ({len(html_content)} -> {len(cleaned)} chars)")
    return cleaned
