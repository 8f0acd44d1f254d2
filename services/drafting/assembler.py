"""
Document Assembler

Composes a finished document from company details, resolution items and
letterhead/signatory configuration:

    header   letterhead (and, for board resolutions, the CTC banner)
    body     each item merged through the PlaceholderEngine, in order
    footer   signature block

Simplified documents (resignation letters, DIR-2 consents, incorporation
NOCs and specimen signature cards) carry their own layout in the template
and render with neither letterhead nor footer.

All styling is inline because the PDF renderer does not resolve CSS
classes.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from .formatting import (
    UNDERSCORE_DIN,
    UNDERSCORE_NAME,
    banner_date,
    banner_place,
    first_non_blank,
)
from .substitution import PlaceholderEngine
from .types import (
    CompanyDetails,
    DocCategory,
    DocSubType,
    HeaderFooterConfig,
    MeetingType,
    MergedDocument,
    ResolutionItemData,
    is_simplified,
)

logger = logging.getLogger(__name__)

DEFAULT_DESIGNATION = 'Director'

CONTAINER_STYLE = (
    "font-family: 'Times New Roman', serif; padding: 40px; "
    "line-height: 1.5; color: #000; font-size: 12pt;"
)

EMPTY_BODY_HTML = '<p style="text-align: center; color: #ccc;">[Document Draft Content Placeholder]</p>'

# Drafts containing block markup are emitted as-is; anything else is
# treated as plain text and split into paragraphs.
BLOCK_MARKUP_PATTERN = re.compile(r'<\s*(p|div|table|br|h[1-6]|ul|ol)\b', re.IGNORECASE)

ROC_AUTHORIZATION_CLAUSE = (
    '<p style="text-align: justify; margin-bottom: 15px;">'
    '"<strong>RESOLVED FURTHER THAT</strong> {name} (DIN: {din}), {designation} of the Company, '
    'be and is hereby authorized to sign, execute, submit and file all necessary documents, '
    'applications, returns and e-forms with the Registrar of Companies, Ministry of Corporate '
    'Affairs and to do all such acts, deeds and things as may be necessary to give effect to '
    'this resolution."'
    '</p>'
)

CERTIFIED_COPY_CLAUSE = (
    '<p style="text-align: justify; margin-bottom: 15px;">'
    '"<strong>RESOLVED FURTHER THAT</strong> a certified true copy of this resolution be provided '
    'to such authorities or persons as may be required."'
    '</p>'
)

MEETING_PHRASES = {
    MeetingType.BOARD: 'MEETING OF THE BOARD OF DIRECTORS OF',
    MeetingType.COMMITTEE: 'MEETING OF THE COMMITTEE OF DIRECTORS OF',
    MeetingType.EGM: 'EXTRAORDINARY GENERAL MEETING OF THE MEMBERS OF',
    MeetingType.AGM: 'ANNUAL GENERAL MEETING OF THE MEMBERS OF',
}


@dataclass(frozen=True)
class Signatory:
    """Resolved signature block values. Never blank."""
    name: str
    designation: str
    din: str


def resolve_signatory(details: CompanyDetails, header: HeaderFooterConfig) -> Signatory:
    """
    Apply the signatory fallback chain.

        name:        header override -> chairman name -> underscores
        designation: header override -> "Director"
        DIN:         header override -> chairman DIN -> underscores
    """
    return Signatory(
        name=first_non_blank(header.signatory_name, details.chairman_name) or UNDERSCORE_NAME,
        designation=first_non_blank(header.signatory_designation) or DEFAULT_DESIGNATION,
        din=first_non_blank(header.signatory_din, details.chairman_din) or UNDERSCORE_DIN,
    )


class DocumentAssembler:
    """
    Builds the merged HTML document for a draft.

    Usage:
        document = DocumentAssembler.assemble(details, items, header, DocCategory.RESOLUTION)
        document.html
    """

    @classmethod
    def assemble(
        cls,
        details: CompanyDetails,
        items: List[ResolutionItemData],
        header: HeaderFooterConfig,
        category: DocCategory,
        sub_type: Optional[DocSubType] = None,
    ) -> MergedDocument:
        """
        Assemble header, body and footer into one HTML string.

        Args:
            details: Company and meeting metadata
            items: Resolution items in display order
            header: Letterhead and signatory overrides
            category: Document category
            sub_type: Incorporation sub-type, if any

        Returns:
            MergedDocument wrapping the HTML
        """
        simplified = is_simplified(category, sub_type)
        signatory = resolve_signatory(details, header)
        is_resolution = category == DocCategory.RESOLUTION and not simplified

        parts = [f'<div style="{CONTAINER_STYLE}">']

        if header.show_header and not simplified:
            if is_resolution:
                parts.append(cls.render_company_letterhead(details))
            else:
                parts.append(cls.render_letterhead(details, header))

        if is_resolution:
            parts.append(cls.render_certification_banner(details))

        body = cls.render_items(details, items)
        if is_resolution:
            body += cls.render_standard_clauses(signatory)
        parts.append(f'<div style="text-align: justify; margin: 30px 0;">{body}</div>')

        if not simplified:
            if is_resolution:
                parts.append(cls.render_certified_footer(details, signatory))
            else:
                parts.append(cls.render_footer(details, signatory))

        parts.append('</div>')

        logger.debug(
            f"Assembled {category.value} document with {len(items)} item(s), "
            f"simplified={simplified}"
        )
        return MergedDocument(html=''.join(parts))

    @classmethod
    def render_items(cls, details: CompanyDetails, items: List[ResolutionItemData]) -> str:
        """
        Merge each item and join them in order.

        Items without draft text are skipped. When two or more items render,
        each gets an "ITEM NO. n" heading.
        """
        renderable = []
        for item in items:
            if not item.draft_text or not item.draft_text.strip():
                logger.warning(f"Skipping item {item.id} ({item.template_name!r}): no draft text")
                continue
            renderable.append(item)

        if not renderable:
            return EMPTY_BODY_HTML

        labelled = len(renderable) > 1
        blocks = []
        for index, item in enumerate(renderable, start=1):
            merged = PlaceholderEngine.merge_item(item, details)
            content = cls.to_paragraphs(item.draft_text, merged)

            label = ''
            if labelled:
                label = (
                    '<div style="text-decoration: underline; font-weight: bold; margin-bottom: 10px;">'
                    f'ITEM NO. {index}: {item.template_name.upper()}</div>'
                )
            blocks.append(f'<div style="margin-bottom: 25px;">{label}{content}</div>')

        return ''.join(blocks)

    @staticmethod
    def to_paragraphs(source: str, merged: str) -> str:
        """Split plain-text drafts into paragraphs; leave HTML drafts untouched."""
        if BLOCK_MARKUP_PATTERN.search(source):
            return merged
        lines = [line.strip() for line in merged.split('\n')]
        return ''.join(f'<p style="margin-bottom: 10px;">{line}</p>' for line in lines if line)

    @staticmethod
    def render_letterhead(details: CompanyDetails, header: HeaderFooterConfig) -> str:
        title = first_non_blank(header.header_title, details.company_name)
        subtitle = first_non_blank(header.header_subtitle, details.address)
        return (
            '<div id="letterhead" style="text-align: center; border-bottom: 1px solid #000; '
            'padding-bottom: 20px; margin-bottom: 30px;">'
            f'<h1 style="font-size: 16pt; font-weight: bold; margin: 0;">{title}</h1>'
            f'<p style="font-size: 9pt; margin: 5px 0;">{subtitle}</p>'
            '</div>'
        )

    @staticmethod
    def render_company_letterhead(details: CompanyDetails) -> str:
        """Fixed letterhead for board resolutions, built from company details only."""
        return (
            '<div id="letterhead" style="text-align: center; margin-bottom: 25px; '
            'border-bottom: 1px solid #000; padding-bottom: 15px;">'
            '<h1 style="font-size: 16pt; font-weight: bold; margin: 0; letter-spacing: 1px;">'
            f'{details.company_name.upper()}</h1>'
            f'<p style="font-size: 10pt; margin: 5px 0;"><strong>Regd. Office:</strong> {details.address}</p>'
            f'<p style="font-size: 10pt; margin: 0;"><strong>CIN:</strong> {details.cin} | '
            f'<strong>Email:</strong> {details.company_email}</p>'
            '</div>'
        )

    @staticmethod
    def render_certification_banner(details: CompanyDetails) -> str:
        phrase = MEETING_PHRASES.get(details.meeting_type, MEETING_PHRASES[MeetingType.BOARD])
        company = (details.company_name or UNDERSCORE_NAME).upper()
        held_on = banner_date(details.meeting_date)
        time = (details.meeting_time or '').strip()
        at_time = f" AT {time}" if time else ''
        place = banner_place(details.meeting_place, details.address)
        return (
            '<div id="certification-banner" style="text-align: center; font-weight: bold; '
            'text-decoration: underline; margin-bottom: 30px; line-height: 1.5;">'
            f'CERTIFIED TRUE COPY OF THE RESOLUTION PASSED AT THE {phrase}<br/>'
            f'{company}<br/>'
            f'HELD ON {held_on}{at_time}<br/>'
            f'AT {place}'
            '</div>'
            '<div style="text-align: center; font-weight: bold; margin-bottom: 20px;">BOARD RESOLUTION</div>'
        )

    @staticmethod
    def render_standard_clauses(signatory: Signatory) -> str:
        return ROC_AUTHORIZATION_CLAUSE.format(
            name=signatory.name,
            din=signatory.din,
            designation=signatory.designation,
        ) + CERTIFIED_COPY_CLAUSE

    @staticmethod
    def render_certified_footer(details: CompanyDetails, signatory: Signatory) -> str:
        company = details.company_name or UNDERSCORE_NAME
        return (
            '<div id="signature-footer" style="margin-top: 40px;">'
            '<p style="font-weight: bold;">CERTIFIED TRUE COPY</p>'
            f'<p style="margin-top: 10px; font-weight: bold;">For {company}</p>'
            '<div style="margin-top: 60px;">'
            '<p>__________________________</p>'
            f'<p style="margin-top: 5px;">Name: <strong>{signatory.name}</strong></p>'
            f'<p style="margin-top: 5px;">Designation: <strong>{signatory.designation}</strong></p>'
            f'<p style="margin-top: 5px;">DIN / Membership No.: <strong>{signatory.din}</strong></p>'
            '<p style="margin-top: 5px;">Date: __________________</p>'
            '<p style="margin-top: 5px;">Place: __________________</p>'
            '</div>'
            '</div>'
        )

    @staticmethod
    def render_footer(details: CompanyDetails, signatory: Signatory) -> str:
        company = details.company_name or UNDERSCORE_NAME
        return (
            '<div id="signature-footer" style="margin-top: 50px;">'
            f'<p>For <strong>{company}</strong></p>'
            '<br/><br/>'
            f'<p><strong>{signatory.name}</strong><br/>{signatory.designation}<br/>DIN: {signatory.din}</p>'
            '</div>'
        )
