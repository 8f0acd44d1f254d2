"""
Placeholder Substitution Engine

Merges bound values into template draft text. A placeholder is written
``{{Name}}`` and matched literally and case-sensitively.

Binding precedence:
    1. custom fields of the item (its template's field labels)
    2. system variables derived from CompanyDetails

Resolved values are wrapped in ``<strong>`` so user-supplied data stands
out from boilerplate. Missing or empty values render as ``[Name]``.

Example:
    >>> PlaceholderEngine.merge(
    ...     "RESOLVED THAT {{Amount}} be paid to {{Payee}}.",
    ...     [{'Amount': '₹50,000', 'Payee': ''}],
    ... )
    'RESOLVED THAT <strong>₹50,000</strong> be paid to <strong>[Payee]</strong>.'
"""

import logging
import re
from typing import Dict, List, Optional, Sequence

from .types import CompanyDetails, ResolutionItemData

logger = logging.getLogger(__name__)

# Type alias for one binding class (token name -> value)
Bindings = Dict[str, Optional[str]]

DYNAMIC_SIGNATORY_TOKEN = 'DYNAMIC_SIGNATORY_BOXES'
SIGNATORY_NAMES_FIELD = 'Signatory Names (Comma Separated)'
SIGNATORY_DESIGNATIONS_FIELD = 'Signatory Designations (Comma Separated)'

# System variable token -> CompanyDetails attribute
SYSTEM_VARIABLES: Dict[str, str] = {
    'Company_Name': 'company_name',
    'Company_Address': 'address',
    'Company_Email': 'company_email',
    'CIN': 'cin',
    'Chairman_Name': 'chairman_name',
    'Chairman_DIN': 'chairman_din',
    'Meeting_Date': 'meeting_date',
    'Meeting_Time': 'meeting_time',
    'Meeting_Place': 'meeting_place',
    'Meeting_Type': 'meeting_type',
    'Financial_Year': 'financial_year',
    'Directors_Present': 'directors_present',
}

SIGNATORY_BOX_TEMPLATE = (
    '<div style="border: 2px solid #000; padding: 15px; margin-bottom: 20px; page-break-inside: avoid;">'
    '<p style="margin: 0 0 10px 0;">Name: <strong>{name}</strong></p>'
    '<p style="margin: 0 0 10px 0;">Designation: <strong>{designation}</strong></p>'
    '<p style="margin: 0 0 5px 0;">Specimen Signature:</p>'
    '<p style="margin: 10px 0;">1. __________________________</p>'
    '<p style="margin: 10px 0;">2. __________________________</p>'
    '<p style="margin: 10px 0;">3. __________________________</p>'
    '</div>'
)


def signatory_boxes(names: Optional[str], designations: Optional[str]) -> str:
    """
    Fan comma-separated names out into one signature block per name.

    Designations pair with names by position; a name with no matching
    designation gets an empty one. Blank names are dropped.
    """
    name_list = (names or '').split(',')
    designation_list = (designations or '').split(',')

    boxes = []
    for idx, name in enumerate(name_list):
        if not name.strip():
            continue
        designation = designation_list[idx].strip() if idx < len(designation_list) else ''
        boxes.append(SIGNATORY_BOX_TEMPLATE.format(name=name.strip(), designation=designation))

    return ''.join(boxes)


class PlaceholderEngine:
    """
    Resolves ``{{Name}}`` tokens against ordered binding maps.

    The source text is scanned once, left to right. Each token is looked up
    in the binding maps in order and the first map that binds the name wins,
    even if its value is empty. Replacement text is never re-scanned, so a
    value that happens to contain ``{{...}}`` is emitted as-is.
    """

    TOKEN_PATTERN = re.compile(r'\{\{([^{}]+?)\}\}')

    @classmethod
    def merge(cls, text: str, bindings: Sequence[Bindings]) -> str:
        """
        Substitute every token in ``text``.

        Args:
            text: Draft text containing ``{{Name}}`` tokens
            bindings: Binding maps in precedence order (custom, then system)

        Returns:
            Merged text. Unbound or empty tokens become ``<strong>[Name]</strong>``.
        """
        if not text:
            return ''

        def replace(match: re.Match) -> str:
            name = match.group(1)

            if name == DYNAMIC_SIGNATORY_TOKEN:
                return signatory_boxes(
                    cls.lookup(SIGNATORY_NAMES_FIELD, bindings),
                    cls.lookup(SIGNATORY_DESIGNATIONS_FIELD, bindings),
                )

            value = cls.lookup(name, bindings)
            if not value:
                return f"<strong>[{name}]</strong>"
            return f"<strong>{value}</strong>"

        return cls.TOKEN_PATTERN.sub(replace, text)

    @classmethod
    def lookup(cls, name: str, bindings: Sequence[Bindings]) -> Optional[str]:
        """Value of ``name`` from the first binding map that binds it."""
        for binding in bindings:
            if name in binding:
                value = binding[name]
                return None if value is None else str(value)
        return None

    @classmethod
    def custom_bindings(cls, item: ResolutionItemData) -> Bindings:
        """
        Bindings for an item's own fields.

        Every field label captured on the item is bound (to an empty string
        when the user left it blank), plus any stray entered values.
        """
        bindings: Bindings = {label: '' for label in item.field_labels}
        bindings.update(item.custom_values)
        return bindings

    @classmethod
    def system_bindings(cls, details: CompanyDetails) -> Bindings:
        """Bindings for the fixed system variables."""
        bindings: Bindings = {}
        for token, attr in SYSTEM_VARIABLES.items():
            value = getattr(details, attr, None)
            if hasattr(value, 'value'):
                value = value.value
            bindings[token] = value or ''
        return bindings

    @classmethod
    def merge_item(cls, item: ResolutionItemData, details: CompanyDetails) -> str:
        """Merge one resolution item: its custom fields first, then system variables."""
        return cls.merge(item.draft_text, [cls.custom_bindings(item), cls.system_bindings(details)])

    @classmethod
    def extract_placeholders(cls, text: str) -> List[str]:
        """Token names in ``text`` in first-appearance order, without duplicates."""
        seen: List[str] = []
        for name in cls.TOKEN_PATTERN.findall(text or ''):
            if name not in seen:
                seen.append(name)
        return seen

    @classmethod
    def unbound_placeholders(cls, text: str, bindings: Sequence[Bindings]) -> List[str]:
        """Token names in ``text`` that no binding map resolves to a non-empty value."""
        return [
            name for name in cls.extract_placeholders(text)
            if name != DYNAMIC_SIGNATORY_TOKEN and not cls.lookup(name, bindings)
        ]


def append_token(text: str, label: str) -> str:
    """Template builder "insert field": append `` {{Label}}`` to the draft."""
    return f"{text or ''} {{{{{label}}}}}"
