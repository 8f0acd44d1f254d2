"""
Drafting System Type Definitions

Dataclasses for the records the merge engine, the assembler and the
wizard pass around. Persisted copies live in the SQLAlchemy models;
these are the plain-Python shapes the engine works with, round-tripped
through ``to_dict`` / ``from_dict`` for JSON columns and session state.
"""

import uuid
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Dict, Any, Union


def new_id() -> str:
    """Random unique identifier for new entities."""
    return str(uuid.uuid4())


class DocCategory(Enum):
    """Document categories. NOC exists only as a template category."""
    RESOLUTION = "RESOLUTION"
    NOC = "NOC"
    INCORPORATION = "INCORPORATION"
    RESIGNATION = "RESIGNATION"
    DIR2 = "DIR2"


class DocSubType(Enum):
    """Incorporation sub-types."""
    SPECIMEN_SIGNATURE = "SPECIMEN_SIGNATURE"
    INC_NOC = "INC_NOC"
    GENERAL = "GENERAL"


class MeetingType(Enum):
    BOARD = "Board Meeting"
    EGM = "Extraordinary General Meeting"
    AGM = "Annual General Meeting"
    COMMITTEE = "Committee Meeting"


class CustomFieldType(Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    CURRENCY = "currency"
    TEXTAREA = "textarea"


class UserRole(Enum):
    ADMIN = "ADMIN"
    USER = "USER"


# Categories that render without letterhead and signature footer
SIMPLIFIED_CATEGORIES = frozenset({DocCategory.RESIGNATION, DocCategory.DIR2})
SIMPLIFIED_SUB_TYPES = frozenset({DocSubType.INC_NOC, DocSubType.SPECIMEN_SIGNATURE})


def is_simplified(category: Optional[DocCategory], sub_type: Optional[DocSubType]) -> bool:
    """True for single-purpose documents that skip the library and header steps."""
    return category in SIMPLIFIED_CATEGORIES or sub_type in SIMPLIFIED_SUB_TYPES


def _enum_or_none(enum_cls, value):
    if value is None or value == '':
        return None
    if isinstance(value, enum_cls):
        return value
    return enum_cls(value)


def _default_financial_year() -> str:
    year = date.today().year
    return f"{year}-{year + 1}"


@dataclass
class CompanyDetails:
    """
    Identifying and meeting metadata for the entity a document is issued for.

    ``cin`` is the corporate identifier and the natural key for client
    de-duplication.
    """
    cin: str = ''
    company_name: str = ''
    address: str = ''
    company_email: str = ''
    meeting_date: str = field(default_factory=lambda: date.today().isoformat())
    meeting_time: str = '11:00'
    meeting_place: str = 'Registered Office'
    financial_year: str = field(default_factory=_default_financial_year)
    meeting_type: MeetingType = MeetingType.BOARD
    chairman_name: str = ''
    chairman_din: str = ''
    directors_present: str = ''
    quorum_present: bool = True

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['meeting_type'] = self.meeting_type.value
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'CompanyDetails':
        data = dict(data or {})
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        known['meeting_type'] = _enum_or_none(MeetingType, known.get('meeting_type')) or MeetingType.BOARD
        return cls(**known)


@dataclass
class CustomField:
    """
    A named, typed variable slot on a template.

    ``label`` doubles as the placeholder token name: a field labelled
    ``Payee`` is referenced in draft text as ``{{Payee}}``.
    """
    id: str
    label: str
    type: CustomFieldType = CustomFieldType.TEXT
    required: bool = True
    value: Optional[str] = None

    @property
    def token(self) -> str:
        return f"{{{{{self.label}}}}}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'label': self.label,
            'type': self.type.value,
            'required': self.required,
            'value': self.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CustomField':
        return cls(
            id=data.get('id') or new_id(),
            label=data['label'],
            type=_enum_or_none(CustomFieldType, data.get('type')) or CustomFieldType.TEXT,
            required=bool(data.get('required', True)),
            value=data.get('value'),
        )


@dataclass
class TemplateRecord:
    """A reusable draft. Created and deleted, never edited in place."""
    id: str
    name: str
    category: DocCategory
    draft_text: str
    fields: List[CustomField] = field(default_factory=list)
    user_id: Optional[str] = None
    is_system_template: bool = False
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def labels(self) -> List[str]:
        return [f.label for f in self.fields]

    @property
    def is_mergeable(self) -> bool:
        """A template can be merged once it has draft text; fields are optional."""
        return bool(self.draft_text and self.draft_text.strip())


@dataclass
class ResolutionItemData:
    """
    One instantiated use of a template inside a document.

    ``template_name``, ``draft_text`` and ``fields`` are snapshots taken when
    the item was added, so the item stays self-contained if its template is
    deleted later.
    """
    id: str
    template_name: str
    draft_text: str
    template_id: Optional[str] = None
    custom_values: Dict[str, str] = field(default_factory=dict)
    fields: List[CustomField] = field(default_factory=list)

    @property
    def field_labels(self) -> List[str]:
        return [f.label for f in self.fields]

    @classmethod
    def from_template(cls, template: TemplateRecord) -> 'ResolutionItemData':
        return cls(
            id=new_id(),
            template_id=template.id,
            template_name=template.name,
            draft_text=template.draft_text,
            custom_values={f.label: f.value for f in template.fields if f.value},
            fields=[CustomField.from_dict(f.to_dict()) for f in template.fields],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'template_id': self.template_id,
            'template_name': self.template_name,
            'draft_text': self.draft_text,
            'custom_values': dict(self.custom_values),
            'fields': [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResolutionItemData':
        return cls(
            id=data.get('id') or new_id(),
            template_id=data.get('template_id'),
            template_name=data.get('template_name', ''),
            draft_text=data.get('draft_text') or '',
            custom_values={k: ('' if v is None else str(v)) for k, v in (data.get('custom_values') or {}).items()},
            fields=[CustomField.from_dict(f) for f in data.get('fields') or []],
        )


@dataclass
class HeaderFooterConfig:
    """Letterhead and signatory overrides. Blank values fall back to CompanyDetails."""
    show_header: bool = True
    header_title: str = ''
    header_subtitle: str = ''
    signatory_name: str = ''
    signatory_designation: str = 'Director'
    signatory_din: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'HeaderFooterConfig':
        data = data or {}
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class ResolutionRecord:
    """
    A finalized document.

    ``final_content`` is the document of record. It may have been edited by
    hand after merging, so re-assembling ``items`` need not reproduce it.
    """
    id: str
    user_id: str
    company_details: CompanyDetails
    items: List[ResolutionItemData]
    header_footer: HeaderFooterConfig
    final_content: str
    doc_type: DocCategory
    sub_type: Optional[DocSubType] = None
    client_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class DirectorInfo:
    name: str
    din: str = ''


@dataclass
class ClientProfile:
    """Upserted summary of a company, keyed by CIN."""
    id: str
    cin: str
    company_name: str
    address: str = ''
    company_email: str = ''
    directors: List[DirectorInfo] = field(default_factory=list)
    updated_at: Optional[datetime] = None


@dataclass
class PartialClientProfile:
    """Client data as entered on the profile form or a CSV row."""
    cin: str
    company_name: str
    address: str = ''
    company_email: str = ''
    directors: List[DirectorInfo] = field(default_factory=list)


@dataclass(frozen=True)
class FromMeeting:
    """Client upsert input derived from a drafted document's company details."""
    details: CompanyDetails


@dataclass(frozen=True)
class FromProfileForm:
    """Client upsert input entered directly on the client master."""
    profile: PartialClientProfile


ClientUpsertInput = Union[FromMeeting, FromProfileForm]


@dataclass(frozen=True)
class MergedDocument:
    """Assembled output: one self-contained, inline-styled HTML string."""
    html: str

    def __str__(self) -> str:
        return self.html


@dataclass
class UserRecord:
    """Account fields the admin panel may change. Passwords never travel here."""
    id: str
    email: str
    name: str
    role: UserRole = UserRole.USER
    user_type: str = 'MT'
    is_active: bool = True
    can_create_template: bool = True
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
