"""
Drafting Workflow

State machine behind the multi-step drafting wizard. Which steps apply
depends on two independent choices: the document category and, for
incorporation documents, the sub-type.

    full path (INCORPORATION / GENERAL)
        category -> entity info -> template library -> header -> fields -> preview
    board resolution
        category -> entity info -> template library -> fields -> preview
    simplified (RESIGNATION, DIR2, INC_NOC, SPECIMEN_SIGNATURE)
        category -> entity info -> fields -> preview

Forward and backward navigation both walk the same list of visible
steps, so stepping back from the first step after a skip always lands on
the last step before it.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence

from .assembler import DocumentAssembler
from .exceptions import WorkflowError
from .types import (
    ClientProfile,
    CompanyDetails,
    DocCategory,
    DocSubType,
    HeaderFooterConfig,
    MergedDocument,
    ResolutionItemData,
    ResolutionRecord,
    TemplateRecord,
    is_simplified,
    new_id,
)

logger = logging.getLogger(__name__)


class WizardStep(IntEnum):
    CATEGORY = 0
    ENTITY_INFO = 1
    TEMPLATE_LIBRARY = 2
    HEADER_CONFIG = 3
    FIELD_ENTRY = 4
    PREVIEW = 5


STEP_TITLES = {
    WizardStep.CATEGORY: 'Document Selection',
    WizardStep.ENTITY_INFO: 'Entity Information',
    WizardStep.TEMPLATE_LIBRARY: 'Template Library',
    WizardStep.HEADER_CONFIG: 'Statutory Header',
    WizardStep.FIELD_ENTRY: 'Data Variable Entry',
    WizardStep.PREVIEW: 'Legal Finalization & Edit',
}

# Categories offered by the wizard; NOC is a template category only
WIZARD_CATEGORIES = (
    DocCategory.RESOLUTION,
    DocCategory.INCORPORATION,
    DocCategory.RESIGNATION,
    DocCategory.DIR2,
)

# Single-purpose sub-types are auto-attached by template name
WELL_KNOWN_TEMPLATES = {
    DocSubType.INC_NOC: 'Standard NOC Template',
    DocSubType.SPECIMEN_SIGNATURE: 'Specimen Signature Card',
}


@dataclass
class DraftingWorkflow:
    """
    In-progress draft plus the wizard position.

    One instance lives per user session; it is serialized with ``to_dict``
    between requests.
    """
    step: WizardStep = WizardStep.CATEGORY
    category: Optional[DocCategory] = None
    sub_type: Optional[DocSubType] = None
    company_details: CompanyDetails = field(default_factory=CompanyDetails)
    items: List[ResolutionItemData] = field(default_factory=list)
    header_footer: HeaderFooterConfig = field(default_factory=HeaderFooterConfig)
    edited_content: str = ''
    source_resolution_id: Optional[str] = None
    client_id: Optional[str] = None

    # ------------------------------------------------------------------
    # Step sequencing
    # ------------------------------------------------------------------

    @property
    def is_simplified(self) -> bool:
        return is_simplified(self.category, self.sub_type)

    @property
    def is_editing_existing(self) -> bool:
        """True when the draft was opened from a saved document."""
        return self.source_resolution_id is not None

    def skipped_steps(self) -> frozenset:
        if self.is_simplified:
            return frozenset({WizardStep.TEMPLATE_LIBRARY, WizardStep.HEADER_CONFIG})
        if self.category == DocCategory.RESOLUTION:
            return frozenset({WizardStep.HEADER_CONFIG})
        return frozenset()

    def visible_steps(self) -> List[WizardStep]:
        """Steps shown in the progress bar, in order."""
        skipped = self.skipped_steps()
        return [step for step in WizardStep if step not in skipped]

    @property
    def title(self) -> str:
        if self.step == WizardStep.TEMPLATE_LIBRARY and self.category:
            return f"{self.category.value.capitalize()} Library"
        return STEP_TITLES[self.step]

    def can_advance(self) -> bool:
        if self.step == WizardStep.PREVIEW:
            return False
        if self.step == WizardStep.CATEGORY:
            if self.category is None:
                return False
            if self.category == DocCategory.INCORPORATION and self.sub_type is None:
                return False
        return True

    def next(self, templates: Sequence[TemplateRecord] = ()) -> WizardStep:
        """
        Advance to the next visible step.

        Leaving entity info on the simplified path attaches the document's
        well-known template when no item has been chosen yet.

        Raises:
            WorkflowError: if the current step is incomplete or final
        """
        if not self.can_advance():
            raise WorkflowError(f"Cannot continue from step '{STEP_TITLES[self.step]}'", step=int(self.step))

        if self.is_simplified and self.step == WizardStep.ENTITY_INFO and not self.items:
            self.attach_default_template(templates)

        following = [s for s in self.visible_steps() if s > self.step]
        self._move_to(following[0])
        return self.step

    def back(self) -> WizardStep:
        """Return to the previous visible step. No-op on the first step."""
        preceding = [s for s in self.visible_steps() if s < self.step]
        if preceding:
            self._move_to(preceding[-1])
        return self.step

    def _move_to(self, step: WizardStep) -> None:
        logger.debug(f"Wizard step {self.step.name} -> {step.name}")
        self.step = step
        if step == WizardStep.PREVIEW and not self.is_editing_existing:
            self.edited_content = self.assemble().html

    # ------------------------------------------------------------------
    # Category selection
    # ------------------------------------------------------------------

    def select_category(self, category: DocCategory) -> None:
        """
        Choose the document category.

        Everything but INCORPORATION moves straight to entity info;
        INCORPORATION waits for a sub-type. Changing category drops items
        chosen for the previous one.
        """
        if category not in WIZARD_CATEGORIES:
            raise WorkflowError(f"Category {category.value} cannot be drafted from the wizard", step=int(self.step))

        if category != self.category:
            self.items = []
            self.sub_type = None
        self.category = category

        if category != DocCategory.INCORPORATION:
            self.sub_type = None
            self.step = WizardStep.ENTITY_INFO

    def select_sub_type(self, sub_type: DocSubType) -> None:
        if self.category != DocCategory.INCORPORATION:
            raise WorkflowError("Sub-types apply to incorporation documents only", step=int(self.step))
        if sub_type != self.sub_type:
            self.items = []
        self.sub_type = sub_type
        self.step = WizardStep.ENTITY_INFO

    def reset_category(self) -> None:
        """Go back to the category picker with nothing selected."""
        self.category = None
        self.sub_type = None
        self.items = []
        self.step = WizardStep.CATEGORY

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def attach_default_template(self, templates: Sequence[TemplateRecord]) -> Optional[ResolutionItemData]:
        """
        Attach the single template a simplified document is built from.

        Incorporation sub-types match by fixed template name; resignation and
        DIR-2 take the first active template of their category. System
        templates are preferred over user templates.
        """
        candidates = [t for t in templates if t.is_active]
        candidates.sort(key=lambda t: not t.is_system_template)

        name = WELL_KNOWN_TEMPLATES.get(self.sub_type)
        if name:
            template = next((t for t in candidates if t.name == name), None)
        else:
            template = next((t for t in candidates if t.category == self.category), None)

        if template is None:
            logger.warning(
                f"No default template for category={self.category and self.category.value} "
                f"sub_type={self.sub_type and self.sub_type.value}"
            )
            return None

        return self.add_item(template)

    def add_item(self, template: TemplateRecord) -> ResolutionItemData:
        """Snapshot a template into a new resolution item."""
        item = ResolutionItemData.from_template(template)
        self.items.append(item)
        return item

    def remove_item(self, item_id: str) -> None:
        self.items = [i for i in self.items if i.id != item_id]

    def get_item(self, item_id: str) -> Optional[ResolutionItemData]:
        return next((i for i in self.items if i.id == item_id), None)

    def set_value(self, item_id: str, label: str, value: str) -> None:
        item = self.get_item(item_id)
        if item is None:
            raise WorkflowError(f"Unknown item: {item_id}", step=int(self.step))
        item.custom_values[label] = value

    # ------------------------------------------------------------------
    # Entity and header data
    # ------------------------------------------------------------------

    def update_company(self, **changes: Any) -> None:
        merged = self.company_details.to_dict()
        merged.update(changes)
        self.company_details = CompanyDetails.from_dict(merged)

    def update_header(self, **changes: Any) -> None:
        merged = self.header_footer.to_dict()
        merged.update(changes)
        self.header_footer = HeaderFooterConfig.from_dict(merged)

    def load_client(self, profile: ClientProfile) -> None:
        """Pre-fill company details and the signatory from a client profile."""
        self.client_id = profile.id
        self.update_company(
            cin=profile.cin,
            company_name=profile.company_name,
            address=profile.address,
            company_email=profile.company_email,
            directors_present=', '.join(d.name for d in profile.directors),
        )
        self.update_header(
            header_title=profile.company_name,
            header_subtitle=profile.address,
            signatory_name=profile.directors[0].name if profile.directors else '',
        )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def assemble(self) -> MergedDocument:
        return DocumentAssembler.assemble(
            self.company_details,
            self.items,
            self.header_footer,
            self.category or DocCategory.RESOLUTION,
            self.sub_type,
        )

    def commit(self, user_id: str, edited_html: Optional[str] = None) -> ResolutionRecord:
        """
        Build the record to persist.

        The final content is the edited preview HTML exactly as given; it is
        never re-assembled from ``items``.
        """
        if self.step != WizardStep.PREVIEW:
            raise WorkflowError("Documents can only be saved from the preview step", step=int(self.step))

        final_content = edited_html if edited_html is not None else self.edited_content
        self.edited_content = final_content

        return ResolutionRecord(
            id=new_id(),
            user_id=user_id,
            client_id=self.client_id,
            company_details=copy.deepcopy(self.company_details),
            items=copy.deepcopy(self.items),
            header_footer=copy.deepcopy(self.header_footer),
            final_content=final_content,
            doc_type=self.category or DocCategory.RESOLUTION,
            sub_type=self.sub_type,
        )

    @classmethod
    def from_resolution(cls, record: ResolutionRecord) -> 'DraftingWorkflow':
        """Open a saved document directly at the preview step."""
        return cls(
            step=WizardStep.PREVIEW,
            category=record.doc_type,
            sub_type=record.sub_type,
            company_details=copy.deepcopy(record.company_details),
            items=copy.deepcopy(record.items),
            header_footer=copy.deepcopy(record.header_footer),
            edited_content=record.final_content,
            source_resolution_id=record.id,
            client_id=record.client_id,
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'step': int(self.step),
            'category': self.category.value if self.category else None,
            'sub_type': self.sub_type.value if self.sub_type else None,
            'company_details': self.company_details.to_dict(),
            'items': [i.to_dict() for i in self.items],
            'header_footer': self.header_footer.to_dict(),
            'edited_content': self.edited_content,
            'source_resolution_id': self.source_resolution_id,
            'client_id': self.client_id,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'DraftingWorkflow':
        if not data:
            return cls()
        return cls(
            step=WizardStep(data.get('step', 0)),
            category=DocCategory(data['category']) if data.get('category') else None,
            sub_type=DocSubType(data['sub_type']) if data.get('sub_type') else None,
            company_details=CompanyDetails.from_dict(data.get('company_details')),
            items=[ResolutionItemData.from_dict(i) for i in data.get('items') or []],
            header_footer=HeaderFooterConfig.from_dict(data.get('header_footer')),
            edited_content=data.get('edited_content') or '',
            source_resolution_id=data.get('source_resolution_id'),
            client_id=data.get('client_id'),
        )
