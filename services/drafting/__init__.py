"""
Template Merge & Document Assembly Engine

Plain-Python core of the drafting workspace. Templates hold draft text with
``{{Name}}`` placeholders; the wizard collects company details and field
values, the assembler merges them and wraps the result in letterhead and
signature blocks, and the finished HTML is saved and synced to the client
master.

Usage:
    from services.drafting import DraftingWorkflow, DocCategory, save_resolution

    workflow = DraftingWorkflow()
    workflow.select_category(DocCategory.RESOLUTION)
    workflow.update_company(company_name='Acme Pvt Ltd', cin='U12345MH2020PTC000001')
    workflow.next()                      # -> template library
    workflow.add_item(template)
    workflow.next()                      # -> field entry
    workflow.next()                      # -> preview, document assembled
    record = workflow.commit(session.user_id, edited_html)
    save_resolution(store, record)
"""

from .types import (
    DocCategory,
    DocSubType,
    MeetingType,
    CustomFieldType,
    UserRole,
    CompanyDetails,
    CustomField,
    TemplateRecord,
    ResolutionItemData,
    HeaderFooterConfig,
    ResolutionRecord,
    DirectorInfo,
    ClientProfile,
    PartialClientProfile,
    FromMeeting,
    FromProfileForm,
    ClientUpsertInput,
    MergedDocument,
    UserRecord,
    is_simplified,
    new_id,
)

from .exceptions import (
    DraftingError,
    ConfigurationError,
    ValidationError,
    WorkflowError,
    StoreError,
    ClientSyncError,
)

from .substitution import PlaceholderEngine, SYSTEM_VARIABLES
from .assembler import DocumentAssembler, resolve_signatory
from .workflow import DraftingWorkflow, WizardStep
from .client_sync import to_client_profile, upsert_client_profile, save_resolution
from .loader import SystemTemplateLoader, check_labels
from .session import WorkspaceSession

__all__ = [
    # Types
    'DocCategory',
    'DocSubType',
    'MeetingType',
    'CustomFieldType',
    'UserRole',
    'CompanyDetails',
    'CustomField',
    'TemplateRecord',
    'ResolutionItemData',
    'HeaderFooterConfig',
    'ResolutionRecord',
    'DirectorInfo',
    'ClientProfile',
    'PartialClientProfile',
    'FromMeeting',
    'FromProfileForm',
    'ClientUpsertInput',
    'MergedDocument',
    'UserRecord',
    'is_simplified',
    'new_id',

    # Exceptions
    'DraftingError',
    'ConfigurationError',
    'ValidationError',
    'WorkflowError',
    'StoreError',
    'ClientSyncError',

    # Services
    'PlaceholderEngine',
    'SYSTEM_VARIABLES',
    'DocumentAssembler',
    'resolve_signatory',
    'DraftingWorkflow',
    'WizardStep',
    'to_client_profile',
    'upsert_client_profile',
    'save_resolution',
    'SystemTemplateLoader',
    'check_labels',
    'WorkspaceSession',
]
