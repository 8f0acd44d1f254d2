# utils.py
"""
Utility functions for the drafting workspace.
"""

from datetime import datetime
from typing import Optional

import pytz
from flask import current_app
from flask_login import current_user

from services.drafting import DocCategory, DocSubType, WorkspaceSession
from services.store import Store

DOC_LABELS = {
    DocCategory.RESOLUTION: 'Board Resolution',
    DocCategory.RESIGNATION: 'Resignation Letter',
    DocCategory.DIR2: 'DIR-2 (Consent)',
    DocCategory.NOC: 'NOC Certificate',
}

SUB_TYPE_LABELS = {
    DocSubType.SPECIMEN_SIGNATURE: 'Specimen Signature',
    DocSubType.INC_NOC: 'NOC (Incorporation)',
}

DISPLAY_TIMEZONE = pytz.timezone('Asia/Kolkata')


def doc_label(record) -> str:
    """
    Human label for a saved document.

    The sub-type wins over the category, so an incorporation NOC reads
    "NOC (Incorporation)" rather than "Incorporation".
    """
    if record.sub_type in SUB_TYPE_LABELS:
        return SUB_TYPE_LABELS[record.sub_type]
    return DOC_LABELS.get(record.doc_type, record.doc_type.value.replace('_', ' ').title())


def local_time(value: Optional[datetime]) -> Optional[datetime]:
    """Stored UTC timestamp -> display timezone."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value.astimezone(DISPLAY_TIMEZONE)


def current_workspace() -> WorkspaceSession:
    """Workspace session for the logged-in user of this request."""
    return WorkspaceSession.for_user(current_user.to_record(), current_app.config.get('WORKSPACE_MODE', 'login'))


def get_store() -> Store:
    return Store(current_workspace())
