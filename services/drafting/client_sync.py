"""
Client auto-sync.

Every saved document also refreshes the client master: the company
details on the document are upserted as a client profile keyed by CIN.
Profiles entered by hand or imported from CSV go through the same upsert.
"""

import logging
from typing import List

from .exceptions import ClientSyncError, StoreError
from .types import (
    ClientProfile,
    ClientUpsertInput,
    DirectorInfo,
    FromMeeting,
    FromProfileForm,
    ResolutionRecord,
    new_id,
)

logger = logging.getLogger(__name__)


def directors_from_text(text: str) -> List[DirectorInfo]:
    """
    Split a comma-separated directors list.

    Names only; DINs are not captured on the meeting form.
    """
    return [DirectorInfo(name=name.strip(), din='') for name in (text or '').split(',') if name.strip()]


def to_client_profile(data: ClientUpsertInput) -> ClientProfile:
    """Adapt either upsert input to a canonical profile with a fresh id."""
    if isinstance(data, FromMeeting):
        details = data.details
        return ClientProfile(
            id=new_id(),
            cin=(details.cin or '').strip(),
            company_name=details.company_name,
            address=details.address,
            company_email=details.company_email,
            directors=directors_from_text(details.directors_present),
        )

    if isinstance(data, FromProfileForm):
        profile = data.profile
        return ClientProfile(
            id=new_id(),
            cin=(profile.cin or '').strip(),
            company_name=profile.company_name,
            address=profile.address,
            company_email=profile.company_email,
            directors=list(profile.directors),
        )

    raise TypeError(f"Unsupported client upsert input: {type(data).__name__}")


def upsert_client_profile(store, data: ClientUpsertInput) -> ClientProfile:
    """
    Create or overwrite the client profile for the input's CIN.

    An existing profile with the same CIN keeps its id and is replaced
    wholesale; directors are not merged.
    """
    profile = to_client_profile(data)
    existing = store.find_client_by_cin(profile.cin)

    if existing is not None:
        profile.id = existing.id
        logger.info(f"Overwriting client profile for CIN {profile.cin!r} ({existing.company_name})")
    else:
        logger.info(f"Creating client profile for CIN {profile.cin!r}")

    return store.put('clients', profile)


def save_resolution(store, record: ResolutionRecord) -> ResolutionRecord:
    """
    Persist a finalized document, then sync its company to the client master.

    The two writes are independent. A failure of the first raises
    StoreError and nothing is saved; a failure of the second raises
    ClientSyncError carrying the already saved document.
    """
    saved = store.put('resolutions', record)
    logger.info(f"Saved {saved.doc_type.value} document {saved.id} for {saved.company_details.company_name!r}")

    try:
        upsert_client_profile(store, FromMeeting(saved.company_details))
    except StoreError as e:
        logger.warning(f"Document {saved.id} saved but client sync failed: {e}")
        raise ClientSyncError(f"Client master not updated: {e}", record=saved) from e
    return saved
