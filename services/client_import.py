"""
Client roster CSV import and export.

Columns (header row required):

    Company Name, CIN, Address, Email, Directors (Format: Name1:DIN1, Name2:DIN2)

Lowercase aliases (companyName, cin, address, email, directors) are
accepted. Rows missing a company name or CIN are skipped.
"""

import csv
import logging
from dataclasses import dataclass, field
from io import StringIO
from typing import Iterable, List

from services.drafting import (
    ClientProfile,
    DirectorInfo,
    FromProfileForm,
    PartialClientProfile,
    upsert_client_profile,
)

logger = logging.getLogger(__name__)

DIRECTORS_HEADER = 'Directors (Format: Name1:DIN1, Name2:DIN2)'
CSV_HEADERS = ['Company Name', 'CIN', 'Address', 'Email', DIRECTORS_HEADER]

COLUMN_ALIASES = {
    'company_name': ['Company Name', 'companyName'],
    'cin': ['CIN', 'cin'],
    'address': ['Address', 'address'],
    'company_email': ['Email', 'email'],
    'directors': [DIRECTORS_HEADER, 'directors'],
}

SAMPLE_ROW = [
    'Example Private Limited',
    'U12345MH2023PTC123456',
    '123 Business Park, Mumbai',
    'contact@example.com',
    'John Doe:01234567, Jane Smith:08765432',
]


@dataclass
class ImportResult:
    imported: List[ClientProfile] = field(default_factory=list)
    skipped_rows: List[int] = field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.imported)


def parse_directors(raw: str) -> List[DirectorInfo]:
    """'John Doe:01234567, Jane Smith' -> two directors, the second without DIN."""
    directors = []
    for pair in (raw or '').split(','):
        name, _, din = pair.partition(':')
        if name.strip():
            directors.append(DirectorInfo(name=name.strip(), din=din.strip()))
    return directors


def format_directors(directors: Iterable[DirectorInfo]) -> str:
    return ', '.join(f"{d.name}:{d.din}" if d.din else d.name for d in directors)


def _column(row: dict, key: str) -> str:
    for alias in COLUMN_ALIASES[key]:
        value = row.get(alias)
        if value:
            return value.strip()
    return ''


def parse_client_csv(content: str) -> List[tuple]:
    """
    Parse CSV text into (row_number, PartialClientProfile or None) pairs.

    None marks a row that lacks a company name or CIN.
    """
    reader = csv.DictReader(StringIO(content, newline=None))

    rows = []
    for row_num, row in enumerate(reader, start=2):
        if not any((v or '').strip() for v in row.values() if isinstance(v, str)):
            continue
        company_name = _column(row, 'company_name')
        cin = _column(row, 'cin')
        if not company_name or not cin:
            rows.append((row_num, None))
            continue
        rows.append((row_num, PartialClientProfile(
            cin=cin,
            company_name=company_name,
            address=_column(row, 'address'),
            company_email=_column(row, 'company_email'),
            directors=parse_directors(_column(row, 'directors')),
        )))
    return rows


def import_clients(store, content: str) -> ImportResult:
    """Upsert every valid row by CIN."""
    result = ImportResult()
    for row_num, profile in parse_client_csv(content):
        if profile is None:
            result.skipped_rows.append(row_num)
            continue
        result.imported.append(upsert_client_profile(store, FromProfileForm(profile)))

    logger.info(
        f"Client import: {result.imported_count} imported, "
        f"{len(result.skipped_rows)} skipped {result.skipped_rows or ''}"
    )
    return result


def sample_csv() -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADERS)
    writer.writerow(SAMPLE_ROW)
    return output.getvalue()


def export_clients_csv(clients: Iterable[ClientProfile]) -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADERS)
    for client in clients:
        writer.writerow([
            client.company_name,
            client.cin,
            client.address or '',
            client.company_email or '',
            format_directors(client.directors),
        ])
    return output.getvalue()
