"""
Client roster CSV import and export tests.

Run with: python -m pytest tests/test_client_import.py -v
"""

import csv
from io import StringIO

from services.client_import import (
    CSV_HEADERS,
    export_clients_csv,
    format_directors,
    import_clients,
    parse_client_csv,
    parse_directors,
    sample_csv,
)
from services.drafting import ClientProfile, DirectorInfo

ROSTER = (
    'Company Name,CIN,Address,Email,"Directors (Format: Name1:DIN1, Name2:DIN2)"\n'
    'Acme Private Limited,U12345MH2020PTC000001,12 Marine Drive,cs@acmeltd.in,"Ravi Kumar:01234567, Anita Shah"\n'
    'No CIN Ltd,,Somewhere,,\n'
    ',,,,\n'
    'Beta Ltd,U99999DL2021PTC111111,,,\n'
)


class TestDirectors:

    def test_parse_pairs(self):
        assert parse_directors('Ravi Kumar:01234567, Anita Shah') == [
            DirectorInfo('Ravi Kumar', '01234567'),
            DirectorInfo('Anita Shah', ''),
        ]

    def test_parse_blank(self):
        assert parse_directors('') == []
        assert parse_directors(' , ') == []

    def test_format(self):
        assert format_directors([DirectorInfo('Ravi Kumar', '01234567'), DirectorInfo('Anita Shah')]) == \
            'Ravi Kumar:01234567, Anita Shah'


class TestParseClientCsv:

    def test_rows_numbered_from_two(self):
        rows = parse_client_csv(ROSTER)
        assert [row_num for row_num, _ in rows] == [2, 3, 5]

    def test_invalid_rows_marked(self):
        rows = dict(parse_client_csv(ROSTER))
        assert rows[3] is None
        assert rows[2].company_name == 'Acme Private Limited'
        assert rows[2].directors[0] == DirectorInfo('Ravi Kumar', '01234567')
        assert rows[5].address == ''

    def test_lowercase_aliases(self):
        rows = parse_client_csv('companyName,cin,email\nGamma LLP,AAB1234,info@gammallp.in\n')
        profile = rows[0][1]
        assert profile.company_name == 'Gamma LLP'
        assert profile.cin == 'AAB1234'
        assert profile.company_email == 'info@gammallp.in'


class TestImportClients:

    def test_imports_valid_rows(self, fake_store):
        result = import_clients(fake_store, ROSTER)

        assert result.imported_count == 2
        assert result.skipped_rows == [3]
        assert len(fake_store.get('clients')) == 2

    def test_reimport_overwrites_by_cin(self, fake_store):
        import_clients(fake_store, ROSTER)
        import_clients(fake_store, ROSTER.replace('12 Marine Drive', '1 Nariman Point'))

        clients = fake_store.get('clients')
        assert len(clients) == 2
        acme = fake_store.find_client_by_cin('U12345MH2020PTC000001')
        assert acme.address == '1 Nariman Point'

    def test_sample_file_imports(self, fake_store):
        result = import_clients(fake_store, sample_csv())
        assert result.imported_count == 1
        assert result.skipped_rows == []


class TestExport:

    def test_export_round_trips_through_import(self):
        client = ClientProfile(
            id='c1',
            cin='U12345MH2020PTC000001',
            company_name='Acme Private Limited',
            address='12 Marine Drive, Mumbai',
            directors=[DirectorInfo('Ravi Kumar', '01234567')],
        )
        content = export_clients_csv([client])

        rows = list(csv.reader(StringIO(content)))
        assert rows[0] == CSV_HEADERS
        assert rows[1][4] == 'Ravi Kumar:01234567'

        profile = parse_client_csv(content)[0][1]
        assert profile.address == '12 Marine Drive, Mumbai'
