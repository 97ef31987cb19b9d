import pytest

from grants_index import GrantIndex, parse_district


@pytest.mark.parametrize('value, expected', [
    ('08', 8), ('8', 8), (8, 8), ('8.0', 8), (' 011 ', 11), ('08abc', 8),
])
def test_parse_district(value, expected):
    assert parse_district(value) == expected


@pytest.mark.parametrize('value', [None, '', 'VA-08', True])
def test_parse_district_rejects(value):
    with pytest.raises(ValueError):
        parse_district(value)


def test_query_matches_state_district_year(index):
    rows = index.query('VA', '8', '2024', 'All')
    assert [r['grant_num'] for r in rows] == ['G-1', 'G-2', 'G-5']


def test_query_leading_zero_invariant(index):
    assert index.query('VA', '08', '2024', 'All') == index.query('VA', '8', '2024', 'All')


def test_all_is_superset_of_each_funding_type(index):
    everything = index.query('VA', 8, '2024', 'All')
    for funding_type in index.funding_types()[1:]:
        subset = index.query('VA', 8, '2024', funding_type)
        assert all(row in everything for row in subset)
        assert all(row['funding_type_nm'] == funding_type for row in subset)


def test_query_by_funding_type(index):
    rows = index.query('VA', 8, '2024', 'Extension')
    assert [r['grantee_nm'] for r in rows] == ['Beta College']


def test_fiscal_year_compared_as_text(index):
    assert index.query('VA', 8, 2023, 'All') == index.query('VA', 8, '2023', 'All')


def test_no_match_is_empty(index):
    assert index.query('MD', 8, '2024', 'All') == []
    assert index.query('VA', 8, '1999', 'All') == []
    assert index.query('VA', 'not-a-district', '2024', 'All') == []


def test_missing_values_come_back_as_none(index):
    row = index.query('VA', 8, '2024', 'Extension')[0]
    assert row['award_end_dt'] is None
    assert row['program_area_nm'] is None
    assert row['district'] == 8
    assert row['award_amt'] == 2500.5


def test_from_csv_strips_leading_zeros(tmp_path):
    path = tmp_path / 'grants.csv'
    path.write_text(
        'state_cd,district,award_fy,funding_type_nm,grantee_nm,grant_num,award_amt\n'
        'VA,08,2024,Research,Acme U,0012,1000000\n'
        'VA,11,2024,Research,Other,0013,5\n'
    )
    index = GrantIndex.from_csv(path)
    rows = index.query('VA', '8', '2024', 'Research')
    assert len(rows) == 1
    assert rows[0]['grant_num'] == '0012'
    assert rows[0]['accession_num'] is None


def test_grantee_summary(index):
    summary = index.grantee_summary('VA', '08', '2024')
    assert summary == [
        {'grantee_nm': 'Acme U', 'award_count': 2, 'total_award': 1020000.0},
        {'grantee_nm': 'Beta College', 'award_count': 1, 'total_award': 2500.5},
    ]
    assert index.grantee_summary('VA', 8, '1999') == []


def test_scope_options(index):
    assert index.fiscal_years() == ['2023', '2024']
    assert index.funding_types() == ['All', 'Extension', 'Research']


def test_empty_index():
    index = GrantIndex([])
    assert len(index) == 0
    assert index.query('VA', 8, '2024', 'All') == []
    assert index.funding_types() == ['All']
