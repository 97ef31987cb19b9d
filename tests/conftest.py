import asyncio

import pytest

from grants_index import GrantIndex


def square(lon, lat, size=0.5):
    return [[
        [lon, lat], [lon + size, lat], [lon + size, lat + size],
        [lon, lat + size], [lon, lat],
    ]]


def polygon_feature(props, lon, lat, size=0.5):
    return {
        'type': 'Feature',
        'properties': props,
        'geometry': {'type': 'Polygon', 'coordinates': square(lon, lat, size)},
    }


@pytest.fixture
def state_geojson():
    return {
        'type': 'FeatureCollection',
        'features': [
            polygon_feature({'id': '51', 'name': 'Virginia', 'stateCd': 'VA'}, -80.0, 37.0, 3.0),
            polygon_feature({'id': '48', 'name': 'Texas', 'stateCd': 'TX'}, -103.0, 29.0, 8.0),
        ],
    }


@pytest.fixture
def district_geojson():
    return {
        'type': 'FeatureCollection',
        'features': [
            polygon_feature({'stateCd': 'VA', 'district': '08', 'id': 'VA-08',
                             'name': 'Virginia District 8'}, -77.3, 38.7, 0.3),
            polygon_feature({'stateCd': 'VA', 'district': '11', 'id': 'VA-11'}, -77.6, 38.7, 0.3),
            polygon_feature({'state': 'TX', 'id': '2', 'name': 'Houston'}, -95.5, 29.7, 0.4),
            {
                'type': 'Feature',
                'properties': None,
                'geometry': {'type': 'Polygon', 'coordinates': square(-90.0, 35.0)},
            },
        ],
    }


@pytest.fixture
def grant_records():
    return [
        {'state_cd': 'VA', 'district': 8, 'award_fy': '2024', 'funding_type_nm': 'Research',
         'grantee_nm': 'Acme U', 'grant_num': 'G-1', 'accession_num': 'A-1',
         'award_start_dt': '2024-01-01', 'award_end_dt': '2026-12-31', 'award_amt': 1000000,
         'program_area_cd': 'A1', 'program_area_nm': 'Agriculture', 'proposal_title': 'Soil'},
        {'state_cd': 'VA', 'district': 8, 'award_fy': '2024', 'funding_type_nm': 'Extension',
         'grantee_nm': 'Beta College', 'grant_num': 'G-2', 'accession_num': 'A-2',
         'award_start_dt': '2024-03-01', 'award_end_dt': None, 'award_amt': 2500.5,
         'program_area_cd': 'B2', 'program_area_nm': None, 'proposal_title': 'Outreach'},
        {'state_cd': 'VA', 'district': 8, 'award_fy': '2023', 'funding_type_nm': 'Research',
         'grantee_nm': 'Acme U', 'grant_num': 'G-3', 'accession_num': 'A-3',
         'award_start_dt': '2023-01-01', 'award_end_dt': '2024-12-31', 'award_amt': 75000,
         'program_area_cd': 'A1', 'program_area_nm': 'Agriculture', 'proposal_title': 'Water'},
        {'state_cd': 'VA', 'district': 11, 'award_fy': '2024', 'funding_type_nm': 'Research',
         'grantee_nm': 'Gamma Institute', 'grant_num': 'G-4', 'accession_num': 'A-4',
         'award_start_dt': '2024-06-01', 'award_end_dt': '2025-06-01', 'award_amt': 40000,
         'program_area_cd': 'C3', 'program_area_nm': 'Climate', 'proposal_title': 'Heat'},
        {'state_cd': 'VA', 'district': 8, 'award_fy': '2024', 'funding_type_nm': 'Research',
         'grantee_nm': 'Acme U', 'grant_num': 'G-5', 'accession_num': 'A-5',
         'award_start_dt': '2024-09-01', 'award_end_dt': '2025-09-01', 'award_amt': 20000,
         'program_area_cd': 'A2', 'program_area_nm': 'Forestry', 'proposal_title': 'Trees'},
    ]


@pytest.fixture
def index(grant_records):
    return GrantIndex(grant_records)


class ControlledLoader:
    """Async geometry loader whose calls resolve only when released."""

    def __init__(self, payloads):
        self.payloads = payloads
        self.calls = []

    async def __call__(self, kind):
        gate = asyncio.Event()
        self.calls.append((kind, gate))
        await gate.wait()
        payload = self.payloads[kind]
        if isinstance(payload, Exception):
            raise payload
        return payload

    def release(self, i):
        self.calls[i][1].set()


class InstantLoader:
    def __init__(self, payloads):
        self.payloads = payloads
        self.calls = []

    async def __call__(self, kind):
        self.calls.append(kind)
        payload = self.payloads[kind]
        if isinstance(payload, Exception):
            raise payload
        return payload


async def settle(rounds=5):
    for _ in range(rounds):
        await asyncio.sleep(0)
