"""
Grant District Map - shared settings
Canvas geometry, colours, data sources and drill-down table layout
"""
from pathlib import Path

# Canvas
WIDTH = 960
HEIGHT = 600

# Tooltip box used for viewport clamping (px)
TOOLTIP_WIDTH = 160
TOOLTIP_HEIGHT = 28
TOOLTIP_OFFSET_X = 10
TOOLTIP_OFFSET_Y = -20

# Colours
HIGHLIGHT_COLOR = 'orange'
STROKE_COLOR = '#333'
STATE_FILL = '#ccc'

# District palette (fill picked from a hash of the feature id)
DISTRICT_PALETTE = [
    '#27ae60', '#95a5a6', '#34495e', '#c0392b', '#e67e22',
    '#3498db', '#16a085', '#f15a22', '#2c3e50', '#8e44ad',
    '#9b59b6', '#6c5ce7', '#f39c12', '#1abc9c', '#2ecc71',
    '#e74c3c', '#f1c40f', '#bdc3c7', '#7f8c8d',
]

# Geometry sources
MAP_KINDS = ('state', 'district')
GEOMETRY_URLS = {
    'state': 'https://rcpope.github.io/map-resources/congressional_map.geojson',
    'district': 'https://rcpope.github.io/map-resources/neilson_map.geojson',
}
GEOMETRY_CACHE = {
    'state': Path('data/state_map.json'),
    'district': Path('data/district_map.json'),
}
# Object holding the media-market shapes when the district source is TopoJSON
TOPOLOGY_OBJECT = 'nielsen_dma'

# Drill-down scope
ALL_FUNDING_TYPES = 'All'
DEFAULT_AWARD_YEAR = '2024'
DEFAULT_FUNDING_TYPE = ALL_FUNDING_TYPES

# Drill-down table
GRANT_COLUMNS = [
    'grantee_nm',
    'grant_num',
    'award_start_dt',
    'award_end_dt',
    'award_amt',
    'funding_type_nm',
    'program_area_cd',
    'program_area_nm',
]

COLUMN_RENAMES = {
    'grantee_nm': 'Grantee Name',
    'funding_type_nm': 'Funding Type',
    'award_amt': 'Award Amount ($)',
    'grant_num': 'Award Number',
    'accession_num': 'Accession No.',
    'award_start_dt': 'Award Start Date',
    'award_end_dt': 'Award End Date',
    'program_area_cd': 'Program Area Code',
    'program_area_nm': 'Program Area',
    'proposal_title': 'Proposal Title',
}

GRANT_FIELDS = [
    'state_cd', 'district', 'award_fy', 'funding_type_nm', 'grantee_nm',
    'grant_num', 'accession_num', 'award_start_dt', 'award_end_dt',
    'award_amt', 'program_area_cd', 'program_area_nm', 'proposal_title',
]

OUTPUT_DIR = Path('output')
