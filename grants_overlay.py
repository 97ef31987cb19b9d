"""
Grant District Map - drill-down overlay
Modal detail panel listing the grant awards of the selected unit
"""
import html
import logging
import math
from dataclasses import dataclass
from enum import Enum

from grants_config import (
    COLUMN_RENAMES, DEFAULT_AWARD_YEAR, DEFAULT_FUNDING_TYPE, GRANT_COLUMNS,
)

logger = logging.getLogger(__name__)


class OverlayState(Enum):
    HIDDEN = 'hidden'
    POPULATED = 'populated'
    VISIBLE = 'visible'


@dataclass(frozen=True)
class SelectionContext:
    state_cd: str
    district: int
    unit_id: object
    label: str


@dataclass
class GlobalFilters:
    """Drill-down scope chosen by the host's year / funding type controls."""
    award_year: str = DEFAULT_AWARD_YEAR
    funding_type: str = DEFAULT_FUNDING_TYPE


def is_unset(value):
    return value is None or (isinstance(value, float) and math.isnan(value))


def format_currency(value):
    """$ with thousands separators; whole amounts without decimals."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return str(value)
    if amount.is_integer():
        return f"${int(amount):,}"
    return f"${amount:,.2f}"


def format_cell(column, value):
    if is_unset(value):
        return ''
    if column == 'award_amt':
        return format_currency(value)
    return str(value)


def header_label(column):
    return COLUMN_RENAMES.get(column, column)


class OverlayController:
    """
    Hidden --open--> Populated --render--> Visible --close--> Hidden

    Every open() discards the previous content; close() only hides it.
    """

    def __init__(self, index, filters=None, columns=GRANT_COLUMNS):
        self.index = index
        self.filters = filters or GlobalFilters()
        self.columns = list(columns)
        self.state = OverlayState.HIDDEN
        self.selection = None
        self.scope = None
        self.rows = []
        self.header = ''
        self.table = None

    @property
    def visible(self):
        return self.state is OverlayState.VISIBLE

    def open(self, selection):
        """Query the current global scope for the selection and show the results."""
        self.state = OverlayState.HIDDEN
        self.selection, self.rows, self.table = None, [], None

        self.scope = (self.filters.award_year, self.filters.funding_type)
        rows = self.index.query(selection.state_cd, selection.district, *self.scope)

        self.selection = selection
        self.rows = rows
        self.header = self.header_text()
        self.state = OverlayState.POPULATED
        logger.info("Drill-down %s: %d grants", selection.label, len(rows))

        self.render()

    def header_text(self):
        """Header for the open drill-down, from the scope it was queried with."""
        if self.selection is None or self.scope is None:
            return ''
        award_fy, funding_type = self.scope
        return f"Fiscal Year: {award_fy}, Funding Type: {funding_type}, {self.selection.label}"

    def render(self):
        if self.selection is None:
            return
        self.table = {
            'headers': [header_label(c) for c in self.columns],
            'rows': [[format_cell(c, row.get(c)) for c in self.columns] for row in self.rows],
        }
        self.state = OverlayState.VISIBLE

    def close(self):
        self.state = OverlayState.HIDDEN

    def reopen(self):
        """Show the last drill-down again, unchanged. False if there is none."""
        if self.table is None:
            return False
        self.state = OverlayState.VISIBLE
        return True

    def to_html(self):
        if self.table is None:
            return ''
        head = ''.join(f'<th>{html.escape(h)}</th>' for h in self.table['headers'])
        body = '\n'.join(
            '<tr>' + ''.join(f'<td>{html.escape(cell)}</td>' for cell in row) + '</tr>'
            for row in self.table['rows']
        )
        return f'''<div class="grant-details">
<div class="header"><h2>{html.escape(self.header)}</h2></div>
<table>
<thead><tr>{head}</tr></thead>
<tbody>
{body}
</tbody>
</table>
</div>'''
