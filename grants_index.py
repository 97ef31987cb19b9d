"""
Grant District Map - grant dataset index
In-memory award/grantee lookup by state, district, fiscal year and funding type
"""
import logging
import re

import pandas as pd

from grants_config import ALL_FUNDING_TYPES, GRANT_FIELDS

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def parse_district(value):
    """Integer district from '08', '8', 8 or '8.0' (leading zeros dropped)."""
    if value is None or isinstance(value, bool):
        raise ValueError(f"Not a district number: {value!r}")
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    if not match:
        raise ValueError(f"Not a district number: {value!r}")
    return int(match.group(1))


def _text(series):
    """Column as stripped strings, keeping missing values missing."""
    return series.where(series.isna(), series.astype(str).str.strip())


class GrantIndex:
    """Read-only index over grant records, in dataset order."""

    def __init__(self, records):
        df = pd.DataFrame(records).copy()
        for col in GRANT_FIELDS:
            if col not in df.columns:
                df[col] = None

        df['state_cd'] = _text(df['state_cd'])
        df['award_fy'] = _text(df['award_fy'])
        df['funding_type_nm'] = _text(df['funding_type_nm'])
        district = pd.to_numeric(df['district'], errors='coerce').astype(float)
        # Fractional districts can't be matched, treat them as missing
        df['district'] = district.where(district == district.round()).astype('Int64')
        df['award_amt'] = pd.to_numeric(df['award_amt'], errors='coerce')

        self.df = df.reset_index(drop=True)
        logger.info("Indexed %d grant records", len(self.df))

    @classmethod
    def from_csv(cls, path):
        df = pd.read_csv(path, dtype={
            'state_cd': str, 'award_fy': str, 'district': str,
            'funding_type_nm': str, 'grant_num': str, 'accession_num': str,
            'program_area_cd': str,
        })
        return cls(df)

    def __len__(self):
        return len(self.df)

    def _mask(self, state_cd, district, fiscal_year, funding_type):
        df = self.df
        mask = (
            (df['state_cd'] == str(state_cd))
            & (df['district'] == district)
            & (df['award_fy'] == str(fiscal_year))
        )
        if funding_type != ALL_FUNDING_TYPES:
            mask &= df['funding_type_nm'] == funding_type
        return mask.fillna(False).astype(bool)

    def _matching(self, state_cd, district, fiscal_year, funding_type):
        try:
            district = parse_district(district)
        except ValueError:
            logger.warning("Unparseable district %r for %s, no grants matched", district, state_cd)
            return self.df.iloc[0:0]
        return self.df.loc[self._mask(state_cd, district, fiscal_year, funding_type)]

    def query(self, state_cd, district, fiscal_year, funding_type=ALL_FUNDING_TYPES):
        """Grant records for one unit and scope; empty list when nothing matches."""
        rows = self._matching(state_cd, district, fiscal_year, funding_type)[GRANT_FIELDS]
        rows = rows.astype(object)
        return rows.where(rows.notna(), None).to_dict('records')

    def grantee_summary(self, state_cd, district, fiscal_year, funding_type=ALL_FUNDING_TYPES):
        """Award count and total per grantee, largest total first."""
        rows = self._matching(state_cd, district, fiscal_year, funding_type)
        if rows.empty:
            return []
        summary = rows.groupby('grantee_nm', sort=False, dropna=False).agg(
            award_count=('award_amt', 'size'),
            total_award=('award_amt', 'sum'),
        ).reset_index()
        summary = summary.sort_values('total_award', ascending=False, kind='stable')
        return [
            {
                'grantee_nm': None if pd.isna(r['grantee_nm']) else r['grantee_nm'],
                'award_count': int(r['award_count']),
                'total_award': float(r['total_award']),
            }
            for r in summary.to_dict('records')
        ]

    def fiscal_years(self):
        return sorted(self.df['award_fy'].dropna().unique().tolist())

    def funding_types(self):
        return [ALL_FUNDING_TYPES] + sorted(self.df['funding_type_nm'].dropna().unique().tolist())
