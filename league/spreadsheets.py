"""
Spreadsheet uploads -> plain row dicts

Only the first sheet is read. Empty cells become None so every consumer
sees the same thing a JSON body would give it.
"""

import logging
import math
from pathlib import Path

import pandas as pd
from django.conf import settings

from league.exceptions import InvalidRequest

logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = ('.xls', '.xlsx')


def is_blank(value):
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ''


def cell_text(value, default=''):
    """Text of a cell; whole numbers lose the '.0' pandas gives them"""
    if is_blank(value):
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def season_of(value):
    return cell_text(value, default=str(settings.LEAGUE_DEFAULT_SEASON))


def _clean(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if hasattr(value, 'item'):
        # numpy scalar -> python scalar
        return value.item()
    return value


def check_upload(name, size):
    if not name or Path(name).suffix.lower() not in SPREADSHEET_EXTENSIONS:
        raise InvalidRequest('Only Excel files are accepted (.xlsx, .xls)')
    if size is not None and size > settings.LEAGUE_UPLOAD_MAX_BYTES:
        raise InvalidRequest(f"File is larger than {settings.LEAGUE_UPLOAD_MAX_BYTES} bytes")


def read_spreadsheet_rows(source, name=None, size=None):
    """
    Read the first sheet of `source` (a path or an uploaded file object).

    Returns a list of dicts keyed by the header row.
    """
    if name is None:
        name = getattr(source, 'name', None) or str(source)
    if size is None:
        size = getattr(source, 'size', None)
    check_upload(name, size)

    try:
        df = pd.read_excel(source, sheet_name=0)
    except Exception as e:
        logger.warning("Could not read spreadsheet %s", name, exc_info=True)
        raise InvalidRequest(f"Could not read spreadsheet: {e}") from e

    df.columns = [str(column).strip() for column in df.columns]
    rows = [
        {column: _clean(value) for column, value in record.items()}
        for record in df.to_dict(orient='records')
    ]
    logger.info("Read %d rows from %s", len(rows), Path(name).name)
    return rows
