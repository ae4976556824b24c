#!/usr/bin/env python3
"""Load the cleaned forest-fire CSV and normalize the fields the charts consume."""
from __future__ import annotations

import io
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Union

import numpy as np
import pandas as pd
import requests

NUMERIC_COLUMNS = ['Temperature', 'FWI', 'RH', 'month']
CLASS_COLUMN = 'Classes'
REQUIRED_COLUMNS = NUMERIC_COLUMNS + [CLASS_COLUMN]
REQUEST_TIMEOUT_S = 30


class LoadError(RuntimeError):
    """The dataset could not be fetched or parsed."""


@dataclass(frozen=True)
class RowIssue:
    row: int
    column: str
    raw: str
    reason: str

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass
class LoadedDataset:
    frame: pd.DataFrame
    issues: List[RowIssue] = field(default_factory=list)

    @property
    def invalid_rows(self) -> List[int]:
        return sorted({issue.row for issue in self.issues})

    def __len__(self) -> int:
        return len(self.frame)


def _is_url(source: str) -> bool:
    return source.startswith('http://') or source.startswith('https://')


def _read_text_csv(handle) -> pd.DataFrame:
    # Every cell stays text; coercion happens in normalize_records.
    df = pd.read_csv(handle, dtype=str, keep_default_na=False)
    df.columns = [str(col).strip() for col in df.columns]
    return df


def _fetch_csv(url: str) -> pd.DataFrame:
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT_S)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise LoadError(f"Could not fetch {url}: {exc}") from exc
    return _read_text_csv(io.StringIO(response.text))


def load_raw_records(source: Union[str, Path]) -> pd.DataFrame:
    source_text = str(source)
    try:
        if _is_url(source_text):
            df = _fetch_csv(source_text)
        else:
            path = Path(source_text)
            if not path.exists():
                raise LoadError(f"Missing source file: {path}")
            df = _read_text_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise LoadError(f"Malformed CSV {source_text}: {exc}") from exc
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise LoadError(f"Fire dataset CSV missing columns: {missing}")
    return df


def _as_text(series: pd.Series) -> pd.Series:
    return series.fillna('').astype(str).str.strip()


def normalize_records(raw: pd.DataFrame, drop_invalid: bool = False) -> LoadedDataset:
    """Coerce the numeric columns and trim ``Classes`` on a copy of ``raw``.

    Malformed cells become ``NaN`` (or stay as the trimmed text for
    ``Classes``) and are reported as :class:`RowIssue` entries. With
    ``drop_invalid`` the affected rows are removed after the issues are
    collected.
    """
    df = raw.copy().reset_index(drop=True)
    issues: List[RowIssue] = []
    for column in NUMERIC_COLUMNS:
        text = _as_text(df[column])
        values = pd.to_numeric(text, errors='coerce').astype(float)
        # inf/-inf are not valid observations
        values = values.where(np.isfinite(values))
        for position in values.index[values.isna()]:
            raw_text = text.iloc[position]
            reason = 'missing' if raw_text == '' else 'not numeric'
            issues.append(RowIssue(row=position + 1, column=column, raw=raw_text, reason=reason))
        df[column] = values

    classes = _as_text(df[CLASS_COLUMN])
    for position in classes.index[classes == '']:
        issues.append(RowIssue(row=position + 1, column=CLASS_COLUMN, raw='', reason='missing'))
    df[CLASS_COLUMN] = classes

    issues.sort(key=lambda issue: (issue.row, REQUIRED_COLUMNS.index(issue.column)))
    if drop_invalid and issues:
        bad_positions = sorted({issue.row - 1 for issue in issues})
        df = df.drop(index=bad_positions).reset_index(drop=True)
    return LoadedDataset(frame=df, issues=issues)


def load_fire_dataset(source: Union[str, Path], drop_invalid: bool = False) -> LoadedDataset:
    return normalize_records(load_raw_records(source), drop_invalid=drop_invalid)
