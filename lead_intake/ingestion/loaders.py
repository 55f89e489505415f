"""Utilities for loading email exports from spreadsheets."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Mapping, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..exceptions import UnsupportedFileTypeError
from ..models import EmailMessage

PathLike = Union[str, Path]

_FIELD_SYNONYMS: Mapping[str, Sequence[str]] = {
    "email_id": ("email_id", "message_id", "id"),
    "sender": ("from", "sender", "from_address", "email_from"),
    "subject": ("subject", "title"),
    "body": ("body", "message", "content", "text"),
    "to": ("to", "recipient", "email_to"),
    "date": ("date", "received", "received_at", "sent_at"),
}


def load_emails(
    path: PathLike,
    *,
    column_mapping: Optional[Mapping[str, Union[str, Sequence[str]]]] = None,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> List[EmailMessage]:
    """Load emails from a CSV/TSV/Excel export.

    Parameters
    ----------
    path:
        Path to the spreadsheet to be loaded.
    column_mapping:
        Optional mapping of :class:`EmailMessage` field names to column names.
        A sequence of columns is searched in order and the first non-empty
        value wins. Unmapped fields are resolved through common synonyms such
        as ``from`` or ``message``.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel`. Ignored for CSV files.
    loader_kwargs:
        Extra keyword arguments forwarded to :func:`pandas.read_csv` or
        :func:`pandas.read_excel`.
    """

    dataframe = _read_dataframe(path, sheet_name=sheet_name, loader_kwargs=loader_kwargs)
    mapping = dict(column_mapping or {})
    resolved = {name: _resolve_columns(name, dataframe.columns, mapping) for name in _FIELD_SYNONYMS}

    emails: List[EmailMessage] = []
    for _, row in dataframe.iterrows():
        if _row_is_empty(row):
            continue
        values = {name: _extract_scalar(row, columns) for name, columns in resolved.items()}
        emails.append(
            EmailMessage(
                sender=values["sender"] or "",
                subject=values["subject"] or "",
                body=values["body"] or "",
                to=values["to"],
                date=values["date"],
                email_id=values["email_id"],
            )
        )
    return emails


def _read_dataframe(
    path: PathLike,
    *,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    path_obj = Path(path)
    suffix = path_obj.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            loader_kwargs.setdefault("sep", "\t")
        # Keep ids and phone-like values as text.
        loader_kwargs.setdefault("dtype", str)
        return pd.read_csv(path_obj, **loader_kwargs)

    if suffix in {".xls", ".xlsx", ".xlsm", ".xlsb"}:
        engine = loader_kwargs.pop("engine", None) or "openpyxl"
        loader_kwargs.setdefault("dtype", str)
        return pd.read_excel(path_obj, sheet_name=sheet_name, engine=engine, **loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path_obj.suffix}")


def _row_is_empty(row: pd.Series) -> bool:
    return all(pd.isna(value) or (isinstance(value, str) and not value.strip()) for value in row.values)


def _resolve_columns(
    field: str,
    available_columns: Iterable[Any],
    mapping: Mapping[str, Union[str, Sequence[str]]],
) -> List[str]:
    if field in mapping:
        spec = mapping[field]
        return [spec] if isinstance(spec, str) else [str(item) for item in spec]

    columns = [str(column) for column in available_columns]
    resolved: List[str] = []
    for synonym in _FIELD_SYNONYMS[field]:
        for column in columns:
            if column.strip().lower() == synonym and column not in resolved:
                resolved.append(column)
    return resolved


def _extract_scalar(row: pd.Series, columns: Sequence[str]) -> Optional[str]:
    for column in columns:
        if column not in row:
            continue
        text = _clean_text(row[column])
        if text is not None:
            return text
    return None


def _clean_text(value: Any) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


__all__ = ["load_emails", "UnsupportedFileTypeError"]
