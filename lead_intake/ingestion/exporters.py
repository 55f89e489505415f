"""Export utilities for email analysis results."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..exceptions import UnsupportedFileTypeError
from ..models import EmailMessage, EmailProcessingResult
from .models import AnalyzedEmail

PathLike = Union[str, Path]

_LEAD_COLUMNS = (
    "first_name",
    "last_name",
    "emails",
    "phones",
    "company",
    "position",
    "property_address",
    "property_details",
    "price_range",
    "property_type",
    "location_preferences",
    "timeline",
)


def export_analysis_results(
    results: Sequence[AnalyzedEmail],
    path: PathLike,
    *,
    include_message: bool = False,
    sheet_name: str = "Analysis",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write analysis results to a CSV or Excel file."""

    dataframe = analysis_to_dataframe(results, include_message=include_message)
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_dataframe(dataframe, output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def analysis_to_dataframe(results: Sequence[AnalyzedEmail], *, include_message: bool = False) -> pd.DataFrame:
    """Convert analysis results into a :class:`pandas.DataFrame`, one row per email."""

    records = [_result_to_row(result, include_message=include_message) for result in results]
    columns = ["email_id", "sender", "subject", "is_lead", "confidence", "lead_source", "detection_rule", "reasons"]
    columns.extend(_LEAD_COLUMNS)
    if include_message:
        columns.append("message")
    return pd.DataFrame(records, columns=columns)


def _result_to_row(result: AnalyzedEmail, *, include_message: bool) -> MutableMapping[str, object]:
    analysis = result.analysis
    row: MutableMapping[str, object] = {
        "email_id": result.message.email_id,
        "sender": result.message.sender,
        "subject": result.message.subject,
        "is_lead": analysis.is_lead,
        "confidence": round(analysis.confidence_score, 4),
        "lead_source": analysis.source_name,
        "detection_rule": analysis.rule_name,
        "reasons": _join_list(analysis.reasons),
    }

    lead = result.lead
    for column in _LEAD_COLUMNS:
        row[column] = None
    if lead is not None:
        row.update(
            first_name=lead.first_name,
            last_name=lead.last_name,
            emails=_join_list(lead.email),
            phones=_join_list(lead.phone),
            company=lead.company,
            position=lead.position,
            property_address=lead.property_address,
            property_details=lead.property_details,
            price_range=lead.price_range,
            property_type=lead.property_type,
            location_preferences=lead.location_preferences,
            timeline=lead.timeline,
        )
    if include_message:
        row["message"] = lead.message if lead else None
    return row


def processing_to_dataframe(
    messages: Sequence[EmailMessage], results: Sequence[EmailProcessingResult]
) -> pd.DataFrame:
    """One row per ingestion attempt, for auditing a batch run."""

    records = [
        {
            "email_id": message.email_id,
            "sender": message.sender,
            "subject": message.subject,
            "success": result.success,
            "created": result.created,
            "person_id": result.person_id,
            "lead_source": result.analysis.source if result.analysis else None,
            "confidence": round(result.analysis.confidence, 4) if result.analysis else None,
            "message": result.message,
            "error": result.error,
        }
        for message, result in zip(messages, results)
    ]
    return pd.DataFrame(records)


def export_processing_results(
    messages: Sequence[EmailMessage],
    results: Sequence[EmailProcessingResult],
    path: PathLike,
    *,
    sheet_name: str = "Processing",
) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_dataframe(processing_to_dataframe(messages, results), output_path, sheet_name=sheet_name, exporter_kwargs=None)
    return output_path


def _join_list(values: Iterable[Optional[str]]) -> str:
    cleaned: List[str] = []
    for value in values:
        if not value:
            continue
        text = str(value).strip()
        if text:
            cleaned.append(text)
    return "; ".join(cleaned)


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xlsx", ".xlsm"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise UnsupportedFileTypeError(f"Unsupported export file extension: {suffix}")


__all__ = [
    "analysis_to_dataframe",
    "export_analysis_results",
    "export_processing_results",
    "processing_to_dataframe",
]
