"""Spreadsheet import and export helpers for batches of emails."""

from .exporters import analysis_to_dataframe, export_analysis_results
from .loaders import load_emails
from .models import AnalyzedEmail

__all__ = ["AnalyzedEmail", "analysis_to_dataframe", "export_analysis_results", "load_emails"]
