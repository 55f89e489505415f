"""Command line interface for analysing and ingesting exported emails."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from .analysis import analyze_email, extract_lead_data
from .config import load_configuration, load_settings
from .exceptions import LeadIntakeError
from .factory import build_registry, build_store
from .ingestion import AnalyzedEmail, export_analysis_results, load_emails
from .ingestion.exporters import export_processing_results
from .orchestrator import InboxProcessor, LeadIngestionService


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Detect real-estate leads in exported emails and ingest them as people records",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Score emails and write the analysis to a spreadsheet")
    analyze.add_argument("input", help="Path to the email export (CSV or XLSX)")
    analyze.add_argument("output", help="Path where the analysis should be written (CSV or XLSX)")
    analyze.add_argument(
        "--config",
        required=True,
        help="Path to the configuration file with lead sources and detection rules (YAML or JSON)",
    )
    analyze.add_argument(
        "--include-message",
        action="store_true",
        help="Include the extracted message text in the output",
    )

    process = subparsers.add_parser("process", help="Ingest lead emails into the configured store")
    process.add_argument("input", help="Path to the email export (CSV or XLSX)")
    process.add_argument("--config", required=True, help="Path to the configuration file (YAML or JSON)")
    process.add_argument("--user-id", required=True, help="Identifier of the user the inbox belongs to")
    process.add_argument(
        "--output",
        default=None,
        help="Optional path where a per-email processing report should be written",
    )
    return parser


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _run_analyze(args: argparse.Namespace) -> int:
    config = load_configuration(args.config)
    store = build_store(config)
    registry = build_registry(config, store)
    settings = load_settings(config)

    emails = load_emails(args.input)
    results: List[AnalyzedEmail] = []
    for email in emails:
        analysis = analyze_email(email, registry, threshold=settings.lead_threshold)
        lead = None
        if analysis.is_lead:
            lead = extract_lead_data(email, registry, analysis=analysis, threshold=settings.lead_threshold).lead_data
        results.append(AnalyzedEmail(message=email, analysis=analysis, lead=lead))

    export_analysis_results(results, args.output, include_message=args.include_message)
    leads = sum(1 for result in results if result.analysis.is_lead)
    logging.info("Analysed %s emails, %s detected as leads", len(results), leads)
    logging.info("Analysis written to %s", Path(args.output).resolve())
    return 0


def _run_process(args: argparse.Namespace) -> int:
    config = load_configuration(args.config)
    store = build_store(config)
    registry = build_registry(config, store)
    settings = load_settings(config)

    service = LeadIngestionService(store, registry, settings=settings)
    summary = InboxProcessor(service, store, args.user_id).process(load_emails(args.input))

    if args.output:
        export_processing_results(summary.messages, summary.results, args.output)
        logging.info("Processing report written to %s", Path(args.output).resolve())
    print(
        f"processed={summary.processed} created={summary.created} updated={summary.updated} "
        f"skipped={summary.skipped} not_ingested={summary.failed}"
    )
    return 0


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        if args.command == "analyze":
            return _run_analyze(args)
        return _run_process(args)
    except LeadIntakeError as exc:
        logging.error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
