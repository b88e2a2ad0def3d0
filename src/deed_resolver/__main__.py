import argparse
import csv
import json
import logging
from pathlib import Path

from .jurisdiction_router import build_search_plan
from .normalize import parse_address
from .pipeline import PipelineOrchestrator
from .settings import get_settings


def build_orchestrator(settings):
    return PipelineOrchestrator(settings=settings)


def _read_csv_addresses(path):
    with Path(path).open(newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames or "address" not in reader.fieldnames:
            raise ValueError(f"{path}: expected an 'address' column")
        return [row["address"].strip() for row in reader if (row.get("address") or "").strip()]


def _build_parser():
    parser = argparse.ArgumentParser(
        description="Resolve property addresses to parcel/ownership records and deeds",
    )
    parser.add_argument(
        "--address",
        action="append",
        default=[],
        help="Property address to resolve (repeatable)",
    )
    parser.add_argument(
        "--input-csv",
        default=None,
        help="CSV file with an 'address' column",
    )
    parser.add_argument(
        "--county",
        default=None,
        help="County for every address (otherwise inferred from the address)",
    )
    parser.add_argument(
        "--state",
        default=None,
        help="Two-letter state code for every address",
    )
    parser.add_argument(
        "--documents",
        action="store_true",
        default=None,
        help="Also locate and download the deed document",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the routing plan without opening a browser",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of addresses resolved at once",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-address deadline in seconds",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write the full batch result as JSON to this path",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit one JSON log line per address",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, etc.)",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP API instead of a batch",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind host for --serve")
    parser.add_argument("--port", type=int, default=3000, help="Bind port for --serve")
    return parser


def main(argv=None):
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level.upper())

    if args.serve:
        import uvicorn

        uvicorn.run("deed_resolver.api.app:app", host=args.host, port=args.port)
        return

    addresses = [a.strip() for a in args.address if a and a.strip()]
    if args.input_csv:
        addresses.extend(_read_csv_addresses(args.input_csv))
    if not addresses:
        parser.error("Provide --address or --input-csv")

    if args.dry_run:
        planned = 0
        for raw in addresses:
            plan = build_search_plan(parse_address(raw, county=args.county, state=args.state))
            if plan["jurisdiction"]:
                planned += 1
                print(f"{plan['jurisdiction']}: {plan['adapter']} -> {plan['search_term']!r}")
            else:
                print(f"unrouted: {plan['error']}")
            if args.log_json:
                print(json.dumps(plan))
        summary = {
            "total": len(addresses),
            "routed": planned,
            "unrouted": len(addresses) - planned,
        }
        print(json.dumps(summary))
        return

    settings = get_settings().with_overrides(
        concurrency=args.concurrency,
        address_timeout=args.timeout,
        include_documents=args.documents,
    )
    orchestrator = build_orchestrator(settings)

    def on_result(index, result):
        if args.log_json:
            print(
                json.dumps(
                    {
                        "index": index,
                        "county": result.county,
                        "state": result.state,
                        "parcel_id": result.parcel_id,
                        "has_document": bool(result.document_bytes),
                        "status": "success" if result.ok else "failed",
                        "error_type": result.error_type,
                    }
                )
            )

    batch = orchestrator.run_sync(
        addresses,
        county=args.county,
        state=args.state,
        on_result=on_result,
    )

    if args.output:
        Path(args.output).write_text(json.dumps(batch.to_dict()), encoding="utf-8")

    print(f"Resolved {batch.summary.successful} of {batch.summary.total} addresses:")
    for i, result in enumerate(batch.results):
        if result.ok:
            print(f"{i+1}. {result.county}: {result.parcel_id or 'N/A'} - {result.owner_name or 'N/A'}")
        else:
            print(f"{i+1}. failed: {result.error_type}: {result.error}")
    print(json.dumps(batch.summary.to_dict()))


def _safe_main():
    try:
        main()
    except SystemExit:
        raise
    except Exception as exc:
        print(json.dumps({"error": str(exc)}))
        raise SystemExit(1)


if __name__ == "__main__":
    _safe_main()
