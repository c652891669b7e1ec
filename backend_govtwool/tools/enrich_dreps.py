"""
Enrich DRep IDs with delegator and vote counts (Koios, Blockfrost fallback).

How to run:
    From project root (with .env configured):
        python -m backend_govtwool.tools.enrich_dreps --ids drep1...,drep1...
        python -m backend_govtwool.tools.enrich_dreps --file dreps.csv --output enriched.csv

Input file: CSV with a drep_id column, or one DRep ID per line in the first column.

Env vars:
    CARDANO_NETWORK        mainnet | preview | preprod (default mainnet)
    KOIOS_API_KEY          optional bearer token
    BLOCKFROST_API_KEY     needed for the fallback path
    ENRICH_*               batch size / delays / timeout / result cap

Output: JSON on stdout, or CSV when --output is given:
    identifier, normalized_id, delegator_count, vote_count, yes, no, abstain,
    last_vote_epoch, has_profile, source
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import json
import sys
from pathlib import Path

from backend_govtwool.aggregation import EnrichedRecord, build_enricher
from backend_govtwool.config import get_settings
from backend_govtwool.govtwool_logging import get_logger
from backend_govtwool.identifiers import GovernanceIdError

logger = get_logger(__name__)

CSV_FIELDS = (
    "identifier",
    "normalized_id",
    "delegator_count",
    "vote_count",
    "yes",
    "no",
    "abstain",
    "last_vote_epoch",
    "has_profile",
    "source",
)


def parse_id_list(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def read_id_file(path: Path) -> list[str]:
    """DRep IDs from a CSV file: the drep_id column if present, else the first column."""
    with path.open(newline="", encoding="utf-8") as f:
        rows = [row for row in csv.reader(f) if row and row[0].strip()]
    if not rows:
        return []
    header = [h.strip().lower() for h in rows[0]]
    if "drep_id" in header:
        col = header.index("drep_id")
        return [row[col].strip() for row in rows[1:] if len(row) > col and row[col].strip()]
    return [row[0].strip() for row in rows]


def record_to_row(record: EnrichedRecord) -> dict[str, object]:
    return {
        "identifier": record.identifier,
        "normalized_id": record.normalized_id,
        "delegator_count": record.delegator_count,
        "vote_count": record.vote_count,
        "yes": record.votes.yes,
        "no": record.votes.no,
        "abstain": record.votes.abstain,
        "last_vote_epoch": "" if record.last_vote_epoch is None else record.last_vote_epoch,
        "has_profile": record.has_profile,
        "source": record.source,
    }


def save_csv(records: list[EnrichedRecord], out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for record in records:
            writer.writerow(record_to_row(record))
    logger.info("enrich_dreps_saved", path=str(out_path), rows=len(records))


async def run(drep_ids: list[str]) -> list[EnrichedRecord]:
    enricher = build_enricher(get_settings())
    return await enricher.enrich(drep_ids)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Attach delegator/vote statistics to DRep IDs (Koios with Blockfrost fallback).",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--ids", help="Comma-separated DRep IDs (legacy or current form)")
    source.add_argument("--file", type=Path, help="CSV file with DRep IDs")
    parser.add_argument("--output", type=Path, help="Write CSV here instead of JSON to stdout")
    args = parser.parse_args(argv)

    drep_ids = parse_id_list(args.ids) if args.ids else read_id_file(args.file)
    if not drep_ids:
        print("ERROR: no DRep IDs given", file=sys.stderr)
        return 2
    try:
        records = asyncio.run(run(drep_ids))
    except GovernanceIdError as e:
        print("ERROR:", e, file=sys.stderr)
        return 2
    except Exception as e:
        logger.exception("enrich_dreps_failed", error=str(e))
        print("ERROR:", e, file=sys.stderr)
        return 1

    if args.output:
        save_csv(records, args.output)
        print("OUTPUT:", args.output)
    else:
        print(json.dumps([r.to_dict() for r in records], indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
