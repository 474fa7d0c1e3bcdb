from __future__ import annotations

import argparse
import asyncio
import csv
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Sequence

from fleet_dedupe.config import MatchingConfig
from fleet_dedupe.datasets import PROFILE_COLUMNS, PROFILE_EXPORT_SCHEMA, ReferenceDatasetGenerator
from fleet_dedupe.errors import DedupeError
from fleet_dedupe.models import BulkResult, CustomerRecord, DuplicateCluster
from fleet_dedupe.runners import BulkAnalysisRunner
from fleet_dedupe.steps import BulkDuplicateClusterer, InteractiveDuplicateMatcher
from fleet_dedupe.stores import InMemoryRecordStore

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "run-test":
            run_test(
                size=args.size,
                duplicate_rate=args.duplicate_rate,
                seed=args.seed,
                output_dir=args.output_dir,
                input_csv=args.input_csv,
                similarity_threshold=args.similarity_threshold,
                batch_size=args.batch_size,
                show_clusters=args.show_clusters,
            )
            return 0
        if args.command == "check":
            check(
                input_csv=args.input_csv,
                candidate=CustomerRecord(
                    id=args.id,
                    full_name=args.full_name,
                    phone_number=args.phone,
                    email=args.email,
                ),
            )
            return 0
    except DedupeError as exc:
        logger.error("%s", exc)
        return 1

    parser.print_help()
    return 0


def run_test(
    *,
    size: int,
    duplicate_rate: float,
    seed: int,
    output_dir: Path,
    input_csv: Path | None,
    similarity_threshold: float,
    batch_size: int,
    show_clusters: int,
) -> BulkResult:
    output_dir.mkdir(parents=True, exist_ok=True)

    if input_csv is None:
        records = ReferenceDatasetGenerator(seed=seed).generate(size=size, duplicate_rate=duplicate_rate)
        dataset_path = output_dir / "test_dataset.csv"
        _write_records_csv(dataset_path, records)
        store = InMemoryRecordStore(records)
    else:
        store = _read_store_csv(input_csv)
        dataset_path = input_csv

    runner = BulkAnalysisRunner(
        store=store,
        clusterer=BulkDuplicateClusterer(MatchingConfig(batch_size=batch_size)),
    )
    result = asyncio.run(runner.run(similarity_threshold=similarity_threshold))

    clusters_path = output_dir / "clusters.json"
    summary_path = output_dir / "summary.json"

    _write_json(clusters_path, [asdict(cluster) for cluster in result.clusters])
    summary = _build_summary(result=result, dataset_path=dataset_path, clusters_path=clusters_path)
    _write_json(summary_path, summary)

    print(f"Dataset: {dataset_path}")
    print(f"Clusters: {clusters_path}")
    print(f"Summary: {summary_path}")
    print("---")
    print(f"processed={summary['processed_count']}")
    print(f"clusters={summary['cluster_count']}")
    print(f"potential_duplicates={summary['total_duplicates']}")
    print(f"clustered_records={summary['clustered_record_count']}")
    print(f"avg_cluster_size={summary['avg_cluster_size']}")
    if show_clusters > 0:
        print("---")
        print("sample_clusters=")
        print(json.dumps(_cluster_sample_payload(result.clusters, limit=show_clusters), indent=2))
    return result


def check(*, input_csv: Path, candidate: CustomerRecord) -> list[dict[str, Any]]:
    store = _read_store_csv(input_csv)
    matcher = InteractiveDuplicateMatcher(store)
    matches = asyncio.run(matcher.find_potential_duplicates(candidate))
    payload = [asdict(match) for match in matches]
    print(json.dumps(payload, indent=2))
    return payload


def _build_summary(*, result: BulkResult, dataset_path: Path, clusters_path: Path) -> dict[str, object]:
    cluster_sizes = [len(cluster.members) for cluster in result.clusters]
    clustered_record_count = len({member.id for cluster in result.clusters for member in cluster.members})

    return {
        "processed_count": result.processed_count,
        "cluster_count": len(result.clusters),
        "total_duplicates": result.total_duplicates,
        "clustered_record_count": clustered_record_count,
        "avg_cluster_size": round(sum(cluster_sizes) / len(cluster_sizes), 3) if cluster_sizes else 0.0,
        "max_cluster_size": max(cluster_sizes) if cluster_sizes else 0,
        "dataset_path": str(dataset_path),
        "clusters_path": str(clusters_path),
    }


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fleet-dedupe", description="Customer duplicate detection CLI")
    parser.add_argument("--log-level", default="INFO")
    subparsers = parser.add_subparsers(dest="command")

    run_test_parser = subparsers.add_parser(
        "run-test",
        help="Generate or load customers, cluster duplicates, and write clusters + summary",
    )
    run_test_parser.add_argument("--size", type=int, default=2000)
    run_test_parser.add_argument("--duplicate-rate", type=float, default=0.15)
    run_test_parser.add_argument("--seed", type=int, default=42)
    run_test_parser.add_argument("--similarity-threshold", type=float, default=0.7)
    run_test_parser.add_argument("--batch-size", type=int, default=50)
    run_test_parser.add_argument("--input-csv", type=Path, default=None)
    run_test_parser.add_argument("--output-dir", type=Path, default=Path("data/cli_output"))
    run_test_parser.add_argument("--show-clusters", type=int, default=10)

    check_parser = subparsers.add_parser(
        "check",
        help="Check one customer against a profiles CSV and print likely duplicates",
    )
    check_parser.add_argument("--input-csv", type=Path, required=True)
    check_parser.add_argument("--id", default=None)
    check_parser.add_argument("--full-name", default=None)
    check_parser.add_argument("--phone", default=None)
    check_parser.add_argument("--email", default=None)

    return parser


def _write_json(path: Path, payload: object) -> None:
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


def _write_records_csv(path: Path, records: list[CustomerRecord]) -> None:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=PROFILE_COLUMNS)
        writer.writeheader()
        for record in records:
            writer.writerow({**PROFILE_EXPORT_SCHEMA.to_row(record), "role": "customer"})


def _read_store_csv(path: Path) -> InMemoryRecordStore:
    store = InMemoryRecordStore()
    with path.open("r", newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        for row in reader:
            record = PROFILE_EXPORT_SCHEMA.to_record(row)
            if not record.id:
                continue
            store.add(record, role=(row.get("role") or "customer").strip())
    return store


def _cluster_sample_payload(clusters: list[DuplicateCluster], limit: int = 10) -> list[dict[str, Any]]:
    payload: list[dict[str, Any]] = []
    for cluster in clusters[:limit]:
        payload.append(
            {
                "anchor": cluster.anchor.full_name,
                "size": len(cluster.members),
                "similarity": round(cluster.similarity, 4),
                "reasons": [str(reason) for reason in cluster.reasons],
                "matched_fields": list(dict.fromkeys(str(reason.field) for reason in cluster.reasons)),
                "exact": any(reason.is_exact for reason in cluster.reasons),
                "members": [
                    {
                        "id": member.id,
                        "full_name": member.full_name,
                        "phone_number": member.phone_number,
                        "email": member.email,
                    }
                    for member in cluster.members
                ],
            }
        )
    return payload


if __name__ == "__main__":
    raise SystemExit(main())
