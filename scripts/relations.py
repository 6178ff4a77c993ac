"""CLI for generating, deduplicating and reporting on relationships in the local JSON stores"""

import argparse
import logging
import sys

from cardgraph.config import InferenceConfig, settings
from cardgraph.dedup.analysis import analyze_duplication, build_quality_report
from cardgraph.dedup.service import DeduplicationService
from cardgraph.inference.pipeline import RelationshipInferencePipeline
from cardgraph.item_store.local import LocalItemStore
from cardgraph.relationship_store.local import LocalRelationshipStore


def generate(
    scope: str, item_store_path: str, relationship_store_path: str, mode: str, dedup: bool
) -> None:
    item_store = LocalItemStore(filepath=item_store_path)
    relationship_store = LocalRelationshipStore(filepath=relationship_store_path)
    config = InferenceConfig.for_mode(mode, auto_deduplicate=dedup)

    pipeline = RelationshipInferencePipeline(
        item_store=item_store, relationship_store=relationship_store, config=config
    )
    result = pipeline.run(scope)
    print(result.model_dump_json(indent=2))


def dedup(scope: str, relationship_store_path: str, mode: str) -> None:
    relationship_store = LocalRelationshipStore(filepath=relationship_store_path)
    service = DeduplicationService(relationship_store=relationship_store)

    report = service.deduplicate_scope(scope, InferenceConfig.for_mode(mode).dedup)
    print(report.model_dump_json(indent=2))


def report(scope: str, item_store_path: str, relationship_store_path: str) -> None:
    item_store = LocalItemStore(filepath=item_store_path)
    relationship_store = LocalRelationshipStore(filepath=relationship_store_path)

    relationships = relationship_store.get_relationships(scope)
    print(analyze_duplication(relationships).model_dump_json(indent=2))
    print(build_quality_report(len(item_store.get_items(scope)), relationships).model_dump_json(indent=2))


if __name__ == "__main__":
    logging.basicConfig(stream=sys.stderr, level=settings.log_level)

    parser = argparse.ArgumentParser()
    parser.add_argument("--scope", type=str, required=True, help="Scope (board) to operate on")
    parser.add_argument(
        "--item-store",
        type=str,
        required=False,
        help="Local item store file",
        default=settings.item_store_path,
    )
    parser.add_argument(
        "--relationship-store",
        type=str,
        required=False,
        help="Local relationship store file",
        default=settings.relationship_store_path,
    )
    parser.add_argument(
        "--mode",
        type=str,
        required=False,
        choices=["conservative", "balanced", "aggressive"],
        help="Analysis preset",
        default=settings.analysis_mode,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    generate_parser = subparsers.add_parser("generate", help="Infer and persist new relationships")
    generate_parser.add_argument(
        "--dedup", action="store_true", help="Run a deduplication pass afterwards"
    )
    subparsers.add_parser("dedup", help="Delete duplicate relationships of the scope")
    subparsers.add_parser("report", help="Print the duplication and quality reports")

    args = parser.parse_args()

    if args.command == "generate":
        generate(
            scope=args.scope,
            item_store_path=args.item_store,
            relationship_store_path=args.relationship_store,
            mode=args.mode,
            dedup=args.dedup or settings.auto_deduplicate,
        )
    elif args.command == "dedup":
        dedup(scope=args.scope, relationship_store_path=args.relationship_store, mode=args.mode)
    else:
        report(
            scope=args.scope,
            item_store_path=args.item_store,
            relationship_store_path=args.relationship_store,
        )
