"""CLI entry point for scoring caregiver snapshots against a request."""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from carematch.core.config import Settings
from carematch.core.schemas import MatchSnapshot
from carematch.matching import rank_candidates, score_match


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--snapshot",
        required=True,
        help="Path to a YAML snapshot with job, household, children and providers",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML file (default: built-in weights)",
    )
    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="Reference time in ISO format (default: current time)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Caregiver compatibility scoring - score or rank providers for a request",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- score subcommand ---
    score_parser = subparsers.add_parser("score", help="Score providers one by one")
    _add_common_arguments(score_parser)
    score_parser.add_argument(
        "--provider-id",
        type=int,
        default=None,
        help="Only score the provider with this id",
    )

    # --- rank subcommand ---
    rank_parser = subparsers.add_parser("rank", help="Rank eligible providers by score")
    _add_common_arguments(rank_parser)
    rank_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of candidates (default: from settings)",
    )
    rank_parser.add_argument(
        "--min-score",
        type=int,
        default=None,
        help="Only keep candidates scoring above this value (default: from settings)",
    )

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_snapshot(path: str | Path) -> MatchSnapshot:
    """Load a request snapshot from a YAML file."""
    path = Path(path)
    if not path.exists():
        msg = f"Snapshot file not found: {path}"
        raise FileNotFoundError(msg)
    raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
    return MatchSnapshot.model_validate(raw)


def cmd_score(args: argparse.Namespace, settings: Settings, snapshot: MatchSnapshot) -> str:
    """Handle score subcommand."""
    providers = [
        p for p in snapshot.providers
        if args.provider_id is None or p.id == args.provider_id
    ]
    if not providers:
        msg = f"No provider with id {args.provider_id} in snapshot"
        raise ValueError(msg)

    now = args.now
    data = []
    for provider in providers:
        result = score_match(
            snapshot.job, snapshot.household, snapshot.children, provider,
            settings.scoring, now,
        )
        data.append({"provider_id": provider.id, **result.model_dump(mode="json")})
    return json.dumps(data, indent=2)


def cmd_rank(args: argparse.Namespace, settings: Settings, snapshot: MatchSnapshot) -> str:
    """Handle rank subcommand."""
    limit = args.limit if args.limit is not None else settings.ranking.limit
    min_score = args.min_score if args.min_score is not None else settings.ranking.min_score
    ranked = rank_candidates(
        snapshot.job, snapshot.household, snapshot.children, snapshot.providers,
        limit=limit, min_score=min_score, config=settings.scoring, now=args.now,
    )
    data = [
        {
            "provider_id": c.provider.id,
            "name": c.provider.name,
            "score": c.result.score,
            "distance_km": c.result.distance_km,
        }
        for c in ranked
    ]
    return json.dumps(data, indent=2)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config) if args.config else Settings()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        snapshot = load_snapshot(args.snapshot)
        if args.command == "score":
            output = cmd_score(args, settings, snapshot)
        else:
            output = cmd_rank(args, settings, snapshot)
    except (FileNotFoundError, ValidationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(output)


if __name__ == "__main__":
    main()
