"""CLI entrypoints for autotag commands."""

from __future__ import annotations

import argparse
import asyncio
from typing import Mapping

from .canonical import AliasTable, Canonicalizer
from .change_detector import ChangeDetector
from .config import AutotagConfig, ConfigError, RunInputs, load_config, resolve_run_inputs
from .extractor import Extractor
from .extractors import discover_parsers
from .github import GitHubClient, LedgerPublisher, TopicSynchronizer
from .logging import configure_logging, get_logger
from .orchestrator import ReconciliationEngine
from .outputs import ActionOutputs
from .repo_scanner import RepoScanner
from .stores import LedgerPersistenceError, LedgerStore
from .verifier import TechVerifier

SKIP_MESSAGE = "No changes in dependencies or techs.json since last run"


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autotag",
        description="Detect the technologies a repository uses and publish them as topics.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Detect technologies, update the ledger and reconcile repository topics.",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    run_parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Path to the repository root (defaults to GITHUB_WORKSPACE or the current directory).",
    )
    run_parser.add_argument(
        "--full",
        action="store_true",
        default=None,
        help="Accept every detected technology instead of pruning unverified ones.",
    )
    run_parser.add_argument(
        "--token",
        default=None,
        help="GitHub token (defaults to INPUT_TOKEN or GITHUB_TOKEN).",
    )
    run_parser.add_argument(
        "--repository",
        default=None,
        help="Repository as owner/repo (defaults to GITHUB_REPOSITORY).",
    )
    run_parser.add_argument(
        "--skip-change-detection",
        action="store_true",
        default=None,
        help="Run even when dependencies and the ledger are unchanged.",
    )
    return parser


def main(argv: list[str] | None = None, *, environ: Mapping[str, str] | None = None) -> None:
    """CLI entrypoint for autotag commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command != "run":  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")

    try:
        inputs = resolve_run_inputs(
            path=args.path,
            token=args.token,
            repository=args.repository,
            full=args.full,
            skip_change_detection=args.skip_change_detection,
            environ=environ,
        )
        config = load_config(inputs.workspace)
    except ConfigError as exc:
        parser.exit(2, f"{exc}\n")

    outputs = ActionOutputs(environ=environ)
    try:
        asyncio.run(run_autotag(config, inputs, outputs))
    except ConfigError as exc:
        parser.exit(2, f"{exc}\n")
    except LedgerPersistenceError as exc:
        parser.exit(1, f"autotag run failed: {exc}\n")
    except RuntimeError as exc:
        parser.exit(1, f"autotag run failed: {exc}\nRun with --verbose for more details.\n")


async def run_autotag(
    config: AutotagConfig,
    inputs: RunInputs,
    outputs: ActionOutputs,
    *,
    github: GitHubClient | None = None,
    verifier: TechVerifier | None = None,
) -> None:
    """Run one reconciliation for ``inputs.workspace`` and record its outputs.

    ``github`` and ``verifier`` default to clients built from ``config`` and
    ``inputs``; clients passed in are not closed here.
    """
    logger = get_logger("cli")
    try:
        parsers = discover_parsers(config.parsers)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
    extractor = Extractor(RepoScanner(config.exclude_paths), parsers)
    extraction = await asyncio.to_thread(extractor.scan, inputs.workspace)

    detector = ChangeDetector(inputs.workspace, config.ledger_path)
    if not detector.should_run(extraction.dependencies, skip=inputs.skip_change_detection):
        logger.info(SKIP_MESSAGE)
        outputs.set_skip_message(SKIP_MESSAGE)
        return

    github_client = github or GitHubClient(inputs.token, inputs.owner, inputs.repo)
    tech_verifier = verifier or TechVerifier(
        config.verification.base_url,
        max_retries=config.verification.max_retries,
        backoff_base=config.verification.backoff_base,
        timeout=config.verification.timeout,
    )
    try:
        engine = ReconciliationEngine(
            extractor=extractor,
            canonicalizer=Canonicalizer(AliasTable.load(config.aliases, config.plugin_prefixes)),
            verifier=tech_verifier,
            ledger_store=LedgerStore(config.ledger_path),
            topics=TopicSynchronizer(github_client, max_topics=config.topics.max_topics),
            languages=github_client,
            publisher=LedgerPublisher(github_client, config.ledger.path) if config.ledger.commit else None,
            request_delay=config.verification.request_delay,
        )
        outcome = await engine.run(inputs.workspace, full=inputs.full, extraction=extraction)
    finally:
        if github is None:
            await github_client.aclose()
        if verifier is None:
            await tech_verifier.aclose()

    outputs.save_detected_techs(outcome.dependencies)
    if outcome.skipped:
        outputs.set_skip_message(outcome.skip_reason or "Nothing to do")
    else:
        outputs.save_created_topics(outcome.published)
    detector.save_last_run(extraction.dependencies)


if __name__ == "__main__":  # pragma: no cover
    main()
