"""CLI Main Entry Point"""

import dataclasses
import logging
import os
import sys
from pathlib import Path

from changelog_gen.ai import ChangelogSummarizer
from changelog_gen.changelog import ChangelogResult, ChangelogService
from changelog_gen.config import Config, ENV_OVERRIDES, load_config
from changelog_gen.git import GitAnalyzer, GitError
from changelog_gen.llm import LLMError, describe_provider_error, get_client
from changelog_gen.metrics import Metrics
from changelog_gen.output import (
    Spinner, bold, colorize_document, dim, info, print_error, print_success, print_warning,
)

from changelog_gen.cli.args import parse_args
from changelog_gen.cli.commands import display_config, run_install_completion

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
PATTERN_ONLY_NOTICE = "AI provider unavailable, using pattern-based analysis"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _handle_subcommands(args):
    """Handle subcommands that exit early.

    Returns:
        tuple: (exit_code, should_exit) - exit_code if should_exit is True
    """
    if args.install_completion:
        return run_install_completion(), True
    if args.display_config:
        return display_config(), True
    return 0, False


def resolve_settings(args, config: Config, environ=None) -> Config:
    """Merge config file, environment and flags.

    Precedence: CLI args > environment variables > config file
    """
    environ = os.environ if environ is None else environ
    values = {attr: environ[var] for var, attr in ENV_OVERRIDES.items() if environ.get(var)}

    flag_values = {
        'provider': args.provider,
        'model': args.model,
        'analysis_mode': args.mode,
        'output_format': args.output_format,
        'output_file': args.output,
        'max_commits': args.max_commits,
    }
    values.update({k: v for k, v in flag_values.items() if v is not None})
    if args.no_metrics:
        values['include_metrics'] = False

    resolved = dataclasses.replace(config, **values)
    for warning in resolved.validate():
        print_warning(warning)
    return resolved


def _build_provider(settings: Config, no_ai: bool):
    """Return a provider, or None when AI analysis is off or unavailable."""
    if no_ai:
        return None
    try:
        client = get_client(provider=settings.provider, model=settings.model)
    except LLMError as e:
        context = describe_provider_error(e)
        logger.debug("Provider setup failed (%s): %s", context.kind, e)
        print_warning(PATTERN_ONLY_NOTICE)
        for suggestion in context.suggestions:
            print(dim(f"  {suggestion}"), file=sys.stderr)
        return None
    return client


def _emit(result: ChangelogResult, settings: Config) -> None:
    if settings.output_file:
        path = Path(settings.output_file)
        path.write_text(result.document, encoding='utf-8')
        print_success(f"Wrote {len(result.entries)} entries to {path}")
    elif sys.stdout.isatty() and settings.output_format == 'markdown':
        print(colorize_document(result.document), end='')
    else:
        print(result.document, end='')


def _print_verbose_stats(metrics: Metrics, result: ChangelogResult) -> None:
    stats = metrics.to_dict()
    print(dim(f"  Commits: {stats['commits_processed']} processed, {len(result.skipped)} skipped"), file=sys.stderr)
    print(dim(f"  AI calls: {stats['api_calls']}, tokens: {stats['total_tokens']}"), file=sys.stderr)
    print(dim(f"  Rule-based: {stats['rule_based_summaries']} by choice, {stats['rule_based_fallbacks']} after errors"), file=sys.stderr)
    print(dim(f"  Duration: {stats['duration_seconds']:.2f}s"), file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)
    _configure_logging(args.verbose)

    exit_code, should_exit = _handle_subcommands(args)
    if should_exit:
        return exit_code

    settings = resolve_settings(args, load_config())

    try:
        analyzer = GitAnalyzer()
    except GitError as e:
        print_error(str(e))
        return 1

    metrics = Metrics()
    provider = _build_provider(settings, args.no_ai)
    summarizer = ChangelogSummarizer(
        provider,
        metrics,
        analysis_mode=settings.analysis_mode,
        model_override=settings.model,
    )
    if provider is not None and not summarizer.ai_available:
        print_warning(PATTERN_ONLY_NOTICE)

    if sys.stderr.isatty():
        source = info(provider.name) if provider is not None else dim('pattern analysis')
        branch = analyzer.get_current_branch() or 'HEAD'
        print(f"Generating changelog for {bold(branch)} using {source}... ", file=sys.stderr)

    service = ChangelogService(analyzer, summarizer, metrics)
    try:
        with Spinner(bold("Analyzing commits")):
            result = service.generate(
                since=args.since,
                revision_range=args.revision_range,
                limit=settings.max_commits,
                version=args.release,
                include_working_tree=args.working_tree,
                output_format=settings.output_format,
                include_metrics=settings.include_metrics,
                include_attribution=settings.include_attribution,
            )
    except GitError as e:
        print_error(str(e))
        return 1

    _emit(result, settings)
    if args.verbose:
        _print_verbose_stats(metrics, result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
