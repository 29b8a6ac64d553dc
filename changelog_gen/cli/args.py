"""CLI Argument Parsing"""

import argparse
import argcomplete

from changelog_gen import ANALYSIS_MODES, __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='clg',
        description='Generate AI-assisted changelogs from git history',
        epilog='Example: clg --since "2 weeks ago" --release 1.4.0 -o CHANGELOG.md'
    )

    parser.add_argument('-v', '--version', action='version', version=f'%(prog)s {__version__}')

    # Commit selection
    parser.add_argument('--since', type=str, metavar='DATE', help='Only commits after DATE: --since 2024-01-01')
    parser.add_argument('--range', type=str, dest='revision_range', metavar='FROM..TO', help='Revision range: --range v1.0.0..HEAD')
    parser.add_argument('-n', '--max-commits', type=int, metavar='N', help='Maximum commits to analyze (default: 50)')
    parser.add_argument('--working-tree', action='store_true', help='Include uncommitted changes as an extra entry')

    # Document options
    parser.add_argument('--release', type=str, metavar='VERSION', help='Version for the release header (default: Unreleased)')
    parser.add_argument('--format', type=str, dest='output_format', choices=['markdown', 'json'], help='Output format')
    parser.add_argument('-o', '--output', type=str, metavar='FILE', help='Write the changelog to FILE instead of stdout')
    parser.add_argument('--no-metrics', action='store_true', help='Omit generation metrics from the document')

    # Analysis options
    parser.add_argument('--mode', type=str, choices=ANALYSIS_MODES, help='Analysis depth')
    parser.add_argument('-p', '--provider', type=str, choices=['auto', 'ollama', 'claude'], help='LLM provider')
    parser.add_argument('-m', '--model', type=str, metavar='MODEL', help='Model name (overrides tier selection)')
    parser.add_argument('--no-ai', action='store_true', help='Skip the LLM and use pattern-based analysis only')

    # Diagnostics / setup
    parser.add_argument('--verbose', action='store_true', help='Debug logging and run metrics')
    parser.add_argument('--display-config', action='store_true', help='Show current configuration')
    parser.add_argument('--install-completion', action='store_true', help='Install shell tab completion')

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)
