"""
Main CLI for suitebuild.

Each command is a fixed composition of coordinator steps; there are no
options. Run from the directory holding config.json.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .core.utils import log
from .build.config import load_settings
from .build.errors import BuildError
from .build.orchestrator import BuildCoordinator


# =============================================================================
# Argument Parsing
# =============================================================================

COMMAND_HELP = {
    "build": "Build every project at its package.json version, then the suite",
    "next": "Build every project as a NEXT version, then the suite",
    "core": "Run suite-wide steps only (projects are not built)",
    "js": "Only minify and combine the JavaScript sources",
    "cdn": "Stage the newest release set into the CDN directory",
    "cdn:build": "Build the combined bundle, then stage the CDN release",
    "design": "Compile site styles and copy sources and examples to the site",
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per build command."""
    parser = argparse.ArgumentParser(
        prog="suitebuild",
        description="Build coordinator for the library suite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  suitebuild build       # Build all projects and the combined bundle
  suitebuild next        # Same, with NEXT versions
  suitebuild cdn         # Stage the latest release set
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )
    for name, help_text in COMMAND_HELP.items():
        subparsers.add_parser(name, help=help_text, description=help_text)

    return parser


# =============================================================================
# Command Dispatch
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = load_settings(Path.cwd())
        BuildCoordinator(settings).run(args.command)
        return 0

    except KeyboardInterrupt:
        log.warning("Build interrupted")
        return 130
    except BuildError as e:
        log.error(str(e))
        return 1
    except Exception as e:
        log.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
