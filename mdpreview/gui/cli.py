import argparse
from pathlib import Path
from typing import Optional, Sequence, Tuple

from mdpreview.configs import USER_CONFIG_FILE, get_config

__all__ = ["build_parser", "parse_cli"]


def build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser used by the mdpreview entry point."""
    parser = argparse.ArgumentParser(
        description="Edit a Markdown file with a live, scroll-synchronized preview."
    )
    parser.add_argument(
        "filename",
        nargs="?",
        help="Markdown file to open",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="store_true",
        help="show version and exit",
    )
    parser.add_argument(
        "--no-scroll-sync",
        dest="scroll_sync",
        action="store_false",
        help="keep the preview scroll position independent of the cursor",
        default=argparse.SUPPRESS,
    )
    parser.add_argument(
        "--zoom",
        dest="zoom_percent",
        type=int,
        help="preview zoom in percent",
        default=argparse.SUPPRESS,
    )
    parser.add_argument(
        "--template",
        dest="template_path",
        help="HTML template with <head>, [title] and [content] placeholders",
        default=argparse.SUPPRESS,
    )
    parser.add_argument(
        "--config",
        dest="config",
        default=USER_CONFIG_FILE,
        help=f"config file or yaml format string (default {USER_CONFIG_FILE})",
    )
    return parser


def parse_cli(
    argv: Optional[Sequence[str]] = None,
) -> Tuple[dict, argparse.Namespace, bool]:
    """Parse CLI arguments and return `(config, namespace, version_requested)`."""
    parser = build_parser()
    namespace = parser.parse_args(argv)

    overrides = vars(namespace).copy()
    version_requested = overrides.pop("version", False)
    overrides.pop("filename", None)
    config_file_or_yaml = overrides.pop("config")
    if config_file_or_yaml == USER_CONFIG_FILE and not Path(USER_CONFIG_FILE).exists():
        config_file_or_yaml = None
    config = get_config(config_file_or_yaml, overrides)
    return config, namespace, bool(version_requested)
