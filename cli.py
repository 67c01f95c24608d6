"""
CLI entry point for usernamify. Wires the pipeline: read input -> resolve emails line by line -> write output -> report
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from errors import UsernamifyError
from ingest.github import LazyGitHubClient, client_factory
from resolve.processor import format_unresolved, process_text
from resolve.resolver import IdentityResolver
from storage.users import DEFAULT_DATABASE, UserCache, open_user_cache

logger = logging.getLogger(__name__)

DONE_MESSAGE = "Email addresses replaced with corresponding GitHub usernames."


def _print_json(obj):
    print(json.dumps(obj, indent=2, default=str))


def _confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N]: ")
    return answer.strip().lower() in ("y", "yes")


def _remove_cache_entry(cache: UserCache, email: str, force: bool):
    if not force and not _confirm(f"Are you sure you want to remove {email} from {cache.path}?"):
        print("Aborted cache entry removal.")
        return
    removed = cache.delete(email)
    if removed:
        print(f"Removed {removed} row(s) for email: {email}")
    else:
        print(f"Email not found in cache: {email}")


def _clear_cache(cache: UserCache, force: bool):
    if not force and not _confirm(f"Are you sure you want to clear the cache at {cache.path}? This cannot be undone."):
        print("Aborted cache clear.")
        return
    cache.clear()
    print(f"Cleared cache at {cache.path}")


def _print_cache_entry(cache: UserCache, email: str):
    identity = cache.get_identity(email)
    if identity is None:
        print(f"Email not found in cache: {email}")
    else:
        _print_json(identity.to_dict())


def _cache_action_requested(args) -> bool:
    return bool(args.cache_info or args.cache_list or args.cache_get or args.cache_remove or args.cache_clear)


def _handle_cache_actions(args, cache: UserCache):
    """Run the first requested cache inspection/management action."""
    flag_actions = [
        (args.cache_info, lambda: _print_json(cache.stats())),
        (args.cache_list, lambda: _print_json([i.to_dict() for i in cache.list_identities()])),
        (bool(args.cache_get), lambda: _print_cache_entry(cache, args.cache_get)),
        (bool(args.cache_remove), lambda: _remove_cache_entry(cache, args.cache_remove, args.force)),
        (args.cache_clear, lambda: _clear_cache(cache, args.force)),
    ]
    for enabled, handler in flag_actions:
        if enabled:
            handler()
            return


def read_input(path: Optional[str]) -> str:
    """Read input from the file path if given, or standard input otherwise.

    Line endings are kept as they are so rewritten files only differ where emails were replaced.
    """
    if path:
        try:
            with open(path, "r", encoding="utf-8", newline="") as fh:
                return fh.read()
        except (OSError, UnicodeDecodeError) as ex:
            raise UsernamifyError(f"Failed to read input file {path}: {ex}") from ex
    stream = getattr(sys.stdin, "buffer", None)
    try:
        if stream is not None:
            return stream.read().decode("utf-8")
        return sys.stdin.read()
    except (OSError, UnicodeDecodeError) as ex:
        raise UsernamifyError(f"Failed to read input: {ex}") from ex


def write_output(text: str, args):
    """Write the rewritten text back to the input file (--in-place) or to stdout."""
    if args.in_place and args.input_file:
        try:
            with open(args.input_file, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
        except OSError as ex:
            raise UsernamifyError(f"Failed to write output file {args.input_file}: {ex}") from ex
    else:
        sys.stdout.write(text)
        if text and not text.endswith("\n"):
            sys.stdout.write("\n")


def report_status(unresolved: List[str]):
    """Status goes to stderr so stdout can be piped to other tools or the clipboard."""
    print(DONE_MESSAGE, file=sys.stderr)
    if unresolved:
        print(format_unresolved(unresolved), file=sys.stderr)


def run(args, cache: UserCache) -> int:
    directory = LazyGitHubClient(client_factory(token=args.github_token, base_url=args.api_url))
    resolver = IdentityResolver(cache, directory)
    text = read_input(args.input_file)
    report = process_text(text, resolver)
    write_output(report.text, args)
    logger.info("Replaced emails in %d line(s); %d unresolved", report.replaced_lines, len(report.unresolved))
    report_status(report.unresolved)
    return 0


def _configure_logging(verbose: bool):
    level_name = "DEBUG" if verbose else os.getenv("USERNAMIFY_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="usernamify",
        description="Find and replace email addresses in changelogs with GitHub usernames.",
    )
    parser.add_argument("-f", "--input-file", type=str, default=None, metavar="FILE", help="Input file to read the text from (default: stdin)")
    parser.add_argument(
        "-d",
        "--database",
        type=str,
        default=DEFAULT_DATABASE,
        metavar="DATABASE_URI",
        help="SQLite database to persist user information; created if missing (default: %(default)s, or env USERNAMIFY_DATABASE)",
    )
    parser.add_argument("-i", "--in-place", action="store_true", help="Write the output back to the input file instead of stdout (requires --input-file)")
    parser.add_argument("--github-token", type=str, default=None, help="GitHub API token (or set GITHUB_TOKEN env var); only needed when a lookup hits the API")
    parser.add_argument("--api-url", type=str, default=None, help="GitHub API base URL (or set GITHUB_API_URL env var)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log each lookup to stderr")
    parser.add_argument("--cache-info", action="store_true", help="Show cache statistics and exit")
    parser.add_argument("--cache-list", action="store_true", help="List cached email -> username entries and exit")
    parser.add_argument("--cache-get", type=str, default="", metavar="EMAIL", help="Show the cached entry for an email and exit")
    parser.add_argument("--cache-remove", type=str, default="", metavar="EMAIL", help="Remove the cached entry for an email and exit")
    parser.add_argument("--cache-clear", action="store_true", help="Remove every cached entry and exit")
    parser.add_argument("--force", action="store_true", help="Skip confirmation (use with --cache-remove or --cache-clear)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.in_place and not args.input_file:
        parser.error("--in-place requires --input-file")

    _configure_logging(args.verbose)

    try:
        with open_user_cache(args.database) as cache:
            if _cache_action_requested(args):
                _handle_cache_actions(args, cache)
                return 0
            return run(args, cache)
    except UsernamifyError as ex:
        logger.error("%s", ex)
        return 1


if __name__ == "__main__":
    sys.exit(main())
