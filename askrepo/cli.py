"""Command-line front door for askrepo.

Loads one or more root directories, applies the ignore layers, and writes the
prompt plus selected file contents as a single export document.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .errors import AskRepoError
from .export import SUGGESTED_EXPORT_FILENAME, printable, read_file_text
from .file_tree_model import FileTreeNode, IgnoreReason
from .listing import FileSortOption, format_token_count
from .workspace import Workspace

EXIT_INVALID_ROOT = 2
WAIT_TIMEOUT_SECONDS = 600.0


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="askrepo",
        description="Bundle a prompt and selected repository files into one LLM-ready document.",
    )
    parser.add_argument("directories", nargs="*", help="Root directories to include.")
    prompt_group = parser.add_mutually_exclusive_group()
    prompt_group.add_argument("-p", "--prompt", default=None, help="Prompt text placed before the codebase.")
    prompt_group.add_argument("--prompt-file", default=None, help="Read the prompt from a file.")
    prompt_group.add_argument("-t", "--template", default=None, help="Use a saved prompt template by name.")
    parser.add_argument(
        "-o",
        "--output",
        nargs="?",
        const=SUGGESTED_EXPORT_FILENAME,
        default=None,
        help=f"Write the export to a file (default name: {SUGGESTED_EXPORT_FILENAME}).",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Extra system-ignore pattern for this run (repeatable).",
    )
    parser.add_argument("--no-system-ignores", action="store_true", help="Disable the saved system-ignore list.")
    parser.add_argument("--saved", action="store_true", help="Use saved root directories when none are given.")
    parser.add_argument("--no-save", action="store_true", help="Do not persist the given root directories.")
    parser.add_argument("--tree", action="store_true", help="Print the scanned tree instead of exporting.")
    parser.add_argument("--tokens", action="store_true", help="Print token counts instead of exporting.")
    parser.add_argument(
        "--sort",
        choices=[option.value for option in FileSortOption],
        default=FileSortOption.HIERARCHICAL.value,
        help="Order used by --tokens.",
    )
    parser.add_argument("--list-templates", action="store_true", help="List saved prompt templates and exit.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr.")
    return parser


def _resolve_prompt(args: argparse.Namespace) -> str:
    if args.prompt is not None:
        return args.prompt
    if args.prompt_file is not None:
        try:
            return read_file_text(args.prompt_file)
        except AskRepoError as exc:
            raise SystemExit(exc.message) from exc
    if args.template is not None:
        template = config.find_prompt_template(args.template)
        if template is None:
            raise SystemExit(f"Unknown prompt template: {args.template}")
        return template.content
    return ""


def render_tree(workspace: Workspace) -> str:
    """Indented tree listing with ignore tags and selection marks."""
    lines: list[str] = []

    def visit(node: FileTreeNode, depth: int) -> None:
        indent = "  " * depth
        if node.is_directory:
            label = f"{indent}{node.name}/"
        else:
            mark = "[x]" if workspace.selection.is_selected(node.path) else "[ ]"
            label = f"{indent}{mark} {node.name}"
        if node.is_ignored:
            label += " [gitignored]" if node.ignore_reason is IgnoreReason.GITIGNORE else " [ignored]"
        if node.scan_error is not None:
            label += f" ({node.scan_error.message})"
        lines.append(label)
        for child in node.children:
            visit(child, depth + 1)

    for root in workspace.roots:
        tree = workspace.trees.get(root)
        if tree is not None:
            visit(tree, 0)
    return printable("\n".join(lines))


def render_token_report(workspace: Workspace, sort: FileSortOption) -> str:
    lines: list[str] = []
    for path in workspace.selected_files(sort=sort):
        count = workspace.file_token_count(path)
        lines.append(f"{format_token_count(count):>8}  {workspace.display_path(path)}")
    lines.append(f"{format_token_count(workspace.prompt.token_count):>8}  (prompt)")
    lines.append(f"{format_token_count(workspace.total_tokens):>8}  total")
    return printable("\n".join(lines))


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments, scan roots, and emit the requested output."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.list_templates:
        for template in config.load_prompt_templates():
            first_line = template.content.splitlines()[0] if template.content else ""
            sys.stdout.write(f"{template.name}: {first_line}\n")
        return

    system_ignores = [] if args.no_system_ignores else config.load_system_ignores()
    system_ignores.extend(args.ignore)

    workspace = Workspace(system_ignores, track_tokens=args.tokens)
    directories = list(args.directories)
    if not directories and args.saved:
        # Saved roots that vanished are skipped, not fatal.
        for error in workspace.restore_directories(config.load_root_directories()):
            sys.stderr.write(f"{error.message}\n")
    if not directories and not workspace.roots:
        directories = [str(Path.cwd())]

    for directory in directories:
        error = workspace.add_directory(directory)
        if error is not None:
            sys.stderr.write(f"{error.message}\n{error.recovery_suggestion}\n")
            raise SystemExit(EXIT_INVALID_ROOT)
    if args.directories and not args.no_save:
        config.save_root_directories(workspace.roots)

    prompt = _resolve_prompt(args)
    workspace.prompt_text = prompt
    if args.tokens:
        workspace.prompt.compute_now(prompt)

    if not workspace.wait_idle(WAIT_TIMEOUT_SECONDS):
        sys.stderr.write("Timed out waiting for background work.\n")
    for root, error in workspace.scan_errors.items():
        sys.stderr.write(f"{root}: {error.message}\n")

    if args.tree:
        sys.stdout.write(render_tree(workspace) + "\n")
        return
    if args.tokens:
        sys.stdout.write(render_token_report(workspace, FileSortOption(args.sort)) + "\n")
        return

    if args.output is not None:
        try:
            target = workspace.save_export(args.output)
        except AskRepoError as exc:
            raise SystemExit(exc.message) from exc
        sys.stderr.write(f"Wrote {target}\n")
        return
    sys.stdout.write(workspace.export_text())


if __name__ == "__main__":
    main()
