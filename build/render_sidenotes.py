#!/usr/bin/env python3
"""Render sidenote tags in post sources, one render pass per post."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from jinja2 import Environment, TemplateError

from sidenote_tag import create_environment, render_document

ROOT_DIR = Path(__file__).resolve().parents[1]
CONTENT_DIR = ROOT_DIR / "_posts"
OUTPUT_DIR = ROOT_DIR / "_content" / "posts"

FRONT_MATTER_DELIMITER = "---"
POST_SUFFIXES = (".md", ".markdown", ".html")


def split_front_matter(raw: str) -> Tuple[str, str]:
    """Split ``raw`` into its verbatim front matter block and the body.

    Front matter is never rendered; posts without it return ``("", raw)``.
    """
    lines = raw.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return "", raw

    for idx in range(1, len(lines)):
        if lines[idx].strip() == FRONT_MATTER_DELIMITER:
            return "".join(lines[: idx + 1]), "".join(lines[idx + 1:])

    raise ValueError("Front matter is not closed with '---'")


def render_post(raw: str, environment: Environment) -> str:
    front_matter, body = split_front_matter(raw)
    return front_matter + render_document(body, environment)


def find_post(target: str, content_dir: Path) -> Optional[Path]:
    """Locate a post by path, or by slug under ``content_dir``."""
    path = Path(target)
    if path.is_file():
        return path
    for suffix in POST_SUFFIXES:
        candidate = content_dir / f"{target}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def resolve_targets(targets: Sequence[str], content_dir: Path) -> List[Path]:
    """Resolve slugs or paths; with no targets, every post in ``content_dir``.

    All unknown targets are reported together in one ``FileNotFoundError``.
    """
    if not targets:
        if not content_dir.is_dir():
            return []
        return sorted(p for p in content_dir.iterdir() if p.suffix.lower() in POST_SUFFIXES)

    found = {target: find_post(target, content_dir) for target in targets}
    missing = [target for target, path in found.items() if path is None]
    if missing:
        raise FileNotFoundError("Cannot locate post source for " + ", ".join(repr(t) for t in missing))
    return [path for path in found.values() if path is not None]


def process_file(path: Path, output_dir: Path, environment: Environment) -> Path:
    rendered = render_post(path.read_text(encoding="utf-8"), environment)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / path.name
    output_path.write_text(rendered, encoding="utf-8")
    return output_path


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("targets", nargs="*", help="Post slugs or source paths (default: every post)")
    parser.add_argument("--content-dir", type=Path, default=CONTENT_DIR, help="Directory of post sources")
    parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR, help="Directory for rendered posts")
    parser.add_argument("--stdout", action="store_true", help="Print rendered posts instead of writing files")
    parser.add_argument(
        "--no-escape",
        dest="escape_text",
        action="store_false",
        help="Insert sidenote text verbatim instead of HTML-escaping it",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    environment = create_environment(escape_text=args.escape_text)

    try:
        posts = resolve_targets(args.targets, args.content_dir)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    if not posts:
        print(f"No post sources found in {args.content_dir}", file=sys.stderr)
        return 1

    for path in posts:
        try:
            if args.stdout:
                sys.stdout.write(render_post(path.read_text(encoding="utf-8"), environment))
            else:
                print(f"Wrote {process_file(path, args.output_dir, environment)}")
        except (OSError, ValueError, TypeError, TemplateError) as exc:
            print(f"Failed to process {path}: {exc}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
