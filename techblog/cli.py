import argparse
import sys
from pathlib import Path

from .builder import build
from .config import load_config
from .errors import BuildError
from .search import SearchWidget, file_loader
from .server import DEFAULT_PORT, serve


def _source_and_config(args):
    source = Path(args.source).resolve()
    config_path = Path(args.config).resolve() if args.config else None
    return source, config_path


def cmd_build(args) -> int:
    source, config_path = _source_and_config(args)
    cfg = load_config(source, config_path)
    if args.output:
        cfg["output_dir"] = Path(args.output).resolve()
    if args.drafts:
        cfg["include_drafts"] = True
    build(cfg)
    return 0


def cmd_serve(args) -> int:
    source, config_path = _source_and_config(args)
    serve(source, config_path, port=args.port)
    return 0


def cmd_search(args) -> int:
    source, config_path = _source_and_config(args)
    cfg = load_config(source, config_path)
    index_path = Path(args.index) if args.index else cfg["output_dir"] / cfg["search_index_path"]

    widget = SearchWidget(file_loader(index_path), max_results=args.limit or cfg["search_max_results"])
    results = widget.query(args.query)

    if not widget.available:
        print(f"search unavailable: {widget.error}", file=sys.stderr)
        return 1
    if not results:
        print("No matching posts.")
        return 0
    for entry in results:
        print(f'{entry.get("date", "")[:10]}  {entry.get("title", "")}  {entry.get("url", "")}')
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="techblog", description="Build a static blog from Markdown posts.")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_common(p):
        p.add_argument("source", nargs="?", default=".", help="site directory holding config.yml (default: .)")
        p.add_argument("-c", "--config", help="config file (default: <source>/config.yml)")

    p_build = sub.add_parser("build", help="render the site into the output directory")
    add_common(p_build)
    p_build.add_argument("-o", "--output", help="output directory (overrides output_dir)")
    p_build.add_argument("--drafts", action="store_true", help="include draft documents")
    p_build.set_defaults(func=cmd_build)

    p_serve = sub.add_parser("serve", help="build, serve locally, and rebuild on changes")
    add_common(p_serve)
    p_serve.add_argument("-p", "--port", type=int, default=DEFAULT_PORT)
    p_serve.set_defaults(func=cmd_serve)

    p_search = sub.add_parser("search", help="query a built search index")
    p_search.add_argument("query")
    add_common(p_search)
    p_search.add_argument("--index", help="path to the search index JSON")
    p_search.add_argument("-n", "--limit", type=int, help="maximum number of results")
    p_search.set_defaults(func=cmd_search)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except BuildError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
