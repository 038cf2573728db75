import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from .assets import client_assets, copy_static_dir
from .content import collect_documents
from .errors import ConfigError, DuplicatePermalinkError
from .indexer import Site, build_site
from .render import render_site
from .search_index import render_search_index


@dataclass(frozen=True)
class BuildResult:
    site: Site
    output_dir: Path
    files: Dict[str, str]


def check_paths(cfg: dict):
    content_root = cfg["content_root"]
    output_dir = cfg["output_dir"]

    if not content_root.is_dir():
        raise ConfigError(f"Content directory not found: {content_root}")

    # The output directory is replaced wholesale on every build.
    if output_dir == content_root or output_dir in content_root.parents:
        raise ConfigError(f"Output directory {output_dir} would overwrite the content in {content_root}")
    if output_dir == cfg["static_dir"] or output_dir in cfg["static_dir"].parents:
        raise ConfigError(f"Output directory {output_dir} would overwrite the static files in {cfg['static_dir']}")


def check_static_collisions(files: Dict[str, str], static_dir: Path):
    """Refuse static files that would be overwritten by generated output."""
    if not static_dir.is_dir():
        return
    for path in sorted(static_dir.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(static_dir).as_posix()
        if rel in files:
            raise DuplicatePermalinkError("/" + rel, f"static file {path}", "generated output")


def render_files(cfg: dict):
    """
    Run the whole pipeline in memory.

    Returns (site, { relative output path: contents }). Nothing is written,
    so any error here leaves the previous output untouched.
    """
    documents = collect_documents(cfg["content_root"], cfg)
    site = build_site(documents, cfg)

    files = render_site(site)
    if cfg["enable_search"]:
        files[cfg["search_index_path"]] = render_search_index(site)
    files.update(client_assets(cfg))
    return site, files


def publish(files: Dict[str, str], cfg: dict):
    """
    Write files into a staging directory next to the output dir, then swap
    it into place.
    """
    output_dir = cfg["output_dir"]
    output_dir.parent.mkdir(parents=True, exist_ok=True)

    staging = Path(tempfile.mkdtemp(prefix=f".{output_dir.name}-", dir=output_dir.parent))
    try:
        copy_static_dir(cfg["static_dir"], staging)
        for rel, text in sorted(files.items()):
            dest = staging / rel
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_text(text, encoding="utf-8")
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    previous = None
    if output_dir.exists():
        previous = output_dir.with_name(staging.name + "-old")
        output_dir.rename(previous)
    staging.rename(output_dir)
    if previous is not None:
        shutil.rmtree(previous)

    for rel in sorted(files):
        print(f"Wrote {output_dir / rel}")


def build(cfg: dict) -> BuildResult:
    check_paths(cfg)
    site, files = render_files(cfg)
    check_static_collisions(files, cfg["static_dir"])
    publish(files, cfg)
    print(f"Built {len(site.documents)} documents into {len(files)} files in {cfg['output_dir']}")
    return BuildResult(site=site, output_dir=cfg["output_dir"], files=files)
