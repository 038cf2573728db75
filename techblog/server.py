import functools
import http.server
import socketserver
import sys
import threading
from pathlib import Path
from typing import Callable, Dict, Optional

from .builder import build
from .config import load_config
from .errors import BuildError

DEFAULT_PORT = 8000


def snapshot(cfg: dict) -> Dict[str, float]:
    """Modification times of everything a rebuild depends on."""
    mtimes = {}
    for root in (cfg["content_root"], cfg["static_dir"]):
        if not root.is_dir():
            continue
        for path in root.rglob("*"):
            if path.is_file():
                mtimes[str(path)] = path.stat().st_mtime
    config_path = cfg["config_path"]
    if config_path.exists():
        mtimes[str(config_path)] = config_path.stat().st_mtime
    return mtimes


class Watcher(threading.Thread):
    """
    Poll the source tree and call `rebuild` whenever it changes.

    `rebuild` returns the config it built with, or None if the build
    failed; the watcher follows the new config's directories from then on.
    """

    def __init__(self, cfg: dict, rebuild: Callable[[], Optional[dict]], interval: float):
        super().__init__(daemon=True)
        self.cfg = cfg
        self.rebuild = rebuild
        self.interval = interval
        self.stop_event = threading.Event()
        self.last = snapshot(cfg)

    def check(self) -> bool:
        current = snapshot(self.cfg)
        if current == self.last:
            return False
        self.last = current
        cfg = self.rebuild()
        if cfg is not None:
            self.cfg = cfg
            self.last = snapshot(cfg)
        return True

    def run(self):
        while not self.stop_event.wait(self.interval):
            self.check()

    def stop(self):
        self.stop_event.set()


class SiteHandler(http.server.SimpleHTTPRequestHandler):
    def log_message(self, format, *args):
        sys.stderr.write("%s - %s\n" % (self.address_string(), format % args))


class SiteServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True


def make_rebuilder(source_dir: Path, config_path=None) -> Callable[[], Optional[dict]]:
    """
    A failed rebuild is reported and the last good output keeps being served.
    """
    def rebuild() -> Optional[dict]:
        try:
            cfg = load_config(source_dir, config_path)
            build(cfg)
        except BuildError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            print("Keeping previous build.", file=sys.stderr)
            return None
        return cfg

    return rebuild


def serve(source_dir: Path, config_path=None, port: int = DEFAULT_PORT):
    cfg = load_config(source_dir, config_path)
    build(cfg)

    watcher = Watcher(cfg, make_rebuilder(source_dir, config_path), cfg["watch_interval"])
    watcher.start()

    # The output dir is swapped on rebuild but keeps its path.
    handler = functools.partial(SiteHandler, directory=str(cfg["output_dir"]))
    httpd = SiteServer(("", port), handler)

    print(f"Serving {cfg['output_dir']} at http://localhost:{port}")
    sys.stdout.flush()

    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()
        httpd.server_close()
