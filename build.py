#!/usr/bin/env python3
"""
Build the site in this directory.

  python build.py            # same as: techblog build .
  python build.py serve      # build, serve on :8000, rebuild on change
"""
import sys

from techblog.cli import main

if __name__ == "__main__":
    args = sys.argv[1:]
    if not args or args[0] not in ("build", "serve", "search"):
        args = ["build"] + args
    sys.exit(main(args))
