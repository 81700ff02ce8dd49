#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-21 11:36:52 krylon>
#
# /data/code/python/rssparser/rssparser/main.py
# created on 20. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.main

(c) 2026 Benjamin Walkenhorst
"""


import argparse
import logging
import pathlib
import signal
import sys
from threading import Thread
from typing import Optional, TextIO

from rssparser import common
from rssparser.context import Context
from rssparser.fetcher import Fetcher, FetchError
from rssparser.model import Rss
from rssparser.parser import ParseError, Parser
from rssparser.service import Service
from rssparser.storage import Pool, Storage
from rssparser.web import WebUI


def read_urls(path: pathlib.Path) -> list[str]:
    """Read feed URLs from a file, one per line. Blank lines and comments are skipped."""
    urls: list[str] = []
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if line == "" or line.startswith("#"):
                continue
            urls.append(line)
    return urls


def print_rss(rss: Rss, out: TextIO = sys.stdout) -> None:
    """Print a parsed feed in a human-readable form."""
    for channel in rss.channels:
        print(f"Channel Title: {channel.title}", file=out)
        print(f"Channel Language: {channel.language}", file=out)
        print(f"Channel Description: {channel.description}\n", file=out)

        for item in channel.items:
            print("-" * 78, file=out)
            print(f"Item Title: {item.title}", file=out)
            print(f"Item Description: {item.description}", file=out)
            print(f"Item PubDate: {item.stamp_str}", file=out)


def dump_feed(url: str, timeout: Optional[float]) -> int:
    """Fetch and parse a feed, print it, store nothing."""
    lg: logging.Logger = common.get_logger("main")
    try:
        data: bytes = Fetcher().fetch(Context(timeout), url)
        print_rss(Parser().parse(data))
    except (FetchError, ParseError) as err:
        lg.error("Cannot dump %s: %s", url, err)
        return 1
    return 0


def main() -> None:
    """Run the rssparser application."""
    argp: argparse.ArgumentParser = argparse.ArgumentParser()
    argp.add_argument("-w", "--web",
                      action="store_true",
                      help="Run the web server")
    argp.add_argument("-a", "--address",
                      default="localhost",
                      help="The IP address(es) or hostname to listen on")
    argp.add_argument("-p", "--port",
                      type=int,
                      default=4107,
                      help="The port for the web interface to listen on")
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="The directory to store application-specific files in")
    argp.add_argument("-i", "--import",
                      dest="urls",
                      nargs="+",
                      default=[],
                      metavar="URL",
                      help="Import the given feeds")
    argp.add_argument("-f", "--file",
                      type=pathlib.Path,
                      help="Import the feeds listed in a file, one URL per line")
    argp.add_argument("-d", "--dump",
                      metavar="URL",
                      help="Fetch and parse a feed, print it, but do not store it")
    argp.add_argument("-j", "--workers",
                      type=int,
                      help="The number of feeds to import in parallel (default: number of CPUs)")
    argp.add_argument("-t", "--timeout",
                      type=float,
                      help="Give up an import after this many seconds")

    args = argp.parse_args()

    common.set_basedir(args.basedir)
    lg: logging.Logger = common.get_logger("main")

    if args.dump is not None:
        sys.exit(dump_feed(args.dump, args.timeout))

    urls: list[str] = list(args.urls)
    if args.file is not None:
        urls.extend(read_urls(args.file))

    storage: Storage = Storage(Pool())
    svc: Service = Service(Fetcher(), Parser(), storage, workers=args.workers)

    try:
        if len(urls) > 0:
            lg.info("Importing %d feeds", len(urls))
            try:
                svc.import_feeds(Context(args.timeout), urls)
            except common.RSSError as err:
                print(err, file=sys.stderr)
                if not args.web:
                    sys.exit(1)

        if not args.web:
            return

        srv = WebUI(svc, "", args.address, args.port)
        t = Thread(target=srv.run, daemon=True)
        t.start()

        try:
            signal.pause()
        except KeyboardInterrupt:
            print("Quitting now, bye!")
    finally:
        storage.close()

    print("So long, and thanks for all the fish.")


if __name__ == '__main__':
    main()

# Local Variables: #
# python-indent: 4 #
# End: #
