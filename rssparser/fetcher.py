#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-22 09:58:40 krylon>
#
# /data/code/python/rssparser/rssparser/fetcher.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.fetcher

(c) 2026 Benjamin Walkenhorst

Download the raw bytes of a feed.
"""


import logging
from contextlib import closing
from typing import Final, Optional

import requests

from rssparser import common
from rssparser.common import RSSError
from rssparser.context import Cancelled, Context

chunk_size: Final[int] = 1 << 16
user_agent: Final[str] = f"{common.AppName}/{common.AppVersion}"


class FetchError(RSSError):
    """FetchError indicates a feed could not be downloaded."""


class Fetcher:
    """Fetcher performs a single GET request per URL.

    Requests go through the Session, so its headers, cookies and auth apply.
    """

    __slots__ = [
        "log",
        "session",
        "timeout",
    ]

    log: logging.Logger
    session: requests.Session
    timeout: float

    def __init__(self,
                 session: Optional[requests.Session] = None,
                 timeout: float = 30.0) -> None:
        self.log = common.get_logger("fetcher")
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = user_agent
        self.session = session
        self.timeout = timeout

    def _timeout(self, ctx: Context) -> float:
        remaining: Optional[float] = ctx.remaining()
        if remaining is None:
            return self.timeout
        return min(self.timeout, remaining)

    def fetch(self, ctx: Context, url: str) -> bytes:
        """Download <url> and return the response body."""
        try:
            ctx.check()
        except Cancelled as err:
            raise FetchError(f"failed getting data from {url}: {err}") from err

        timeout: Final[float] = self._timeout(ctx)
        if timeout <= 0:
            raise FetchError(f"failed getting data from {url}: context deadline exceeded")

        try:
            resp = self.session.get(url, timeout=timeout, stream=True)
        except (requests.RequestException, ValueError) as err:
            raise FetchError(f"failed getting data from {url}: {err}") from err

        with closing(resp):
            if resp.status_code != requests.codes.ok:
                raise FetchError(f"unexpected status code: {resp.status_code}")

            body: bytearray = bytearray()
            try:
                for chunk in resp.iter_content(chunk_size):
                    ctx.check()
                    body.extend(chunk)
            except Cancelled as err:
                raise FetchError(f"failed reading data from {url}: {err}") from err
            except requests.RequestException as err:
                raise FetchError(f"failed reading data from {url}: {err}") from err

        self.log.debug("Got %d bytes from %s", len(body), url)
        return bytes(body)

# Local Variables: #
# python-indent: 4 #
# End: #
