#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-22 09:58:40 krylon>
#
# /data/code/python/rssparser/rssparser/model.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.model

(c) 2026 Benjamin Walkenhorst
"""


import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Final, Optional

from bs4 import BeautifulSoup

from rssparser import common

# RFC 1123 with a numeric zone, e.g. "Sat, 27 Jul 2025 13:45:00 +0300"
PubDateFmt: Final[str] = "%a, %d %b %Y %H:%M:%S %z"
PubDateDisplayFmt: Final[str] = "%a, %d %b %Y %H:%M:%S"

# strptime alone is lenient about whitespace, day digits and zone notation.
pub_date_pat: Final[re.Pattern] = \
    re.compile(r"[A-Za-z]{3}, \d{2} [A-Za-z]{3} \d{4} \d{2}:\d{2}:\d{2} [-+]\d{4}", re.ASCII)


def parse_pub_date(txt: str) -> datetime:
    """Parse an RSS publication date. Raise ValueError if the format is not recognized.

    The result is timezone-aware and keeps the offset found in the feed.
    """
    if pub_date_pat.fullmatch(txt) is None:
        raise ValueError(f"time data {txt!r} does not match format {PubDateFmt!r}")
    return datetime.strptime(txt, PubDateFmt)


@dataclass(kw_only=True, slots=True)
class Item:
    """Item is a single entry of an RSS Channel."""

    item_id: int = 0
    channel_id: int = 0
    title: str = ""
    description: str = ""
    pub_date: Optional[datetime] = None

    @property
    def stamp_str(self) -> str:
        """Return the publication date as a properly formatted string.

        If the Item has no publication date, return an empty string.
        """
        if self.pub_date is None:
            return ""
        return self.pub_date.strftime(common.TimeFmt)

    @property
    def pub_date_str(self) -> str:
        """Return the publication date in the style RSS feeds use, minus the offset."""
        if self.pub_date is None:
            return ""
        return self.pub_date.strftime(PubDateDisplayFmt)

    @property
    def plain_description(self) -> str:
        """Return a copy of the Item's description stripped of all HTML elements."""
        soup = BeautifulSoup(self.description, "html.parser")
        return soup.get_text()

    @property
    def clean_description(self) -> str:
        """Return a sanitized copy of the Item's description.

        Scripts are removed, links open in a new tab/window.
        """
        soup = BeautifulSoup(self.description, "html.parser")
        for link in soup.find_all("a"):
            link.attrs["target"] = "_blank"

        for s in soup.find_all("script"):
            s.decompose()

        return str(soup)

    def to_dict(self) -> dict:
        """Return a JSON-friendly representation of the Item."""
        return {
            "id": self.item_id,
            "channel_id": self.channel_id,
            "title": self.title,
            "description": self.description,
            "pub_date": self.pub_date.isoformat() if self.pub_date is not None else None,
        }


@dataclass(kw_only=True, slots=True)
class Channel:
    """Channel is a named collection of Items, as found in an RSS document."""

    channel_id: int = 0
    title: str = ""
    language: str = ""
    description: str = ""
    items: list[Item] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Return a JSON-friendly representation of the Channel, without its Items."""
        return {
            "id": self.channel_id,
            "title": self.title,
            "language": self.language,
            "description": self.description,
        }


@dataclass(kw_only=True, slots=True)
class Rss:
    """Rss is a parsed feed document."""

    channels: list[Channel] = field(default_factory=list)

# Local Variables: #
# python-indent: 4 #
# End: #
