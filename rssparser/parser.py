#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 15:58:40 krylon>
#
# /data/code/python/rssparser/rssparser/parser.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.parser

(c) 2026 Benjamin Walkenhorst

Turn the raw bytes of an RSS document into Channels and Items.

Publication dates are decoded along with the rest of the document, so a
single bad date makes the whole document invalid.
"""


import xml.etree.ElementTree as ET
from typing import Iterator

from rssparser.common import RSSError
from rssparser.model import Channel, Item, Rss, parse_pub_date


class ParseError(RSSError):
    """ParseError indicates a document that is not a valid RSS feed."""


def _localname(tag: str) -> str:
    """Strip the namespace from an element's tag."""
    return tag.rpartition("}")[2]


def _children(elem: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in elem:
        if isinstance(child.tag, str) and _localname(child.tag) == name:
            yield child


def _text(elem: ET.Element, name: str) -> str:
    """Return the text of the last child element called <name>, or an empty string."""
    txt: str = ""
    for child in _children(elem, name):
        txt = "".join(child.itertext())
    return txt


def _decode_item(elem: ET.Element) -> Item:
    item: Item = Item(
        title=_text(elem, "title"),
        description=_text(elem, "description"),
    )

    for child in _children(elem, "pubDate"):
        raw: str = "".join(child.itertext())
        try:
            item.pub_date = parse_pub_date(raw)
        except ValueError as err:
            raise ParseError(f"invalid pubDate {raw!r}: {err}") from err

    return item


def _decode_channel(elem: ET.Element) -> Channel:
    return Channel(
        title=_text(elem, "title"),
        language=_text(elem, "language"),
        description=_text(elem, "description"),
        items=[_decode_item(x) for x in _children(elem, "item")],
    )


def parse(data: bytes) -> Rss:
    """Parse an RSS document. Raise ParseError if it is malformed."""
    try:
        root: ET.Element = ET.fromstring(data)
    except (ET.ParseError, ValueError) as err:
        raise ParseError(f"failed unmarshalling xml data: {err}") from err

    try:
        return Rss(channels=[_decode_channel(x) for x in _children(root, "channel")])
    except ParseError as err:
        raise ParseError(f"failed unmarshalling xml data: {err}") from err


class Parser:
    """Parser wraps parse() so it can be handed around, and replaced in tests."""

    __slots__: list[str] = []

    def parse(self, data: bytes) -> Rss:
        """Parse an RSS document. Raise ParseError if it is malformed."""
        return parse(data)

# Local Variables: #
# python-indent: 4 #
# End: #
