#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-20 10:41:19 krylon>
#
# /data/code/python/rssparser/rssparser/repository.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.repository

(c) 2026 Benjamin Walkenhorst

Map Channels and Items to rows in the database and back.

A repository is bound to the Gateway it was created with. The classes
double as factories: ChannelRepository(gateway) gives a fresh repository
for the pool or for a transaction alike.
"""


import logging
import sqlite3
from datetime import datetime
from enum import Enum, auto
from typing import Final, Optional

from rssparser import common
from rssparser.common import RSSError
from rssparser.context import Context
from rssparser.model import Channel, Item
from rssparser.storage import Gateway, PersistenceError


class NotFoundError(RSSError):
    """NotFoundError indicates that no record with the requested ID exists."""


class ChannelNotFoundError(NotFoundError):
    """No Channel with the requested ID exists."""


class ItemNotFoundError(NotFoundError):
    """No Item with the requested ID exists."""


class Query(Enum):
    """Query identifies the various operations we perform on the database."""

    ChannelAdd = auto()
    ChannelGetAll = auto()
    ChannelGetByID = auto()
    ChannelUpdate = auto()
    ChannelDelete = auto()

    ItemAdd = auto()
    ItemGetAll = auto()
    ItemGetByChannel = auto()
    ItemGetByID = auto()
    ItemUpdate = auto()
    ItemDelete = auto()


qdb: Final[dict[Query, str]] = {
    Query.ChannelAdd: """
INSERT INTO channel (title, language, description)
             VALUES (    ?,        ?,           ?)
RETURNING id
    """,
    Query.ChannelGetAll: """
SELECT
    id,
    title,
    language,
    description
FROM channel
ORDER BY id
    """,
    Query.ChannelGetByID: """
SELECT
    id,
    title,
    language,
    description
FROM channel
WHERE id = ?
    """,
    Query.ChannelUpdate: """
UPDATE channel
SET title = ?, language = ?, description = ?
WHERE id = ?
RETURNING id, title, language, description
    """,
    Query.ChannelDelete: "DELETE FROM channel WHERE id = ?",

    Query.ItemAdd: """
INSERT INTO item (channel_id, title, description, pub_date)
          VALUES (         ?,     ?,           ?,        ?)
RETURNING id
    """,
    Query.ItemGetAll: """
SELECT
    id,
    channel_id,
    title,
    description,
    pub_date
FROM item
ORDER BY id
    """,
    Query.ItemGetByChannel: """
SELECT
    id,
    channel_id,
    title,
    description,
    pub_date
FROM item
WHERE channel_id = ?
ORDER BY id
    """,
    Query.ItemGetByID: """
SELECT
    id,
    channel_id,
    title,
    description,
    pub_date
FROM item
WHERE id = ?
    """,
    Query.ItemUpdate: """
UPDATE item
SET title = ?, description = ?, pub_date = ?
WHERE id = ?
RETURNING id, channel_id, title, description, pub_date
    """,
    Query.ItemDelete: "DELETE FROM item WHERE id = ?",
}


def _channel_from_row(row: tuple) -> Channel:
    return Channel(
        channel_id=row[0],
        title=row[1],
        language=row[2],
        description=row[3],
    )


def _stamp_to_db(stamp: Optional[datetime]) -> Optional[str]:
    if stamp is None:
        return None
    return stamp.isoformat()


def _item_from_row(row: tuple) -> Item:
    return Item(
        item_id=row[0],
        channel_id=row[1],
        title=row[2],
        description=row[3],
        pub_date=datetime.fromisoformat(row[4]) if row[4] is not None else None,
    )


class ChannelRepository:
    """ChannelRepository stores and loads Channels."""

    __slots__ = [
        "log",
        "db",
    ]

    log: logging.Logger
    db: Gateway

    def __init__(self, db: Gateway) -> None:
        self.log = common.get_logger("repository.channel")
        self.db = db

    def _fail(self, err: Exception, what: str) -> PersistenceError:
        cname: Final[str] = err.__class__.__name__
        msg: Final[str] = f"{cname} trying to {what}: {err}"
        self.log.error(msg)
        return PersistenceError(msg)

    def save(self, ctx: Context, channel: Channel) -> int:
        """Add a Channel (without its Items) to the database and return its new ID."""
        try:
            row = self.db.query_row(ctx,
                                    qdb[Query.ChannelAdd],
                                    (channel.title,
                                     channel.language,
                                     channel.description))
        except sqlite3.Error as err:
            raise self._fail(err, f"add Channel {channel.title}") from err

        if row is None:
            raise PersistenceError(f"Adding Channel {channel.title} did not return an ID")
        return row[0]

    def get_all(self, ctx: Context) -> list[Channel]:
        """Load all Channels from the database."""
        try:
            rows = self.db.query(ctx, qdb[Query.ChannelGetAll])
            return [_channel_from_row(r) for r in rows]
        except (sqlite3.Error, IndexError) as err:
            raise self._fail(err, "load all Channels") from err

    def get_by_id(self, ctx: Context, channel_id: int) -> Channel:
        """Look up a Channel by its ID."""
        try:
            row = self.db.query_row(ctx, qdb[Query.ChannelGetByID], (channel_id, ))
        except sqlite3.Error as err:
            raise self._fail(err, f"load Channel {channel_id}") from err

        if row is None:
            self.log.debug("Channel %d was not found in database", channel_id)
            raise ChannelNotFoundError(f"channel with id={channel_id} not found")

        return _channel_from_row(row)

    def delete(self, ctx: Context, channel_id: int) -> None:
        """Delete a Channel. Its Items must have been removed before."""
        try:
            cnt: int = self.db.execute(ctx, qdb[Query.ChannelDelete], (channel_id, ))
        except sqlite3.Error as err:
            raise self._fail(err, f"delete Channel {channel_id}") from err

        if cnt == 0:
            raise ChannelNotFoundError(f"no channel found with id={channel_id}")

    def update(self,
               ctx: Context,
               channel_id: int,
               title: str,
               language: str,
               description: str) -> Channel:
        """Change a Channel's metadata and return the updated Channel."""
        try:
            row = self.db.query_row(ctx,
                                    qdb[Query.ChannelUpdate],
                                    (title, language, description, channel_id))
        except sqlite3.Error as err:
            raise self._fail(err, f"update Channel {channel_id}") from err

        if row is None:
            raise ChannelNotFoundError(f"no channel found with id={channel_id}")

        return _channel_from_row(row)


class ItemRepository:
    """ItemRepository stores and loads Items."""

    __slots__ = [
        "log",
        "db",
    ]

    log: logging.Logger
    db: Gateway

    def __init__(self, db: Gateway) -> None:
        self.log = common.get_logger("repository.item")
        self.db = db

    def _fail(self, err: Exception, what: str) -> PersistenceError:
        cname: Final[str] = err.__class__.__name__
        msg: Final[str] = f"{cname} trying to {what}: {err}"
        self.log.error(msg)
        return PersistenceError(msg)

    def save(self, ctx: Context, item: Item, channel_id: int) -> int:
        """Add an Item belonging to Channel <channel_id> and return its new ID."""
        try:
            row = self.db.query_row(ctx,
                                    qdb[Query.ItemAdd],
                                    (channel_id,
                                     item.title,
                                     item.description,
                                     _stamp_to_db(item.pub_date)))
        except sqlite3.Error as err:
            raise self._fail(err, f"add Item {item.title}") from err

        if row is None:
            raise PersistenceError(f"Adding Item {item.title} did not return an ID")
        return row[0]

    def _get_items(self, ctx: Context, query: Query, *args) -> list[Item]:
        try:
            rows = self.db.query(ctx, qdb[query], args)
            return [_item_from_row(r) for r in rows]
        except (sqlite3.Error, ValueError, IndexError) as err:
            raise self._fail(err, f"load Items ({query.name})") from err

    def get_all(self, ctx: Context) -> list[Item]:
        """Load all Items from the database."""
        return self._get_items(ctx, Query.ItemGetAll)

    def get_by_channel_id(self, ctx: Context, channel_id: int) -> list[Item]:
        """Load all Items belonging to the given Channel."""
        return self._get_items(ctx, Query.ItemGetByChannel, channel_id)

    def get_by_id(self, ctx: Context, item_id: int) -> Item:
        """Load an Item by its ID"""
        try:
            row = self.db.query_row(ctx, qdb[Query.ItemGetByID], (item_id, ))
            if row is None:
                self.log.debug("Item %d was not found in database", item_id)
                raise ItemNotFoundError(f"item with id={item_id} not found")
            return _item_from_row(row)
        except (sqlite3.Error, ValueError, IndexError) as err:
            raise self._fail(err, f"load Item {item_id}") from err

    def delete(self, ctx: Context, item_id: int) -> None:
        """Delete an Item."""
        try:
            cnt: int = self.db.execute(ctx, qdb[Query.ItemDelete], (item_id, ))
        except sqlite3.Error as err:
            raise self._fail(err, f"delete Item {item_id}") from err

        if cnt == 0:
            raise ItemNotFoundError(f"no item found with id={item_id}")

    def update(self,
               ctx: Context,
               item_id: int,
               title: str,
               description: str,
               pub_date: Optional[datetime]) -> Item:
        """Change an Item and return the updated Item."""
        try:
            row = self.db.query_row(ctx,
                                    qdb[Query.ItemUpdate],
                                    (title, description, _stamp_to_db(pub_date), item_id))
            if row is None:
                raise ItemNotFoundError(f"no item found with id={item_id}")
            return _item_from_row(row)
        except (sqlite3.Error, ValueError, IndexError) as err:
            raise self._fail(err, f"update Item {item_id}") from err

# Local Variables: #
# python-indent: 4 #
# End: #
