#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-20 16:32:50 krylon>
#
# /data/code/python/rssparser/rssparser/test_service.py
# created on 20. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.test_service

(c) 2026 Benjamin Walkenhorst
"""

import os
import shutil
import unittest
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Final, Optional, Sequence

from rssparser import common
from rssparser.context import Context
from rssparser.fetcher import FetchError
from rssparser.model import Channel, Item, Rss
from rssparser.parser import Parser
from rssparser.repository import (ChannelNotFoundError, ChannelRepository,
                                  ItemRepository)
from rssparser.service import FeedImportError, Service
from rssparser.storage import Gateway, PersistenceError, Pool, Storage

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_service_%Y%m%d_%H%M%S"))


# Fakes for testing the Service without a database or network access.

class Journal:
    """Journal records the calls the fakes receive, in order."""

    def __init__(self) -> None:
        self.lock = Lock()
        self.entries: list[tuple] = []

    def add(self, *entry) -> None:
        """Record a call."""
        with self.lock:
            self.entries.append(entry)

    def names(self) -> list[str]:
        """Return just the names of all recorded calls."""
        with self.lock:
            return [e[0] for e in self.entries]


class FakeGateway:
    """FakeGateway records transactions instead of talking to a database."""

    def __init__(self, journal: Journal, name: str = "pool") -> None:
        self.journal = journal
        self.name = name
        self.cnt = 0
        self.lock = Lock()

    def query_row(self, ctx: Context, query: str, args: Sequence[Any] = ()) -> Optional[tuple]:
        raise NotImplementedError

    def query(self, ctx: Context, query: str, args: Sequence[Any] = ()) -> list[tuple]:
        raise NotImplementedError

    def execute(self, ctx: Context, query: str, args: Sequence[Any] = ()) -> int:
        raise NotImplementedError

    def with_transaction(self, ctx: Context, fn: Callable[[Gateway], Any]) -> Any:
        with self.lock:
            self.cnt += 1
            tx = FakeGateway(self.journal, f"tx{self.cnt}")
        self.journal.add("begin", tx.name)
        try:
            res = fn(tx)  # type: ignore
        except Exception:
            self.journal.add("rollback", tx.name)
            raise
        self.journal.add("commit", tx.name)
        return res


class FakeChannelRepo:
    """Records calls, hands out increasing IDs."""

    ids: int = 0
    lock: Lock = Lock()

    def __init__(self, db: FakeGateway) -> None:
        self.db = db

    def save(self, ctx: Context, channel: Channel) -> int:
        with FakeChannelRepo.lock:
            FakeChannelRepo.ids += 1
            cid = FakeChannelRepo.ids
        self.db.journal.add("channel.save", self.db.name, channel.title, cid)
        return cid

    def delete(self, ctx: Context, channel_id: int) -> None:
        self.db.journal.add("channel.delete", self.db.name, channel_id)


class FakeItemRepo:
    """Records calls, can be told to fail deleting a particular Item."""

    def __init__(self, db: FakeGateway, items: Optional[list[Item]] = None, fail_on: int = -1) -> None:
        self.db = db
        self.items = items or []
        self.fail_on = fail_on

    def save(self, ctx: Context, item: Item, channel_id: int) -> int:
        self.db.journal.add("item.save", self.db.name, item.title, channel_id)
        return 1

    def get_by_channel_id(self, ctx: Context, channel_id: int) -> list[Item]:
        self.db.journal.add("item.get_by_channel_id", self.db.name, channel_id)
        return self.items

    def delete(self, ctx: Context, item_id: int) -> None:
        if item_id == self.fail_on:
            raise PersistenceError(f"Cannot delete Item {item_id}")
        self.db.journal.add("item.delete", self.db.name, item_id)


class FakeFetcher:
    """Returns the URL as the document, fails for the URLs it is told to."""

    def __init__(self, failing: Optional[set[str]] = None) -> None:
        self.failing = failing or set()
        self.calls: list[str] = []
        self.lock = Lock()

    def fetch(self, ctx: Context, url: str) -> bytes:
        with self.lock:
            self.calls.append(url)
        if url in self.failing:
            raise FetchError(f"Cannot fetch {url}: connection refused")
        return url.encode()


class FakeParser:
    """Turns every document into one Channel with two Items."""

    def parse(self, data: bytes) -> Rss:
        title: Final[str] = data.decode()
        return Rss(channels=[
            Channel(title=title,
                    items=[Item(title=f"{title} #1"), Item(title=f"{title} #2")]),
        ])


def make_service(journal: Journal,
                 fetcher: Optional[FakeFetcher] = None,
                 items: Optional[list[Item]] = None,
                 fail_on: int = -1,
                 workers: Optional[int] = None) -> Service:
    """Assemble a Service from the fakes."""
    return Service(fetcher or FakeFetcher(),
                   FakeParser(),
                   FakeGateway(journal),  # type: ignore
                   channel_factory=FakeChannelRepo,  # type: ignore
                   item_factory=lambda db: FakeItemRepo(db, items, fail_on),  # type: ignore
                   workers=workers)


class TestService(unittest.TestCase):
    """Test the Service using fake collaborators."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def test_01_import_feed(self) -> None:
        """A feed is stored in one transaction, Channel first, then its Items."""
        journal: Final[Journal] = Journal()
        svc: Final[Service] = make_service(journal)

        svc.import_feed(Context(), "u1")

        e = journal.entries
        self.assertEqual([x[0] for x in e],
                         ["begin", "channel.save", "item.save", "item.save", "commit"])
        # Everything happened in the same transaction.
        self.assertEqual({x[1] for x in e}, {"tx1"})
        cid = e[1][3]
        self.assertEqual(e[2][2:], ("u1 #1", cid))
        self.assertEqual(e[3][2:], ("u1 #2", cid))

    def test_02_import_same_url_twice(self) -> None:
        """Every URL is imported in its own transaction, even duplicates."""
        journal: Final[Journal] = Journal()
        fetcher: Final[FakeFetcher] = FakeFetcher()
        svc: Final[Service] = make_service(journal, fetcher, workers=1)

        svc.import_feeds(Context(), ["u1", "u1"])

        self.assertEqual(fetcher.calls, ["u1", "u1"])
        names: Final[list[str]] = journal.names()
        self.assertEqual(names.count("begin"), 2)
        self.assertEqual(names.count("commit"), 2)
        self.assertEqual(names.count("channel.save"), 2)
        self.assertEqual(names.count("item.save"), 4)

    def test_03_import_nothing(self) -> None:
        """Importing an empty list of URLs does nothing, successfully."""
        journal: Final[Journal] = Journal()
        svc: Final[Service] = make_service(journal)

        svc.import_feeds(Context(), [])
        self.assertEqual(journal.entries, [])

    def test_04_failures_are_collected(self) -> None:
        """All failing feeds are reported, the others are imported anyway."""
        journal: Final[Journal] = Journal()
        urls: Final[list[str]] = [f"https://feed{i:02d}.example.org/" for i in range(9)]
        bad: Final[set[str]] = {urls[1], urls[4], urls[8]}
        fetcher: Final[FakeFetcher] = FakeFetcher(bad)
        svc: Final[Service] = make_service(journal, fetcher, workers=3)

        with self.assertRaises(FeedImportError) as cm:
            svc.import_feeds(Context(), urls)

        err: Final[FeedImportError] = cm.exception
        self.assertEqual(len(err.failures), 3)
        for url in bad:
            self.assertEqual(sum(1 for f in err.failures if f.startswith(f"URL: {url}, ")), 1)
        self.assertTrue(str(err).startswith("failed to import 3 feeds: - URL: "))
        self.assertIn("connection refused", str(err))

        self.assertEqual(sorted(fetcher.calls), sorted(urls))
        self.assertEqual(journal.names().count("commit"), 6)

    def test_05_default_workers(self) -> None:
        """Without an explicit number of workers, there is at least one."""
        svc: Final[Service] = make_service(Journal())
        self.assertGreaterEqual(svc.workers, 1)
        self.assertEqual(make_service(Journal(), workers=0).workers, svc.workers)
        self.assertEqual(make_service(Journal(), workers=5).workers, 5)

    def test_06_cancelled(self) -> None:
        """With a cancelled Context, every URL is reported as failed."""
        journal: Final[Journal] = Journal()
        fetcher: Final[FakeFetcher] = FakeFetcher()
        svc: Final[Service] = make_service(journal, fetcher, workers=2)
        urls: Final[list[str]] = ["a", "b", "c", "d"]
        ctx: Final[Context] = Context()
        ctx.cancel()

        with self.assertRaises(FeedImportError) as cm:
            svc.import_feeds(ctx, urls)

        self.assertEqual(len(cm.exception.failures), len(urls))
        for f in cm.exception.failures:
            self.assertIn("context canceled", f)
        self.assertEqual(fetcher.calls, [])
        self.assertEqual(journal.entries, [])

    def test_07_delete_channel(self) -> None:
        """Deleting a Channel deletes its Items first, all in one transaction."""
        journal: Final[Journal] = Journal()
        items: Final[list[Item]] = [Item(item_id=i, channel_id=7) for i in (11, 12, 13)]
        svc: Final[Service] = make_service(journal, items=items)

        svc.delete_channel(Context(), 7)

        e = journal.entries
        self.assertEqual([x[0] for x in e],
                         ["begin",
                          "item.get_by_channel_id",
                          "item.delete",
                          "item.delete",
                          "item.delete",
                          "channel.delete",
                          "commit"])
        self.assertEqual({x[1] for x in e}, {"tx1"})
        self.assertEqual([x[2] for x in e if x[0] == "item.delete"], [11, 12, 13])
        self.assertEqual(e[5][2], 7)

    def test_08_delete_channel_fail(self) -> None:
        """If deleting an Item fails, the Channel is left alone and nothing is committed."""
        journal: Final[Journal] = Journal()
        items: Final[list[Item]] = [Item(item_id=i, channel_id=7) for i in (11, 12, 13)]
        svc: Final[Service] = make_service(journal, items=items, fail_on=12)

        with self.assertRaises(PersistenceError):
            svc.delete_channel(Context(), 7)

        names: Final[list[str]] = journal.names()
        self.assertNotIn("channel.delete", names)
        self.assertNotIn("commit", names)
        self.assertEqual(names[-1], "rollback")


class FlakyItemRepository(ItemRepository):
    """An ItemRepository that fails on the second Item it is asked to save."""

    __slots__ = ["cnt"]

    def __init__(self, db: Gateway) -> None:
        super().__init__(db)
        self.cnt = 0

    def save(self, ctx: Context, item: Item, channel_id: int) -> int:
        self.cnt += 1
        if self.cnt == 2:
            raise PersistenceError("Simulated failure")
        return super().save(ctx, item, channel_id)


class TestServiceStorage(unittest.TestCase):
    """Test the Service against a real database."""

    conn: Optional[Storage] = None

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)
        cls.conn = Storage(Pool(os.path.join(test_dir, "test_service.db")))

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        if cls.conn is not None:
            cls.conn.close()
        shutil.rmtree(test_dir, ignore_errors=True)

    @classmethod
    def db(cls) -> Storage:
        """Return the database."""
        if cls.conn is not None:
            return cls.conn

        raise ValueError("No Database connection exists")

    def channel_titles(self) -> list[str]:
        """Return the titles of all Channels in the database."""
        return [c.title for c in ChannelRepository(self.db()).get_all(Context())]

    def test_01_atomic_import(self) -> None:
        """A feed that cannot be stored completely is not stored at all."""
        svc: Final[Service] = Service(FakeFetcher(),
                                      FakeParser(),
                                      self.db(),
                                      item_factory=FlakyItemRepository)

        with self.assertRaises(PersistenceError):
            svc.import_feed(Context(), "flaky")

        self.assertNotIn("flaky", self.channel_titles())
        self.assertEqual(ItemRepository(self.db()).get_all(Context()), [])

    def test_02_partial_batch(self) -> None:
        """One feed failing does not keep the others from being stored."""
        svc: Final[Service] = Service(FakeFetcher({"b"}),
                                      FakeParser(),
                                      self.db(),
                                      workers=2)

        with self.assertRaises(FeedImportError) as cm:
            svc.import_feeds(Context(), ["a", "b", "c"])

        self.assertEqual(len(cm.exception.failures), 1)
        self.assertTrue(cm.exception.failures[0].startswith("URL: b, Error: "))

        titles: Final[list[str]] = self.channel_titles()
        self.assertIn("a", titles)
        self.assertIn("c", titles)
        self.assertNotIn("b", titles)

    def test_03_parse_real_document(self) -> None:
        """Import a real RSS document and look at the result."""
        doc: Final[bytes] = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Real Channel</title>
    <language>en</language>
    <description>A channel</description>
    <item>
      <title>Real Item</title>
      <description>Some text</description>
      <pubDate>Sat, 27 Jul 2025 13:45:00 +0300</pubDate>
    </item>
  </channel>
</rss>
"""

        class DocFetcher:  # pylint: disable-msg=R0903
            """Always returns the same document."""

            def fetch(self, ctx: Context, url: str) -> bytes:
                """Return the document."""
                return doc

        svc: Final[Service] = Service(DocFetcher(), Parser(), self.db())
        ctx: Final[Context] = Context()
        svc.import_feeds(ctx, ["https://real.example.org/rss"])

        channels: Final[list[Channel]] = [c for c in svc.get_channels(ctx)
                                          if c.title == "Real Channel"]
        self.assertEqual(len(channels), 1)
        c: Final[Channel] = channels[0]
        self.assertEqual(svc.get_channel_by_id(ctx, c.channel_id), c)

        items: Final[list[Item]] = svc.get_items_by_channel_id(ctx, c.channel_id)
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].title, "Real Item")
        self.assertIsNotNone(items[0].pub_date)
        self.assertEqual(svc.get_item_by_id(ctx, items[0].item_id), items[0])

    def test_04_update(self) -> None:
        """Changes made through the Service are stored."""
        ctx: Final[Context] = Context()
        svc: Final[Service] = Service(FakeFetcher(), FakeParser(), self.db())
        c: Final[Channel] = svc.get_channels(ctx)[0]

        c2: Final[Channel] = svc.update_channel(ctx, c.channel_id, "Renamed", "fr", "Texte")
        self.assertEqual(c2.title, "Renamed")
        self.assertEqual(svc.get_channel_by_id(ctx, c.channel_id), c2)

        i: Final[Item] = svc.get_items_by_channel_id(ctx, c.channel_id)[0]
        i2: Final[Item] = svc.update_item(ctx, i.item_id, "Other", "Desc", None)
        self.assertEqual(i2.title, "Other")
        self.assertIsNone(i2.pub_date)
        self.assertEqual(svc.get_item_by_id(ctx, i.item_id), i2)

    def test_05_delete_channel(self) -> None:
        """Deleting a Channel removes its Items as well."""
        ctx: Final[Context] = Context()
        svc: Final[Service] = Service(FakeFetcher(), FakeParser(), self.db())
        c: Final[Channel] = svc.get_channels(ctx)[0]
        self.assertGreater(len(svc.get_items_by_channel_id(ctx, c.channel_id)), 0)
        total: Final[int] = len(svc.get_items(ctx))

        svc.delete_channel(ctx, c.channel_id)

        with self.assertRaises(ChannelNotFoundError):
            svc.get_channel_by_id(ctx, c.channel_id)
        self.assertEqual(svc.get_items_by_channel_id(ctx, c.channel_id), [])
        self.assertLess(len(svc.get_items(ctx)), total)

        with self.assertRaises(ChannelNotFoundError):
            svc.delete_channel(ctx, c.channel_id)

    def test_06_delete_item(self) -> None:
        """Delete a single Item."""
        ctx: Final[Context] = Context()
        svc: Final[Service] = Service(FakeFetcher(), FakeParser(), self.db())
        i: Final[Item] = svc.get_items(ctx)[0]

        svc.delete_item(ctx, i.item_id)
        self.assertNotIn(i.item_id, [x.item_id for x in svc.get_items(ctx)])

# Local Variables: #
# python-indent: 4 #
# End: #
