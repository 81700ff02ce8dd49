#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-20 13:55:27 krylon>
#
# /data/code/python/rssparser/rssparser/service.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.service

(c) 2026 Benjamin Walkenhorst

Service implements importing feeds - one at a time or many in parallel -
and the operations on the stored Channels and Items.
"""


import logging
import os
from datetime import datetime
from queue import SimpleQueue
from threading import Thread
from typing import Callable, Final, Optional, Protocol

from rssparser import common
from rssparser.common import RSSError
from rssparser.context import Context
from rssparser.model import Channel, Item, Rss
from rssparser.repository import ChannelRepository, ItemRepository
from rssparser.storage import Gateway

ChannelFactory = Callable[[Gateway], ChannelRepository]
ItemFactory = Callable[[Gateway], ItemRepository]


class FeedImportError(RSSError):
    """FeedImportError sums up all the feeds that could not be imported in one batch."""

    failures: list[str]

    def __init__(self, failures: list[str]) -> None:
        self.failures = failures
        super().__init__(
            f"failed to import {len(failures)} feeds: - {'; - '.join(failures)}")


class FeedFetcher(Protocol):  # pylint: disable-msg=R0903
    """Anything that can download a feed."""

    def fetch(self, ctx: Context, url: str) -> bytes:
        """Download <url> and return the response body."""


class FeedParser(Protocol):  # pylint: disable-msg=R0903
    """Anything that can turn a feed document into an Rss."""

    def parse(self, data: bytes) -> Rss:
        """Parse an RSS document."""


class Service:
    """Service ties together the Fetcher, the Parser and the database."""

    __slots__ = [
        "log",
        "fetcher",
        "parser",
        "storage",
        "channel_factory",
        "item_factory",
        "workers",
    ]

    log: logging.Logger
    fetcher: FeedFetcher
    parser: FeedParser
    storage: Gateway
    channel_factory: ChannelFactory
    item_factory: ItemFactory
    workers: int

    def __init__(self,  # pylint: disable-msg=R0913
                 fetcher: FeedFetcher,
                 parser: FeedParser,
                 storage: Gateway,
                 channel_factory: ChannelFactory = ChannelRepository,
                 item_factory: ItemFactory = ItemRepository,
                 workers: Optional[int] = None) -> None:
        self.log = common.get_logger("service")
        self.fetcher = fetcher
        self.parser = parser
        self.storage = storage
        self.channel_factory = channel_factory
        self.item_factory = item_factory
        if workers is None or workers <= 0:
            workers = os.cpu_count() or 1
        self.workers = workers

    # Importing feeds

    def import_feeds(self, ctx: Context, urls: list[str]) -> None:
        """Import all <urls> in parallel.

        A failing feed does not stop the others. Once all feeds have been
        processed, raise FeedImportError if any of them failed.
        """
        self.log.debug("Import %d feeds using %d workers", len(urls), self.workers)

        workq: SimpleQueue = SimpleQueue()
        errq: SimpleQueue = SimpleQueue()

        workers: list[Thread] = []
        for i in range(self.workers):
            idx: int = i+1
            w: Thread = Thread(name=f"Importer{idx:02d}",
                               target=self._import_loop,
                               args=(idx, ctx, workq, errq),
                               daemon=True)
            w.start()
            workers.append(w)

        feeder: Thread = Thread(name="Feeder",
                                target=self._feeder_loop,
                                args=(urls, workq),
                                daemon=True)
        feeder.start()

        reaper: Thread = Thread(name="Reaper",
                                target=self._reaper_loop,
                                args=(workers, errq),
                                daemon=True)
        reaper.start()

        failures: list[str] = []
        while (msg := errq.get()) is not None:
            failures.append(msg)

        if len(failures) > 0:
            err: Final[FeedImportError] = FeedImportError(failures)
            self.log.error("%s", err)
            raise err

        self.log.info("Imported %d feeds", len(urls))

    def _feeder_loop(self, urls: list[str], workq: SimpleQueue) -> None:
        """Put all URLs in the work queue, followed by one stop marker per worker."""
        for url in urls:
            workq.put(url)
        for _ in range(self.workers):
            workq.put(None)

    def _import_loop(self,
                     num: int,
                     ctx: Context,
                     workq: SimpleQueue,
                     errq: SimpleQueue) -> None:
        """Import feeds from the work queue until there are none left."""
        self.log.debug("Import worker %02d is starting up.", num)
        while (url := workq.get()) is not None:
            try:
                ctx.check()
                self.log.debug("Import worker %02d is about to import %s", num, url)
                self.import_feed(ctx, url)
            except Exception as err:  # pylint: disable-msg=W0718
                errq.put(f"URL: {url}, Error: {err}")
        self.log.debug("Import worker %02d is quitting.", num)

    def _reaper_loop(self, workers: list[Thread], errq: SimpleQueue) -> None:
        """Wait for all workers to finish, then signal the end of the results."""
        for w in workers:
            w.join()
        errq.put(None)

    def import_feed(self, ctx: Context, url: str) -> None:
        """Fetch, parse and store a single feed.

        Either the whole feed is stored, or nothing of it is.
        """
        data: bytes = self.fetcher.fetch(ctx, url)
        rss: Rss = self.parser.parse(data)
        self._save_channels(ctx, rss.channels)
        self.log.debug("Imported %d channels from %s", len(rss.channels), url)

    def _save_channels(self, ctx: Context, channels: list[Channel]) -> None:
        def save(tx: Gateway) -> None:
            channel_repo = self.channel_factory(tx)
            item_repo = self.item_factory(tx)

            for channel in channels:
                channel_id: int = channel_repo.save(ctx, channel)
                for item in channel.items:
                    item_repo.save(ctx, item, channel_id)

        self.storage.with_transaction(ctx, save)

    # Channels

    def get_channels(self, ctx: Context) -> list[Channel]:
        """Return all Channels."""
        return self.channel_factory(self.storage).get_all(ctx)

    def get_channel_by_id(self, ctx: Context, channel_id: int) -> Channel:
        """Return the Channel with the given ID."""
        return self.channel_factory(self.storage).get_by_id(ctx, channel_id)

    def delete_channel(self, ctx: Context, channel_id: int) -> None:
        """Delete a Channel along with all of its Items, in one transaction."""
        def delete(tx: Gateway) -> None:
            channel_repo = self.channel_factory(tx)
            item_repo = self.item_factory(tx)

            items: list[Item] = item_repo.get_by_channel_id(ctx, channel_id)
            for item in items:
                item_repo.delete(ctx, item.item_id)

            channel_repo.delete(ctx, channel_id)

        self.storage.with_transaction(ctx, delete)
        self.log.debug("Deleted Channel %d", channel_id)

    def update_channel(self,
                       ctx: Context,
                       channel_id: int,
                       title: str,
                       language: str,
                       description: str) -> Channel:
        """Change a Channel's metadata."""
        return self.channel_factory(self.storage).update(ctx,
                                                         channel_id,
                                                         title,
                                                         language,
                                                         description)

    # Items

    def get_items(self, ctx: Context) -> list[Item]:
        """Return all Items."""
        return self.item_factory(self.storage).get_all(ctx)

    def get_items_by_channel_id(self, ctx: Context, channel_id: int) -> list[Item]:
        """Return all Items of a Channel."""
        return self.item_factory(self.storage).get_by_channel_id(ctx, channel_id)

    def get_item_by_id(self, ctx: Context, item_id: int) -> Item:
        """Return the Item with the given ID."""
        return self.item_factory(self.storage).get_by_id(ctx, item_id)

    def delete_item(self, ctx: Context, item_id: int) -> None:
        """Delete a single Item."""
        self.item_factory(self.storage).delete(ctx, item_id)

    def update_item(self,
                    ctx: Context,
                    item_id: int,
                    title: str,
                    description: str,
                    pub_date: Optional[datetime]) -> Item:
        """Change an Item."""
        return self.item_factory(self.storage).update(ctx,
                                                      item_id,
                                                      title,
                                                      description,
                                                      pub_date)

# Local Variables: #
# python-indent: 4 #
# End: #
