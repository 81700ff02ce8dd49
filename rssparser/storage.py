#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 17:12:05 krylon>
#
# /data/code/python/rssparser/rssparser/storage.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.storage

(c) 2026 Benjamin Walkenhorst

Storage is the gateway to the database. A Storage either runs each
statement on a connection borrowed from the Pool, or - when it was created
by with_transaction - runs everything inside that one transaction.

Repositories are built on top of a Storage. Code running inside a
transaction must build its own repositories from the transactional Storage
it is given, never re-point repositories that other threads may be using.
"""


import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from queue import Empty, LifoQueue
from threading import BoundedSemaphore, Lock
from typing import (Any, Callable, Final, Iterator, Optional, Protocol,
                    Sequence, TypeVar, Union)

from rssparser import common
from rssparser.common import RSSError
from rssparser.context import Context

T = TypeVar("T")

busy_timeout: Final[float] = 30.0
progress_steps: Final[int] = 1000


class PersistenceError(RSSError):
    """Exception class for database-specific errors."""


qinit: Final[list[str]] = [
    """
CREATE TABLE channel (
    id INTEGER PRIMARY KEY,
    title TEXT NOT NULL,
    language TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT ''
) STRICT
    """,
    """
CREATE TABLE item (
    id INTEGER PRIMARY KEY,
    channel_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    pub_date TEXT,
    FOREIGN KEY (channel_id) REFERENCES channel (id)
        ON UPDATE RESTRICT
        ON DELETE RESTRICT
) STRICT
    """,
    "CREATE INDEX item_channel_idx ON item (channel_id)",
]


open_lock: Final[Lock] = Lock()


class Pool:
    """Pool hands out database connections to any number of threads.

    At most <size> connections are in use at the same time.
    """

    __slots__ = [
        "log",
        "path",
        "size",
        "_idle",
        "_sem",
        "_lock",
        "_conns",
    ]

    log: logging.Logger
    path: Path
    size: int
    _idle: LifoQueue
    _sem: BoundedSemaphore
    _lock: Lock
    _conns: list[sqlite3.Connection]

    def __init__(self,
                 path: Optional[Union[Path, str]] = None,
                 size: Optional[int] = None) -> None:
        match path:
            case None:
                self.path = common.path.db
            case Path() as x:
                self.path = x
            case str() as x:
                self.path = Path(x)
            case _:
                raise TypeError("Invalid type for path (must be str or pathlib.Path)")

        self.size = size if size is not None and size > 0 else max(os.cpu_count() or 1, 4)
        self.log = common.get_logger("storage")
        self._idle = LifoQueue()
        self._sem = BoundedSemaphore(self.size)
        self._lock = Lock()
        self._conns = []

        self.log.debug("Open database at %s", self.path)

        with open_lock:
            exist: Final[bool] = self.path.exists()
            conn: sqlite3.Connection = self._open()
            if not exist:
                self.__create_db(conn)
            self._idle.put(conn)

    def _open(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(str(self.path),
                                   timeout=busy_timeout,
                                   check_same_thread=False)
            conn.isolation_level = None

            cur: Final[sqlite3.Cursor] = conn.cursor()
            cur.execute("PRAGMA foreign_keys = true")
            cur.execute("PRAGMA journal_mode = WAL")
            cur.close()
        except sqlite3.Error as err:
            msg: Final[str] = f"{err.__class__.__name__} opening database {self.path}: {err}"
            self.log.error(msg)
            raise PersistenceError(msg) from err

        with self._lock:
            self._conns.append(conn)
        return conn

    def __create_db(self, conn: sqlite3.Connection) -> None:
        """Initialize a freshly created database"""
        self.log.debug("Initialize fresh database at %s", self.path)
        try:
            with conn:
                for query in qinit:
                    conn.execute(query)
        except sqlite3.OperationalError as operr:
            self.log.error("%s executing init query: %s",
                           operr.__class__.__name__,
                           operr)
            raise PersistenceError(f"Cannot initialize database {self.path}: {operr}") from operr
        self.log.debug("Database initialized successfully.")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Borrow a connection from the Pool for the duration of the with-block."""
        self._sem.acquire()
        try:
            try:
                conn = self._idle.get_nowait()
            except Empty:
                conn = self._open()
            try:
                yield conn
            finally:
                self._idle.put(conn)
        finally:
            self._sem.release()

    def close(self) -> None:
        """Close all database connections."""
        with self._lock:
            for conn in self._conns:
                conn.close()
            self._conns.clear()


class RowQueryer(Protocol):
    """RowQueryer runs queries that return rows."""

    def query_row(self, ctx: Context, query: str, args: Sequence[Any] = ()) -> Optional[tuple]:
        """Run <query> and return its first row, or None if there is none."""

    def query(self, ctx: Context, query: str, args: Sequence[Any] = ()) -> list[tuple]:
        """Run <query> and return all rows."""


class CommandExecutor(Protocol):
    """CommandExecutor runs statements that change the database."""

    def execute(self, ctx: Context, query: str, args: Sequence[Any] = ()) -> int:
        """Run <query> and return the number of rows it changed."""


class Gateway(RowQueryer, CommandExecutor, Protocol):
    """Gateway is everything the repositories need from the database."""

    def with_transaction(self, ctx: Context, fn: Callable[["Gateway"], T]) -> T:
        """Call <fn> with a Gateway bound to a new transaction."""


class Storage:
    """Storage runs queries either directly on the Pool or inside a transaction."""

    __slots__ = [
        "log",
        "pool",
        "tx",
    ]

    log: logging.Logger
    pool: Pool
    tx: Optional[sqlite3.Connection]

    def __init__(self, pool: Pool, tx: Optional[sqlite3.Connection] = None) -> None:
        self.log = common.get_logger("storage")
        self.pool = pool
        self.tx = tx

    @property
    def in_transaction(self) -> bool:
        """Return True if the Storage is bound to a transaction."""
        return self.tx is not None

    def close(self) -> None:
        """Close the underlying Pool."""
        self.pool.close()

    @contextmanager
    def _conn(self, ctx: Context) -> Iterator[sqlite3.Connection]:
        ctx.check()
        if self.tx is not None:
            with self._watch(self.tx, ctx):
                yield self.tx
        else:
            with self.pool.connection() as conn, self._watch(conn, ctx):
                yield conn

    @staticmethod
    @contextmanager
    def _watch(conn: sqlite3.Connection, ctx: Context) -> Iterator[None]:
        """Abort the running statement once <ctx> is done."""
        conn.set_progress_handler(lambda: 1 if ctx.done else 0, progress_steps)
        try:
            yield
        finally:
            conn.set_progress_handler(None, 0)

    def query_row(self, ctx: Context, query: str, args: Sequence[Any] = ()) -> Optional[tuple]:
        """Run <query> and return its first row, or None if there is none."""
        with self._conn(ctx) as conn:
            cur = conn.execute(query, args)
            try:
                return cur.fetchone()
            finally:
                cur.close()

    def query(self, ctx: Context, query: str, args: Sequence[Any] = ()) -> list[tuple]:
        """Run <query> and return all rows."""
        with self._conn(ctx) as conn:
            cur = conn.execute(query, args)
            try:
                return cur.fetchall()
            finally:
                cur.close()

    def execute(self, ctx: Context, query: str, args: Sequence[Any] = ()) -> int:
        """Run <query> and return the number of rows it changed."""
        with self._conn(ctx) as conn:
            cur = conn.execute(query, args)
            try:
                return cur.rowcount
            finally:
                cur.close()

    def with_tx(self, tx: sqlite3.Connection) -> "Storage":
        """Return a new Storage bound to the transaction running on <tx>."""
        return Storage(self.pool, tx)

    def with_transaction(self, ctx: Context, fn: Callable[[Gateway], T]) -> T:
        """Run <fn> inside a transaction.

        fn receives a Storage bound to the transaction. If fn returns normally,
        the transaction is committed and fn's return value is passed on.
        If fn raises an exception, the transaction is rolled back and the
        exception is re-raised unchanged.
        """
        if self.tx is not None:
            raise PersistenceError("Storage is already bound to a transaction")

        ctx.check()
        with self.pool.connection() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as err:
                msg: str = f"{err.__class__.__name__} trying to begin a transaction: {err}"
                self.log.error(msg)
                raise PersistenceError(msg) from err

            try:
                result: T = fn(self.with_tx(conn))
            except BaseException:
                self._rollback(conn)
                raise

            try:
                conn.execute("COMMIT")
            except sqlite3.Error as err:
                self._rollback(conn)
                msg = f"{err.__class__.__name__} trying to commit a transaction: {err}"
                self.log.error(msg)
                raise PersistenceError(msg) from err

            return result

    def _rollback(self, conn: sqlite3.Connection) -> None:
        """Roll back the transaction on <conn>.

        Errors are logged, not raised: the outcome of the transaction is
        already decided at this point.
        """
        if not conn.in_transaction:
            self.log.debug("Transaction was already finished, nothing to roll back.")
            return

        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as err:
            self.log.error("transaction rollback failed: %s: %s",
                           err.__class__.__name__,
                           err)

# Local Variables: #
# python-indent: 4 #
# End: #
