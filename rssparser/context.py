#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:31:02 krylon>
#
# /data/code/python/rssparser/rssparser/context.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.context

(c) 2026 Benjamin Walkenhorst

A Context is handed to every blocking operation, so a whole batch of work
can be cancelled, or limited by a deadline, from one place.
"""


import time
from datetime import timedelta
from threading import Event
from typing import Optional, Union

from rssparser.common import RSSError


class Cancelled(RSSError):
    """Cancelled indicates the Context was cancelled or its deadline has passed."""


class Context:
    """Context carries a cancellation flag and an optional deadline."""

    __slots__ = [
        "_done",
        "deadline",
    ]

    _done: Event
    deadline: Optional[float]

    def __init__(self, timeout: Union[None, int, float, timedelta] = None) -> None:
        self._done = Event()
        match timeout:
            case None:
                self.deadline = None
            case timedelta() as x:
                self.deadline = time.monotonic() + x.total_seconds()
            case int(x) | float(x):
                self.deadline = time.monotonic() + x
            case _:
                name = timeout.__class__.__name__
                raise ValueError(f"Timeout must be a number (of seconds) or a timedelta, not a {name}")

    def cancel(self) -> None:
        """Cancel the Context."""
        self._done.set()

    @property
    def done(self) -> bool:
        """Return True if the Context was cancelled or has expired."""
        if self._done.is_set():
            return True
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self._done.set()
            return True
        return False

    def remaining(self) -> Optional[float]:
        """Return the number of seconds left until the deadline, or None if there is none."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    def err(self) -> Optional[Cancelled]:
        """Return an exception describing why the Context is done, or None."""
        if not self.done:
            return None
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return Cancelled("context deadline exceeded")
        return Cancelled("context canceled")

    def check(self) -> None:
        """Raise Cancelled if the Context is done."""
        err = self.err()
        if err is not None:
            raise err


def background() -> Context:
    """Return a fresh Context that is never cancelled on its own."""
    return Context()

# Local Variables: #
# python-indent: 4 #
# End: #
