#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:10:37 krylon>
#
# /data/code/python/rssparser/rssparser/common.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.common

(c) 2026 Benjamin Walkenhorst

Application-wide constants, paths and the logging setup.
"""


import logging
import logging.handlers
import os
import pathlib
import sys
from threading import Lock
from typing import Final, Union

AppName: Final[str] = "rssparser"
AppVersion: Final[str] = "0.4.1"
Debug: bool = True
TimeFmt: Final[str] = "%Y-%m-%d %H:%M:%S"
LogFmt: Final[str] = \
    "%(asctime)s (%(name)-24s / line %(lineno)-4d) - %(levelname)-8s %(message)s"


class RSSError(Exception):
    """Base class for application-specific exceptions."""


class Path:
    """Path holds the locations of the files the application uses."""

    __slots__ = ["__base"]

    __base: pathlib.Path

    def __init__(self, root: Union[str, pathlib.Path] = "") -> None:
        if root == "":
            root = pathlib.Path.home().joinpath(f".{AppName.lower()}")
        self.__base = pathlib.Path(root)

    def base(self, path: Union[str, pathlib.Path] = "") -> pathlib.Path:
        """Get or set the base directory."""
        if path != "":
            self.__base = pathlib.Path(path)
        return self.__base

    @property
    def db(self) -> pathlib.Path:
        """Return the path of the database."""
        return self.__base.joinpath(f"{AppName.lower()}.db")

    @property
    def log(self) -> pathlib.Path:
        """Return the path of the log file."""
        return self.__base.joinpath(f"{AppName.lower()}.log")


path: Path = Path()

_lock: Final[Lock] = Lock()
_loggers: dict[str, logging.Logger] = {}


def set_basedir(folder: Union[str, pathlib.Path]) -> None:
    """Set the base directory and make sure it exists."""
    with _lock:
        path.base(folder)
        init_app()
        # Loggers created before the move would keep writing to the old log file.
        for lg in _loggers.values():
            _attach_handlers(lg)


def init_app() -> None:
    """Create the base directory if it does not exist, yet."""
    os.makedirs(path.base(), exist_ok=True)


def _attach_handlers(log: logging.Logger) -> None:
    for h in list(log.handlers):
        log.removeHandler(h)
        h.close()

    fmt: Final[logging.Formatter] = logging.Formatter(LogFmt)
    level: Final[int] = logging.DEBUG if Debug else logging.INFO

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    console.setLevel(logging.INFO)
    log.addHandler(console)

    logfile = logging.handlers.RotatingFileHandler(path.log,
                                                   maxBytes=(1 << 22),
                                                   backupCount=5,
                                                   delay=True)
    logfile.setFormatter(fmt)
    logfile.setLevel(level)
    log.addHandler(logfile)

    log.setLevel(level)
    log.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Create and return a logger with the given name."""
    full_name: Final[str] = f"{AppName.lower()}.{name}"
    with _lock:
        if full_name in _loggers:
            return _loggers[full_name]

        init_app()
        log: logging.Logger = logging.getLogger(full_name)
        _attach_handlers(log)
        _loggers[full_name] = log
        return log

# Local Variables: #
# python-indent: 4 #
# End: #
