#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-22 09:58:40 krylon>
#
# /data/code/python/rssparser/rssparser/web.py
# created on 20. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser.web

(c) 2026 Benjamin Walkenhorst
"""


import json
import logging
import os
import pathlib
import re
import socket
from datetime import datetime, timezone
from typing import Any, Callable, Final, Optional, Union

import bottle
from bottle import request, response
from jinja2 import Environment, FileSystemLoader, select_autoescape

from rssparser import common
from rssparser.context import Cancelled, Context
from rssparser.fetcher import FetchError
from rssparser.model import Channel, Item
from rssparser.parser import ParseError
from rssparser.repository import (ChannelNotFoundError, ItemNotFoundError,
                                  NotFoundError)
from rssparser.service import FeedImportError, Service
from rssparser.storage import PersistenceError

mime_types: Final[dict[str, str]] = {
    ".css":  "text/css",
    ".map":  "application/json",
    ".js":   "text/javascript",
    ".png":  "image/png",
    ".jpg":  "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif":  "image/gif",
    ".ico":  "image/vnd.microsoft.icon",
    ".json": "application/json",
    ".html": "text/html",
}

suffix_pat: Final[re.Pattern] = re.compile("([.][^.]+)$")

# Errors we report as a failure on our side, rather than the client's.
server_errors: Final[tuple[type[Exception], ...]] = (
    Cancelled,
    FetchError,
    ParseError,
    PersistenceError,
    FeedImportError,
)


def find_mime_type(path: str) -> str:
    """Attempt to determine the MIME type for a file."""
    m = suffix_pat.search(path)
    if m is None:
        return "application/octet-stream"
    suffix = m[1]
    if suffix in mime_types:
        return mime_types[suffix]
    return "application/octet-stream"


def parse_form_date(txt: str) -> datetime:
    """Parse the timestamp an HTML datetime-local input sends.

    An explicit offset is kept, a timestamp without one is taken to be UTC.
    """
    stamp: datetime = datetime.fromisoformat(txt.strip())
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


class WebUI:
    """Present the stored feeds, and accept new ones."""

    __slots__ = [
        "log",
        "svc",
        "root",
        "tmpl_root",
        "env",
        "host",
        "port",
        "timeout",
        "app",
    ]

    log: logging.Logger
    svc: Service
    root: pathlib.Path
    tmpl_root: pathlib.Path
    env: Environment
    host: str
    port: int
    timeout: float
    app: bottle.Bottle

    def __init__(self,  # pylint: disable-msg=R0913
                 svc: Service,
                 root: Union[str, pathlib.Path] = "",
                 host: str = "localhost",
                 port: int = 4107,
                 timeout: float = 300.0) -> None:
        self.log = common.get_logger("web")
        self.log.info("Web interface is coming up...")

        self.svc = svc
        self.host = host
        self.port = port
        self.timeout = timeout

        match root:
            case "":
                self.root = pathlib.Path(__file__).parent
            case str() as x:
                self.root = pathlib.Path(x)
            case _ if isinstance(root, pathlib.Path):
                self.root = root
            case _:
                raise TypeError("Invalid type for root (must be str or pathlib.Path)")

        self.tmpl_root = self.root.joinpath("templates")
        self.env = Environment(loader=FileSystemLoader(str(self.tmpl_root)),
                               autoescape=select_autoescape(["jinja", "html"]))
        self.env.globals = {
            "dbg": common.Debug,
            "app_string": f"{common.AppName} {common.AppVersion}",
            "hostname": socket.gethostname(),
        }

        self.app = bottle.Bottle()
        self._route("/", "GET", self._handle_main)

        self._route("/channels/", "POST", self._handle_import_feeds)
        self._route("/channels/", "GET", self._handle_channels)
        self._route("/channels/<channel_id:int>/", "GET", self._handle_channel_items)
        self._route("/channels/<channel_id:int>/", "PUT", self._handle_channel_update)
        self._route("/channels/<channel_id:int>/", "DELETE", self._handle_channel_delete)

        self._route("/items/", "GET", self._handle_items)
        self._route("/items/<item_id:int>/", "GET", self._handle_item)
        self._route("/items/<item_id:int>/", "PUT", self._handle_item_update)
        self._route("/items/<item_id:int>/", "DELETE", self._handle_item_delete)

        self.app.route("/static/<path:path>", callback=self._handle_static)

        for status in (400, 404, 500):
            self.app.error(status)(self._handle_error)

    def _route(self, path: str, method: str, callback: Callable) -> None:
        """Register <callback> for <path>, with and without the trailing slash."""
        self.app.route(path, method=method, callback=callback)
        if path != "/":
            self.app.route(path.rstrip("/"), method=method, callback=callback)

    def _tmpl_vars(self) -> dict:
        """Return a dict with a few default variables filled in already."""
        default: dict = {
            "now": datetime.now().strftime(common.TimeFmt),
            "year": datetime.now().year,
            "time_fmt": common.TimeFmt,
        }

        return default

    def _render(self, name: str, title: str, **kwargs: Any) -> str:
        response.set_header("Cache-Control", "no-store, max-age=0")
        tmpl = self.env.get_template(name)
        tmpl_vars = self._tmpl_vars()
        tmpl_vars["title"] = f"{common.AppName} {common.AppVersion} - {title}"
        tmpl_vars.update(kwargs)
        return tmpl.render(tmpl_vars)

    def _json(self, data: Any) -> str:
        response.set_header("Content-Type", "application/json")
        response.set_header("Cache-Control", "no-store, max-age=0")
        return json.dumps(data)

    def _fail(self, err: Exception, what: str) -> bottle.HTTPError:
        """Turn an exception raised by the Service into an HTTP error."""
        match err:
            case ChannelNotFoundError():
                return bottle.HTTPError(404, "Channel not found")
            case ItemNotFoundError():
                return bottle.HTTPError(404, "Item not found")
            case NotFoundError():
                return bottle.HTTPError(404, str(err))
            case _:
                msg: Final[str] = f"Failed to {what}: {err}"
                self.log.error(msg)
                return bottle.HTTPError(500, msg)

    def _request_data(self) -> dict[str, Any]:
        """Return the fields of a JSON or form-encoded request body."""
        if request.content_type.startswith("application/json"):
            try:
                data = json.loads(request.body.read() or b"{}")
            except ValueError as err:
                raise bottle.HTTPError(400, f"Invalid request body: {err}") from err
            if not isinstance(data, dict):
                raise bottle.HTTPError(400, "Invalid request body: expected a JSON object")
            return data
        return {key: request.forms.getunicode(key) for key in request.forms.keys()}

    def run(self) -> None:
        """Run the web server."""
        bottle.run(app=self.app, host=self.host, port=self.port, debug=common.Debug)

    def _handle_main(self) -> str:
        """Present the landing page."""
        return self._render("main.jinja", "Main")

    def _handle_error(self, err: bottle.HTTPError) -> str:
        """Present an error page."""
        tmpl = self.env.get_template("message.jinja")
        tmpl_vars = self._tmpl_vars()
        tmpl_vars["title"] = f"{common.AppName} {common.AppVersion} - Error {err.status_code}"
        tmpl_vars["message"] = err.body
        tmpl_vars["error"] = True
        return tmpl.render(tmpl_vars)

    # Channels

    def _handle_import_feeds(self) -> str:
        """Import the feeds whose URLs were submitted, one per line."""
        raw: Optional[str] = request.forms.getunicode("urls")
        if raw is None or raw == "":
            raise bottle.HTTPError(400, "Missing 'urls' parameter")

        urls: list[str] = [line.strip() for line in raw.splitlines() if line.strip() != ""]
        if len(urls) == 0:
            raise bottle.HTTPError(400, "No valid URLs provided")

        self.log.debug("Import %d feeds: %s", len(urls), ", ".join(urls))
        ctx: Final[Context] = Context(self.timeout)
        try:
            self.svc.import_feeds(ctx, urls)
        except server_errors as err:
            raise self._fail(err, "import feeds") from err

        return self._render("message.jinja", "Import", message="Import successful!")

    def _handle_channels(self) -> str:
        """Present all Channels."""
        ctx: Final[Context] = Context(self.timeout)
        try:
            channels: list[Channel] = self.svc.get_channels(ctx)
        except server_errors as err:
            raise self._fail(err, "get channels") from err

        return self._render("channels.jinja", "Channels", channels=channels)

    def _handle_channel_items(self, channel_id: int) -> str:
        """Present the Items of one Channel."""
        ctx: Final[Context] = Context(self.timeout)
        try:
            channel: Channel = self.svc.get_channel_by_id(ctx, channel_id)
            items: list[Item] = self.svc.get_items_by_channel_id(ctx, channel_id)
        except (NotFoundError, *server_errors) as err:
            raise self._fail(err, f"get items of channel {channel_id}") from err

        return self._render("items.jinja", channel.title, channel=channel, items=items)

    def _handle_channel_update(self, channel_id: int) -> str:
        """Change a Channel's metadata."""
        data: Final[dict[str, Any]] = self._request_data()
        ctx: Final[Context] = Context(self.timeout)
        try:
            channel: Channel = self.svc.update_channel(ctx,
                                                       channel_id,
                                                       str(data.get("title") or ""),
                                                       str(data.get("language") or ""),
                                                       str(data.get("description") or ""))
        except (NotFoundError, *server_errors) as err:
            raise self._fail(err, "update channel") from err

        return self._json(channel.to_dict())

    def _handle_channel_delete(self, channel_id: int) -> str:
        """Delete a Channel along with its Items."""
        ctx: Final[Context] = Context(self.timeout)
        try:
            self.svc.delete_channel(ctx, channel_id)
        except (NotFoundError, *server_errors) as err:
            raise self._fail(err, "delete channel") from err

        response.status = 204
        return ""

    # Items

    def _handle_items(self) -> str:
        """Present all Items."""
        ctx: Final[Context] = Context(self.timeout)
        try:
            items: list[Item] = self.svc.get_items(ctx)
        except server_errors as err:
            raise self._fail(err, "get items") from err

        return self._render("items.jinja", "Items", channel=None, items=items)

    def _handle_item(self, item_id: int) -> str:
        """Present a single Item."""
        ctx: Final[Context] = Context(self.timeout)
        try:
            item: Item = self.svc.get_item_by_id(ctx, item_id)
        except (NotFoundError, *server_errors) as err:
            raise self._fail(err, f"get item {item_id}") from err

        return self._render("item.jinja", item.title, item=item)

    def _handle_item_update(self, item_id: int) -> str:
        """Change an Item."""
        data: Final[dict[str, Any]] = self._request_data()
        raw_date = data.get("pub_date")
        if raw_date is None or str(raw_date).strip() == "":
            raise bottle.HTTPError(400, "Missing 'pub_date' parameter")
        try:
            pub_date: datetime = parse_form_date(str(raw_date))
        except ValueError as err:
            raise bottle.HTTPError(400, f"Invalid pub_date {raw_date!r}: {err}") from err

        ctx: Final[Context] = Context(self.timeout)
        try:
            item: Item = self.svc.update_item(ctx,
                                              item_id,
                                              str(data.get("title") or ""),
                                              str(data.get("description") or ""),
                                              pub_date)
        except (NotFoundError, *server_errors) as err:
            raise self._fail(err, "update item") from err

        return self._json(item.to_dict())

    def _handle_item_delete(self, item_id: int) -> str:
        """Delete a single Item."""
        ctx: Final[Context] = Context(self.timeout)
        try:
            self.svc.delete_item(ctx, item_id)
        except (NotFoundError, *server_errors) as err:
            raise self._fail(err, "delete item") from err

        response.status = 204
        return ""

    # Static files

    def _handle_static(self, path: str) -> bytes:
        """Return one of the static files."""
        mtype = find_mime_type(path)
        response.set_header("Content-Type", mtype)
        response.set_header("Cache-Control",
                            "no-store, max-age=0" if common.Debug else "max-age=7200")

        static_root: Final[pathlib.Path] = self.root.joinpath("static").resolve()
        full_path: Final[pathlib.Path] = static_root.joinpath(path).resolve()
        if static_root not in full_path.parents or not os.path.isfile(full_path):
            self.log.error("Static file %s was not found", path)
            response.status = 404
            return bytes()
        with open(full_path, "rb") as fh:
            return fh.read()

# Local Variables: #
# python-indent: 4 #
# End: #
