#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:02:11 krylon>
#
# /data/code/python/rssparser/rssparser/__init__.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the rssparser feed importer. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
rssparser

(c) 2026 Benjamin Walkenhorst

Fetch RSS feeds, store their channels and items, and present them on the web.
"""

# Local Variables: #
# python-indent: 4 #
# End: #
