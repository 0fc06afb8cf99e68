# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Monthly booking calendars for the At Home in Madrid apartments."""

__version__ = "0.1.0"
