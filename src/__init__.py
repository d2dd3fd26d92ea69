"""EduScope Backend.

Multi-tenant school administration platform: academic structures, users,
module allocations, course content and assignment submissions.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
