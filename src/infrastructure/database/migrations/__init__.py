# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Alembic environment plus a programmatic runner for the single shared
EduScope schema. Revisions live in the versions package.
"""
