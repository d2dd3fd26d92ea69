# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for EduScope.

This package contains domain services that encapsulate business logic.
Each service receives its database session through its constructor and
scopes every query to the caller's tenant.

Domains:
    auth: Password hashing, access tokens, login.
    authorization: Tenant and role based access decisions.
    identity: Admin, teacher and student accounts.
    academic: Levels, classes and class membership.
    module: Module catalog and level/teacher allocations.
    content: Course material, assignments and submissions.
    bulk_import: CSV user import with de-duplication.
"""
