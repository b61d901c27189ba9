"""Bulk user import into an identity platform database connection.

Resolves file patterns, authenticates with the Management API, validates the
target connection and submits each file as an asynchronous import job, polling
every job until it reaches a terminal state.
"""

import logging

logging.getLogger("user_import").addHandler(logging.NullHandler())
