"""
Transaction helpers for long-running league operations
"""

import time
from contextlib import contextmanager

from django.conf import settings
from django.db import connection, transaction

from league.exceptions import TransactionTimeout


class Deadline:
    """Wall-clock budget checked between items of a long transaction"""

    def __init__(self, seconds):
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds if seconds else None

    def check(self):
        if self.expires_at is not None and time.monotonic() > self.expires_at:
            raise TransactionTimeout(f"Operation exceeded its {self.seconds}s time budget")


@contextmanager
def league_transaction(timeout=None):
    """
    Atomic block with a time budget (LEAGUE_TRANSACTION_TIMEOUT by default).

    Yields a Deadline the caller checks between items; raising out of the
    block rolls everything back. On PostgreSQL the budget also bounds each
    statement through SET LOCAL statement_timeout.
    """
    if timeout is None:
        timeout = settings.LEAGUE_TRANSACTION_TIMEOUT

    with transaction.atomic():
        if timeout and connection.vendor == 'postgresql':
            with connection.cursor() as cursor:
                cursor.execute('SET LOCAL statement_timeout = %s', [f'{int(timeout)}s'])
        yield Deadline(timeout)
