"""
pytest configuration and fixtures for driver tests.
"""

import pytest

from mysqldriver import connect

from .packets import FakeSocket


@pytest.fixture
def connection_factory():
    """Factory function for creating connections over scripted responses."""
    def _create_connection(*responses, **options):
        """Create a connection replaying the given responses.

        Example:
            conn = connection_factory([ok_payload()], drain_on_reuse=True)
        """
        sock = FakeSocket(*responses)
        return sock, connect(sock, **options)

    return _create_connection
