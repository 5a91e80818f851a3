"""Test utilities for podgate servers.

::

    from podgate.testing import TestClient
"""

from podgate.testing.client import TestClient

__all__ = ["TestClient"]
