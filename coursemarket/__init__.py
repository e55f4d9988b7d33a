"""Course marketplace API."""
