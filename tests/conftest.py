import pytest

from selfexam_rulesets.catalog import CatalogStore


@pytest.fixture(scope="session")
def catalog():
    """Load the full catalog from v1/ once for the entire test session."""
    store = CatalogStore()
    store.load()
    return store
