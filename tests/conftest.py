import pytest

from smart_reliability.tables import DEFAULT_PROFILE
from smart_reliability.tables import load_profile
from smart_reliability.tables import tables


@pytest.fixture(scope="session", autouse=True)
def configure_reference_tables():
    """
    Pin the global AFR tables to the packaged defaults.

    This runs before all tests so an AFR_TABLES_PATH or AFR_TABLES_PROFILE in
    the developer's environment cannot change the expected numbers.
    """
    tables.load(load_profile(DEFAULT_PROFILE))

    yield tables
