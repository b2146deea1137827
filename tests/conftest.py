from collections.abc import Generator

import pytest

from dbmanager.core.pool import PoolManager
from tests.utils.pool import RecordingPoolFactory


@pytest.fixture
def pool_factory() -> RecordingPoolFactory:
    return RecordingPoolFactory()


@pytest.fixture
def manager(pool_factory: RecordingPoolFactory) -> Generator[PoolManager, None, None]:
    pm = PoolManager(max_pool_size=1, min_idle=1, pool_timeout=5.0, pool_factory=pool_factory)
    yield pm
    pm.close_all()
