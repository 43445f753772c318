import pytest

from mintalert.config import Config
from fakes import MemoryStore


@pytest.fixture
def config() -> Config:
    return Config(
        network_url="http://node.invalid",
        bucket="bucket",
        key="status.json",
        opensea_api_key="os-key",
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()
