import sys
from pathlib import Path

# ---- Make repo root importable (tests live two dirs below repo root) ----
repo_root = Path(__file__).resolve().parents[2]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

import os
import pytest
from moto import mock_aws

from vip_access.store.store import DocumentStore, StoreConfig

AWS_REGION = os.environ.get("AWS_REGION", "us-east-2")
TABLE_PREFIX = "VipAccessTest-"


@pytest.fixture(scope="function")
def aws_env(monkeypatch):
    monkeypatch.setenv("AWS_DEFAULT_REGION", AWS_REGION)
    monkeypatch.setenv("AWS_REGION", AWS_REGION)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.delenv("VIP_STORE_ENDPOINT", raising=False)
    yield


@pytest.fixture(scope="function")
def moto_aws(aws_env):
    with mock_aws():
        yield


@pytest.fixture()
def store(moto_aws):
    s = DocumentStore(StoreConfig(region=AWS_REGION, table_prefix=TABLE_PREFIX))
    s.create_tables()
    return s


def count(store, collection):
    return len(store.list_documents(collection))


class FailingWrites:
    """Wrap a store so create_document raises for the named collections."""
    def __init__(self, store, fail_on):
        self._store = store
        self.fail_on = set(fail_on)

    def create_document(self, collection, data):
        if collection in self.fail_on:
            raise RuntimeError(f"write to {collection} failed")
        return self._store.create_document(collection, data)

    def __getattr__(self, name):
        return getattr(self._store, name)
