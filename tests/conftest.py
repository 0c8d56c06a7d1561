"""Shared fixtures: temporary local store, in-memory store with switchable save failures, Flask client."""

import copy
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from blob_store import LocalStore
from revenue_model import DEFAULT_TARGET_REVENUE, default_app_data, normalize_app_data
from server import create_app


class MemoryStore:
    """Store double: keeps the document in memory and can be told to fail saves."""

    def __init__(self, doc=None, default_target=DEFAULT_TARGET_REVENUE):
        self.default_target = default_target
        self.doc = copy.deepcopy(doc) if doc is not None else default_app_data(default_target)
        self.fail_saves = False
        self.save_calls = 0
        self.load_calls = 0

    def load(self):
        self.load_calls += 1
        return normalize_app_data(copy.deepcopy(self.doc), self.default_target)

    def save(self, doc):
        self.save_calls += 1
        if self.fail_saves:
            return False
        self.doc = copy.deepcopy(doc)
        return True


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def local_store(tmp_path):
    return LocalStore(tmp_path / "rev_tracker_data.json")


def make_client(store, demo_mode=False):
    config = {"SECRET_KEY": "test", "DEMO_MODE": demo_mode, "DEFAULT_TARGET": DEFAULT_TARGET_REVENUE}
    app = create_app(config, store)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def client(memory_store):
    return make_client(memory_store)
