# backend/tests/conftest.py
import os
import tempfile
from pathlib import Path

import pytest

# mapdraw.config / mapdraw.db は import 時に環境変数を読むので先に設定する
_tmp = Path(tempfile.mkdtemp(prefix="mapdraw-test-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp / 'test.db'}"
os.environ["MAPDRAW_JWT_SECRET"] = "test-secret"
os.environ["MAPDRAW_DATA_DIR"] = str(_tmp / "data")

from fastapi.testclient import TestClient  # noqa: E402

from mapdraw.api.deps import issue_token  # noqa: E402
from mapdraw.db import engine, init_db  # noqa: E402
from mapdraw.main import app  # noqa: E402
from mapdraw.models.base import Base  # noqa: E402
from mapdraw.services.datalog.storage import MemoryStorage  # noqa: E402
from mapdraw.services.datalog.store import DataLog  # noqa: E402


@pytest.fixture
def client():
    # テストごとにクリーンなDB
    Base.metadata.drop_all(bind=engine)
    init_db()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def alice_token():
    return issue_token("profile-alice")


@pytest.fixture
def bob_token():
    return issue_token("profile-bob")


@pytest.fixture
def alice(alice_token):
    return {"Authorization": f"Bearer {alice_token}"}


@pytest.fixture
def bob(bob_token):
    return {"Authorization": f"Bearer {bob_token}"}


@pytest.fixture
def log():
    return DataLog(MemoryStorage())
