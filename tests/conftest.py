import os
import shutil
import tempfile

# La base de datos se fija antes de importar db/main
_tmpdir = tempfile.mkdtemp(prefix="macrocoach-")
os.environ["DATABASE_URL"] = f"sqlite:///{_tmpdir}/test.db?check_same_thread=false"

import pytest

from db import Base, engine


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


def pytest_sessionfinish(session, exitstatus):
    engine.dispose()
    shutil.rmtree(_tmpdir, ignore_errors=True)
