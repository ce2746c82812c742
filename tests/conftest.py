import pytest

from event_authz.crypto import Keypair
from event_authz.directory import GuardedDirectory, LocalDirectory
from event_authz.transport import LocalRelay


@pytest.fixture
def keys():
    return Keypair.generate()


@pytest.fixture
def local_dir(tmp_path):
    d = LocalDirectory(str(tmp_path / "accounts.db"))
    yield d
    d.close()


@pytest.fixture
def relay():
    return LocalRelay()


@pytest.fixture
def guarded(local_dir):
    return GuardedDirectory(local_dir)
