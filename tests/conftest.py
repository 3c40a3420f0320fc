"""Shared test fixtures for PAL."""

import os

# Never touch the real OS vault, even through keyring's default selection
os.environ["PYTHON_KEYRING_BACKEND"] = "keyring.backends.fail.Keyring"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from keyring.backend import KeyringBackend as _KeyringImpl  # noqa: E402
from keyring.errors import KeyringLocked, PasswordSetError  # noqa: E402

TEST_TOKEN = "pal_testtoken0123456789"


class MemoryKeyring(_KeyringImpl):
    """In-process keyring holding passwords in a dict."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service, username):
        return self.passwords.get((service, username))

    def set_password(self, service, username, password):
        self.passwords[(service, username)] = password

    def delete_password(self, service, username):
        self.passwords.pop((service, username), None)


class LockedKeyring(MemoryKeyring):
    """Keyring that is present but refuses every operation."""

    def get_password(self, service, username):
        raise KeyringLocked("Keyring is locked")

    def set_password(self, service, username, password):
        raise PasswordSetError("Keyring is locked")


@pytest.fixture
def home(tmp_path):
    """Per-test PAL home directory (not created up front)."""
    return tmp_path / "pal-home"


@pytest.fixture
def memory_keyring():
    return MemoryKeyring()


@pytest.fixture
def keystore(home, memory_keyring):
    """Keystore whose vault is an in-memory keyring."""
    from pal.key_backends import FileKeyBackend, KeyringBackend
    from pal.keystore import Keystore

    return Keystore(
        home,
        backends=[
            KeyringBackend(keyring_impl=memory_keyring),
            FileKeyBackend(home / ".master"),
        ],
    )


@pytest.fixture
def file_keystore(home):
    """Keystore with the OS keyring disabled."""
    from pal.keystore import Keystore

    return Keystore(home, keyring_enabled=False)


@pytest.fixture
def settings(tmp_path):
    from pal.settings import Settings

    return Settings(home=tmp_path / "pal-home", keyring_enabled=False, api_token=TEST_TOKEN)


@pytest.fixture
async def app(settings):
    """Create a fresh app instance with an isolated PAL home."""
    from pal.app import create_app

    application = create_app(settings)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app):
    """HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {TEST_TOKEN}"}
