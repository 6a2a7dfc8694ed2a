import pytest

from pwm_store import Entry, PasswordStore

PASSWORD = "TEST_PASS"


@pytest.fixture
def sample_store() -> PasswordStore:
    return PasswordStore.from_mapping(
        {
            "foo": ("foo@gmail.com", "pass1"),
            "bar": ("bar@gmail.com", "pass2"),
        }
    )


@pytest.fixture
def github_entry() -> Entry:
    return Entry(username="me@example.com", password="hunter2")
