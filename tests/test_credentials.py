import pytest

from pg_lookup.credentials import (
    ANTHROPIC_API_KEY,
    JP_API_KEY,
    MemoryCredentialStore,
    SQLiteCredentialStore,
    open_credential_store,
    save_keys,
)
from pg_lookup.errors import ValidationError


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryCredentialStore()
    return SQLiteCredentialStore(tmp_path / "keys.db")


def test_empty_store_has_no_keys(store):
    assert store.get(JP_API_KEY) is None
    assert store.has_all() is False


def test_save_keys_trims_values(store):
    save_keys(store, "  jp-key ", "\tsk-ant-key\n")

    assert store.get(JP_API_KEY) == "jp-key"
    assert store.get(ANTHROPIC_API_KEY) == "sk-ant-key"
    assert store.has_all() is True


@pytest.mark.parametrize("jp, anthropic", [("", "sk"), ("jp", "   "), ("", "")])
def test_save_keys_requires_both(store, jp, anthropic):
    with pytest.raises(ValidationError, match="Both API keys are required."):
        save_keys(store, jp, anthropic)

    assert store.get(JP_API_KEY) is None


def test_blank_value_reads_as_absent(store):
    store.set(JP_API_KEY, "   ")
    assert store.get(JP_API_KEY) is None


def test_clear_removes_both(store):
    save_keys(store, "jp", "sk")
    store.clear()

    assert store.get(JP_API_KEY) is None
    assert store.get(ANTHROPIC_API_KEY) is None


def test_sqlite_store_persists_between_instances(tmp_path):
    path = tmp_path / "nested" / "keys.db"
    save_keys(SQLiteCredentialStore(path), "jp", "sk")

    reopened = SQLiteCredentialStore(path)
    assert reopened.get(JP_API_KEY) == "jp"
    assert reopened.has_all() is True


def test_open_credential_store(tmp_path):
    assert isinstance(open_credential_store(None), MemoryCredentialStore)
    assert isinstance(open_credential_store(tmp_path / "keys.db"), SQLiteCredentialStore)
