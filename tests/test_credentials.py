import pytest

from habla.chat.credentials import DotenvCredentialStore, MemoryCredentialStore


def test_dotenv_store_round_trip(tmp_path, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    path = tmp_path / ".env"
    store = DotenvCredentialStore(path, "OPENAI_API_KEY")

    assert store.get() is None
    store.set("  sk-abc  ")

    assert store.get() == "sk-abc"
    assert "OPENAI_API_KEY" in path.read_text()
    assert DotenvCredentialStore(path, "OPENAI_API_KEY").get() == "sk-abc"


def test_dotenv_store_falls_back_to_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    store = DotenvCredentialStore(tmp_path / "missing.env", "OPENAI_API_KEY")
    assert store.get() == "sk-env"


def test_dotenv_store_creates_parent_directory(tmp_path):
    path = tmp_path / "config" / ".env"
    DotenvCredentialStore(path, "ANTHROPIC_API_KEY").set("sk-ant")
    assert path.exists()


@pytest.mark.parametrize("value", ["", "   "])
def test_blank_key_rejected(tmp_path, value):
    with pytest.raises(ValueError):
        DotenvCredentialStore(tmp_path / ".env", "OPENAI_API_KEY").set(value)
    with pytest.raises(ValueError):
        MemoryCredentialStore().set(value)


def test_memory_store_treats_blank_as_absent():
    assert MemoryCredentialStore("  ").get() is None
    store = MemoryCredentialStore()
    store.set("sk-1")
    assert store.get() == "sk-1"
