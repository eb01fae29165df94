import pytest

from sheetsync.config import DEFAULT_IMPORT_CONFIG
from sheetsync.exceptions import ConfigError
from sheetsync.repositories.config_entries import ConfigRepository
from sheetsync.schemas import ImportConfig, ImportMode


def test_defaults_for_optional_keys():
    cfg = ImportConfig.from_mapping({"api_url": "https://api.test/x"})
    assert cfg.max_pages == 1
    assert cfg.mode is ImportMode.UPSERT


def test_mode_is_case_insensitive():
    cfg = ImportConfig.from_mapping({"api_url": "https://api.test/x", "mode": " APPEND "})
    assert cfg.mode is ImportMode.APPEND


@pytest.mark.parametrize("mapping", [
    {},
    {"api_url": "   "},
    {"api_url": "https://api.test/x", "max_pages": "three"},
    {"api_url": "https://api.test/x", "max_pages": "0"},
    {"api_url": "https://api.test/x", "mode": "merge"},
])
def test_invalid_config_raises(mapping):
    with pytest.raises(ConfigError):
        ImportConfig.from_mapping(mapping)


def test_missing_api_url_message():
    with pytest.raises(ConfigError, match="api_url"):
        ImportConfig.from_mapping({"max_pages": "2"})


@pytest.mark.asyncio
async def test_load_seeds_defaults_when_empty(db):
    repo = ConfigRepository(db)

    assert await repo.load() == DEFAULT_IMPORT_CONFIG
    # Seeded values are persisted, not just returned
    assert await ConfigRepository(db)._read() == DEFAULT_IMPORT_CONFIG


@pytest.mark.asyncio
async def test_load_returns_stored_values_trimmed(db):
    repo = ConfigRepository(db)
    await repo.set("api_url", "  https://api.test/x  ")
    await repo.set("mode", "append")

    assert await repo.load() == {"api_url": "https://api.test/x", "mode": "append"}


@pytest.mark.asyncio
async def test_set_overwrites_existing_key(db):
    repo = ConfigRepository(db)
    await repo.load()
    await repo.set("max_pages", "5")

    assert (await repo.load())["max_pages"] == "5"


@pytest.mark.asyncio
async def test_set_rejects_blank_key(db):
    repo = ConfigRepository(db)

    with pytest.raises(ConfigError, match="blank"):
        await repo.set("   ", "value")

    assert await repo._read() == {}
