from __future__ import annotations

import pytest

from showcase_sync.runtime import ConfigurationError, load_settings

_ENV_KEYS = (
    "CONVEX_URL",
    "VITE_CONVEX_URL",
    "SHOWCASE_CONTENT_ROOT",
    "SHOWCASE_ASSET_PAGE_SIZE",
    "SHOWCASE_HTTP_TIMEOUT",
    "SHOWCASE_SYNC_CONFIG",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_any_configuration(tmp_path) -> None:
    settings = load_settings(tmp_path)

    assert settings.content_root == tmp_path.resolve() / "showcase"
    assert settings.manifest_path == settings.content_root / "manifest.json"
    assert settings.index_path == settings.content_root / "index.md"
    assert settings.convex_url is None
    assert settings.asset_page_size == 1000
    assert settings.http_timeout is None
    with pytest.raises(ConfigurationError, match="CONVEX_URL"):
        settings.require_endpoint()


def test_environment_wins_over_env_files(tmp_path, monkeypatch) -> None:
    (tmp_path / ".env.local").write_text("CONVEX_URL=https://from-file.convex.cloud\n", encoding="utf-8")
    monkeypatch.setenv("VITE_CONVEX_URL", "https://from-env.convex.cloud")

    assert load_settings(tmp_path).convex_url == "https://from-env.convex.cloud"


def test_env_local_is_read_before_dotenv(tmp_path) -> None:
    (tmp_path / ".env").write_text("CONVEX_URL=https://plain.convex.cloud\n", encoding="utf-8")
    (tmp_path / ".env.local").write_text(
        "# local\nVITE_CONVEX_URL=https://local.convex.cloud\n", encoding="utf-8"
    )

    assert load_settings(tmp_path).convex_url == "https://local.convex.cloud"


def test_yaml_config_supplies_paths_and_limits(tmp_path) -> None:
    (tmp_path / "showcase.yaml").write_text(
        "convex_url: https://yaml.convex.cloud\n"
        "content_root: content\n"
        "manifest: state/manifest.json\n"
        "asset_page_size: 250\n"
        "http_timeout: 12.5\n",
        encoding="utf-8",
    )

    settings = load_settings(tmp_path)

    assert settings.convex_url == "https://yaml.convex.cloud"
    assert settings.content_root == tmp_path.resolve() / "content"
    assert settings.manifest_path == settings.content_root / "state" / "manifest.json"
    assert settings.asset_page_size == 250
    assert settings.http_timeout == 12.5


def test_explicit_config_path_and_env_overrides(tmp_path, monkeypatch) -> None:
    config = tmp_path / "elsewhere.yaml"
    config.write_text("asset_page_size: 10\ncontent_root: ignored\n", encoding="utf-8")
    monkeypatch.setenv("SHOWCASE_SYNC_CONFIG", str(config))
    monkeypatch.setenv("SHOWCASE_ASSET_PAGE_SIZE", "bogus")

    settings = load_settings(tmp_path, content_root=tmp_path / "mine")

    assert settings.content_root == tmp_path / "mine"
    assert settings.asset_page_size == 1000


def test_invalid_yaml_is_a_configuration_error(tmp_path) -> None:
    (tmp_path / "showcase.yaml").write_text("convex_url: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_settings(tmp_path)


def test_non_mapping_yaml_is_rejected(tmp_path) -> None:
    (tmp_path / "showcase.yaml").write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="mapping"):
        load_settings(tmp_path)
