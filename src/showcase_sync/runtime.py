from __future__ import annotations

import logging
import os
from contextvars import ContextVar, Token
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_VERBOSE_LOGGING: ContextVar[bool] = ContextVar(
    "showcase_sync_verbose_logging", default=False
)

ENDPOINT_ENV_KEYS = ("CONVEX_URL", "VITE_CONVEX_URL")
ENV_FILENAMES = (".env.local", ".env")
CONFIG_FILENAME = "showcase.yaml"

_DEFAULT_CONTENT_ROOT = "showcase"
_DEFAULT_MANIFEST_NAME = "manifest.json"
_DEFAULT_INDEX_NAME = "index.md"
DEFAULT_ASSET_PAGE_SIZE = 1000
_MAX_ASSET_PAGE_SIZE = 8192


class ConfigurationError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    project_root: Path
    content_root: Path
    manifest_path: Path
    index_path: Path
    convex_url: str | None
    asset_page_size: int = DEFAULT_ASSET_PAGE_SIZE
    http_timeout: float | None = None

    def require_endpoint(self) -> str:
        if not self.convex_url:
            keys = " or ".join(ENDPOINT_ENV_KEYS)
            files = ", ".join(ENV_FILENAMES)
            raise ConfigurationError(
                f"{keys} not found in environment, {files} or {CONFIG_FILENAME}"
            )
        return self.convex_url


def get_verbose_logging() -> bool:
    return _VERBOSE_LOGGING.get()


def set_verbose_logging(enabled: bool) -> Token[bool]:
    return _VERBOSE_LOGGING.set(bool(enabled))


def reset_verbose_logging(token: Token[bool]) -> None:
    _VERBOSE_LOGGING.reset(token)


class _EchoHandler(logging.Handler):
    # resolves stderr at emit time so redirected streams are honoured
    def emit(self, record: logging.LogRecord) -> None:
        import click

        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool | None = None) -> None:
    if verbose is None:
        verbose = get_verbose_logging()
    package_logger = logging.getLogger("showcase_sync")
    for handler in list(package_logger.handlers):
        if isinstance(handler, _EchoHandler):
            package_logger.removeHandler(handler)
    handler = _EchoHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _read_positive_int(raw: Any, default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    if value <= 0:
        return default
    return min(value, _MAX_ASSET_PAGE_SIZE)


def _read_timeout(raw: Any) -> float | None:
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    return value if value > 0 else None


def read_config(project_root: Path) -> dict[str, Any]:
    import yaml

    custom = (os.environ.get("SHOWCASE_SYNC_CONFIG") or "").strip()
    config_path = Path(custom) if custom else project_root / CONFIG_FILENAME
    try:
        with open(config_path, "r", encoding="utf-8") as file:
            data = yaml.safe_load(file)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must be a YAML mapping")
    return data


def resolve_endpoint(project_root: Path, config: dict[str, Any]) -> str | None:
    for key in ENDPOINT_ENV_KEYS:
        value = (os.environ.get(key) or "").strip()
        if value:
            return value

    from dotenv import dotenv_values

    for filename in ENV_FILENAMES:
        env_path = project_root / filename
        if not env_path.is_file():
            continue
        values = dotenv_values(env_path)
        for key in ENDPOINT_ENV_KEYS:
            value = (values.get(key) or "").strip()
            if value:
                return value

    value = config.get("convex_url")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def load_settings(
    project_root: str | Path | None = None,
    *,
    content_root: str | Path | None = None,
) -> Settings:
    root = Path(project_root or os.getcwd()).resolve()
    config = read_config(root)

    raw_content = (
        content_root
        or os.environ.get("SHOWCASE_CONTENT_ROOT")
        or config.get("content_root")
        or _DEFAULT_CONTENT_ROOT
    )
    content = Path(raw_content)
    if not content.is_absolute():
        content = root / content

    manifest = Path(config.get("manifest") or _DEFAULT_MANIFEST_NAME)
    if not manifest.is_absolute():
        manifest = content / manifest
    index = Path(config.get("index") or _DEFAULT_INDEX_NAME)
    if not index.is_absolute():
        index = content / index

    page_size = _read_positive_int(
        os.environ.get("SHOWCASE_ASSET_PAGE_SIZE") or config.get("asset_page_size"),
        DEFAULT_ASSET_PAGE_SIZE,
    )
    timeout = _read_timeout(
        os.environ.get("SHOWCASE_HTTP_TIMEOUT") or config.get("http_timeout")
    )

    return Settings(
        project_root=root,
        content_root=content,
        manifest_path=manifest,
        index_path=index,
        convex_url=resolve_endpoint(root, config),
        asset_page_size=page_size,
        http_timeout=timeout,
    )
