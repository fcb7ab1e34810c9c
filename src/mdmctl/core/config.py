"""mdmctl client configuration store.

Server profiles live in a single JSON document, ``~/.micromdm/servers.json``
by default. Every command loads it, changes one thing and writes it back.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Literal
from urllib.parse import urlsplit, urlunsplit

import structlog

CONFIG_DIR_NAME = ".micromdm"
CONFIG_FILE_NAME = "servers.json"
ENV_CONFIG = "MDMCTL_CONFIG"

DIR_MODE = 0o777
FILE_MODE = 0o600

log = structlog.get_logger(__name__)


# === Errors ===


class ConfigError(Exception):
    """Base class for configuration store failures."""


class ConfigPathError(ConfigError):
    """The location of the config file could not be determined."""


class ConfigNotFoundError(ConfigError):
    """The config file does not exist."""

    def __init__(self, path: Path):
        super().__init__(f"unable to load default config file: {path} does not exist")
        self.path = path


class ConfigParseError(ConfigError):
    """The config file exists but does not hold a valid client config."""

    def __init__(self, path: Path, cause: Exception):
        super().__init__(f"failed to unmarshal {path} : {cause}")
        self.path = path
        self.cause = cause


class InvalidServerURLError(ConfigError, ValueError):
    """A server URL could not be parsed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"parse {url!r}: {reason}")
        self.url = url
        self.reason = reason


# === Data model ===


@dataclass
class ServerConfig:
    """Connection settings for one named server."""

    api_token: str = ""
    server_url: str = ""
    skip_verify: bool = False  # disable TLS certificate checks


@dataclass
class ClientConfig:
    """The whole persisted document."""

    active: str = ""
    """Name of the selected profile; empty means none."""

    servers: dict[str, ServerConfig] = field(default_factory=dict)


@dataclass(frozen=True)
class LoadResult:
    """Outcome of reading the config file.

    ``status`` is ``"not_found"`` when the file does not exist, so callers
    that can start from an empty document do not have to inspect errors.
    """

    status: Literal["ok", "not_found"]
    path: Path
    config: ClientConfig | None = None


# === Paths ===


def client_config_path(home: Path | None = None) -> Path:
    """Return ``<home>/.micromdm/servers.json``.

    ``home`` defaults to the current user's home directory.
    """
    if home is None:
        try:
            home = Path.home()
        except (KeyError, RuntimeError) as e:
            raise ConfigPathError(f"unable to determine home directory: {e}") from e
    return home / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def resolve_config_path() -> Path:
    """Return the config file path, honouring $MDMCTL_CONFIG."""
    env_path = os.environ.get(ENV_CONFIG)
    if env_path:
        return Path(env_path).expanduser()
    return client_config_path()


# === Encoding ===


def _expect(value: Any, kind: type, where: str) -> Any:
    if not isinstance(value, kind):
        raise ValueError(
            f"{where}: expected {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _decode_server(name: str, raw: Any) -> ServerConfig:
    where = f"servers[{name!r}]"
    if raw is None:
        return ServerConfig()
    _expect(raw, dict, where)
    server = ServerConfig()
    # Missing and null fields keep their zero value.
    if raw.get("api_token") is not None:
        server.api_token = _expect(raw["api_token"], str, f"{where}.api_token")
    if raw.get("server_url") is not None:
        server.server_url = _expect(raw["server_url"], str, f"{where}.server_url")
    if raw.get("skip_verify") is not None:
        server.skip_verify = _expect(raw["skip_verify"], bool, f"{where}.skip_verify")
    return server


def decode_client_config(raw: Any) -> ClientConfig:
    """Build a ClientConfig from decoded JSON. Raises ValueError on type mismatches."""
    if raw is None:
        return ClientConfig()
    _expect(raw, dict, "config")
    config = ClientConfig()
    if raw.get("active") is not None:
        config.active = _expect(raw["active"], str, "active")
    servers = raw.get("servers")
    if servers is not None:
        _expect(servers, dict, "servers")
        config.servers = {
            name: _decode_server(name, value) for name, value in servers.items()
        }
    return config


def encode_client_config(config: ClientConfig) -> str:
    """Serialize as two-space indented JSON with sorted keys and a trailing newline."""
    return json.dumps(asdict(config), indent=2, sort_keys=True, ensure_ascii=False) + "\n"


# === Load / save ===


def read_client_config(path: Path) -> LoadResult:
    """Read the config file at ``path``.

    A missing file is reported through ``LoadResult.status``; other read
    failures raise OSError and malformed content raises ConfigParseError.
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return LoadResult(status="not_found", path=path)
    try:
        config = decode_client_config(json.loads(data))
    except ValueError as e:
        raise ConfigParseError(path, e) from e
    return LoadResult(status="ok", path=path, config=config)


def load_client_config(path: Path) -> ClientConfig:
    """Load the config file, raising ConfigNotFoundError if it is absent."""
    result = read_client_config(path)
    if result.status == "not_found":
        raise ConfigNotFoundError(path)
    return result.config


def load_server_config(path: Path) -> ServerConfig:
    """Return the active server profile.

    An empty or unknown active name yields a zero-valued ServerConfig.
    """
    config = load_client_config(path)
    server = config.servers.get(config.active)
    if server is None:
        log.debug("active_profile_missing", active=config.active, path=str(path))
        return ServerConfig()
    return server


def save_client_config(config: ClientConfig, path: Path) -> None:
    """Write the whole document to ``path``, truncating any previous content.

    The parent directory is created if missing. The write is not atomic.
    """
    if not path.parent.exists():
        path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(encode_client_config(config))
    log.info("config_saved", path=str(path), servers=len(config.servers))


# === Operations ===


_HTTP_PREFIXES = ("http://", "https://")


def validate_server_url(server_url: str) -> str:
    """Normalize a server URL to ``scheme://host/``.

    Empty input is returned unchanged. A URL without an http(s) scheme gets
    ``https://``. The path is always replaced by ``/``.
    """
    if not server_url:
        return server_url
    if not server_url.lower().startswith(_HTTP_PREFIXES):
        server_url = "https://" + server_url

    # urlsplit silently strips these, so reject them up front.
    for c in server_url:
        if ord(c) < 0x20 or ord(c) == 0x7F:
            raise InvalidServerURLError(server_url, "invalid control character in URL")
    try:
        parts = urlsplit(server_url)
        parts.port  # raises on a non-numeric or out of range port
    except ValueError as e:
        raise InvalidServerURLError(server_url, str(e)) from e
    if any(c.isspace() for c in parts.netloc):
        raise InvalidServerURLError(server_url, "invalid character in host name")

    return urlunsplit((parts.scheme, parts.netloc, "/", parts.query, parts.fragment))


def save_server_config(
    path: Path,
    name: str,
    *,
    api_token: str = "",
    server_url: str = "",
    skip_verify: bool = False,
) -> ServerConfig:
    """Create or replace the profile called ``name``.

    The stored profile holds exactly the given fields; nothing is merged from
    a previous profile of the same name. A missing config file is started
    fresh. The URL is validated before the file is touched.
    """
    server = ServerConfig(
        api_token=api_token,
        server_url=validate_server_url(server_url),
        skip_verify=skip_verify,
    )

    result = read_client_config(path)
    if result.status == "not_found":
        log.info("config_not_found", path=str(path))
        config = ClientConfig()
    else:
        config = result.config

    config.servers[name] = server
    save_client_config(config, path)
    log.info("profile_upserted", name=name, server_url=server.server_url)
    return server


def switch_server_config(path: Path, name: str) -> ClientConfig:
    """Make ``name`` the active profile.

    The name is not checked against the stored profiles.
    """
    config = load_client_config(path)
    previous = config.active
    config.active = name
    save_client_config(config, path)
    log.info("active_switched", previous=previous, active=name)
    return config
