from pydantic import BaseModel
import json
import os
import sys
import logging
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# Load .env file if it exists (before reading os.getenv)
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                # Only set if not already in environment (env vars take precedence)
                if key not in os.environ:
                    os.environ[key] = value


class ConfigurationError(Exception):
    """Bad startup configuration (unknown server script type, missing manifest)."""


def _sanitize_ascii(val: str) -> str:
    """Strip non-ASCII characters from config values (prevents encoding errors)"""
    return val.encode('ascii', errors='ignore').decode('ascii').strip()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_timeout(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


class Settings(BaseModel):
    # Ollama chat model
    ollama_api_url: str = _sanitize_ascii(os.getenv("OLLAMA_API_URL", "http://localhost:11434"))
    ollama_model: str = _sanitize_ascii(os.getenv("OLLAMA_MODEL", "llama3.2"))
    # None = wait forever; local models can take minutes on first load
    ollama_timeout: Optional[float] = _env_timeout("OLLAMA_TIMEOUT")

    # Tool selector (lighter model, /api/generate)
    selector_model: str = _sanitize_ascii(os.getenv("SELECTOR_MODEL", "mistral:latest"))
    selector_endpoint: str = _sanitize_ascii(os.getenv("SELECTOR_ENDPOINT", "http://localhost:11434/api/generate"))
    selector_enabled: bool = _env_flag("SELECTOR_ENABLED", "true")

    # MCP client identity + subprocess launchers
    mcp_client_name: str = _sanitize_ascii(os.getenv("MCP_CLIENT_NAME", "mcp-client-cli"))
    mcp_client_version: str = _sanitize_ascii(os.getenv("MCP_CLIENT_VERSION", "1.0.0"))
    python_command: str = os.getenv("MCP_PYTHON_COMMAND", "python" if sys.platform == "win32" else "python3")
    node_command: str = os.getenv("MCP_NODE_COMMAND", "node")

    # Optional JSON manifest of server scripts
    manifest_path: str = os.getenv("MCP_MANIFEST", "")

    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()

settings = Settings()

logger.debug(f"Config: chat → {settings.ollama_api_url}, model={settings.ollama_model}")
logger.debug(f"Config: selector → {settings.selector_endpoint}, model={settings.selector_model}, "
             f"enabled={settings.selector_enabled}")


def load_manifest(path: str) -> List[str]:
    """Read server script paths from a JSON manifest.

    Accepts a list of paths, an object mapping names to paths, or either of
    those under a top-level "servers" key. Relative paths resolve against the
    manifest's own directory.
    """
    manifest = Path(path)
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(f"Manifest not found: {path}")
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read manifest {path}: {e}")

    if isinstance(data, dict) and "servers" in data:
        data = data["servers"]

    if isinstance(data, dict):
        entries = list(data.values())
    elif isinstance(data, list):
        entries = data
    else:
        raise ConfigurationError(f"Manifest {path} must be a list or an object of server paths")

    paths = []
    for entry in entries:
        if not isinstance(entry, str) or not entry:
            raise ConfigurationError(f"Manifest {path} has an invalid server path: {entry!r}")
        p = Path(entry)
        if not p.is_absolute():
            p = manifest.resolve().parent / p
        paths.append(str(p))

    logger.info(f"Manifest {path}: {len(paths)} server(s)")
    return paths
