import json
from pathlib import Path

from tourney_wallet.config import settings
from tourney_wallet.logging_config import get_logger

logger = get_logger(__name__)


def _token_path(path: Path | None = None) -> Path:
    return Path(path or settings.token_file).expanduser()


def load_bearer_token(path: Path | None = None) -> str | None:
    """
    Return the session token: the configured override if set, otherwise the
    one persisted by the last login. A missing or unreadable file means no
    session.
    """
    if settings.bearer_token:
        return settings.bearer_token
    token_path = _token_path(path)
    if not token_path.exists():
        return None
    try:
        data = json.loads(token_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Unreadable session file path=%s error=%s", token_path, exc)
        return None
    token = data.get("token") if isinstance(data, dict) else None
    return token or None


def store_bearer_token(token: str, path: Path | None = None) -> Path:
    token_path = _token_path(path)
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(json.dumps({"token": token}), encoding="utf-8")
    return token_path


def clear_bearer_token(path: Path | None = None) -> None:
    token_path = _token_path(path)
    if token_path.exists():
        token_path.unlink()


def auth_headers(path: Path | None = None) -> dict:
    token = load_bearer_token(path)
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}
