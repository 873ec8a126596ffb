import os
import sys
from importlib import reload
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tourney_wallet.config import settings  # noqa: E402
from tourney_wallet.gateway import WalletGateway  # noqa: E402
from tourney_wallet.helpers import WalletApiClient  # noqa: E402
from tourney_wallet.store import WalletStore  # noqa: E402

PLAYER = "player-1"


@pytest.fixture(autouse=True)
def session_token(monkeypatch, tmp_path):
    """
    Every test runs as PLAYER and never touches the real session file.
    """
    monkeypatch.setattr(settings, "bearer_token", PLAYER)
    monkeypatch.setattr(settings, "token_file", tmp_path / "session.json")
    return PLAYER


@pytest.fixture(scope="function")
def mock_api(tmp_path_factory):
    """
    Reload the mock wallet API against a disposable SQLite DB.
    """
    db_path = tmp_path_factory.mktemp("data") / "wallet.db"
    new_env = {"MOCK_WALLET_DB_URL": f"sqlite:///{db_path}"}
    old_env = {k: os.environ.get(k) for k in new_env}
    os.environ.update(new_env)
    try:
        import mock_wallet_api.main as main

        reload(main)
        main.Base.metadata.drop_all(bind=main.engine)
        main.Base.metadata.create_all(bind=main.engine)
        return main
    finally:
        for key, value in old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value


@pytest.fixture
def api_client(mock_api):
    with TestClient(mock_api.app) as client:
        yield client


@pytest.fixture
def seed(api_client):
    """Book completed transactions straight into the mock API."""

    def _seed(amount, type="prize_win", count=1, user=PLAYER, description=None):
        booked = []
        for i in range(count):
            resp = api_client.post(
                "/admin/credit",
                json={
                    "userId": user,
                    "amount": amount,
                    "type": type,
                    "description": description or f"{type} #{i + 1}",
                },
            )
            assert resp.status_code == 200, resp.text
            booked.append(resp.json())
        return booked

    return _seed


@pytest.fixture
def make_gateway(mock_api):
    """Gateway wired to the in-process mock API."""

    def _make(**kwargs):
        client = WalletApiClient(
            base_url="http://testserver/api",
            transport=httpx.ASGITransport(app=mock_api.app),
        )
        return WalletGateway(store=WalletStore(), client=client, **kwargs)

    return _make


@pytest.fixture
def make_fake_gateway():
    """Gateway whose HTTP traffic is answered by ``handler``."""

    def _make(handler, **kwargs):
        client = WalletApiClient(base_url="http://wallet.test/api", transport=httpx.MockTransport(handler))
        return WalletGateway(store=WalletStore(), client=client, **kwargs)

    return _make
