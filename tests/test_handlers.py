"""Tests for the aiohttp API key endpoints."""
import pytest
from aiohttp.test_utils import TestClient, TestServer

from credential_vault.conf import MASTER_SECRET_ENV
from credential_vault.handlers import create_app
from credential_vault.keys import MemoryKeyStore, RedisKeyStore
from credential_vault.vault import ConfigurationError

API_KEY = "AIzaSy-example-key"


@pytest.fixture
def primary():
    return MemoryKeyStore()


@pytest.fixture
async def client(vault, primary):
    app = create_app(vault=vault, primary=primary)
    async with TestClient(TestServer(app)) as client:
        yield client


async def _post(client, path, payload):
    resp = await client.post(f"/api/user/api-keys/{path}", json=payload)
    return resp.status, await resp.json()


class TestStartup:

    def test_missing_master_secret_fails_fast(self, monkeypatch):
        monkeypatch.delenv(MASTER_SECRET_ENV, raising=False)
        with pytest.raises(ConfigurationError):
            create_app()

    def test_weak_master_secret_fails_fast(self, monkeypatch):
        monkeypatch.setenv(MASTER_SECRET_ENV, "short")
        with pytest.raises(ConfigurationError):
            create_app()

    def test_master_secret_from_env(self, monkeypatch):
        monkeypatch.setenv(MASTER_SECRET_ENV, "k" * 40)
        app = create_app()
        assert len(app.router.routes()) == 5


class TestSave:

    async def test_save(self, client, primary):
        status, data = await _post(client, "save", {
            "userId": "user-42", "keyType": "youtube", "apiKey": API_KEY,
        })
        assert status == 200
        assert data["success"] is True
        assert API_KEY not in str(data)
        doc = await primary.get("user-42")
        assert doc.youtube is not None

    @pytest.mark.parametrize("payload", [
        {"keyType": "youtube", "apiKey": API_KEY},
        {"userId": "user-42", "apiKey": API_KEY},
        {"userId": "user-42", "keyType": "youtube"},
        {"userId": "user-42", "keyType": "youtube", "apiKey": ""},
    ])
    async def test_missing_parameters(self, client, payload):
        status, data = await _post(client, "save", payload)
        assert status == 400
        assert data["success"] is False

    async def test_invalid_key_type(self, client):
        status, data = await _post(client, "save", {
            "userId": "user-42", "keyType": "openai", "apiKey": API_KEY,
        })
        assert status == 400
        assert API_KEY not in data["error"]

    async def test_invalid_json(self, client):
        resp = await client.post(
            "/api/user/api-keys/save", data=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status == 400
        assert (await resp.json())["success"] is False


class TestLoad:

    async def test_no_keys(self, client):
        status, data = await _post(client, "load", {"userId": "user-42"})
        assert status == 200
        assert data["success"] is True
        assert data["keys"] is None

    async def test_missing_user(self, client):
        status, data = await _post(client, "load", {})
        assert status == 400

    async def test_load_decrypted(self, client):
        await _post(client, "save", {
            "userId": "user-42", "keyType": "youtube", "apiKey": API_KEY,
        })
        await _post(client, "save", {
            "userId": "user-42", "keyType": "gemini",
            "apiKey": "gm-key", "model": "gemini-2.5-flash",
        })
        await _post(client, "select", {"userId": "user-42", "provider": "gemini"})
        status, data = await _post(client, "load", {"userId": "user-42"})
        assert status == 200
        assert data["keys"]["youtube"]["apiKey"] == API_KEY
        assert data["keys"]["youtube"]["validated"] is False
        assert data["keys"]["ai"]["gemini"] == {
            "apiKey": "gm-key",
            "model": "gemini-2.5-flash",
            "validated": False,
            "lastValidated": None,
        }
        assert data["selectedAIProvider"] == "gemini"

    async def test_other_user_gets_nothing(self, client):
        await _post(client, "save", {
            "userId": "user-42", "keyType": "youtube", "apiKey": API_KEY,
        })
        status, data = await _post(client, "load", {"userId": "user-43"})
        assert data["keys"] is None
        assert API_KEY not in str(data)


class TestValidatedSelectDelete:

    async def test_mark_validated(self, client):
        await _post(client, "save", {
            "userId": "u1", "keyType": "xai", "apiKey": "xai-key",
        })
        status, data = await _post(client, "validated", {
            "userId": "u1", "keyType": "xai", "validated": True,
        })
        assert status == 200
        assert data["validated"] is True
        assert data["lastValidated"]
        _, loaded = await _post(client, "load", {"userId": "u1"})
        assert loaded["keys"]["ai"]["xai"]["validated"] is True

    async def test_mark_validated_missing(self, client):
        status, _ = await _post(client, "validated", {
            "userId": "u1", "keyType": "xai",
        })
        assert status == 404

    async def test_select_youtube_rejected(self, client):
        await _post(client, "save", {
            "userId": "u1", "keyType": "youtube", "apiKey": API_KEY,
        })
        status, _ = await _post(client, "select", {
            "userId": "u1", "provider": "youtube",
        })
        assert status == 400

    async def test_delete(self, client):
        await _post(client, "save", {
            "userId": "u1", "keyType": "youtube", "apiKey": API_KEY,
        })
        status, data = await _post(client, "delete", {
            "userId": "u1", "keyType": "youtube",
        })
        assert status == 200
        assert data["deleted"] is True
        _, loaded = await _post(client, "load", {"userId": "u1"})
        assert "youtube" not in loaded["keys"]


class TestStoreSelection:

    async def test_fallback_used_when_primary_down(self, vault, fake_redis):
        fake_redis.up = False
        fallback = MemoryKeyStore()
        app = create_app(
            vault=vault, primary=RedisKeyStore(fake_redis), fallback=fallback,
        )
        async with TestClient(TestServer(app)) as client:
            status, _ = await _post(client, "save", {
                "userId": "u1", "keyType": "youtube", "apiKey": API_KEY,
            })
        assert status == 200
        assert await fallback.get("u1") is not None
        assert fake_redis.data == {}

    async def test_unavailable_without_fallback(self, vault, fake_redis):
        fake_redis.up = False
        app = create_app(vault=vault, primary=RedisKeyStore(fake_redis))
        async with TestClient(TestServer(app)) as client:
            status, data = await _post(client, "load", {"userId": "u1"})
        assert status == 503
        assert data["success"] is False


class TestErrorMessages:

    async def test_non_string_model(self, client):
        status, data = await _post(client, "save", {
            "userId": "u1", "keyType": "gemini",
            "apiKey": "AIzaSy-secret", "model": 5,
        })
        assert status == 400
        assert data["error"] == "model must be a string"
        assert "AIzaSy-secret" not in data["error"]

    async def test_non_string_api_key(self, client):
        status, data = await _post(client, "save", {
            "userId": "u1", "keyType": "youtube", "apiKey": 12345,
        })
        assert status == 400
        assert data["error"] == "api_key must be a string"

    async def test_unknown_key_type_not_echoed(self, client):
        status, data = await _post(client, "save", {
            "userId": "u1", "keyType": "made-up-kind", "apiKey": API_KEY,
        })
        assert status == 400
        assert "made-up-kind" not in data["error"]

    @pytest.mark.parametrize("validated", ["false", 0, None, "yes"])
    async def test_validated_must_be_boolean(self, client, validated):
        await _post(client, "save", {
            "userId": "u1", "keyType": "xai", "apiKey": "xai-key",
        })
        status, data = await _post(client, "validated", {
            "userId": "u1", "keyType": "xai", "validated": validated,
        })
        assert status == 400
        assert data["error"] == "validated must be a boolean"

    async def test_validated_false(self, client):
        await _post(client, "save", {
            "userId": "u1", "keyType": "xai", "apiKey": "xai-key",
        })
        status, data = await _post(client, "validated", {
            "userId": "u1", "keyType": "xai", "validated": False,
        })
        assert status == 200
        assert data["validated"] is False

    async def test_unreadable_document(self, client, primary, caplog):
        primary._documents["u1"] = (
            b'{"user_id": "u1", "youtube": {"encrypted_key": "SEALED-VALUE"}}'
        )
        status, data = await _post(client, "load", {"userId": "u1"})
        assert status == 500
        assert data == {"success": False, "error": "Internal error"}
        assert "SEALED-VALUE" not in caplog.text
