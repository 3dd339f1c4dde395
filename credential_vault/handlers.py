"""
aiohttp handlers for the API key endpoints.

    POST /api/user/api-keys/save       {userId, keyType, apiKey, model?}
    POST /api/user/api-keys/load       {userId}
    POST /api/user/api-keys/validated  {userId, keyType, validated}
    POST /api/user/api-keys/select     {userId, provider}
    POST /api/user/api-keys/delete     {userId, keyType}

Every response carries ``success``. Errors never echo the submitted key
or any cipher detail back to the client.
"""
import logging
from typing import Any, Optional

import orjson
from aiohttp import web

from .vault import CredentialVault, EncryptionError
from .keys import (
    CredentialInputError,
    CredentialService,
    KeyStore,
    MemoryKeyStore,
    StoreStrategy,
)

logger = logging.getLogger("credential_vault")

VAULT_KEY = web.AppKey("credential_vault", CredentialVault)
STORE_STRATEGY_KEY = web.AppKey("credential_vault.stores", StoreStrategy)


def _dumps(obj: Any) -> str:
    return orjson.dumps(obj).decode("utf-8")


def json_response(data: dict, status: int = 200) -> web.Response:
    return web.json_response(data, status=status, dumps=_dumps)


def error_response(message: str, status: int) -> web.Response:
    return json_response({"success": False, "error": message}, status=status)


def _internal_error(user_id: Any, err: Exception) -> web.Response:
    # only the exception type is logged; its text may quote stored values
    logger.error(
        "Unreadable credential data for user=%s (%s)",
        user_id, type(err).__name__,
    )
    return error_response("Internal error", 500)


async def _read_body(request: web.Request) -> dict:
    try:
        body = await request.json(loads=orjson.loads)
    except (orjson.JSONDecodeError, UnicodeDecodeError):
        raise web.HTTPBadRequest(
            text=_dumps({"success": False, "error": "Invalid JSON body"}),
            content_type="application/json",
        ) from None
    if not isinstance(body, dict):
        raise web.HTTPBadRequest(
            text=_dumps({"success": False, "error": "Invalid JSON body"}),
            content_type="application/json",
        )
    return body


async def _service(request: web.Request) -> CredentialService:
    """Select the key store for this request and bind a service to it."""
    strategy: StoreStrategy = request.app[STORE_STRATEGY_KEY]
    store = await strategy.select()
    return CredentialService(request.app[VAULT_KEY], store)


async def save_api_key(request: web.Request) -> web.Response:
    body = await _read_body(request)
    user_id = body.get("userId")
    key_type = body.get("keyType")
    api_key = body.get("apiKey")
    if not user_id or not key_type or not api_key:
        return error_response("Missing required parameters", 400)
    try:
        service = await _service(request)
        await service.save_key(user_id, key_type, api_key, body.get("model"))
    except CredentialInputError as err:
        return error_response(str(err), 400)
    except ValueError as err:
        return _internal_error(user_id, err)
    except RuntimeError:
        return error_response("Key storage is unavailable", 503)
    except EncryptionError:
        logger.exception("Failed to seal API key for user=%s", user_id)
        return error_response("Failed to store API key", 500)
    return json_response({
        "success": True,
        "message": "API key stored securely",
    })


async def load_api_keys(request: web.Request) -> web.Response:
    body = await _read_body(request)
    user_id = body.get("userId")
    if not user_id:
        return error_response("userId is required", 400)
    try:
        service = await _service(request)
        keys = await service.load_keys(user_id)
    except CredentialInputError as err:
        return error_response(str(err), 400)
    except ValueError as err:
        return _internal_error(user_id, err)
    except RuntimeError:
        return error_response("Key storage is unavailable", 503)
    if keys is None:
        return json_response({
            "success": True,
            "keys": None,
            "message": "No API keys stored",
        })
    return json_response({
        "success": True,
        "keys": keys.model_dump(
            mode="json",
            by_alias=True,
            exclude_unset=True,
            exclude={"selected_ai_provider"},
        ),
        "selectedAIProvider": keys.selected_ai_provider,
    })


async def mark_api_key_validated(request: web.Request) -> web.Response:
    body = await _read_body(request)
    user_id = body.get("userId")
    key_type = body.get("keyType")
    if not user_id or not key_type:
        return error_response("Missing required parameters", 400)
    validated = body.get("validated", True)
    if not isinstance(validated, bool):
        return error_response("validated must be a boolean", 400)
    try:
        service = await _service(request)
        credential = await service.mark_validated(user_id, key_type, validated)
    except CredentialInputError as err:
        return error_response(str(err), 400)
    except ValueError as err:
        return _internal_error(user_id, err)
    except KeyError:
        return error_response("No API key stored for this type", 404)
    except RuntimeError:
        return error_response("Key storage is unavailable", 503)
    return json_response({
        "success": True,
        "validated": credential.validated,
        "lastValidated": credential.last_validated.isoformat(),
    })


async def select_ai_provider(request: web.Request) -> web.Response:
    body = await _read_body(request)
    user_id = body.get("userId")
    provider = body.get("provider")
    if not user_id or not provider:
        return error_response("Missing required parameters", 400)
    try:
        service = await _service(request)
        await service.select_provider(user_id, provider)
    except CredentialInputError as err:
        return error_response(str(err), 400)
    except ValueError as err:
        return _internal_error(user_id, err)
    except KeyError:
        return error_response("No API key stored for this provider", 404)
    except RuntimeError:
        return error_response("Key storage is unavailable", 503)
    return json_response({"success": True, "selectedAIProvider": provider})


async def delete_api_key(request: web.Request) -> web.Response:
    body = await _read_body(request)
    user_id = body.get("userId")
    key_type = body.get("keyType")
    if not user_id or not key_type:
        return error_response("Missing required parameters", 400)
    try:
        service = await _service(request)
        deleted = await service.delete_key(user_id, key_type)
    except CredentialInputError as err:
        return error_response(str(err), 400)
    except ValueError as err:
        return _internal_error(user_id, err)
    except RuntimeError:
        return error_response("Key storage is unavailable", 503)
    return json_response({"success": True, "deleted": deleted})


def setup_vault(
    app: web.Application,
    vault: Optional[CredentialVault] = None,
    primary: Optional[KeyStore] = None,
    fallback: Optional[KeyStore] = None,
) -> web.Application:
    """Attach the vault, key stores and routes to ``app``.

    The vault is built here, so a missing or weak MasterSecret stops the
    application before it serves any request.

    Raises:
        ConfigurationError: If no vault is given and the environment
            does not hold a valid MasterSecret.
    """
    if vault is None:
        vault = CredentialVault.from_env()
    if primary is None:
        primary = MemoryKeyStore()
    app[VAULT_KEY] = vault
    app[STORE_STRATEGY_KEY] = StoreStrategy(primary, fallback)
    app.router.add_post("/api/user/api-keys/save", save_api_key)
    app.router.add_post("/api/user/api-keys/load", load_api_keys)
    app.router.add_post("/api/user/api-keys/validated", mark_api_key_validated)
    app.router.add_post("/api/user/api-keys/select", select_ai_provider)
    app.router.add_post("/api/user/api-keys/delete", delete_api_key)
    logger.info(
        "Credential vault ready (store=%s, fallback=%s)",
        primary.name, fallback.name if fallback else None,
    )
    return app


def create_app(**kwargs) -> web.Application:
    """Build a standalone aiohttp application serving the API key routes."""
    return setup_vault(web.Application(), **kwargs)
