"""
HTTP handlers for ModelConfig objects.

GET/POST /api/modelconfigs and GET/PUT/DELETE /api/modelconfigs/{configName}.
API keys are kept in a Secret named after the config; Ollama configs never
get one.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from kagent.errors import ConflictError, InternalError, NotFoundError
from kagent.modules.config import get_resource_namespace
from kagent.modules.store import ResourceStore

from .models import (
    MODEL_CONFIG_KIND,
    PROVIDER_FIELDS,
    SECRET_KIND,
    CreateModelConfigRequest,
    ModelConfig,
    ModelConfigResponse,
    ModelConfigSpec,
    ModelProvider,
    ObjectMeta,
    Secret,
    UpdateModelConfigRequest,
    api_key_secret_key,
)

logger = logging.getLogger("kagent.modelconfig")

router = APIRouter(prefix="/api/modelconfigs", tags=["modelconfigs"])


async def get_store(request: Request) -> ResourceStore:
    """Resource store set up by the application lifespan."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(503, "Service not initialized")
    return store


def _parse_provider(provider_type: str) -> Optional[ModelProvider]:
    try:
        return ModelProvider(provider_type)
    except ValueError:
        return None


def _apply_provider_params(
    spec: ModelConfigSpec, provider: ModelProvider, request: CreateModelConfigRequest
) -> None:
    params = request.params_for(provider)
    if params is None:
        logger.debug(f"No {provider.value} params provided")
        return
    setattr(spec, PROVIDER_FIELDS[provider], params)
    logger.debug(f"Assigned {provider.value} params to spec")


async def _load_model_config(store: ResourceStore, config_name: str) -> ModelConfig:
    try:
        obj = await store.get(MODEL_CONFIG_KIND, config_name, get_resource_namespace())
    except NotFoundError:
        logger.info(f"Model config {config_name} not found")
        raise HTTPException(404, "Model config not found")
    except InternalError as e:
        logger.error(f"Failed to get model config {config_name}: {e}")
        raise HTTPException(500, "Failed to get model config")
    return ModelConfig.model_validate(obj)


@router.get("", response_model=List[ModelConfigResponse])
async def list_model_configs(store: ResourceStore = Depends(get_store)):
    """
    List all model configs.

    Returns:
        200: Flattened model configs
        500: Store failure
    """
    try:
        objects = await store.list(MODEL_CONFIG_KIND)
    except InternalError as e:
        logger.error(f"Failed to list model configs: {e}")
        raise HTTPException(500, "Failed to list model configs")

    configs = []
    for obj in objects:
        config = ModelConfig.model_validate(obj)
        logger.debug(f"Processing model config {config.metadata.name} ({config.spec.model})")
        configs.append(ModelConfigResponse.from_model_config(config))

    logger.info(f"Successfully listed {len(configs)} model configs")
    return configs


@router.get("/{configName}", response_model=ModelConfigResponse)
async def get_model_config(configName: str, store: ResourceStore = Depends(get_store)):
    """
    Get one model config.

    Returns:
        200: Flattened model config
        404: Not found
    """
    config = await _load_model_config(store, configName)
    logger.info(f"Successfully retrieved model config {configName}")
    return ModelConfigResponse.from_model_config(config)


@router.post("", status_code=201)
async def create_model_config(
    request: CreateModelConfigRequest, store: ResourceStore = Depends(get_store)
):
    """
    Create a model config and, when an API key is given, its Secret.

    Returns:
        201: The created ModelConfig object
        400: Unsupported provider type
        409: Model config already exists
        500: Store failure (a Secret created for this request is removed again)
    """
    namespace = get_resource_namespace()
    logger.info(
        f"Received request to create model config {request.name} "
        f"(provider={request.provider.type}, model={request.model})"
    )

    try:
        await store.get(MODEL_CONFIG_KIND, request.name, namespace)
        logger.info(f"Model config {request.name} already exists")
        raise HTTPException(409, "Model config already exists")
    except NotFoundError:
        pass
    except InternalError as e:
        logger.error(f"Failed to check if model config {request.name} exists: {e}")
        raise HTTPException(500, "Failed to check if model config exists")

    provider = _parse_provider(request.provider.type)
    if provider is None:
        raise HTTPException(400, f"unsupported provider type: {request.provider.type}")

    spec = ModelConfigSpec(model=request.model, provider=provider.value)
    _apply_provider_params(spec, provider, request)

    secret_created = False
    if provider == ModelProvider.OLLAMA or not request.api_key:
        logger.debug("Ollama provider or empty API key, skipping secret creation")
    else:
        secret_key = api_key_secret_key(request.provider.type)
        secret = Secret(
            metadata=ObjectMeta(name=request.name, namespace=namespace),
            string_data={secret_key: request.api_key},
        )
        try:
            await store.create(SECRET_KIND, secret.to_object())
        except (ConflictError, InternalError) as e:
            logger.error(f"Failed to create API key secret {request.name}: {e}")
            raise HTTPException(500, "Failed to create API key secret")
        secret_created = True
        spec.api_key_secret_ref = request.name
        spec.api_key_secret_key = secret_key

    model_config = ModelConfig(
        metadata=ObjectMeta(name=request.name, namespace=namespace),
        spec=spec,
    )

    try:
        created = await store.create(MODEL_CONFIG_KIND, model_config.to_object())
    except (ConflictError, InternalError) as e:
        logger.error(f"Failed to create ModelConfig {request.name}: {e}")
        if secret_created:
            await _cleanup_secret(store, request.name, namespace)
        raise HTTPException(500, "Failed to create model config")

    logger.info(f"Successfully created model config {request.name}")
    return created


async def _cleanup_secret(store: ResourceStore, name: str, namespace: str) -> None:
    logger.debug(f"Attempting to clean up secret {name} after ModelConfig creation failure")
    try:
        await store.delete(SECRET_KIND, name, namespace)
    except (NotFoundError, InternalError) as e:
        logger.error(f"Failed to cleanup secret {name}: {e}")


async def _upsert_api_key_secret(
    store: ResourceStore, name: str, namespace: str, secret_key: str, api_key: str
) -> None:
    try:
        existing = await store.get(SECRET_KIND, name, namespace)
    except NotFoundError:
        logger.info(f"Secret {name} not found for update, creating new one")
        secret = Secret(
            metadata=ObjectMeta(name=name, namespace=namespace),
            string_data={secret_key: api_key},
        )
        try:
            await store.create(SECRET_KIND, secret.to_object())
        except (ConflictError, InternalError) as e:
            logger.error(f"Failed to create API key secret {name} during update: {e}")
            raise HTTPException(500, "Failed to create API key secret")
        return
    except InternalError as e:
        logger.error(f"Failed to get secret {name} for update: {e}")
        raise HTTPException(500, "Failed to get API key secret")

    existing.setdefault("stringData", {})[secret_key] = api_key
    try:
        await store.update(SECRET_KIND, existing)
    except (NotFoundError, InternalError) as e:
        logger.error(f"Failed to update API key secret {name}: {e}")
        raise HTTPException(500, "Failed to update API key secret")


@router.put("/{configName}", response_model=ModelConfigResponse)
async def update_model_config(
    configName: str,
    request: UpdateModelConfigRequest,
    store: ResourceStore = Depends(get_store),
):
    """
    Replace a model config's spec.

    The secret reference is kept when no new API key is sent and the provider
    type is unchanged.

    Returns:
        200: Flattened updated model config
        400: Unsupported provider type
        404: Not found
    """
    namespace = get_resource_namespace()
    logger.info(
        f"Received request to update model config {configName} "
        f"(provider={request.provider.type}, model={request.model})"
    )

    model_config = await _load_model_config(store, configName)

    provider = _parse_provider(request.provider.type)
    if provider is None:
        raise HTTPException(
            400, f"unsupported provider type specified: {request.provider.type}"
        )

    previous = model_config.spec
    spec = ModelConfigSpec(model=request.model, provider=provider.value)
    # Rebuilding the spec would drop the secret reference; carry it over
    if provider != ModelProvider.OLLAMA and previous.provider == provider.value:
        spec.api_key_secret_ref = previous.api_key_secret_ref
        spec.api_key_secret_key = previous.api_key_secret_key

    if request.api_key and provider != ModelProvider.OLLAMA:
        secret_key = api_key_secret_key(request.provider.type)
        logger.debug(f"Updating API key secret {configName} ({secret_key})")
        await _upsert_api_key_secret(store, configName, namespace, secret_key, request.api_key)
        spec.api_key_secret_ref = configName
        spec.api_key_secret_key = secret_key

    _apply_provider_params(spec, provider, request)
    model_config.spec = spec

    try:
        await store.update(MODEL_CONFIG_KIND, model_config.to_object())
    except NotFoundError:
        raise HTTPException(404, "Model config not found")
    except InternalError as e:
        logger.error(f"Failed to update ModelConfig {configName}: {e}")
        raise HTTPException(500, "Failed to update model config")

    logger.info(f"Successfully updated model config {configName}")
    return ModelConfigResponse.from_model_config(model_config)


@router.delete("/{configName}")
async def delete_model_config(configName: str, store: ResourceStore = Depends(get_store)):
    """
    Delete a model config. Its Secret is left in place.

    Returns:
        200: JSON null
        404: Not found
    """
    logger.info(f"Received request to delete model config {configName}")
    await _load_model_config(store, configName)

    try:
        await store.delete(MODEL_CONFIG_KIND, configName, get_resource_namespace())
    except NotFoundError:
        raise HTTPException(404, "Model config not found")
    except InternalError as e:
        logger.error(f"Failed to delete ModelConfig {configName}: {e}")
        raise HTTPException(500, "Failed to delete model config")

    logger.info(f"Successfully deleted model config {configName}")
    return JSONResponse(status_code=200, content=None)
