"""
ModelConfig resource and API models.

Field names follow the kagent.dev/v1alpha1 JSON (camelCase) through aliases;
Python code uses snake_case attributes.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

API_VERSION = "kagent.dev/v1alpha1"
MODEL_CONFIG_KIND = "ModelConfig"
SECRET_KIND = "Secret"


class CamelModel(BaseModel):
    """Base for models serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Enums


class ModelProvider(str, Enum):
    """Supported model providers."""

    OPENAI = "OpenAI"
    ANTHROPIC = "Anthropic"
    AZURE_OPENAI = "AzureOpenAI"
    OLLAMA = "Ollama"
    GEMINI_VERTEX_AI = "GeminiVertexAI"
    ANTHROPIC_VERTEX_AI = "AnthropicVertexAI"


# Provider parameter blocks


class OpenAIConfig(CamelModel):
    base_url: Optional[str] = None
    organization: Optional[str] = None
    temperature: Optional[str] = None
    max_tokens: Optional[int] = None
    top_p: Optional[str] = None
    frequency_penalty: Optional[str] = None
    presence_penalty: Optional[str] = None
    seed: Optional[int] = None
    n: Optional[int] = None
    timeout: Optional[int] = None


class AnthropicConfig(CamelModel):
    base_url: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[str] = None
    top_p: Optional[str] = None
    top_k: Optional[int] = None


class AzureOpenAIConfig(CamelModel):
    endpoint: Optional[str] = Field(None, alias="azureEndpoint")
    api_version: Optional[str] = None
    azure_deployment: Optional[str] = None
    azure_ad_token: Optional[str] = None
    temperature: Optional[str] = None
    max_tokens: Optional[int] = None
    top_p: Optional[str] = None


class OllamaConfig(CamelModel):
    host: Optional[str] = None
    options: Optional[Dict[str, str]] = None


class GeminiVertexAIConfig(CamelModel):
    project_id: Optional[str] = Field(None, alias="projectID")
    location: Optional[str] = None
    temperature: Optional[str] = None
    top_p: Optional[str] = None
    top_k: Optional[str] = None
    max_output_tokens: Optional[int] = None
    candidate_count: Optional[int] = None
    stop_sequences: Optional[List[str]] = None
    response_mime_type: Optional[str] = None


class AnthropicVertexAIConfig(CamelModel):
    project_id: Optional[str] = Field(None, alias="projectID")
    location: Optional[str] = None
    temperature: Optional[str] = None
    top_p: Optional[str] = None
    top_k: Optional[str] = None
    max_tokens: Optional[int] = None
    stop_sequences: Optional[List[str]] = None


# Spec field name for each provider's parameter block
PROVIDER_FIELDS = {
    ModelProvider.OPENAI: "openai",
    ModelProvider.ANTHROPIC: "anthropic",
    ModelProvider.AZURE_OPENAI: "azure_openai",
    ModelProvider.OLLAMA: "ollama",
    ModelProvider.GEMINI_VERTEX_AI: "gemini_vertex_ai",
    ModelProvider.ANTHROPIC_VERTEX_AI: "anthropic_vertex_ai",
}


# Resource Models


class ObjectMeta(CamelModel):
    name: str
    namespace: str
    creation_timestamp: Optional[str] = None
    resource_version: Optional[str] = None


class ModelConfigSpec(CamelModel):
    model: str
    provider: str
    api_key_secret_ref: Optional[str] = None
    api_key_secret_key: Optional[str] = None
    openai: Optional[OpenAIConfig] = Field(None, alias="openAI")
    anthropic: Optional[AnthropicConfig] = None
    azure_openai: Optional[AzureOpenAIConfig] = Field(None, alias="azureOpenAI")
    ollama: Optional[OllamaConfig] = None
    gemini_vertex_ai: Optional[GeminiVertexAIConfig] = Field(None, alias="geminiVertexAI")
    anthropic_vertex_ai: Optional[AnthropicVertexAIConfig] = Field(
        None, alias="anthropicVertexAI"
    )

    def provider_params(self) -> Optional[CamelModel]:
        """The first populated provider parameter block, if any."""
        for field_name in PROVIDER_FIELDS.values():
            params = getattr(self, field_name)
            if params is not None:
                return params
        return None


class ModelConfig(CamelModel):
    api_version: str = API_VERSION
    kind: str = MODEL_CONFIG_KIND
    metadata: ObjectMeta
    spec: ModelConfigSpec

    def to_object(self) -> Dict[str, Any]:
        """Serialize for the resource store."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Secret(CamelModel):
    api_version: str = "v1"
    kind: str = SECRET_KIND
    metadata: ObjectMeta
    string_data: Dict[str, str] = Field(default_factory=dict)

    def to_object(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# Request Models (API Input)


class Provider(BaseModel):
    name: str = ""
    type: str


class CreateModelConfigRequest(CamelModel):
    """Request to create a model config."""

    name: str = Field(..., min_length=1, max_length=253)
    provider: Provider
    model: str
    api_key: str = ""
    openai_params: Optional[OpenAIConfig] = Field(None, alias="openAI")
    anthropic_params: Optional[AnthropicConfig] = Field(None, alias="anthropic")
    azure_params: Optional[AzureOpenAIConfig] = Field(None, alias="azureOpenAI")
    ollama_params: Optional[OllamaConfig] = Field(None, alias="ollama")
    gemini_params: Optional[GeminiVertexAIConfig] = Field(None, alias="geminiVertexAI")
    anthropic_vertex_params: Optional[AnthropicVertexAIConfig] = Field(
        None, alias="anthropicVertexAI"
    )

    def params_for(self, provider: ModelProvider) -> Optional[CamelModel]:
        """Parameter block supplied for the given provider."""
        return {
            ModelProvider.OPENAI: self.openai_params,
            ModelProvider.ANTHROPIC: self.anthropic_params,
            ModelProvider.AZURE_OPENAI: self.azure_params,
            ModelProvider.OLLAMA: self.ollama_params,
            ModelProvider.GEMINI_VERTEX_AI: self.gemini_params,
            ModelProvider.ANTHROPIC_VERTEX_AI: self.anthropic_vertex_params,
        }[provider]


class UpdateModelConfigRequest(CreateModelConfigRequest):
    """Like create, but the name comes from the path and the API key is optional."""

    name: Optional[str] = None
    api_key: Optional[str] = None


# Response Models (API Output)


class ModelConfigResponse(BaseModel):
    """Flattened view of a ModelConfig."""

    name: str
    namespace: str
    providerName: str
    model: str
    apiKeySecretRef: str = ""
    apiKeySecretKey: str = ""
    modelParams: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_model_config(cls, config: ModelConfig) -> "ModelConfigResponse":
        params = config.spec.provider_params()
        return cls(
            name=config.metadata.name,
            namespace=config.metadata.namespace,
            providerName=config.spec.provider,
            model=config.spec.model,
            apiKeySecretRef=config.spec.api_key_secret_ref or "",
            apiKeySecretKey=config.spec.api_key_secret_key or "",
            modelParams=flatten_params(params),
        )


def flatten_params(params: Optional[BaseModel]) -> Dict[str, Any]:
    """Provider parameters as a plain dict, unset fields left out."""
    if params is None:
        return {}
    return params.model_dump(by_alias=True, exclude_none=True)


def api_key_secret_key(provider_type: str) -> str:
    """Secret data key for a provider's API key, e.g. OPENAI_API_KEY."""
    return f"{provider_type.upper()}_API_KEY"


__all__ = [
    "API_VERSION",
    "MODEL_CONFIG_KIND",
    "SECRET_KIND",
    "ModelProvider",
    "OpenAIConfig",
    "AnthropicConfig",
    "AzureOpenAIConfig",
    "OllamaConfig",
    "GeminiVertexAIConfig",
    "AnthropicVertexAIConfig",
    "ObjectMeta",
    "ModelConfigSpec",
    "ModelConfig",
    "Secret",
    "Provider",
    "CreateModelConfigRequest",
    "UpdateModelConfigRequest",
    "ModelConfigResponse",
    "flatten_params",
    "api_key_secret_key",
]
