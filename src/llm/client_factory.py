# src/llm/client_factory.py — v3
"""Factory: resolve the vendor adapter for a model record.

Vendors are looked up in a registry of vendor key → adapter class path
(lazy import). Adding a vendor is a ``register_adapter`` call; keys that
are not registered fail with UnsupportedVendorError.
"""

from __future__ import annotations

import importlib
import logging

from snowgoose.config.settings import Settings
from snowgoose.core.models import ModelRecord
from snowgoose.llm.base_adapter import BaseVendorAdapter
from snowgoose.llm.models import VendorConfig
from snowgoose.storage.base_image_store import BaseImageStore
from snowgoose.storage.base_model_store import BaseModelStore
from snowgoose.storage.base_user_store import BaseUserStore
from snowgoose.tracking.usage_meter import UsageMeter

logger = logging.getLogger(__name__)

# Registry of vendor key → adapter class path (lazy import).
_VENDOR_REGISTRY: dict[str, str] = {
    "openai": "snowgoose.llm.adapters.openai_adapter.OpenAIAdapter",
    "anthropic": "snowgoose.llm.adapters.anthropic_adapter.AnthropicAdapter",
    "google": "snowgoose.llm.adapters.google_adapter.GoogleAdapter",
    "openrouter": "snowgoose.llm.adapters.openrouter_adapter.OpenRouterAdapter",
}


class VendorConfigurationError(Exception):
    """Raised when a model's vendor cannot be resolved to credentials."""


class UnsupportedVendorError(ValueError):
    """Raised when a vendor is not registered."""


def register_adapter(name: str, class_path: str) -> None:
    """Register a vendor adapter.

    Args:
        name: Vendor key (matched case-insensitively).
        class_path: Fully qualified class path implementing BaseVendorAdapter.
    """
    _VENDOR_REGISTRY[name.lower()] = class_path
    logger.info("Registered vendor adapter: %s → %s", name, class_path)


def registered_vendors() -> list[str]:
    return sorted(_VENDOR_REGISTRY)


class AdapterFactory:
    """Builds one adapter per request from registered vendor credentials."""

    def __init__(
        self,
        model_store: BaseModelStore,
        user_store: BaseUserStore,
        *,
        usage_meter: UsageMeter | None = None,
        image_store: BaseImageStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._model_store = model_store
        self._user_store = user_store
        self._usage_meter = usage_meter or UsageMeter(user_store)
        self._image_store = image_store
        self._settings = settings
        self._vendor_configs: dict[str, VendorConfig] = {}

    def set_vendor_config(self, vendor_name: str, config: VendorConfig) -> None:
        """Register credentials for a vendor. Re-registration replaces them."""
        self._vendor_configs[vendor_name.lower()] = config
        logger.debug("Vendor configuration set: %s", vendor_name.lower())

    def register_vendor_configs(self, configs: dict[str, VendorConfig]) -> None:
        for name, config in configs.items():
            self.set_vendor_config(name, config)

    @property
    def configured_vendors(self) -> list[str]:
        return sorted(self._vendor_configs)

    async def get_adapter(self, model: ModelRecord) -> BaseVendorAdapter:
        """Instantiate the adapter for ``model``'s vendor.

        Raises:
            VendorConfigurationError: If the model has no vendor, the vendor
                is unknown, or no credentials were registered for it.
            UnsupportedVendorError: If no adapter is registered for the vendor.
        """
        if not model.api_vendor_id:
            raise VendorConfigurationError("Model must have an associated API vendor")

        vendor = await self._model_store.find_vendor_by_id(model.api_vendor_id)
        if vendor is None:
            raise VendorConfigurationError(
                f"API vendor not found for id: {model.api_vendor_id}"
            )
        vendor_name = vendor.name.lower()

        config = self._vendor_configs.get(vendor_name)
        if config is None:
            raise VendorConfigurationError(f"No configuration found for vendor: {vendor_name}")

        if vendor_name not in _VENDOR_REGISTRY:
            raise UnsupportedVendorError(
                f"Unsupported vendor: {vendor_name}. "
                f"Available: {', '.join(registered_vendors())}"
            )

        adapter_cls = _import_class(_VENDOR_REGISTRY[vendor_name])
        logger.debug("Creating adapter: vendor=%s, model=%s", vendor_name, model.api_name)
        return adapter_cls(
            config,
            model,
            user_store=self._user_store,
            usage_meter=self._usage_meter,
            image_store=self._image_store,
            settings=self._settings,
        )


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
