"""
MoAGen Configuration System

This module provides configuration management for the MoAGen system,
supporting YAML file loading and programmatic configuration creation.

YAML layout:

    orchestrator:
      iterations: 2
      max_parallel: 0
      agent_timeout: 60
    layers:
      - - model: gpt-4o-mini
        - model: grok-3-mini
      - - model: gemini-2.5-flash
    aggregator:
      model: gpt-4o
    logging:
      level: INFO
"""

import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .errors import ConfigurationError
from .types import BackendConfig, LoggingConfig, MoAConfig, OrchestratorConfig


def load_config_from_yaml(config_path: Union[str, Path]) -> MoAConfig:
    """
    Load MoAGen configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        MoAConfig object with loaded configuration

    Raises:
        ConfigurationError: If configuration is invalid or file cannot be loaded
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML format: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration file: {e}") from e

    if not yaml_data:
        raise ConfigurationError("Empty configuration file")

    return _dict_to_config(yaml_data)


def create_config_from_models(
    layers: Sequence[Sequence[str]],
    aggregator: str,
    orchestrator_config: Optional[Dict[str, Any]] = None,
    logging_config: Optional[Dict[str, Any]] = None,
) -> MoAConfig:
    """
    Create a MoAGen configuration from model names.

    Args:
        layers: Model names per layer (e.g., [["gpt-4o", "grok-3"], ["gemini-2.5-flash"]])
        aggregator: Model name of the aggregator
        orchestrator_config: Optional orchestrator configuration overrides
        logging_config: Optional logging configuration overrides

    Returns:
        MoAConfig object ready to use
    """
    try:
        orchestrator = OrchestratorConfig(**(orchestrator_config or {}))
        logging = LoggingConfig(**(logging_config or {}))
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration value: {e}") from e

    config = MoAConfig(
        orchestrator=orchestrator,
        layers=[[BackendConfig(model=model) for model in layer] for layer in layers],
        aggregator=BackendConfig(model=aggregator),
        logging=logging,
    )

    config.validate()
    return config


def _backend_from_dict(data: Any, where: str) -> BackendConfig:
    """Parse one backend entry; a bare string is shorthand for {model: <string>}."""
    if isinstance(data, str):
        return BackendConfig(model=data)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{where} must be a mapping or a model name, got {type(data).__name__}")
    return BackendConfig(**data)


def _dict_to_config(data: Dict[str, Any]) -> MoAConfig:
    """Convert dictionary data to MoAConfig object."""
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration root must be a mapping")

    try:
        # Parse orchestrator configuration
        orchestrator_data = data.get('orchestrator') or {}
        orchestrator = OrchestratorConfig(**orchestrator_data)

        # Parse layers configuration
        layers_data = data.get('layers') or []
        if not layers_data:
            raise ConfigurationError("No layers specified in configuration")

        layers: List[List[BackendConfig]] = []
        for layer_index, layer_data in enumerate(layers_data):
            if not isinstance(layer_data, list):
                raise ConfigurationError(f"Layer {layer_index} must be a list of models")
            layers.append([
                _backend_from_dict(entry, f"layers[{layer_index}][{agent_index}]")
                for agent_index, entry in enumerate(layer_data)
            ])

        # Parse aggregator configuration
        if 'aggregator' not in data:
            raise ConfigurationError("No aggregator specified in configuration")
        aggregator = _backend_from_dict(data['aggregator'], "aggregator")

        # Parse logging configuration
        logging_data = data.get('logging') or {}
        logging = LoggingConfig(**logging_data)

        config = MoAConfig(
            orchestrator=orchestrator,
            layers=layers,
            aggregator=aggregator,
            logging=logging,
            task=data.get('task'),
        )

        config.validate()
        return config

    except ConfigurationError:
        raise
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration value: {e}") from e
