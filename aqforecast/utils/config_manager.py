"""
Configuration files for the forecasting pipeline.

Default pipeline settings ship inside the package as
``aqforecast/config/pipeline.yaml`` and are checked against
``aqforecast/config/schemas/pipeline_config_schema.json`` before a typed
PipelineConfig is built from them.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
import yaml

from ..pipeline.config import PipelineConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"
PIPELINE_CONFIG = "pipeline.yaml"
PIPELINE_SCHEMA = "pipeline_config_schema.json"


class ConfigManager:
    """
    Loads YAML/JSON configuration, validates it with jsonschema and applies
    overrides.
    """

    def __init__(self, config_dir: Optional[str] = None, schema_dir: Optional[str] = None):
        self.config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
        self.schema_dir = Path(schema_dir) if schema_dir else self.config_dir / "schemas"
        self._schemas: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, "r") as f:
            if path.suffix in (".yaml", ".yml"):
                return yaml.safe_load(f) or {}
            if path.suffix == ".json":
                return json.load(f)
        raise ValueError(f"Unsupported configuration format: {path.suffix}")

    def _schema(self, schema_name: str) -> Dict[str, Any]:
        if schema_name not in self._schemas:
            schema_path = self.schema_dir / schema_name
            if not schema_path.exists():
                raise FileNotFoundError(f"Schema file not found: {schema_path}")
            with open(schema_path, "r") as f:
                self._schemas[schema_name] = json.load(f)
        return self._schemas[schema_name]

    def load_config(self, config_name: str, schema_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Read a configuration file from ``config_dir``.

        Args:
            config_name: File name, e.g. 'pipeline.yaml'
            schema_name: Optional schema file in ``schema_dir`` to validate against
        """
        config = self._read(self.config_dir / config_name)
        if schema_name:
            self.validate_config(config, schema_name)
        return config

    def validate_config(self, config: Dict[str, Any], schema_name: str) -> None:
        """
        Raises:
            FileNotFoundError: If the schema file does not exist
            ValueError: If the configuration violates the schema
        """
        try:
            jsonschema.validate(instance=config, schema=self._schema(schema_name))
        except jsonschema.exceptions.ValidationError as e:
            location = " -> ".join(str(p) for p in e.path) if e.path else "root"
            message = f"Configuration validation failed at '{location}': {e.message}"
            logger.error(message)
            raise ValueError(message) from e
        logger.debug(f"Configuration validated against {schema_name}")

    def load_pipeline_config(
        self,
        config_name: str = PIPELINE_CONFIG,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> PipelineConfig:
        """
        Load the pipeline configuration with optional overrides.

        Overrides are either nested (``{"data": {"window_size": 3}}``) or use
        dotted keys (``{"forecaster.epochs": 5}``). Validation runs after
        they are applied.
        """
        config = self.load_config(config_name)
        if overrides:
            nested = {k: v for k, v in overrides.items() if "." not in k}
            config = self.merge_configs(config, nested)
            for path, value in overrides.items():
                if "." in path:
                    self.set_value(config, path, value)
        self.validate_config(config, PIPELINE_SCHEMA)

        pipeline_config = PipelineConfig.from_dict(config)
        logger.info(
            f"Loaded pipeline config: target={pipeline_config.target}, "
            f"features={pipeline_config.features}, "
            f"architecture={pipeline_config.forecaster.architecture}"
        )
        return pipeline_config

    def merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge ``override`` into a copy of ``base``."""
        merged = copy.deepcopy(base)
        for key, value in override.items():
            if isinstance(merged.get(key), dict) and isinstance(value, dict):
                merged[key] = self.merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get_value(self, config: Dict[str, Any], path: str, default: Any = None) -> Any:
        """Look up a dotted path such as 'forecaster.learning_rate'."""
        node: Any = config
        for key in path.split("."):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def set_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """Assign a dotted path in place, creating missing sections."""
        *parents, leaf = path.split(".")
        node = config
        for key in parents:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        node[leaf] = value
