from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SWANK_CONFIG"
DEFAULT_CONFIG_FILE = "swank.yaml"

DEFAULT_DESCRIBE_TEMPLATE = (
    "-------------------------\n"
    "{{namespace}}/{{name}}\n"
    "{{#arglists}}{{arglists}}\n{{/arglists}}"
    "{{#doc}}  {{doc}}\n{{/doc}}"
)
DEFAULT_DEFINITION_LABEL_TEMPLATE = "(def {{name}})"


@dataclass
class SwankConfig:
    """Settings for the command layer, usually read from ``swank.yaml``."""
    default_namespace: str = "__main__"
    working_directory: Optional[str] = None
    class_path_env: str = "PYTHONPATH"
    boot_class_path: Optional[str] = None
    describe_template: str = DEFAULT_DESCRIBE_TEMPLATE
    definition_label_template: str = DEFAULT_DEFINITION_LABEL_TEMPLATE
    log_level: str = "WARNING"
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SwankConfig":
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(k for k in data if k not in known)
        if unknown:
            raise ValueError(f"Unknown swank config keys: {', '.join(unknown)}")
        return cls(**data)


def _candidate_path(path: str | Path | None) -> Optional[Path]:
    if path is not None:
        return Path(path)
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    default = Path.cwd() / DEFAULT_CONFIG_FILE
    if default.is_file():
        return default
    return None


def load_config(path: str | Path | None = None) -> SwankConfig:
    """Load configuration from YAML.

    Lookup order: the explicit ``path``, the ``SWANK_CONFIG`` environment
    variable, ``./swank.yaml``. With none of them present the defaults apply.
    An explicitly named file that does not exist is an error.
    """
    p = _candidate_path(path)
    if p is None:
        return SwankConfig()
    with p.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"{p}: expected a mapping at the top level")
    logger.debug("loaded swank config from %s", p)
    return SwankConfig.from_dict(data)


def configure_logging(config: SwankConfig) -> None:
    level = getattr(logging, str(config.log_level).upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {config.log_level}")
    logging.basicConfig(level=level, format=config.log_format)
