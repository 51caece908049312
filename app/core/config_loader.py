import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional

from app.core.config import settings
from app.core.logger import logger

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def _resolve_config_path(path: Optional[str]) -> Path:
    config_path = Path(path or settings.SALON_CONFIG_PATH)
    if not config_path.is_absolute():
        config_path = PROJECT_ROOT / config_path
    return config_path


def load_salon_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads salon configuration (services, capacity, opening hours) from JSON file.
    Raises FileNotFoundError if config is missing, ValueError if it is not valid JSON.
    """
    config_path = _resolve_config_path(path)
    if not os.path.exists(config_path):
        logger.critical(f"❌ Configuration file '{config_path}' not found! Cannot start.")
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Failed to parse JSON configuration: {e}")
        raise ValueError(f"Invalid JSON in config file: {e}")

    logger.info(f"✅ Configuration loaded for: {config.get('salon_name', 'Unknown')}")
    return config


def normalize_service(label: str) -> str:
    """Lower-cases a service label and collapses whitespace."""
    return " ".join((label or "").lower().split())


@dataclass
class ServiceCatalog:
    """
    Maps service labels to how many consecutive hours they block.

    Exact labels are looked up in ``services`` first, then each
    ``combined_services`` rule matches a label containing all of its keywords.
    Everything else takes ``default_duration``.
    """
    services: Dict[str, int] = field(default_factory=dict)
    combined_services: List[Dict[str, Any]] = field(default_factory=list)
    default_duration: int = 1

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ServiceCatalog":
        services = {
            normalize_service(name): int(hours)
            for name, hours in config.get("services", {}).items()
        }
        rules = [
            {
                "keywords": [normalize_service(k) for k in rule.get("keywords", [])],
                "duration_hours": int(rule.get("duration_hours", 1)),
            }
            for rule in config.get("combined_services", [])
        ]
        return cls(
            services=services,
            combined_services=rules,
            default_duration=int(config.get("default_duration_hours", 1)),
        )

    def duration(self, service: str) -> int:
        label = normalize_service(service)
        if label in self.services:
            return self.services[label]

        for rule in self.combined_services:
            keywords = rule["keywords"]
            if keywords and all(k in label for k in keywords):
                return rule["duration_hours"]

        return self.default_duration
