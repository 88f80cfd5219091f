"""
Game balance configuration loaded from YAML.

Features:
- Hierarchical config access with dot notation (e.g., 'streak.bonus_tiers')
- In-memory cache built from every YAML file under Config.CONFIG_DIR
- Runtime overrides for live balance changes (and tests)
- Graceful degradation to code defaults when files are missing or broken
- Simple access metrics

Note:
- Characters, upgrades and economy tunables live in config/*.yaml
- Infrastructure settings belong to Config, not here
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from pathlib import Path
import copy
import time

import yaml

from seedfarm.core.config.config import Config
from seedfarm.core.logging.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()


class ConfigManager:
    """
    Game balance configuration with YAML backing and caching.

    Provides hierarchical config access using dot notation. Values are read
    from YAML once (lazily on first access or explicitly via ``initialize``)
    and may be overridden at runtime with ``set``.
    """

    _cache: Dict[str, Any] = {}
    _overrides: Dict[str, Any] = {}
    _loaded_at: Optional[datetime] = None
    _initialized: bool = False

    _metrics = {
        "gets": 0,
        "sets": 0,
        "cache_hits": 0,
        "cache_misses": 0,
        "fallback_to_defaults": 0,
        "yaml_files_loaded": 0,
        "errors": 0,
        "total_get_time_ms": 0.0,
    }

    # Fallback values used when no YAML file provides the key.
    _defaults: Dict[str, Any] = {
        "streak": {
            "bonus_tiers": [
                {"min_streak": 7, "bonus": 1.25},
                {"min_streak": 3, "bonus": 1.10},
            ],
        },
        "abilities": {
            "alternating_double_harvest": {"factor": 2.0},
            "streak_amplifier": {"factor": 1.15, "min_streak": 3},
            "infinite_capacity_and_discount": {"discount_rate": 0.20},
        },
        "economy": {
            "base_capacity": None,
        },
        "username": {
            "min_length": 3,
            "max_length": 20,
        },
    }

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    @classmethod
    def _load_yaml_configs(cls, config_dir: Path) -> Dict[str, Any]:
        """
        Recursively load all YAML config files from ``config_dir``.

        Top-level keys of later files replace those of earlier ones. A broken
        file is logged and skipped.
        """
        merged: Dict[str, Any] = {}

        if not config_dir.exists():
            logger.warning(
                "Config directory not found, using built-in defaults",
                extra={"config_dir": str(config_dir)},
            )
            return merged

        yaml_files = sorted(config_dir.rglob("*.yaml")) + sorted(config_dir.rglob("*.yml"))
        if not yaml_files:
            logger.info("No YAML config files found", extra={"config_dir": str(config_dir)})
            return merged

        for yaml_file in yaml_files:
            try:
                with open(yaml_file, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                cls._metrics["errors"] += 1
                logger.warning(
                    f"Failed to load YAML config {yaml_file.name}: {e}",
                    extra={"file": str(yaml_file), "error": str(e)},
                )
                continue

            if isinstance(data, dict):
                merged.update(data)
                cls._metrics["yaml_files_loaded"] += 1
                logger.debug(f"Loaded YAML config: {yaml_file.relative_to(config_dir)}")

        logger.info(
            f"Loaded {cls._metrics['yaml_files_loaded']} YAML config files",
            extra={"config_dir": str(config_dir), "total_keys": len(merged)},
        )
        return merged

    @classmethod
    def initialize(cls, config_dir: Optional[Path] = None) -> None:
        """
        Build the cache from built-in defaults overlaid with YAML files.

        Args:
            config_dir: Directory to scan; defaults to Config.CONFIG_DIR
        """
        directory = Path(config_dir) if config_dir is not None else Config.CONFIG_DIR
        cache = copy.deepcopy(cls._defaults)
        cache.update(cls._load_yaml_configs(directory))

        cls._cache = cache
        cls._loaded_at = datetime.now(timezone.utc)
        cls._initialized = True

    @classmethod
    def reload(cls, config_dir: Optional[Path] = None) -> None:
        """Re-read YAML files, keeping runtime overrides."""
        cls.initialize(config_dir)
        logger.info("ConfigManager reloaded", extra={"override_count": len(cls._overrides)})

    # =========================================================================
    # PUBLIC METHODS
    # =========================================================================

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieve config value by dot notation path.

        Args:
            key: Dot-notation config path (e.g., 'economy.base_capacity')
            default: Default value if key not found

        Returns:
            Config value or default

        Example:
            >>> ConfigManager.get('abilities.streak_amplifier.factor')
            1.15
        """
        start_time = time.perf_counter()
        cls._metrics["gets"] += 1

        if not cls._initialized:
            cls.initialize()

        if key in cls._overrides:
            cls._metrics["cache_hits"] += 1
            return cls._overrides[key]

        value = cls._traverse(cls._cache, key)
        if value is _MISSING:
            cls._metrics["cache_misses"] += 1
            fallback = cls._traverse(cls._defaults, key)
            if fallback is not _MISSING:
                cls._metrics["fallback_to_defaults"] += 1
                return fallback if fallback is not None else default
            return default

        cls._metrics["cache_hits"] += 1
        cls._metrics["total_get_time_ms"] += (time.perf_counter() - start_time) * 1000
        return value if value is not None else default

    @staticmethod
    def _traverse(source: Dict[str, Any], key: str) -> Any:
        value: Any = source
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return _MISSING
            value = value[part]
        return value

    @classmethod
    def set(cls, key: str, value: Any) -> None:
        """
        Override a config value at runtime (not persisted).

        Example:
            >>> ConfigManager.set('economy.base_capacity', 240)
        """
        cls._metrics["sets"] += 1
        old_value = cls._overrides.get(key)
        cls._overrides[key] = value
        logger.info(
            f"Config override set: {key}",
            extra={"config_key": key, "old_value": old_value, "new_value": value},
        )

    @classmethod
    def clear_overrides(cls) -> None:
        cls._overrides.clear()

    @classmethod
    def clear_cache(cls) -> None:
        """Drop cached values and overrides; next ``get`` reloads YAML."""
        cls._cache = {}
        cls._overrides = {}
        cls._initialized = False
        cls._loaded_at = None

    @classmethod
    def get_all_keys(cls) -> List[str]:
        if not cls._initialized:
            cls.initialize()
        return list(cls._cache.keys())

    @classmethod
    def get_metrics(cls) -> Dict[str, Any]:
        gets = cls._metrics["gets"]
        return {
            **cls._metrics,
            "avg_get_time_ms": (cls._metrics["total_get_time_ms"] / gets) if gets else 0.0,
            "loaded_at": cls._loaded_at.isoformat() if cls._loaded_at else None,
            "override_count": len(cls._overrides),
        }

    @classmethod
    def reset_metrics(cls) -> None:
        for name in cls._metrics:
            cls._metrics[name] = 0.0 if name.endswith("_ms") else 0
