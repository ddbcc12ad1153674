from __future__ import annotations

import importlib
import importlib.util
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""


_OVERFLOW_POLICIES = ("DROP_OLDEST", "DROP_NEWEST")


def deep_merge(base: Mapping[str, Any], override: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Recursively merge ``override`` onto ``base``; non-dict values are replaced."""
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


@dataclass
class SystemConfig:
    log_level: str = "INFO"
    # Per-logger overrides, e.g. {"clipper.capture": "DEBUG"}
    logger_levels: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {"log_level": self.log_level, "logger_levels": dict(self.logger_levels)}

    def validate(self) -> None:
        if not isinstance(self.logger_levels, dict):
            raise ConfigError("system.logger_levels must be a mapping of logger name to level")
        levels = {"system.log_level": self.log_level}
        levels.update({f"system.logger_levels.{name}": level for name, level in self.logger_levels.items()})
        for key, level in levels.items():
            if not isinstance(logging.getLevelName(str(level).upper()), int):
                raise ConfigError(f"{key} '{level}' is not a logging level")


@dataclass
class CaptureConfig:
    retention_ms: int = 90_000
    max_clip_duration_ms: int = 30_000
    idle_check_interval_ms: int = 150_000
    # Participant id the engine itself joins the voice channel as.
    self_participant_id: Optional[str] = None
    decoder: str = "pcm"
    dump_packets: bool = False
    dump_path: str = "./packet_dump.json"

    def to_dict(self) -> Dict:
        return {
            "retention_ms": self.retention_ms,
            "max_clip_duration_ms": self.max_clip_duration_ms,
            "idle_check_interval_ms": self.idle_check_interval_ms,
            "self_participant_id": self.self_participant_id,
            "decoder": self.decoder,
            "dump_packets": self.dump_packets,
            "dump_path": self.dump_path,
        }

    def validate(self) -> None:
        if self.retention_ms <= 0:
            raise ConfigError(f"capture.retention_ms must be positive, got {self.retention_ms}")
        if self.max_clip_duration_ms <= 0:
            raise ConfigError(f"capture.max_clip_duration_ms must be positive, got {self.max_clip_duration_ms}")
        if self.idle_check_interval_ms <= 0:
            raise ConfigError(
                f"capture.idle_check_interval_ms must be positive, got {self.idle_check_interval_ms}"
            )
        from .audio.decoder import available_decoders

        if self.decoder.lower() not in available_decoders():
            raise ConfigError(f"capture.decoder '{self.decoder}' is not one of {available_decoders()}")


@dataclass
class BufferingConfig:
    ingress_queue_max: int = 2_000
    overflow_policy: str = "DROP_OLDEST"

    def to_dict(self) -> Dict:
        return {
            "ingress_queue_max": self.ingress_queue_max,
            "overflow_policy": self.overflow_policy,
        }

    def validate(self) -> None:
        if self.ingress_queue_max <= 0:
            raise ConfigError(f"buffering.ingress_queue_max must be positive, got {self.ingress_queue_max}")
        if self.overflow_policy not in _OVERFLOW_POLICIES:
            raise ConfigError(
                f"buffering.overflow_policy '{self.overflow_policy}' is not one of {list(_OVERFLOW_POLICIES)}"
            )


@dataclass
class Config:
    system: SystemConfig = field(default_factory=SystemConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    buffering: BufferingConfig = field(default_factory=BufferingConfig)

    def to_dict(self) -> Dict:
        return {
            "system": self.system.to_dict(),
            "capture": self.capture.to_dict(),
            "buffering": self.buffering.to_dict(),
        }

    def validate(self) -> "Config":
        self.system.validate()
        self.capture.validate()
        self.buffering.validate()
        return self

    @classmethod
    def from_yaml(cls, paths: list[Path]) -> "Config":
        """Load and merge multiple YAML config files.

        Configs are merged left-to-right, with later configs overriding earlier ones.
        Missing paths are skipped with a warning.
        """
        valid_paths = []
        for path in paths or []:
            if path.is_file():
                valid_paths.append(path)
            else:
                logger.warning("Config path does not exist or is not a file: %s", path)

        if not valid_paths:
            logger.info("No valid config files found, using default config")
            return cls()

        merged_dict = cls().to_dict()
        yaml = cls._import_yaml()
        for path in valid_paths:
            with Path(path).open("r", encoding="utf-8") as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as exc:
                    raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {path} must contain a mapping at the top level")
            merged_dict = deep_merge(merged_dict, data)

        return cls.from_dict(merged_dict)

    @classmethod
    def from_dict(cls, data: Dict) -> "Config":
        system = data.get("system") or {}
        capture = data.get("capture") or {}
        buffering = data.get("buffering") or {}

        try:
            config = cls(
                system=SystemConfig(**system),
                capture=CaptureConfig(**capture),
                buffering=BufferingConfig(**buffering),
            )
        except TypeError as exc:
            raise ConfigError(f"Unknown configuration key: {exc}") from exc
        return config.validate()

    @staticmethod
    def _import_yaml():
        if importlib.util.find_spec("yaml") is None:
            raise ConfigError("PyYAML is required to load configuration from YAML.")
        return importlib.import_module("yaml")


DEFAULT_CONFIG = Config()
