# keyreg/config.py
"""
Registry configuration.

Settings come from a YAML file and can be overridden from the command
line. Example file:

    base_dir: /data/registry
    registry_name: gensp
    key_length: 4
    max_keys_to_try: 10
    match_policy: substring
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import InvalidConfiguration
from .generator import MAX_KEYS_TO_TRY, MIN_KEY_LENGTH
from .matching import MATCH_POLICIES


@dataclass
class RegistryConfig:
    """Where the registry files live and how keys are minted and matched."""
    base_dir: Path = Path(".")
    registry_name: str = "keys"
    key_length: int = 4
    max_keys_to_try: int = MAX_KEYS_TO_TRY
    match_policy: str = "substring"
    wildcard: str = "ALL"

    def __post_init__(self):
        self.base_dir = Path(self.base_dir or ".")

    @property
    def main_path(self) -> Path:
        return self.base_dir / f"{self.registry_name}_main.txt"

    @property
    def lineage_path(self) -> Path:
        return self.base_dir / f"{self.registry_name}_rev_hist.txt"

    @property
    def log_path(self) -> Path:
        return self.base_dir / f"{self.registry_name}_log.txt"

    @property
    def attributes_path(self) -> Path:
        return self.base_dir / f"{self.registry_name}_attr.txt"

    @property
    def lock_path(self) -> Path:
        return self.base_dir / f"{self.registry_name}.lock"

    def validate(self) -> "RegistryConfig":
        """Raise InvalidConfiguration on bad values; return self."""
        if not self.registry_name or any(c in self.registry_name for c in "/\\ \t"):
            raise InvalidConfiguration(f"invalid registry_name {self.registry_name!r}")
        if not isinstance(self.key_length, int) or self.key_length < MIN_KEY_LENGTH:
            raise InvalidConfiguration(
                f"key_length must be an integer >= {MIN_KEY_LENGTH}, got {self.key_length!r}"
            )
        if not isinstance(self.max_keys_to_try, int) or self.max_keys_to_try < 1:
            raise InvalidConfiguration(
                f"max_keys_to_try must be a positive integer, got {self.max_keys_to_try!r}"
            )
        if self.match_policy not in MATCH_POLICIES:
            raise InvalidConfiguration(
                f"match_policy must be one of {sorted(MATCH_POLICIES)}, got {self.match_policy!r}"
            )
        if not self.wildcard:
            raise InvalidConfiguration("wildcard must not be empty")
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["base_dir"] = str(self.base_dir)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RegistryConfig":
        data = data or {}
        if not isinstance(data, dict):
            raise InvalidConfiguration(f"config must be a mapping, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidConfiguration(f"unknown config keys: {sorted(unknown)}")
        return cls(**data).validate()

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "RegistryConfig":
        """Parse config from a YAML string."""
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise InvalidConfiguration(f"invalid YAML config: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path | str) -> "RegistryConfig":
        """Load config from a YAML file."""
        try:
            with open(path, "r") as f:
                return cls.from_yaml(f.read())
        except OSError as e:
            raise InvalidConfiguration(f"cannot read config {path}: {e.strerror or e}") from e

    def with_overrides(self, **overrides: Any) -> "RegistryConfig":
        """Copy with non-None overrides applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return type(self).from_dict(data)
