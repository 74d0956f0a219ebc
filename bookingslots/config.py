"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import InvalidConfiguration
from .domain.models import AvailabilityRule, parse_time_of_day
from .domain.slot_generator import DEFAULT_MIN_LEAD_MINUTES, DEFAULT_STEP_MINUTES


class DefaultsConfig(BaseModel):
    """Default settings for slot generation."""
    duration_minutes: int = 60
    step_minutes: int = DEFAULT_STEP_MINUTES
    min_lead_minutes: int = DEFAULT_MIN_LEAD_MINUTES
    booking_horizon_days: int = 180

    @field_validator("duration_minutes", "step_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure durations and step sizes are positive."""
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value

    @field_validator("min_lead_minutes", "booking_horizon_days")
    @classmethod
    def validate_not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"Value must not be negative, got {value}")
        return value


class AvailabilityRuleConfig(BaseModel):
    """One weekly availability rule as written in the config file."""
    weekday: int  # 1=Monday, 7=Sunday
    start_time: str
    end_time: str
    is_active: bool = True

    @field_validator("weekday")
    @classmethod
    def validate_weekday(cls, value: int) -> int:
        """Validate ISO weekday is between 1 and 7."""
        if not 1 <= value <= 7:
            raise ValueError(f"weekday must be between 1 (Monday) and 7 (Sunday), got {value}")
        return value

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time_of_day(cls, value) -> str:
        """Accept HH:MM or HH:MM:SS and normalize to HH:MM:SS."""
        # YAML 1.1 reads unquoted 07:00 as a base-60 integer
        if isinstance(value, int):
            raise ValueError(f"Time of day must be a quoted string like \"07:00\", got {value}")
        return parse_time_of_day(value).strftime("%H:%M:%S")

    def to_rule(self) -> AvailabilityRule:
        return AvailabilityRule.parse(
            weekday=self.weekday,
            start_time=self.start_time,
            end_time=self.end_time,
            is_active=self.is_active,
        )


class ResourceConfig(BaseModel):
    """A bookable resource (room, laundry, guest apartment, ...)."""
    id: str
    name: str
    info: str = ""
    durations: List[int] = Field(default_factory=list)
    step_minutes: Optional[int] = None
    min_lead_minutes: Optional[int] = None
    availability: List[AvailabilityRuleConfig] = Field(default_factory=list)

    @field_validator("durations")
    @classmethod
    def validate_durations(cls, value: List[int]) -> List[int]:
        """Ensure offered durations are positive, unique and sorted."""
        invalid = [minutes for minutes in value if minutes <= 0]
        if invalid:
            raise ValueError(f"durations must be greater than zero, got {invalid}")
        return sorted(set(value))

    @field_validator("step_minutes")
    @classmethod
    def validate_step(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError(f"step_minutes must be greater than zero, got {value}")
        return value

    @field_validator("min_lead_minutes")
    @classmethod
    def validate_lead(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError(f"min_lead_minutes must not be negative, got {value}")
        return value

    def rules(self) -> List[AvailabilityRule]:
        """Domain rules for this resource."""
        return [rule.to_rule() for rule in self.availability]


class BackendConfig(BaseModel):
    """Connection settings for the booking data service."""
    url: str
    api_key: str
    membership_id: str = ""
    user_id: str = ""
    timeout: int = 30

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Stockholm"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    backend: Optional[BackendConfig] = None
    resources: List[ResourceConfig] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except (KeyError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @model_validator(mode="after")
    def validate_unique_resources(self) -> "AppConfig":
        """Ensure resource ids are unique."""
        seen: set[str] = set()
        for resource in self.resources:
            key = resource.id.lower()
            if key in seen:
                raise ValueError(f"Duplicate resource id detected: {resource.id}")
            seen.add(key)
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            InvalidConfiguration: If the file is not a YAML mapping
            ValueError: If config values are invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise InvalidConfiguration(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise InvalidConfiguration("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_resource(self, identifier: str) -> ResourceConfig | None:
        """Find a resource by its id or name (case-insensitive)."""
        key = identifier.strip().lower()
        for resource in self.resources:
            if resource.id.lower() == key or resource.name.lower() == key:
                return resource
        return None

    def resolve_resource(self, identifier: str) -> ResourceConfig:
        """
        Resolve a resource identifier (id or name).

        Raises:
            ValueError: If identifier cannot be resolved
        """
        resource = self.find_resource(identifier)
        if resource is None:
            raise ValueError(
                f"Unknown resource: '{identifier}'. "
                f"Use a configured resource id or name."
            )
        return resource

    def step_minutes_for(self, resource: ResourceConfig) -> int:
        """Step size for a resource, falling back to the defaults."""
        if resource.step_minutes is not None:
            return resource.step_minutes
        return self.defaults.step_minutes

    def min_lead_minutes_for(self, resource: ResourceConfig) -> int:
        """Minimum lead time for a resource, falling back to the defaults."""
        if resource.min_lead_minutes is not None:
            return resource.min_lead_minutes
        return self.defaults.min_lead_minutes


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
