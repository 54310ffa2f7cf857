#!/usr/bin/env python3
"""
Configuration Manager for the registry prune tool

This module handles loading configuration from config.yaml and environment
variables, and turning it (plus command line overrides) into one immutable
PruneOptions value for a run.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from registry_prune.error_utils import ConfigValidationError
from registry_prune.registry_client import DEFAULT_API_URL, DEFAULT_TIMEOUT
from registry_prune.retention import RetentionPolicy, parse_duration


@dataclass(frozen=True)
class PruneOptions:
    """Everything one prune run needs, fixed before the run starts"""

    region: str
    token: str = field(repr=False)
    namespace: str
    image: str
    policy: RetentionPolicy
    api_url: str = DEFAULT_API_URL
    timeout: int = DEFAULT_TIMEOUT
    skip_confirmation: bool = False
    force_delete: bool = False
    dry_run: bool = False
    output: Optional[str] = None


class ConfigManager:
    """Manages configuration for the registry prune tool"""

    def __init__(self, config_file: str = None, validate: bool = True):
        """Initialize ConfigManager

        Args:
            config_file: Path to configuration YAML file (defaults to config.yaml or CONFIG_FILE env var)
            validate: If True, validate configuration on initialization
        """
        if config_file is None:
            config_file = os.environ.get("CONFIG_FILE", "config.yaml")
        self.config_file = config_file
        self.config = self._load_config()

        if validate:
            self.validate_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file with defaults"""
        default_config = {
            "scaleway": {"region": None, "token": None, "api_url": DEFAULT_API_URL, "timeout": DEFAULT_TIMEOUT},
            "prune": {"keep_last": None, "keep_within": None, "require_confirmation": True, "force_delete": False},
            "logging": {"level": "INFO"},
        }

        if not os.path.exists(self.config_file):
            logging.debug(f"Config file {self.config_file} not found, using defaults")
            return default_config

        try:
            with open(self.config_file, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigValidationError(f"Error loading config file {self.config_file}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigValidationError(f"Config file {self.config_file} must contain a mapping")
        return self._merge_config(default_config, user_config)

    def _merge_config(self, default: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge user config with defaults"""
        result = default.copy()
        for key, value in user.items():
            if key in result and isinstance(result[key], dict):
                # A section with every key commented out loads as None
                if value is None:
                    continue
                if not isinstance(value, dict):
                    raise ConfigValidationError(
                        f"Config section '{key}' must be a mapping, got: {value} (type: {type(value).__name__})"
                    )
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    # Scaleway configuration
    def get_region(self) -> Optional[str]:
        """Get region from environment or config"""
        return os.environ.get("SCW_REGION") or self.config["scaleway"].get("region")

    def get_token(self) -> Optional[str]:
        """Get API token from environment or config"""
        return os.environ.get("SCW_TOKEN") or self.config["scaleway"].get("token")

    def get_api_url(self) -> str:
        """Get registry API root from environment or config"""
        return os.environ.get("SCW_API_URL") or self.config["scaleway"].get("api_url") or DEFAULT_API_URL

    def get_timeout(self) -> int:
        """Get per-request timeout, with type coercion"""
        timeout = os.environ.get("SCW_TIMEOUT") or self.config["scaleway"].get("timeout", DEFAULT_TIMEOUT)
        try:
            return int(timeout)
        except (ValueError, TypeError):
            raise ConfigValidationError(
                f"scaleway.timeout must be an integer, got: {timeout} (type: {type(timeout).__name__})"
            )

    # Prune configuration
    def get_keep_last(self) -> Optional[int]:
        """Get default keep_last from config, with type coercion"""
        keep_last = self.config["prune"].get("keep_last")
        if keep_last is None:
            return None
        try:
            return int(keep_last)
        except (ValueError, TypeError):
            raise ConfigValidationError(
                f"prune.keep_last must be an integer, got: {keep_last} (type: {type(keep_last).__name__})"
            )

    def get_keep_within(self) -> Optional[str]:
        """Get default keep_within duration string from config"""
        keep_within = self.config["prune"].get("keep_within")
        return str(keep_within) if keep_within is not None else None

    def requires_confirmation(self) -> bool:
        """Get confirmation requirement from config"""
        return bool(self.config["prune"].get("require_confirmation", True))

    def get_force_delete(self) -> bool:
        """Get whether tags sharing a digest are force-deleted"""
        return bool(self.config["prune"].get("force_delete", False))

    def get_log_level(self) -> str:
        """Get log level from environment or config"""
        return (os.environ.get("LOG_LEVEL") or self.config["logging"].get("level") or "INFO").upper()

    def validate_config(self) -> None:
        """Validate configuration values

        Raises:
            ConfigValidationError: If configuration is invalid
        """
        errors = []
        warnings = []

        region = self.get_region()
        if region and not self._is_valid_region(region):
            warnings.append(f"Region '{region}' may be invalid (expected format like fr-par, nl-ams, pl-waw)")

        api_url = self.get_api_url()
        if not re.match(r"^https?://", api_url):
            errors.append(f"scaleway.api_url must be an http(s) URL, got: {api_url}")

        timeout = self.get_timeout()
        if timeout < 1:
            errors.append(f"scaleway.timeout must be a positive integer (seconds), got: {timeout}")
        elif timeout > 600:
            warnings.append(f"timeout is very high ({timeout}s), a hung request may block for a long time")

        keep_last = self.get_keep_last()
        if keep_last is not None and keep_last < 0:
            errors.append(f"prune.keep_last must be a non-negative integer, got: {keep_last}")

        keep_within = self.get_keep_within()
        if keep_within is not None:
            try:
                parse_duration(keep_within)
            except ValueError as e:
                errors.append(f"prune.keep_within is invalid: {e}")

        level = self.get_log_level()
        if not isinstance(logging.getLevelName(level), int):
            errors.append(f"logging.level must be a logging level name, got: {level}")

        for warning in warnings:
            logging.warning(f"Configuration warning: {warning}")

        if errors:
            error_msg = "Configuration validation failed:\n  " + "\n  ".join(errors)
            logging.error(error_msg)
            raise ConfigValidationError(error_msg)

    def _is_valid_region(self, region: str) -> bool:
        """Validate region format"""
        return bool(re.match(r"^[a-z]{2}-[a-z]{3}$", region))

    def build_options(
        self,
        namespace: str,
        image: str,
        region: Optional[str] = None,
        token: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[int] = None,
        keep_last: Optional[int] = None,
        keep_within: Optional[str] = None,
        skip_confirmation: bool = False,
        force_delete: bool = False,
        dry_run: bool = False,
        output: Optional[str] = None,
    ) -> PruneOptions:
        """Combine command line values with configuration into PruneOptions.

        Explicit arguments win over environment variables, which win over config.yaml.

        Raises:
            ConfigValidationError: If required values are missing or invalid
        """
        errors = []

        region = region or self.get_region()
        if not region:
            errors.append("Region is required (--region, SCW_REGION, or scaleway.region in config)")

        token = token or self.get_token()
        if not token:
            errors.append("API token is required (--scw-token, SCW_TOKEN, or scaleway.token in config)")

        timeout = timeout if timeout is not None else self.get_timeout()
        if timeout < 1:
            errors.append(f"Timeout must be a positive integer (seconds), got: {timeout}")

        keep_last = keep_last if keep_last is not None else self.get_keep_last()
        keep_within = keep_within if keep_within is not None else self.get_keep_within()

        policy = None
        try:
            policy = RetentionPolicy(
                keep_last=keep_last,
                keep_within=parse_duration(keep_within) if keep_within is not None else None,
            )
        except ValueError as e:
            errors.append(str(e))

        if errors:
            raise ConfigValidationError("Invalid options:\n  " + "\n  ".join(errors))

        return PruneOptions(
            region=region,
            token=token,
            namespace=namespace,
            image=image,
            policy=policy,
            api_url=api_url or self.get_api_url(),
            timeout=timeout,
            skip_confirmation=skip_confirmation or not self.requires_confirmation(),
            force_delete=force_delete or self.get_force_delete(),
            dry_run=dry_run,
            output=output,
        )

    def print_config(self):
        """Print current configuration"""
        print("Current Configuration:")
        print(f"  Config File: {self.config_file}")
        print(f"  Region: {self.get_region() or 'Not set'}")
        print(f"  API URL: {self.get_api_url()}")
        print(f"  Timeout: {self.get_timeout()}")
        print(f"  Keep Last: {self.get_keep_last()}")
        print(f"  Keep Within: {self.get_keep_within()}")
        print(f"  Require Confirmation: {self.requires_confirmation()}")
        print(f"  Force Delete: {self.get_force_delete()}")

        token = self.get_token()
        if token:
            print(f"  API Token: {'*' * len(token)}")
        else:
            print("  API Token: Not set")
