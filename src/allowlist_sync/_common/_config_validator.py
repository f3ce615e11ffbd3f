# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Configuration validation for YAML-based sync configuration."""

import ipaddress
import logging
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from allowlist_sync import constants
from allowlist_sync._common._exceptions import InputError

logger = logging.getLogger(__name__)


class ConfigValidationError(InputError):
    """Specific exception for configuration validation errors."""

    def __init__(self, errors: list[str], logger_instance: logging.Logger) -> None:
        """Initialize with list of validation errors."""
        self.validation_errors = errors
        error_msg = f"Configuration validation failed with {len(errors)} error(s):\n" + "\n".join(
            f"  - {error}" for error in errors
        )
        super().__init__(error_msg, logger_instance)


class ConfigValidator:
    """Validates YAML configuration files for allowlist-sync."""

    def __init__(self) -> None:
        """Initialize the validator."""
        self.errors: list = []
        self.config: dict = None
        self.config_path: Path = None
        self.environment: str = None
        self.config_override: Optional[dict] = None

    def validate_config_file(
        self, config_file_path: str, environment: str, config_override: Optional[dict] = None
    ) -> dict[str, Any]:
        """
        Validate configuration file and return parsed config if valid.

        Args:
            config_file_path: String path to the configuration file
            environment: The target environment for the sync
            config_override: Optional dictionary to override specific configuration values

        Returns:
            Parsed configuration dictionary (includes overrides, if any)

        Raises:
            ConfigValidationError: If validation fails
        """
        self.errors = []
        self.environment = environment
        self.config_override = config_override

        config_path = self._validate_file_existence(config_file_path)
        self.config = self._validate_yaml_content(config_path)

        if self.config is not None and self.config_override is not None:
            self._apply_and_validate_overrides()

        if self.config is not None:
            self._validate_config_structure()
            if not self.errors:
                self._validate_config_sections()
                self._validate_environment_exists()

        # If there are validation errors, raise them all at once
        if self.errors:
            raise ConfigValidationError(self.errors, logger)

        return self.config

    def _validate_file_existence(self, config_file_path: str) -> Optional[Path]:
        """Validate file path and existence."""
        if not config_file_path or not isinstance(config_file_path, str):
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["file"]["path_empty"])
            return None

        config_path = Path(config_file_path).resolve()

        if not config_path.exists():
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["file"]["not_found"].format(config_file_path))
            return None

        if not config_path.is_file():
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["file"]["not_file"].format(config_file_path))
            return None

        self.config_path = config_path
        return config_path

    def _validate_yaml_content(self, config_path: Optional[Path]) -> Optional[dict]:
        """Validate YAML syntax and basic structure."""
        if config_path is None:
            return None

        try:
            with config_path.open(encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["file"]["yaml_syntax"].format(e))
            return None
        except UnicodeDecodeError as e:
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["file"]["encoding_error"].format(e))
            return None

        # Handle empty file case
        if config is None:
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["file"]["empty_file"])
            return None

        if not isinstance(config, dict):
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["file"]["not_dict"].format(type(config).__name__))
            return None

        return config

    def _apply_and_validate_overrides(self) -> None:
        """Apply and validate config overrides."""
        for section, value in self.config_override.items():
            if section not in constants.CONFIG_SECTIONS:
                self.errors.append(
                    constants.CONFIG_VALIDATION_MSGS["override"]["unsupported_section"].format(
                        section, list(constants.CONFIG_SECTIONS.keys())
                    )
                )
                continue

            expected_types = constants.CONFIG_SECTIONS[section]["type"]
            if not isinstance(value, expected_types):
                type_names = (
                    " or ".join(t.__name__ for t in expected_types)
                    if isinstance(expected_types, tuple)
                    else expected_types.__name__
                )
                self.errors.append(
                    constants.CONFIG_VALIDATION_MSGS["override"]["wrong_type"].format(
                        section, type_names, type(value).__name__
                    )
                )
                continue

            # features and constants are replaced whole, core is merged setting by setting
            if section != "core":
                self.config[section] = value
                logger.warning(f"Override: '{section}' section with value: '{value}'")
                continue

            core = self.config.setdefault("core", {})
            if not isinstance(core, dict):
                continue
            for setting, setting_value in value.items():
                if isinstance(setting_value, dict) and self.environment in setting_value:
                    env_value = setting_value[self.environment]
                    if isinstance(core.get(setting), dict):
                        core[setting][self.environment] = env_value
                    else:
                        core[setting] = {self.environment: env_value}
                    logger.warning(f"Override: core.{setting}.{self.environment} with value: '{env_value}'")
                else:
                    core[setting] = setting_value
                    logger.warning(f"Override: core.{setting} with value: '{setting_value}'")

    def _validate_config_structure(self) -> None:
        """Validate top-level configuration structure."""
        for section in self.config:
            if section not in constants.CONFIG_SECTIONS:
                self.errors.append(
                    constants.CONFIG_VALIDATION_MSGS["structure"]["unknown_section"].format(
                        section, list(constants.CONFIG_SECTIONS.keys())
                    )
                )

        if "core" not in self.config:
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["structure"]["missing_core"])
            return

        if not isinstance(self.config["core"], dict):
            self.errors.append(
                constants.CONFIG_VALIDATION_MSGS["structure"]["core_not_dict"].format(
                    type(self.config["core"]).__name__
                )
            )

    def _validate_config_sections(self) -> None:
        """Validate the configuration sections"""
        core = self.config["core"]
        supported = constants.CONFIG_SECTIONS["core"]["settings"]

        for setting in core:
            if setting not in supported:
                self.errors.append(
                    constants.CONFIG_VALIDATION_MSGS["structure"]["unknown_setting"].format(setting, supported)
                )

        for setting in constants.CONFIG_REQUIRED_CORE_SETTINGS:
            if setting not in core:
                self.errors.append(constants.CONFIG_VALIDATION_MSGS["structure"]["missing_setting"].format(setting))

        for setting in supported:
            if setting in core:
                self._validate_core_field(core[setting], setting)

        if "features" in self.config:
            self._validate_features_section(self.config["features"])

        if "constants" in self.config:
            self._validate_constants_section(self.config["constants"])

    def _validate_core_field(self, field_value: Any, field_name: str) -> None:
        """Validate a core field, either a plain string or an environment mapping of strings."""
        if isinstance(field_value, str):
            self._validate_core_value(field_value, field_name, field_name)
        elif isinstance(field_value, dict):
            for env, value in field_value.items():
                context = f"{field_name}.{env}"
                if not isinstance(value, str):
                    self.errors.append(
                        constants.CONFIG_VALIDATION_MSGS["field"]["string_or_dict"].format(
                            context, type(value).__name__
                        )
                    )
                    continue
                self._validate_core_value(value, field_name, context)
        else:
            self.errors.append(
                constants.CONFIG_VALIDATION_MSGS["field"]["string_or_dict"].format(
                    field_name, type(field_value).__name__
                )
            )

    def _validate_core_value(self, value: str, field_name: str, context: str) -> None:
        """Validate the content of one core value."""
        if not value.strip():
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["field"]["empty_value"].format(context))
        elif field_name == "subscription_id" and not _validate_guid_format(value.strip()):
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["field"]["invalid_guid"].format(context, value))
        elif field_name == "client_ip_address" and not _validate_ipv4_format(value.strip()):
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["field"]["invalid_ipv4"].format(context, value))

    def _validate_features_section(self, features: Any) -> None:
        """Validate features section."""
        if isinstance(features, dict):
            features_lists = features.values()
        elif isinstance(features, list):
            features_lists = [features]
        else:
            self.errors.append(constants.CONFIG_VALIDATION_MSGS["field"]["features_type"].format(type(features).__name__))
            return

        for features_list in features_lists:
            if not isinstance(features_list, list) or not all(isinstance(feature, str) for feature in features_list):
                self.errors.append(
                    constants.CONFIG_VALIDATION_MSGS["field"]["features_type"].format(type(features_list).__name__)
                )

    def _validate_constants_section(self, constants_section: dict) -> None:
        """Validate constants section."""
        if not isinstance(constants_section, dict):
            self.errors.append(
                constants.CONFIG_VALIDATION_MSGS["structure"]["section_type"].format(
                    "constants", "dict", type(constants_section).__name__
                )
            )
            return

        if _is_regular_constants_dict(constants_section):
            constants_dicts = [constants_section]
        else:
            constants_dicts = constants_section.values()

        for constants_dict in constants_dicts:
            for key in constants_dict:
                if not isinstance(key, str) or not hasattr(constants, key):
                    self.errors.append(constants.CONFIG_VALIDATION_MSGS["field"]["unknown_constant"].format(key))

    def _validate_environment_exists(self) -> None:
        """Validate that target environment exists in all environment mappings."""
        mapped_fields = [
            (f"core.{name}", value) for name, value in self.config["core"].items() if isinstance(value, dict)
        ]
        if isinstance(self.config.get("features"), dict):
            mapped_fields.append(("features", self.config["features"]))
        if not _is_regular_constants_dict(self.config.get("constants", {})):
            mapped_fields.append(("constants", self.config["constants"]))

        if self.environment == "N/A":
            if mapped_fields:
                self.errors.append(constants.CONFIG_VALIDATION_MSGS["environment"]["no_env_with_mappings"])
            return

        for display_name, field_value in mapped_fields:
            if self.environment not in field_value:
                is_required = display_name.removeprefix("core.") in constants.CONFIG_REQUIRED_CORE_SETTINGS
                if is_required:
                    self.errors.append(
                        constants.CONFIG_VALIDATION_MSGS["environment"]["env_not_found"].format(
                            self.environment, display_name, list(field_value.keys())
                        )
                    )
                else:
                    logger.debug(
                        f"Environment '{self.environment}' not found in '{display_name}'. This setting will be skipped."
                    )


def _is_regular_constants_dict(constants_value: dict) -> bool:
    """Check if constants section is a regular dict (not environment mapping)."""
    if not isinstance(constants_value, dict) or not constants_value:
        return True
    # Environment mapping if ALL values are dicts, regular dict otherwise
    return not all(isinstance(value, dict) for value in constants_value.values())


def _validate_guid_format(guid: str) -> bool:
    """Validate GUID format using the pattern from constants."""
    return bool(re.match(constants.VALID_GUID_REGEX, guid))


def _validate_ipv4_format(ip_address: str) -> bool:
    try:
        ipaddress.IPv4Address(ip_address)
    except ipaddress.AddressValueError:
        return False
    return True
