# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Constants for the allowlist-sync package."""

# General
VERSION = "0.1.0"
FEATURE_FLAG = set()
USER_AGENT = f"allowlist-sync/{VERSION}"
LOG_FILE_NAME = "allowlist_sync.error.log"

# Azure Resource Manager
ARM_ROOT_URL = "https://management.azure.com"
ARM_TOKEN_SCOPE = "https://management.azure.com/.default"
SUBSCRIPTION_API_VERSION = "2022-12-01"
RESOURCE_API_VERSIONS = {
    "Workspace": "2021-06-01",
    "SqlServer": "2021-11-01",
}

# External IP lookup (plain-text IPv4 response)
IP_LOOKUP_URL = "https://api.ipify.org"
IP_LOOKUP_TIMEOUT = 10

# Sync
ACTION_CREATED = "Created"
ACTION_UPDATED = "Updated"

# REGEX Constants
VALID_GUID_REGEX = r"^[a-fA-F0-9]{8}-[a-fA-F0-9]{4}-[a-fA-F0-9]{4}-[a-fA-F0-9]{4}-[a-fA-F0-9]{12}$"

INDENT = "->"


# Define supported sections and settings for config file
CONFIG_SECTIONS = {
    "core": {
        "type": dict,
        "settings": [
            "tenant_id",
            "subscription_id",
            "resource_group_name",
            "firewall_rule_name",
            "client_ip_address",
        ],
    },
    "features": {"type": (list, dict), "settings": []},
    "constants": {"type": dict, "settings": []},
}
CONFIG_REQUIRED_CORE_SETTINGS = ["tenant_id", "subscription_id", "resource_group_name"]

# Config validation messages
CONFIG_VALIDATION_MSGS = {
    "file": {
        "path_empty": "Configuration file path must be a non-empty string",
        "not_found": "Configuration file not found: {}",
        "not_file": "Path is not a file: {}",
        "yaml_syntax": "Invalid YAML syntax: {}",
        "encoding_error": "File encoding error (expected UTF-8): {}",
        "empty_file": "Configuration file is empty or contains only comments",
        "not_dict": "Configuration must be a dictionary, got {}",
    },
    "override": {
        "unsupported_section": "Cannot override unsupported config section: '{}'. Supported: {}",
        "wrong_type": "Override section '{}' must be a {}, got {}",
    },
    "structure": {
        "missing_core": "Configuration must contain a 'core' section",
        "core_not_dict": "'core' section must be a dictionary, got {}",
        "unknown_section": "Unsupported config section '{}'. Supported: {}",
        "unknown_setting": "Unsupported setting 'core.{}'. Supported: {}",
        "missing_setting": "Configuration must specify '{}' in core section",
        "section_type": "'{}' section must be a {}, got {}",
    },
    "environment": {
        "no_env_with_mappings": "Configuration contains environment mappings but no environment was provided. Please specify an environment or remove environment mappings.",
        "env_not_found": "Environment '{}' not found in '{}' mappings. Available: {}",
    },
    "field": {
        "string_or_dict": "'{}' must be either a string or environment mapping dictionary (e.g., {{dev: 'dev_value', prod: 'prod_value'}}), got type {}",
        "empty_value": "'{}' cannot be empty",
        "invalid_guid": "'{}' must be a valid GUID format: {}",
        "invalid_ipv4": "'{}' must be a valid IPv4 address: {}",
        "features_type": "'features' section must be either a list or environment mapping dictionary, got {}",
        "unknown_constant": "Unknown constant '{}' in 'constants' - this constant does not exist in allowlist_sync.constants",
    },
}
