# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Provides tools for allowing a client IP address on the firewalls of Synapse workspaces and SQL servers."""

import logging
import sys

import allowlist_sync.constants as constants
from allowlist_sync._common._logging import configure_logger, exception_handler
from allowlist_sync.firewall_sync import FirewallSync
from allowlist_sync.sync import sync_firewall_rules, sync_firewall_rules_with_config

logger = logging.getLogger(__name__)


def append_feature_flag(feature: str) -> None:
    """
    Append a feature flag to the global feature_flag set.

    Args:
        feature: The feature flag to be included.

    Examples:
        Basic usage
        >>> from allowlist_sync import append_feature_flag
        >>> append_feature_flag("disable_print_identity")
    """
    constants.FEATURE_FLAG.add(feature)


def change_log_level(level: str = "DEBUG") -> None:
    """
    Sets the log level for all loggers within the allowlist_sync package. Currently only supports DEBUG.

    Args:
        level: The logging level to set (e.g., DEBUG).

    Examples:
        Basic usage
        >>> from allowlist_sync import change_log_level
        >>> change_log_level("DEBUG")
    """
    if level.upper() == "DEBUG":
        configure_logger(logging.DEBUG)
        logger.info("Changed log level to DEBUG")
    else:
        logger.warning(f"Log level '{level}' not supported.  Only DEBUG is supported at this time. No changes made.")


configure_logger()
sys.excepthook = exception_handler

__all__ = [
    "FirewallSync",
    "append_feature_flag",
    "change_log_level",
    "sync_firewall_rules",
    "sync_firewall_rules_with_config",
]
