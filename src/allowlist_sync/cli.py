# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Command line entry point for allowlist-sync."""

import argparse
from typing import Optional

from allowlist_sync import change_log_level
from allowlist_sync.sync import sync_firewall_rules, sync_firewall_rules_with_config

REQUIRED_TARGET_OPTIONS = ("tenant_id", "subscription_id", "resource_group_name")


def setup_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="allowlist-sync",
        description="Allow a client IP address on every Synapse workspace and SQL server of a resource group.",
    )
    parser.add_argument("--tenant-id", help="Tenant ID or domain to authenticate against")
    parser.add_argument("--subscription-id", help="Subscription holding the resource group")
    parser.add_argument("--resource-group-name", help="Resource group whose firewalls are synced")
    parser.add_argument(
        "--firewall-rule-name", default=None, help="Name of the firewall rule (Default: upper-cased host name)"
    )
    parser.add_argument(
        "--client-ip-address", default=None, help="IPv4 address to allow (Default: public IP of this machine)"
    )
    parser.add_argument("-c", "--config", default=None, help="YAML configuration file, used instead of the options above")
    parser.add_argument(
        "-e", "--environment", default="N/A", help="Environment used to resolve mappings in the configuration file"
    )
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = setup_parser()
    options = parser.parse_args(argv)

    if options.debug:
        change_log_level("DEBUG")

    if options.config:
        results = sync_firewall_rules_with_config(config_file_path=options.config, environment=options.environment)
    else:
        missing = [name for name in REQUIRED_TARGET_OPTIONS if not getattr(options, name)]
        if missing:
            parser.error(
                "the following arguments are required without --config: "
                + ", ".join(f"--{name.replace('_', '-')}" for name in missing)
            )
        results = sync_firewall_rules(
            tenant_id=options.tenant_id,
            subscription_id=options.subscription_id,
            resource_group_name=options.resource_group_name,
            firewall_rule_name=options.firewall_rule_name,
            client_ip_address=options.client_ip_address,
        )

    for result in results:
        print(f"{result.resource_type}\t{result.resource_name}\t{result.start_ip_address}\t{result.end_ip_address}")
    return 0
