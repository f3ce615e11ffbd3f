# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Tests for the allowlist-sync command line."""

import pytest
from fixtures.mock_arm import TEST_RESOURCE_GROUP, TEST_SUBSCRIPTION_ID, TEST_TENANT_ID

from allowlist_sync import constants
from allowlist_sync._common._firewall_rule import RuleSyncResult
from allowlist_sync.cli import main, setup_parser

TARGET_ARGS = [
    "--tenant-id",
    TEST_TENANT_ID,
    "--subscription-id",
    TEST_SUBSCRIPTION_ID,
    "--resource-group-name",
    TEST_RESOURCE_GROUP,
]

RESULTS = [
    RuleSyncResult("Workspace", "ws1", "R", "203.0.113.10", "203.0.113.10", constants.ACTION_CREATED),
    RuleSyncResult("SqlServer", "sql1", "R", "203.0.113.10", "203.0.113.10", constants.ACTION_UPDATED),
]


@pytest.fixture
def mock_sync(mocker):
    return mocker.patch("allowlist_sync.cli.sync_firewall_rules", return_value=RESULTS)


@pytest.fixture
def mock_sync_with_config(mocker):
    return mocker.patch("allowlist_sync.cli.sync_firewall_rules_with_config", return_value=RESULTS)


def test_parser_defaults():
    options = setup_parser().parse_args([])
    assert options.firewall_rule_name is None
    assert options.client_ip_address is None
    assert options.config is None
    assert options.environment == "N/A"
    assert options.debug is False


def test_main_prints_one_line_per_resource(mock_sync, capsys):
    assert main([*TARGET_ARGS, "--firewall-rule-name", "R", "--client-ip-address", "203.0.113.10"]) == 0

    mock_sync.assert_called_once_with(
        tenant_id=TEST_TENANT_ID,
        subscription_id=TEST_SUBSCRIPTION_ID,
        resource_group_name=TEST_RESOURCE_GROUP,
        firewall_rule_name="R",
        client_ip_address="203.0.113.10",
    )
    lines = capsys.readouterr().out.splitlines()
    assert "Workspace\tws1\t203.0.113.10\t203.0.113.10" in lines
    assert "SqlServer\tsql1\t203.0.113.10\t203.0.113.10" in lines


def test_main_optional_values_default_to_none(mock_sync):
    main(TARGET_ARGS)

    kwargs = mock_sync.call_args.kwargs
    assert kwargs["firewall_rule_name"] is None
    assert kwargs["client_ip_address"] is None


def test_main_requires_target_without_config(mock_sync, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--tenant-id", TEST_TENANT_ID])

    assert exc_info.value.code == 2
    assert "--subscription-id, --resource-group-name" in capsys.readouterr().err
    mock_sync.assert_not_called()


def test_main_with_config(mock_sync, mock_sync_with_config):
    assert main(["-c", "allowlist.yml", "-e", "prod"]) == 0

    mock_sync_with_config.assert_called_once_with(config_file_path="allowlist.yml", environment="prod")
    mock_sync.assert_not_called()


def test_main_debug_changes_log_level(mock_sync, mocker):
    mock_change_log_level = mocker.patch("allowlist_sync.cli.change_log_level")

    main([*TARGET_ARGS, "--debug"])

    mock_change_log_level.assert_called_once_with("DEBUG")
