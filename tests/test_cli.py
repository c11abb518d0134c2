"""
Tests for the typer command line, with AWS profiles backed by moto.
"""

import re

import pytest
from typer.testing import CliRunner

from iam_role_cloner import __version__
from iam_role_cloner.cli import app, default_log_file

from conftest import BUCKET_POLICY, create_source_role

runner = CliRunner()

AWS_CONFIG = """[profile dev]
region = us-east-1

[profile prod]
region = us-east-1
"""

AWS_CREDENTIALS = """[dev]
aws_access_key_id = testing
aws_secret_access_key = testing

[prod]
aws_access_key_id = testing
aws_secret_access_key = testing
"""


@pytest.fixture
def profiles(tmp_path, monkeypatch):
    config = tmp_path / "config"
    credentials = tmp_path / "credentials"
    config.write_text(AWS_CONFIG)
    credentials.write_text(AWS_CREDENTIALS)
    monkeypatch.setenv("AWS_CONFIG_FILE", str(config))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(credentials))


@pytest.fixture
def source_roles(iam_client, profiles):
    create_source_role(
        iam_client,
        "dev_app_role",
        inline_policies={"dev_bucket_access": BUCKET_POLICY},
        tags={"Environment": "dev"},
    )
    create_source_role(iam_client, "dev_worker_role")


def test_default_log_file_name():
    assert re.fullmatch(r"iam-clone-\d{8}-\d{6}\.log", default_log_file())


def test_welcome_screen():
    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "Welcome to IAM Role Cloner" in result.output
    assert "clone    Clone IAM roles between profiles" in result.output


class TestVersionCommand:

    def test_simple(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert result.output.strip() == f"IAM Role Cloner v{__version__}"

    def test_detailed(self, monkeypatch):
        monkeypatch.setenv("IAM_ROLE_CLONER_GIT_COMMIT", "abc1234")

        result = runner.invoke(app, ["version", "-e"])

        assert result.exit_code == 0
        assert "Git Commit:     abc1234" in result.output


class TestCloneCommand:

    def base_args(self, log_file):
        return [
            "clone", "-s", "dev", "-d", "prod",
            "--source-pattern", "dev_", "--dest-pattern", "prod_",
            "--log-file", str(log_file),
        ]

    def test_clone_selected_roles(self, iam_client, profiles, tmp_path):
        create_source_role(
            iam_client,
            "dev_app_role",
            inline_policies={"dev_bucket_access": BUCKET_POLICY},
            tags={"Environment": "dev"},
        )
        # outside the dev_ prefix, so dev_app_role is the only role offered
        create_source_role(iam_client, "ops_worker_role")
        log_file = tmp_path / "clone.log"

        # same moto account: confirm, pick role 1, proceed
        result = runner.invoke(app, self.base_args(log_file), input="y\n1\ny\n")

        assert result.exit_code == 0, result.output
        assert "1. dev_app_role → prod_app_role" in result.output
        role_names = {role["RoleName"] for role in iam_client.list_roles()["Roles"]}
        assert role_names == {"dev_app_role", "ops_worker_role", "prod_app_role"}
        assert iam_client.list_role_policies(RoleName="prod_app_role")["PolicyNames"] == ["prod_bucket_access"]
        log = log_file.read_text(encoding="utf-8")
        assert "[SUCCESS] Cloning completed: 1/1 roles successful" in log

    def test_dry_run_creates_nothing(self, iam_client, source_roles, tmp_path):
        log_file = tmp_path / "dry.log"

        result = runner.invoke(app, self.base_args(log_file) + ["--dry-run", "-v"], input="y\nall\ny\n")

        assert result.exit_code == 0, result.output
        role_names = {role["RoleName"] for role in iam_client.list_roles()["Roles"]}
        assert role_names == {"dev_app_role", "dev_worker_role"}
        log = log_file.read_text(encoding="utf-8")
        assert "[WARNING] Running in DRY-RUN mode" in log
        assert "[DEBUG]   [DRY RUN] Processed trust policy" in log

    def test_declined_same_account_exits_non_zero(self, source_roles, tmp_path):
        log_file = tmp_path / "declined.log"

        result = runner.invoke(app, self.base_args(log_file), input="n\n")

        assert result.exit_code == 1
        assert "operation cancelled - same account" in log_file.read_text(encoding="utf-8")

    def test_invalid_selection_exits_non_zero(self, source_roles, tmp_path):
        log_file = tmp_path / "invalid.log"

        result = runner.invoke(app, self.base_args(log_file), input="y\n7\n")

        assert result.exit_code == 1
        assert "number out of range: 7" in log_file.read_text(encoding="utf-8")

    def test_cancelled_confirmation_exits_zero(self, iam_client, source_roles, tmp_path):
        log_file = tmp_path / "cancel.log"

        result = runner.invoke(app, self.base_args(log_file), input="y\nall\nno\n")

        assert result.exit_code == 0
        assert "Operation cancelled by user" in log_file.read_text(encoding="utf-8")
        assert len(iam_client.list_roles()["Roles"]) == 2

    def test_unknown_profile_exits_non_zero(self, aws, profiles, tmp_path):
        log_file = tmp_path / "unknown.log"

        result = runner.invoke(
            app, ["clone", "-s", "nope", "-d", "prod", "--log-file", str(log_file)]
        )

        assert result.exit_code == 1
        assert "Profile validation failed" in log_file.read_text(encoding="utf-8")

    def test_closed_input_exits_non_zero(self, source_roles, tmp_path):
        log_file = tmp_path / "eof.log"

        result = runner.invoke(app, ["clone", "--log-file", str(log_file)], input="")

        assert result.exit_code == 1
        assert "Input closed" in log_file.read_text(encoding="utf-8")

    def test_log_file_that_cannot_be_opened(self, tmp_path):
        result = runner.invoke(app, ["clone", "--log-file", str(tmp_path / "no" / "such" / "dir.log")])

        assert result.exit_code == 1
        assert "Failed to initialize logger" in result.output


class TestListCommand:

    def test_missing_profile_prints_usage(self):
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "--profile flag is required" in result.output

    def test_list_with_pattern(self, source_roles):
        result = runner.invoke(app, ["list", "-p", "dev", "--pattern", "WORKER"])

        assert result.exit_code == 0, result.output
        assert "dev_worker_role" in result.output
        assert "dev_app_role" not in result.output

    def test_list_unknown_profile_returns_without_exit_code(self, aws, profiles):
        result = runner.invoke(app, ["list", "-p", "nope"])

        assert result.exit_code == 0
        assert "nope" in result.output
