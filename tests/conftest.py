"""
Pytest configuration and shared fixtures for the IAM role cloner tests.
"""

import io
import json

import boto3
import pytest
from moto import mock_aws
from rich.console import Console

from iam_role_cloner.gateway import IamGateway
from iam_role_cloner.reporter import Reporter, make_console

REGION = "us-east-1"
ACCOUNT_ID = "123456789012"

EC2_TRUST_POLICY = {
    "Version": "2012-10-17",
    "Statement": [
        {
            "Effect": "Allow",
            "Principal": {"Service": "ec2.amazonaws.com"},
            "Action": "sts:AssumeRole",
            "Condition": {"StringEquals": {"sts:ExternalId": "dev_external"}},
        }
    ],
}

BUCKET_POLICY = {
    "Version": "2012-10-17",
    "Statement": [
        {
            "Effect": "Allow",
            "Action": ["s3:GetObject", "s3:PutObject"],
            "Resource": ["arn:aws:s3:::dev_data/*", "arn:aws:s3:::dev_logs/dev_app/*"],
        }
    ],
}


class ScriptedInput:
    """Input provider that answers prompts from a fixed list and records what was asked."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError(prompt)
        return self.answers.pop(0)


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def aws():
    with mock_aws():
        yield


@pytest.fixture
def iam_client(aws):
    return boto3.client("iam", region_name=REGION)


@pytest.fixture
def gateway(aws):
    return IamGateway("default", session=boto3.Session(region_name=REGION))


@pytest.fixture
def console():
    return make_console(file=io.StringIO(), width=200)


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "iam-clone-test.log"


@pytest.fixture
def reporter(console, log_path):
    reporter = Reporter(verbose=True, log_file=str(log_path), console=console)
    yield reporter
    reporter.close()


def console_output(console: Console) -> str:
    return console.file.getvalue()


def create_source_role(
    iam_client,
    role_name="dev_app_role",
    trust_policy=None,
    inline_policies=None,
    managed_policy_names=(),
    tags=None,
    description="Application role",
):
    """Create a role with the given policies and tags; returns the managed policy ARNs."""
    params = {
        "RoleName": role_name,
        "AssumeRolePolicyDocument": json.dumps(trust_policy or EC2_TRUST_POLICY),
    }
    if description:
        params["Description"] = description
    iam_client.create_role(**params)
    for policy_name, document in (inline_policies or {}).items():
        iam_client.put_role_policy(
            RoleName=role_name, PolicyName=policy_name, PolicyDocument=json.dumps(document)
        )

    arns = []
    for policy_name in managed_policy_names:
        try:
            arn = iam_client.create_policy(
                PolicyName=policy_name, PolicyDocument=json.dumps(BUCKET_POLICY)
            )["Policy"]["Arn"]
        except iam_client.exceptions.EntityAlreadyExistsException:
            arn = f"arn:aws:iam::{ACCOUNT_ID}:policy/{policy_name}"
        iam_client.attach_role_policy(RoleName=role_name, PolicyArn=arn)
        arns.append(arn)

    if tags:
        iam_client.tag_role(
            RoleName=role_name, Tags=[{"Key": key, "Value": value} for key, value in tags.items()]
        )
    return arns
