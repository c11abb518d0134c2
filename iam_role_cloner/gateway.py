# -*- coding: utf-8 -*-

"""
Module: gateway.py
Description: Thin wrapper over the IAM and STS calls the cloner needs. Every
             botocore failure is re-raised as a GatewayError naming the
             operation and the role or policy it was made for. Nothing here
             retries or rolls back.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import GatewayError, PolicyDocumentError

DEFAULT_REGION = "us-east-1"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class RoleSnapshot:
    """Everything copied from a source role, captured once at clone time."""

    role_name: str
    trust_policy: str
    description: str = ""
    managed_policies: Tuple[str, ...] = ()
    inline_policies: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)


def _percent_decode(text: str) -> str:
    """Percent-decode IAM's URL-encoded documents, returning the input when it isn't decodable."""
    if _BAD_ESCAPE.search(text):
        return text
    try:
        return unquote(text, errors="strict")
    except UnicodeDecodeError:
        return text


def normalize_policy_document(document, name: str = "policy document") -> str:
    """
    Return a policy document as JSON text with two-space indentation.

    boto3 normally hands back policy documents already decoded into dicts, but
    the raw API returns URL-encoded JSON strings. Both are accepted so the
    pattern substitution always runs over the same textual form.

    Raises:
        PolicyDocumentError: if a string document is not valid JSON once decoded.
    """
    if document is None:
        raise PolicyDocumentError("process", name, ValueError("policy document is empty"))

    if isinstance(document, str):
        decoded = _percent_decode(document)
        try:
            document = json.loads(decoded)
        except json.JSONDecodeError as e:
            raise PolicyDocumentError(
                "process", name, ValueError(f"invalid JSON after decoding: {e} (original: {document})")
            )

    return json.dumps(document, indent=2, ensure_ascii=False)


class IamGateway:
    """IAM/STS access for one named AWS profile."""

    def __init__(self, profile: Optional[str], region: str = DEFAULT_REGION, session=None):
        self.profile = profile
        if session is None:
            try:
                session = boto3.Session(profile_name=profile, region_name=region)
            except BotoCoreError as e:
                raise GatewayError("load AWS config for profile", profile or "default", e)
        self.session = session
        self.iam = session.client("iam")
        self.sts = session.client("sts")

    def validate_credentials(self) -> dict:
        """Return the caller identity (Account, Arn, UserId) for this profile."""
        try:
            return self.sts.get_caller_identity()
        except (ClientError, BotoCoreError) as e:
            raise GatewayError("validate credentials for profile", self.profile or "default", e)

    def list_roles(self, prefix: str = "") -> List[str]:
        """List every role name in the account, keeping names that start with ``prefix``."""
        roles = []
        try:
            paginator = self.iam.get_paginator("list_roles")
            for page in paginator.paginate():
                for role in page["Roles"]:
                    role_name = role["RoleName"]
                    if not prefix or role_name.startswith(prefix):
                        roles.append(role_name)
        except (ClientError, BotoCoreError) as e:
            raise GatewayError("list roles in profile", self.profile or "default", e)
        return roles

    def role_exists(self, role_name: str) -> bool:
        try:
            self.iam.get_role(RoleName=role_name)
            return True
        except self.iam.exceptions.NoSuchEntityException:
            return False
        except (ClientError, BotoCoreError) as e:
            raise GatewayError("look up role", role_name, e)

    def get_role_snapshot(self, role_name: str) -> RoleSnapshot:
        """Fetch the trust policy, managed policies, inline policies and tags of a role."""
        try:
            role = self.iam.get_role(RoleName=role_name)["Role"]
        except (ClientError, BotoCoreError) as e:
            raise GatewayError("get role", role_name, e)

        trust_policy = normalize_policy_document(
            role.get("AssumeRolePolicyDocument"), f"trust policy of {role_name}"
        )

        return RoleSnapshot(
            role_name=role["RoleName"],
            description=role.get("Description", ""),
            trust_policy=trust_policy,
            managed_policies=tuple(self._get_managed_policies(role_name)),
            inline_policies=self._get_inline_policies(role_name),
            tags=self._get_role_tags(role_name),
        )

    def _get_managed_policies(self, role_name: str) -> List[str]:
        policies = []
        try:
            paginator = self.iam.get_paginator("list_attached_role_policies")
            for page in paginator.paginate(RoleName=role_name):
                policies.extend(policy["PolicyArn"] for policy in page["AttachedPolicies"])
        except (ClientError, BotoCoreError) as e:
            raise GatewayError("get managed policies of", role_name, e)
        return policies

    def _get_inline_policies(self, role_name: str) -> Dict[str, str]:
        policies = {}
        try:
            paginator = self.iam.get_paginator("list_role_policies")
            for page in paginator.paginate(RoleName=role_name):
                for policy_name in page["PolicyNames"]:
                    policy = self.iam.get_role_policy(RoleName=role_name, PolicyName=policy_name)
                    policies[policy_name] = policy["PolicyDocument"]
        except (ClientError, BotoCoreError) as e:
            raise GatewayError("get inline policies of", role_name, e)

        return {
            policy_name: normalize_policy_document(document, f"inline policy {policy_name}")
            for policy_name, document in policies.items()
        }

    def _get_role_tags(self, role_name: str) -> Dict[str, str]:
        try:
            response = self.iam.list_role_tags(RoleName=role_name)
            tags = response.get("Tags", [])
            while response.get("IsTruncated") and "Marker" in response:
                response = self.iam.list_role_tags(RoleName=role_name, Marker=response["Marker"])
                tags.extend(response.get("Tags", []))
        except (ClientError, BotoCoreError) as e:
            raise GatewayError("get tags of", role_name, e)
        return {tag["Key"]: tag["Value"] for tag in tags}

    def create_role(self, role_name: str, trust_policy: str, description: str = ""):
        params = {
            "RoleName": role_name,
            "AssumeRolePolicyDocument": trust_policy,
        }
        if description:
            params["Description"] = description

        try:
            return self.iam.create_role(**params)["Role"]
        except (ClientError, BotoCoreError) as e:
            raise GatewayError("create role", role_name, e)

    def attach_managed_policy(self, role_name: str, policy_arn: str):
        try:
            self.iam.attach_role_policy(RoleName=role_name, PolicyArn=policy_arn)
        except (ClientError, BotoCoreError) as e:
            raise GatewayError(f"attach policy {policy_arn} to role", role_name, e)

    def put_inline_policy(self, role_name: str, policy_name: str, policy_document: str):
        """Create or overwrite an inline policy on a role."""
        try:
            self.iam.put_role_policy(
                RoleName=role_name,
                PolicyName=policy_name,
                PolicyDocument=policy_document,
            )
        except (ClientError, BotoCoreError) as e:
            raise GatewayError(f"put inline policy {policy_name} on role", role_name, e)

    def tag_role(self, role_name: str, tags: Dict[str, str]):
        if not tags:
            return
        tag_list = [{"Key": key, "Value": value} for key, value in tags.items()]
        try:
            self.iam.tag_role(RoleName=role_name, Tags=tag_list)
        except (ClientError, BotoCoreError) as e:
            raise GatewayError("tag role", role_name, e)
