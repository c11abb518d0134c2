# -*- coding: utf-8 -*-

"""
Module: listing.py
Description: Lists the IAM roles in a profile, optionally filtered by a
             case-insensitive pattern, sorted, and expanded with policy, tag
             and trust details for each role.
"""

from typing import List

from rich.text import Text
from tabulate import tabulate

from .errors import GatewayError
from .gateway import IamGateway, RoleSnapshot
from .reporter import Reporter

DESCRIPTION_LIMIT = 80
TAG_VALUE_LIMIT = 30
MANAGED_POLICY_SHOW_ALL = 5
MANAGED_POLICY_SHOW_FIRST = 3

TRUST_EC2 = "EC2 Service Role"
TRUST_LAMBDA = "Lambda Service Role"
TRUST_CROSS_ACCOUNT = "Cross-Account Role"
TRUST_CUSTOM = "Custom Trust Policy"


def filter_roles(roles: List[str], pattern: str) -> List[str]:
    if not pattern:
        return list(roles)
    pattern = pattern.lower()
    return [role for role in roles if pattern in role.lower()]


def classify_trust(trust_policy: str) -> str:
    """Rough label for who can assume a role, from substrings of its trust policy."""
    if "ec2.amazonaws.com" in trust_policy:
        return TRUST_EC2
    if "lambda.amazonaws.com" in trust_policy:
        return TRUST_LAMBDA
    if "sts:AssumeRole" in trust_policy:
        return TRUST_CROSS_ACCOUNT
    return TRUST_CUSTOM


def extract_policy_name(policy_arn: str) -> str:
    return policy_arn.rsplit("/", 1)[-1]


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def format_description(description: str) -> str:
    if not description:
        return "(No description)"
    return truncate(description, DESCRIPTION_LIMIT)


def managed_policy_lines(policy_arns) -> List[str]:
    names = [extract_policy_name(arn) for arn in policy_arns]
    if len(names) <= MANAGED_POLICY_SHOW_ALL:
        return names
    hidden = len(names) - MANAGED_POLICY_SHOW_FIRST
    return names[:MANAGED_POLICY_SHOW_FIRST] + [f"... and {hidden} more"]


def display_simple_roles(roles: List[str], pattern: str, reporter: Reporter):
    console = reporter.console
    console.print("\n📝 Role Names:")
    console.print("=" * 51, markup=False)
    for i, role in enumerate(roles, start=1):
        line = Text(f"{i:3d}. {role}")
        if pattern:
            line.highlight_words([pattern], style="bold yellow", case_sensitive=False)
        console.print(line)


def display_role_details(snapshot: RoleSnapshot, console):
    def show(text: str):
        console.print(text, markup=False, highlight=False)

    show(f"📝 Description: {format_description(snapshot.description)}")
    show(f"🔒 Managed Policies: {len(snapshot.managed_policies)}")
    for line in managed_policy_lines(snapshot.managed_policies):
        show(f"    • {line}")

    show(f"📄 Inline Policies: {len(snapshot.inline_policies)}")
    for policy_name in snapshot.inline_policies:
        show(f"    • {policy_name}")

    show(f"🏷️  Tags: {len(snapshot.tags)}")
    for key, value in snapshot.tags.items():
        show(f"    • {key}: {truncate(value, TAG_VALUE_LIMIT)}")

    show(f"🔗 Trust: {classify_trust(snapshot.trust_policy)}")


def display_detailed_roles(gateway: IamGateway, roles: List[str], reporter: Reporter):
    console = reporter.console
    console.print("\n📋 Detailed Role Information:")
    console.print("=" * 81, markup=False)

    table_data = []
    for i, role_name in enumerate(roles, start=1):
        console.print(f"\n[{i}/{len(roles)}] {role_name}", markup=False, highlight=False)
        console.print("-" * (len(role_name) + 10), markup=False)

        reporter.debug(f"Getting details for role: {role_name}")
        try:
            with console.status(f"Getting details for {role_name}..."):
                snapshot = gateway.get_role_snapshot(role_name)
        except GatewayError as e:
            console.print(f"❌ Error getting role details: {e}", markup=False)
            table_data.append([role_name, "-", "-", "-", "error"])
            continue

        display_role_details(snapshot, console)
        table_data.append([
            role_name,
            len(snapshot.managed_policies),
            len(snapshot.inline_policies),
            len(snapshot.tags),
            classify_trust(snapshot.trust_policy),
        ])

    headers = ["Role Name", "Managed Policies", "Inline Policies", "Tags", "Trust"]
    console.print()
    console.print(tabulate(table_data, headers=headers, tablefmt="pretty"), markup=False, highlight=False)


def list_roles(
    gateway: IamGateway,
    reporter: Reporter,
    pattern: str = "",
    details: bool = False,
    sort_roles: bool = False,
) -> List[str]:
    """
    Print the roles in the gateway's profile and return the names that were listed.

    Raises:
        GatewayError: credentials could not be validated or roles could not be listed.
    """
    reporter.debug("Validating AWS credentials...")
    identity = gateway.validate_credentials()
    reporter.success(f"Connected to AWS Account: {identity['Account']}")
    reporter.debug(f"User/Role ARN: {identity['Arn']}")

    reporter.info("Discovering IAM roles...")
    with reporter.console.status("Fetching roles..."):
        roles = gateway.list_roles()

    if pattern:
        reporter.info(f"Filtering roles by pattern: '{pattern}'")
        roles = filter_roles(roles, pattern)
        reporter.info(f"Found {len(roles)} roles matching pattern")
    else:
        reporter.info(f"Found {len(roles)} total roles")

    if not roles:
        reporter.warning("No roles found")
        return []

    if sort_roles:
        reporter.debug("Sorting roles alphabetically...")
        roles = sorted(roles)

    reporter.separator()
    if details:
        display_detailed_roles(gateway, roles, reporter)
    else:
        display_simple_roles(roles, pattern, reporter)

    reporter.separator()
    reporter.success(f"Listed {len(roles)} roles successfully")
    return roles
