# -*- coding: utf-8 -*-

"""
Module: cloner.py
Description: Clones each selected role into the destination profile.

Roles are handled one at a time and independently. A failure on one role is
logged and the loop moves on; failures while attaching a managed policy,
putting an inline policy or tagging are logged as warnings and the rest of
that role is still copied. Nothing is retried and nothing is rolled back, so
a role that fails half way stays half created in the destination account.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from .errors import ClonerError, GatewayError, RoleExistsError
from .gateway import IamGateway, RoleSnapshot
from .patterns import PatternRule
from .reporter import Reporter

DESCRIPTION_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
PREVIEW_LENGTH = 100


@dataclass(frozen=True)
class CloneRequest:
    roles: Tuple[str, ...]
    rule: PatternRule
    dry_run: bool = False


@dataclass(frozen=True)
class CloneOutcome:
    source_role: str
    dest_role: str
    success: bool
    error: str = ""


@dataclass
class CloneSummary:
    outcomes: List[CloneOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def failures(self) -> List[CloneOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]


def clone_description(source_role: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"Cloned from {source_role} on {now.strftime(DESCRIPTION_TIME_FORMAT)}"


def _warn_arn_collisions(snapshot: RoleSnapshot, rule: PatternRule, reporter: Reporter):
    documents = [snapshot.trust_policy, *snapshot.inline_policies.values()]
    seen = set()
    for document in documents:
        for arn in rule.arn_collisions(document):
            if arn not in seen:
                seen.add(arn)
                reporter.warning(f"  Pattern '{rule.source}' also matches inside ARN {arn}; it will be rewritten")


def _log_dry_run(snapshot: RoleSnapshot, target: RoleSnapshot, rule: PatternRule, reporter: Reporter):
    reporter.info(f"  [DRY RUN] Would create role {target.role_name} and copy policies/tags")
    reporter.debug(f"  [DRY RUN] Original trust policy: {snapshot.trust_policy}")
    reporter.debug(f"  [DRY RUN] Processed trust policy: {target.trust_policy}")

    if snapshot.managed_policies:
        reporter.debug(f"  [DRY RUN] Would attach {len(snapshot.managed_policies)} managed policies:")
        for policy_arn in snapshot.managed_policies:
            reporter.debug(f"    - {policy_arn}")

    if snapshot.inline_policies:
        reporter.debug(f"  [DRY RUN] Would create {len(snapshot.inline_policies)} inline policies:")
        for policy_name in snapshot.inline_policies:
            reporter.debug(f"    - {policy_name} → {rule.rename(policy_name)}")

    if snapshot.tags:
        reporter.debug(f"  [DRY RUN] Would copy {len(snapshot.tags)} tags:")
        for key, value in snapshot.tags.items():
            new_value = target.tags[key]
            if new_value != value:
                reporter.debug(f"    - {key}: {value} → {new_value}")
            else:
                reporter.debug(f"    - {key}: {value}")


def clone_role(
    source: IamGateway,
    dest: Optional[IamGateway],
    role_name: str,
    rule: PatternRule,
    reporter: Reporter,
    dry_run: bool = False,
) -> RoleSnapshot:
    """
    Clone one role and return the destination snapshot that was written (or
    would have been, in dry-run mode).

    Raises:
        GatewayError: fetching the source role or creating the destination role failed.
        RoleExistsError: the destination role name is already taken.
    """
    reporter.debug(f"  Getting role information for: {role_name}")
    snapshot = source.get_role_snapshot(role_name)
    reporter.debug(
        f"  Retrieved role info: {len(snapshot.managed_policies)} managed policies, "
        f"{len(snapshot.inline_policies)} inline policies, {len(snapshot.tags)} tags"
    )

    target = rule.transform(snapshot)
    _warn_arn_collisions(snapshot, rule, reporter)

    if dry_run:
        _log_dry_run(snapshot, target, rule, reporter)
        return target

    if dest.role_exists(target.role_name):
        raise RoleExistsError(target.role_name)

    reporter.debug("  Creating new role...")
    reporter.debug(f"  Original trust policy: {snapshot.trust_policy}")
    reporter.debug(f"  Processed trust policy: {target.trust_policy}")
    try:
        dest.create_role(target.role_name, target.trust_policy, clone_description(role_name))
    except GatewayError:
        if reporter.verbose:
            reporter.error(f"  Failed trust policy content: {target.trust_policy}")
        raise
    reporter.debug("  Role created successfully")

    reporter.debug(f"  Attaching {len(target.managed_policies)} managed policies...")
    for policy_arn in target.managed_policies:
        try:
            dest.attach_managed_policy(target.role_name, policy_arn)
        except GatewayError as e:
            reporter.warning(f"    Failed to attach managed policy {policy_arn}: {e}")
        else:
            reporter.debug(f"    Attached: {policy_arn}")

    reporter.debug(f"  Creating {len(target.inline_policies)} inline policies...")
    for policy_name, document in target.inline_policies.items():
        reporter.debug(f"    Creating inline policy: {policy_name}")
        reporter.debug(f"    Policy document preview: {document[:PREVIEW_LENGTH]}...")
        try:
            dest.put_inline_policy(target.role_name, policy_name, document)
        except GatewayError as e:
            reporter.warning(f"    Failed to create inline policy {policy_name}: {e}")
        else:
            reporter.debug(f"    Created inline policy: {policy_name}")

    if target.tags:
        reporter.debug(f"  Copying {len(target.tags)} tags...")
        reporter.debug(f"    Processed tags: {target.tags}")
        try:
            dest.tag_role(target.role_name, target.tags)
        except GatewayError as e:
            reporter.warning(f"    Failed to copy tags: {e}")
        else:
            reporter.debug("    Tags copied successfully")

    return target


def clone_roles(
    request: CloneRequest,
    source: IamGateway,
    dest: Optional[IamGateway],
    reporter: Reporter,
) -> CloneSummary:
    """Clone every role in ``request``; ``dest`` may be None for a dry run."""
    summary = CloneSummary()
    total = len(request.roles)

    for step, role_name in enumerate(request.roles, start=1):
        new_role = request.rule.rename(role_name)
        reporter.progress(step, total, f"Cloning: {role_name} → {new_role}")

        try:
            clone_role(source, dest, role_name, request.rule, reporter, dry_run=request.dry_run)
        except ClonerError as e:
            reporter.error(f"Failed to clone {role_name}: {e}")
            summary.outcomes.append(CloneOutcome(role_name, new_role, False, str(e)))
            continue

        summary.outcomes.append(CloneOutcome(role_name, new_role, True))
        reporter.success(f"Successfully cloned: {role_name} → {new_role}")

    reporter.separator()
    reporter.success(f"Cloning completed: {summary.success_count}/{summary.total} roles successful")

    if request.dry_run:
        reporter.info("This was a dry run. Use without --dry-run to perform actual cloning.")

    return summary
