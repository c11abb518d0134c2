# -*- coding: utf-8 -*-

"""
Module: patterns.py
Description: Literal substring substitution applied to role names, policy
             documents and tag values when a role is cloned.

Every field goes through replace_pattern(); there is no regex, no word
boundary handling and no awareness of IAM policy grammar. Two consequences
callers should know about:

    - Substitution is idempotent only when the source pattern does not occur
      inside the destination pattern ('dev' -> 'devx' grows on every pass).
    - It is not invertible: text that already contains the destination
      pattern cannot be told apart after substitution.

A source pattern that happens to match part of an ARN, account ID or region
will rewrite it too. arn_collisions() reports those so they can be flagged.
"""

import re
from dataclasses import dataclass, replace
from typing import Dict, List, Tuple

from .gateway import RoleSnapshot

ENVIRONMENT_TAG = "Environment"
SEPARATORS = "_-."

_ARN = re.compile(r"arn:aws[a-z-]*:[^\"\s,\]]+")


def replace_pattern(text: str, source: str, dest: str) -> str:
    """Replace every occurrence of ``source`` in ``text`` with ``dest``."""
    if not source:
        return text
    return text.replace(source, dest)


def generate_new_role_name(original_name: str, source: str, dest: str) -> str:
    return replace_pattern(original_name, source, dest)


def replace_pattern_in_json(json_text: str, source: str, dest: str) -> str:
    return replace_pattern(json_text, source, dest)


def environment_tag_value(dest: str) -> str:
    """Value of the Environment tag on a cloned role: 'prod_' -> 'prod'."""
    return dest.rstrip(SEPARATORS)


@dataclass(frozen=True)
class PatternRule:
    source: str
    dest: str

    def apply(self, text: str) -> str:
        return replace_pattern(text, self.source, self.dest)

    def rename(self, name: str) -> str:
        return generate_new_role_name(name, self.source, self.dest)

    def transform_tags(self, tags: Dict[str, str]) -> Dict[str, str]:
        """Substitute tag values; the Environment tag is set from the destination pattern instead."""
        transformed = {}
        for key, value in tags.items():
            if key == ENVIRONMENT_TAG:
                transformed[key] = environment_tag_value(self.dest)
            else:
                transformed[key] = self.apply(value)
        return transformed

    def transform(self, snapshot: RoleSnapshot) -> RoleSnapshot:
        """Return the destination role: every string field of ``snapshot`` rewritten."""
        return replace(
            snapshot,
            role_name=self.rename(snapshot.role_name),
            trust_policy=replace_pattern_in_json(snapshot.trust_policy, self.source, self.dest),
            inline_policies={
                self.rename(name): replace_pattern_in_json(document, self.source, self.dest)
                for name, document in snapshot.inline_policies.items()
            },
            tags=self.transform_tags(snapshot.tags),
        )

    def example(self) -> Tuple[str, str]:
        example_role = f"{self.source}example_role"
        return example_role, self.rename(example_role)

    def arn_collisions(self, text: str) -> List[str]:
        """
        ARNs in ``text`` whose partition, service, region or account segment
        contains the source pattern. The resource part is left out: renaming
        'role/dev_app' there is usually the point of the clone.
        """
        if not self.source:
            return []
        collisions = []
        for arn in _ARN.findall(text):
            prefix = ":".join(arn.split(":", 5)[:5])
            if self.source in prefix:
                collisions.append(arn)
        return collisions
