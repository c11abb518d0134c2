# -*- coding: utf-8 -*-

"""Exceptions raised while discovering and cloning IAM roles."""

from typing import Optional


class ClonerError(Exception):
    """Base class for every error the cloner reports to the user."""


class GatewayError(ClonerError):
    """An AWS call failed. Carries the operation and the role/policy it was made for."""

    def __init__(self, operation: str, identifier: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.identifier = identifier
        self.cause = cause
        message = f"failed to {operation} {identifier}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class PolicyDocumentError(GatewayError):
    """A trust or inline policy document is not valid JSON after decoding."""


class RoleExistsError(ClonerError):
    def __init__(self, role_name: str):
        self.role_name = role_name
        super().__init__(f"destination role already exists: {role_name}")


class SelectionError(ClonerError):
    """Invalid answer to the role selection or manual entry prompts."""


class WorkflowAborted(ClonerError):
    """The user declined to continue at a yes/no prompt."""
