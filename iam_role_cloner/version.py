# -*- coding: utf-8 -*-

"""
Module: version.py
Description: Version and build metadata. A release build exports
             IAM_ROLE_CLONER_GIT_COMMIT and IAM_ROLE_CLONER_BUILD_DATE; the
             values are read once into a BuildInfo when the CLI starts.
"""

import os
import platform
from dataclasses import dataclass
from typing import List, Mapping, Optional

from . import __version__

GIT_COMMIT_ENV = "IAM_ROLE_CLONER_GIT_COMMIT"
BUILD_DATE_ENV = "IAM_ROLE_CLONER_BUILD_DATE"

FEATURES = [
    "Clone IAM roles between AWS accounts",
    "Pattern replacement in names and policies",
    "Dry-run mode for safe testing",
    "Comprehensive logging and error handling",
    "Interactive and command-line modes",
    "Role discovery and validation",
]


@dataclass(frozen=True)
class BuildInfo:
    version: str
    git_commit: str = "dev"
    build_date: str = "unknown"
    python_version: str = ""
    platform: str = ""

    @classmethod
    def collect(cls, environ: Optional[Mapping[str, str]] = None) -> "BuildInfo":
        environ = os.environ if environ is None else environ
        return cls(
            version=__version__,
            git_commit=environ.get(GIT_COMMIT_ENV, "dev"),
            build_date=environ.get(BUILD_DATE_ENV, "unknown"),
            python_version=platform.python_version(),
            platform=f"{platform.system().lower()}/{platform.machine().lower()}",
        )


def simple_version(info: BuildInfo) -> str:
    return f"IAM Role Cloner v{info.version}"


def detailed_version(info: BuildInfo) -> List[str]:
    lines = [
        "🚀 IAM Role Cloner",
        "==================",
        f"Version:        {info.version}",
        f"Git Commit:     {info.git_commit}",
        f"Build Date:     {info.build_date}",
        f"Python Version: {info.python_version}",
        f"Platform:       {info.platform}",
        "",
        "📋 Features:",
    ]
    lines.extend(f"  ✅ {feature}" for feature in FEATURES)
    return lines
