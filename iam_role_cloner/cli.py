# -*- coding: utf-8 -*-

"""
Script: cli.py
Description: Command line entry point. Clones IAM roles between AWS profiles,
             replacing an environment pattern (e.g. dev_ -> prod_) in role
             names, trust policies, inline policies and tag values.

Usage:
    iam-role-cloner clone [--source-profile/-s PROFILE] [--dest-profile/-d PROFILE]
                          [--source-pattern TEXT] [--dest-pattern TEXT]
                          [--dry-run] [--verbose/-v] [--log-file PATH] [--region REGION]
    iam-role-cloner list --profile/-p PROFILE [--pattern TEXT] [--details] [--sort]
                         [--verbose/-v] [--region REGION]
    iam-role-cloner version [--detailed/-e]

Requirements:
    - boto3
    - typer
    - rich
    - tabulate
"""

from datetime import datetime
from typing import Optional

import typer

from .errors import ClonerError
from .gateway import DEFAULT_REGION, IamGateway
from .listing import list_roles
from .reporter import Reporter, make_console
from .version import BuildInfo, detailed_version, simple_version
from .wizard import CloneConfig, CloneWizard

app = typer.Typer(
    help="Clone IAM roles between AWS profiles with pattern replacement in names, policies and tags.",
    add_completion=False,
)

WELCOME = """🚀 Welcome to IAM Role Cloner!
===============================

A tool to clone IAM roles between AWS environments.

Available commands:
  clone    Clone IAM roles between profiles
  list     List IAM roles in a profile
  version  Show version information

Use 'iam-role-cloner [command] --help' for more information about a command.

Examples:
  iam-role-cloner clone --help
  iam-role-cloner list --profile dev"""


def default_log_file(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"iam-clone-{now.strftime('%Y%m%d-%H%M%S')}.log"


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """
    Clone IAM roles between AWS environments (dev, staging, prod) with pattern replacement.
    """
    ctx.obj = BuildInfo.collect()
    if ctx.invoked_subcommand is None:
        typer.echo(WELCOME)


@app.command()
def clone(
    source_profile: Optional[str] = typer.Option(None, "--source-profile", "-s", help="Source AWS profile."),
    dest_profile: Optional[str] = typer.Option(None, "--dest-profile", "-d", help="Destination AWS profile."),
    source_pattern: Optional[str] = typer.Option(
        None, "--source-pattern", help="Source environment pattern (e.g., 'dev_')."
    ),
    dest_pattern: Optional[str] = typer.Option(
        None, "--dest-pattern", help="Destination environment pattern (e.g., 'prod_')."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be done without actually doing it."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output."),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path (default: auto-generated)."),
    region: str = typer.Option(DEFAULT_REGION, "--region", help="The AWS region to use (default: us-east-1)."),
):
    """
    Clone IAM roles from a source to a destination AWS profile, prompting for
    anything not given on the command line.
    """
    config = CloneConfig(
        source_profile=source_profile or "",
        dest_profile=dest_profile or "",
        source_pattern=source_pattern or "",
        dest_pattern=dest_pattern or "",
        verbose=verbose,
        dry_run=dry_run,
        log_file=log_file or default_log_file(),
        region=region,
    )

    try:
        reporter = Reporter(verbose=verbose, log_file=config.log_file)
    except OSError as e:
        typer.echo(f"Failed to initialize logger: {e}", err=True)
        raise typer.Exit(code=1)

    with reporter:
        try:
            CloneWizard(config, reporter).run()
        except ClonerError:
            # already reported by the wizard
            raise typer.Exit(code=1)
        except EOFError:
            reporter.error("Input closed before the wizard finished")
            raise typer.Exit(code=1)


@app.command("list")
def list_command(
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="AWS profile to use (required)."),
    pattern: str = typer.Option("", "--pattern", help="Filter roles by pattern (case-insensitive)."),
    details: bool = typer.Option(False, "--details", help="Show detailed information for each role."),
    sort: bool = typer.Option(False, "--sort", help="Sort roles alphabetically."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output."),
    region: str = typer.Option(DEFAULT_REGION, "--region", help="The AWS region to use (default: us-east-1)."),
):
    """
    List IAM roles in an AWS profile, optionally filtered by pattern.
    """
    if not profile:
        typer.echo("❌ Error: --profile flag is required")
        typer.echo("Usage: iam-role-cloner list --profile <profile-name>")
        return

    with Reporter(verbose=verbose) as reporter:
        reporter.header(f"📋 IAM Roles in Profile: {profile}")
        reporter.info(f"Connecting to AWS profile: {profile}")
        try:
            gateway = IamGateway(profile, region)
            list_roles(gateway, reporter, pattern=pattern, details=details, sort_roles=sort)
        except ClonerError as e:
            reporter.error(str(e))


@app.command()
def version(
    ctx: typer.Context,
    detailed: bool = typer.Option(False, "--detailed", "-e", help="Show detailed version information."),
):
    """
    Show version information.
    """
    info = ctx.obj or BuildInfo.collect()
    console = make_console()
    if detailed:
        for line in detailed_version(info):
            console.print(line, markup=False, highlight=False)
    else:
        console.print(simple_version(info), markup=False, highlight=False)
