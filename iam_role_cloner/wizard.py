# -*- coding: utf-8 -*-

"""
Module: wizard.py
Description: The interactive clone workflow. Steps run strictly in order:

    1. profile setup and credential validation
    2. pattern setup
    3. role discovery and selection
    4. summary and confirmation
    5. cloning (see cloner.py)

Anything not supplied on the command line is asked for through an input
provider, a callable taking the prompt text and returning the answer.
ConsoleInput reads from the terminal; tests pass a scripted one.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from rich.console import Console

from .cloner import CloneRequest, CloneSummary, clone_roles
from .errors import ClonerError, SelectionError, WorkflowAborted
from .gateway import DEFAULT_REGION, IamGateway
from .patterns import PatternRule
from .reporter import Reporter

MAX_MANUAL_ROLES = 20

InputProvider = Callable[[str], str]
GatewayFactory = Callable[[str], IamGateway]


class ConsoleInput:
    """Reads answers from the terminal. EOFError propagates when stdin is closed."""

    def __init__(self, console: Console):
        self.console = console

    def __call__(self, prompt: str) -> str:
        return self.console.input(prompt, markup=False)


@dataclass
class CloneConfig:
    source_profile: str = ""
    dest_profile: str = ""
    source_pattern: str = ""
    dest_pattern: str = ""
    roles: List[str] = field(default_factory=list)
    verbose: bool = False
    dry_run: bool = False
    log_file: str = ""
    region: str = DEFAULT_REGION

    @property
    def rule(self) -> PatternRule:
        return PatternRule(self.source_pattern, self.dest_pattern)


def parse_role_selection(selection: str, roles: List[str]) -> List[str]:
    """
    Turn an answer like ``1,3,5`` or ``all`` into the selected role names.

    Indices are 1-based. Blank entries are skipped; anything that isn't a
    number, or is out of range, raises SelectionError.
    """
    selection = selection.strip()
    if selection.lower() == "all":
        return list(roles)

    selected = []
    for part in selection.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            index = int(part)
        except ValueError:
            raise SelectionError(f"invalid number: {part}")
        if index < 1 or index > len(roles):
            raise SelectionError(f"number out of range: {index}")
        selected.append(roles[index - 1])

    if not selected:
        raise SelectionError("no roles selected")
    return selected


class CloneWizard:
    def __init__(
        self,
        config: CloneConfig,
        reporter: Reporter,
        ask: Optional[InputProvider] = None,
        gateway_factory: Optional[GatewayFactory] = None,
    ):
        self.config = config
        self.reporter = reporter
        self.console = reporter.console
        self.ask = ask or ConsoleInput(self.console)
        self.gateway_factory = gateway_factory or (lambda profile: IamGateway(profile, config.region))
        self.source: Optional[IamGateway] = None
        self.dest: Optional[IamGateway] = None

    def _prompt(self, text: str) -> str:
        return self.ask(text).strip()

    def _print(self, text: str = ""):
        self.console.print(text, markup=False, highlight=False)

    def run(self) -> Optional[CloneSummary]:
        """
        Run the whole workflow. Returns None when the user declines the final
        confirmation.

        Raises:
            ClonerError: profile, pattern or role selection failed.
        """
        self.reporter.header("🚀 IAM Role Cloning Wizard")
        if self.config.dry_run:
            self.reporter.warning("Running in DRY-RUN mode - no actual changes will be made")

        steps = (
            ("Profile validation", self.setup_profiles),
            ("Pattern configuration", self.setup_patterns),
            ("Role selection", self.select_roles),
        )
        for label, step in steps:
            try:
                step()
            except ClonerError as e:
                self.reporter.error(f"{label} failed: {e}")
                raise

        if not self.confirm():
            self.reporter.info("Operation cancelled by user")
            return None

        summary = self.execute()
        self.reporter.success("🎉 Role cloning completed successfully!")
        if self.config.log_file:
            self.reporter.info(f"Log file saved: {self.config.log_file}")
        return summary

    def setup_profiles(self):
        self.reporter.info("Step 1: Profile Configuration and Validation")
        self.reporter.separator()

        config = self.config
        if not config.source_profile:
            config.source_profile = self._prompt("Enter source AWS profile: ")
        if not config.dest_profile:
            config.dest_profile = self._prompt("Enter destination AWS profile: ")

        self.reporter.info(f"Validating source profile: {config.source_profile}")
        self.source = self.gateway_factory(config.source_profile)
        source_identity = self.source.validate_credentials()
        self.reporter.success(f"Source profile validated - Account: {source_identity['Account']}")
        self.reporter.debug(f"Source ARN: {source_identity['Arn']}")

        self.reporter.info(f"Validating destination profile: {config.dest_profile}")
        self.dest = self.gateway_factory(config.dest_profile)
        dest_identity = self.dest.validate_credentials()
        self.reporter.success(f"Destination profile validated - Account: {dest_identity['Account']}")
        self.reporter.debug(f"Destination ARN: {dest_identity['Arn']}")

        if source_identity["Account"] == dest_identity["Account"]:
            self.reporter.warning("Source and destination are the same AWS account")
            answer = self._prompt("Continue anyway? (y/n): ")
            if not answer.lower().startswith("y"):
                raise WorkflowAborted("operation cancelled - same account")

    def setup_patterns(self):
        self.reporter.info("Step 2: Pattern Configuration")
        self.reporter.separator()

        config = self.config
        if not config.source_pattern:
            config.source_pattern = self._prompt("Enter source pattern (e.g., 'dev_', 'staging-'): ")
        if not config.dest_pattern:
            config.dest_pattern = self._prompt("Enter destination pattern (e.g., 'prod_', 'live-'): ")

        if not config.source_pattern:
            self.reporter.warning("Source pattern is empty - role names and policies will be copied unchanged")

        self.reporter.success(f"Pattern replacement: '{config.source_pattern}' → '{config.dest_pattern}'")
        example, new_example = config.rule.example()
        self.reporter.info(f"Example transformation: {example} → {new_example}")

    def select_roles(self):
        self.reporter.info("Step 3: Role Discovery and Selection")
        self.reporter.separator()

        config = self.config
        rule = config.rule

        self.reporter.info("Discovering roles in source account...")
        with self.console.status("Fetching roles..."):
            discovered = self.source.list_roles(config.source_pattern)

        if not discovered:
            self.reporter.warning(f"No roles found with pattern '{config.source_pattern}'")
            config.roles = self.enter_roles_manually()
            return

        self.reporter.success(f"Found {len(discovered)} roles with pattern '{config.source_pattern}'")

        self._print("\nDiscovered roles:")
        for i, role in enumerate(discovered, start=1):
            self._print(f"  {i}. {role} → {rule.rename(role)}")

        selection = self._prompt("\nEnter role numbers to clone (e.g., 1,3,5 or 'all'): ")
        try:
            config.roles = parse_role_selection(selection, discovered)
        except SelectionError as e:
            raise SelectionError(f"invalid selection: {e}")

        if selection.lower() == "all":
            self.reporter.success(f"Selected all {len(discovered)} roles")
        else:
            self.reporter.success(f"Selected {len(config.roles)} roles")

    def enter_roles_manually(self) -> List[str]:
        self.reporter.info("Manual role entry mode")

        count_text = self._prompt(f"How many roles do you want to clone? (1-{MAX_MANUAL_ROLES}): ")
        try:
            count = int(count_text)
        except ValueError:
            raise SelectionError(f"invalid role count: {count_text}")
        if count < 1 or count > MAX_MANUAL_ROLES:
            raise SelectionError(f"invalid role count: {count_text}")

        roles = []
        while len(roles) < count:
            role = self._prompt(f"Enter role name #{len(roles) + 1}: ")
            if role:
                roles.append(role)
        return roles

    def confirm(self) -> bool:
        self.reporter.info("Step 4: Configuration Summary")
        self.reporter.separator()

        config = self.config
        self._print(f"Source Profile:      {config.source_profile}")
        self._print(f"Destination Profile: {config.dest_profile}")
        self._print(f"Pattern Replacement: '{config.source_pattern}' → '{config.dest_pattern}'")
        self._print(f"Dry Run:             {config.dry_run}")
        self._print(f"Verbose Logging:     {config.verbose}")
        self._print(f"Log File:            {config.log_file}")
        self._print("\nRoles to clone:")
        for i, role in enumerate(config.roles, start=1):
            self._print(f"  {i}. {role} → {config.rule.rename(role)}")

        answer = self._prompt("\nProceed with cloning? (y/n): ").lower()
        return answer in ("y", "yes")

    def execute(self) -> CloneSummary:
        self.reporter.info("Step 5: Role Cloning Process")
        self.reporter.separator()

        config = self.config
        request = CloneRequest(roles=tuple(config.roles), rule=config.rule, dry_run=config.dry_run)
        # the destination gateway is withheld entirely in dry-run mode
        dest = None if request.dry_run else self.dest
        return clone_roles(request, self.source, dest, self.reporter)
