from pathlib import Path
from typing import List

from config.models import Repo
from core.herald import Herald
from core.products import LintProduct
from utils import shell
from utils.errors import (
    CommandFailedError,
    LintFailedError,
    ProductDirectoryNotFoundError,
    SwiftlintNotFoundError,
)
from utils.logger import logger

SWIFTLINT = "swiftlint"


def require_swiftlint() -> None:
    if not shell.is_available(SWIFTLINT):
        raise SwiftlintNotFoundError()


def should_lint_all(all_files: bool, changed: bool, fix: bool) -> bool:
    """Changed files are the default scope; --fix widens it to everything unless --changed is given."""
    return all_files or (fix and not changed)


def get_changed_swift_files(target_dir: Path, repo_root: Path, main_branch: str = "main") -> List[str]:
    """
    Lists Swift files under target_dir that differ from the main branch.

    Paths are returned as git prints them, relative to the repository root.
    """
    output = shell.run_and_capture(
        "git",
        ["diff", "--name-only", main_branch, "--", str(target_dir)],
        working_directory=repo_root,
    )
    stripped = (line.strip() for line in output.splitlines())
    return [line for line in stripped if line and line.endswith(".swift")]


class Linter:
    """Runs SwiftLint over one product of the monorepo."""

    def __init__(
        self,
        herald: Herald,
        repo: Repo,
        product: LintProduct = LintProduct.FIREFOX,
        strict: bool = False,
        quiet: bool = False,
    ):
        self.herald = herald
        self.repo = repo
        self.product = product
        self.strict = strict
        self.quiet = quiet

    @property
    def target_dir(self) -> Path:
        return self.repo.root / self.product.directory

    def run(self, lint_all: bool = False, fix: bool = False) -> None:
        """
        Lints or fixes the product.

        Raises:
            SwiftlintNotFoundError: If swiftlint is not on PATH.
            ProductDirectoryNotFoundError: If the product directory is missing.
            LintFailedError: If violations are found in strict mode.
        """
        require_swiftlint()
        if not self.target_dir.is_dir():
            raise ProductDirectoryNotFoundError(self.product.directory)

        if fix:
            self._fix(lint_all)
        else:
            self._lint(lint_all)

    def _lint(self, lint_all: bool) -> None:
        args = ["lint"]
        if self.strict:
            args.append("--strict")
        if self.quiet:
            args.append("--quiet")

        targets = self._targets(lint_all, verb="Linting")
        if targets is None:
            return
        args.extend(targets)

        try:
            shell.run(SWIFTLINT, args, working_directory=self.repo.root)
            self.herald.declare("Linting complete!", as_conclusion=True)
        except CommandFailedError as e:
            # swiftlint exits non-zero when it finds violations
            if self.strict:
                raise LintFailedError(e.exit_code) from e
            self.herald.warn(f"Linting found violations (exit code {e.exit_code})")

    def _fix(self, lint_all: bool) -> None:
        args = ["lint", "--fix"]

        targets = self._targets(lint_all, verb="Fixing")
        if targets is None:
            return
        args.extend(targets)

        try:
            shell.run(SWIFTLINT, args, working_directory=self.repo.root)
            self.herald.declare("Fix complete!", as_conclusion=True)
        except CommandFailedError as e:
            self.herald.warn(f"Fix completed with issues (exit code {e.exit_code})")

    def _targets(self, lint_all: bool, verb: str):
        """Returns the swiftlint path arguments, or None when there is nothing to do."""
        if lint_all:
            self.herald.declare(f"{verb} all files in {self.product.directory}...")
            return ["--path", str(self.target_dir)]

        self.herald.declare(f"{verb} changed files in {self.product.directory}...")
        changed_files = get_changed_swift_files(
            self.target_dir, self.repo.root, self.repo.config.main_branch
        )
        if not changed_files:
            self.herald.declare("No changed Swift files found.")
            return None

        logger.debug(f"Changed files: {changed_files}")
        self.herald.declare(f"Found {len(changed_files)} changed file(s)")
        return changed_files


def show_info(herald: Herald) -> None:
    """Prints the SwiftLint version followed by its rule table."""
    require_swiftlint()

    herald.declare("SwiftLint Version:")
    shell.run(SWIFTLINT, ["version"])

    herald.raw("")

    herald.declare("Available Rules:")
    shell.run(SWIFTLINT, ["rules"])
