from typing import Callable, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from config.settings import NAME, SHORT_DESCRIPTION, VERSION, about_text
from core.clone import clone_repository
from core.herald import Herald
from core.lint import Linter, should_lint_all, show_info
from core.nimbus.workflow import MAX_DESCRIPTION_LENGTH, MIN_FEATURE_NAME_LENGTH, NimbusFeatureManager
from core.products import LintProduct
from core.repo_detector import require_valid_repo
from utils.errors import NaryaException
from utils.logger import setup_logger, logger


def run_command(ctx: click.Context, herald: Herald, action: Callable[[], None]) -> None:
    """
    Runs a command body, reporting failures through the command's herald.

    Known errors end the session as an error conclusion; anything else is logged
    with its traceback. Both exit with status 1.
    """
    verbose = ctx.obj.get("debug", False)
    try:
        action()
    except NaryaException as e:
        logger.opt(exception=verbose).error(f"Command failed: {e}")
        herald.declare(str(e), as_error=True, as_conclusion=True)
        ctx.exit(1)
    except Exception as e:
        logger.opt(exception=True).error(f"Unexpected error: {e}")
        Console(stderr=True).print(f"[bold red]Unexpected error:[/bold red] {escape(str(e))}")
        ctx.exit(1)


@click.group(help=SHORT_DESCRIPTION, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(VERSION, prog_name=NAME)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug logging on stderr.",
)
@click.pass_context
def cli(ctx, debug: bool):
    setup_logger(log_level="DEBUG" if debug else "WARNING")
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command("about")
def about():
    """
    Show what narya is and which version is installed.
    """
    Console().print(Panel(
        about_text(),
        title=f"[bold cyan]{NAME}[/bold cyan]",
        border_style="cyan",
        expand=False,
    ))


@cli.command("setup")
@click.option("--ssh", is_flag=True, help="Use SSH URL for cloning (git@github.com:...) instead of HTTPS.")
@click.option(
    "--location",
    type=click.Path(file_okay=False),
    help="Directory path (absolute or relative) to clone into. Defaults to current directory.",
)
@click.pass_context
def setup(ctx, ssh: bool, location: Optional[str]):
    """
    Clone the firefox-ios repository.
    """
    herald = Herald.ring()
    run_command(ctx, herald, lambda: clone_repository(herald, ssh=ssh, location=location))


@cli.group("lint", invoke_without_command=True)
@click.option(
    "-p", "--product",
    type=click.Choice([product.value for product in LintProduct]),
    default=LintProduct.FIREFOX.value,
    show_default=True,
    help="Product to lint.",
)
@click.option("-c", "--changed", is_flag=True, help="Lint only files changed compared to main branch (default).")
@click.option("-a", "--all", "all_files", is_flag=True, help="Lint the entire project instead of just changed files.")
@click.option("-s", "--strict", is_flag=True, help="Treat warnings as errors.")
@click.option("-q", "--quiet", is_flag=True, help="Show only violation counts.")
@click.option("--fix", is_flag=True, help="Automatically correct fixable violations.")
@click.pass_context
def lint(ctx, product: str, changed: bool, all_files: bool, strict: bool, quiet: bool, fix: bool):
    """
    Run SwiftLint on the codebase.

    By default, lints only files changed compared to the main branch. This is not
    meant to replace swiftlint, merely to be a simplified entry point for
    development; consult swiftlint for the full capabilities of that tool.
    """
    if ctx.invoked_subcommand is not None:
        return

    herald = Herald.ring()

    def action():
        repo = require_valid_repo()
        linter = Linter(herald, repo, product=LintProduct(product), strict=strict, quiet=quiet)
        linter.run(lint_all=should_lint_all(all_files, changed, fix), fix=fix)

    run_command(ctx, herald, action)


@lint.command("info")
@click.pass_context
def lint_info(ctx):
    """
    Show SwiftLint information and rules.
    """
    herald = Herald.ring()
    run_command(ctx, herald, lambda: show_info(herald))


@cli.group("nimbus")
def nimbus():
    """
    Manage Nimbus feature configuration files.

    Use 'refresh' to update the include block in nimbus.fml.yaml, 'add' to create
    a new feature with all required boilerplate, and 'remove' to remove a feature
    from all locations.
    """


def _validate_feature_name(ctx, param, value: str) -> str:
    if len(value) < MIN_FEATURE_NAME_LENGTH:
        raise click.BadParameter(f"Feature name must be at least {MIN_FEATURE_NAME_LENGTH} characters long.")
    return value


def _validate_description(ctx, param, value: Optional[str]) -> Optional[str]:
    if value is not None and len(value) > MAX_DESCRIPTION_LENGTH:
        raise click.BadParameter(
            f"Description must be {MAX_DESCRIPTION_LENGTH} characters or less (currently {len(value)} characters)."
        )
    return value


@nimbus.command("refresh")
@click.pass_context
def nimbus_refresh(ctx):
    """
    Refresh the include block in nimbus.fml.yaml with current feature files.
    """
    herald = Herald.ring()
    run_command(ctx, herald, lambda: NimbusFeatureManager(require_valid_repo(), herald).refresh())


@nimbus.command("add")
@click.argument("feature_name", callback=_validate_feature_name)
@click.option("--qa", is_flag=True, help="Add the feature to the QA settings UI.")
@click.option(
    "--user-toggleable",
    is_flag=True,
    help="Mark the feature as user-toggleable (requires implementing a preference key).",
)
@click.option(
    "-d", "--description",
    callback=_validate_description,
    help=f"A short description of the feature (max {MAX_DESCRIPTION_LENGTH} characters).",
)
@click.pass_context
def nimbus_add(ctx, feature_name: str, qa: bool, user_toggleable: bool, description: Optional[str]):
    """
    Add a new Nimbus feature flag.

    Creates a new feature YAML file and adds the feature to all required Swift files.
    FEATURE_NAME is camelCase without the 'Feature' suffix: 'testButtress' creates
    'testButtressFeature.yaml'.
    """
    herald = Herald.fox()

    def action():
        manager = NimbusFeatureManager(require_valid_repo(), herald)
        manager.add(feature_name, qa=qa, user_toggleable=user_toggleable, description=description)

    run_command(ctx, herald, action)


@nimbus.command("remove")
@click.argument("feature_name")
@click.pass_context
def nimbus_remove(ctx, feature_name: str):
    """
    Remove a Nimbus feature flag.

    Every location is validated before anything is removed. If any validation
    fails, no changes are made.
    """
    herald = Herald.ring()
    run_command(ctx, herald, lambda: NimbusFeatureManager(require_valid_repo(), herald).remove(feature_name))


if __name__ == "__main__":
    cli()
