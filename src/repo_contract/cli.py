"""repo-contract CLI - validate, check and diff repository contracts."""

from enum import Enum
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from repo_contract import __version__
from repo_contract.checks import build_report, diff, exit_code, reconcile
from repo_contract.checks.types import EXIT_EXECUTION_FAILURE, EXIT_OK, EXIT_VIOLATION
from repo_contract.contract.loader import LoadedContract, load_contract
from repo_contract.contract.types import Contract
from repo_contract.errors import AlreadyExistsError, ContractError, RemoteError
from repo_contract.output import (
    diff_to_dict,
    render_check,
    render_diff,
    render_validation,
    to_json,
    to_yaml,
    validation_to_dict,
)
from repo_contract.remote.github import GitHubRepository, resolve_repository
from repo_contract.scaffold import InitOptions, init_contract_files
from repo_contract.schemas.validator import ValidationReport, validate, validate_file
from repo_contract.utils.logging import configure_logging
from repo_contract.utils.repo import LocalFileLister
from repo_contract.utils.repo_config import RepoConfig, load_repo_config, resolve_token, strict_from_env
from repo_contract.utils.schema_registry import get_schema_text

cli = typer.Typer(
    name="contract",
    help="Repository contract validator - declare required repository state and check it.",
    no_args_is_help=True,
)


class OutputFormat(str, Enum):
    """Output format for command results."""

    HUMAN = "human"
    JSON = "json"
    YAML = "yaml"


def _version_option_callback(value: bool) -> None:
    """Handle eager --version option."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@cli.callback()
def _cli_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase log verbosity (-v info, -vv debug).",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
) -> None:
    """Configure logging and console once per invocation."""
    _ = version
    configure_logging(verbose, color=not no_color)
    ctx.obj = {"color": not no_color}


def _console(ctx: typer.Context) -> Console:
    color = (ctx.obj or {}).get("color", True)
    return Console(no_color=not color, highlight=False, soft_wrap=True)


def _fail(message: str, code: int = EXIT_EXECUTION_FAILURE) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code)


def _load_config() -> RepoConfig:
    try:
        return load_repo_config(Path.cwd())
    except RuntimeError as e:
        _fail(str(e))


def _contract_path(explicit: Path | None, config: RepoConfig) -> Path:
    return explicit if explicit is not None else Path(config.config)


def _output_format(explicit: OutputFormat | None, config: RepoConfig) -> OutputFormat:
    return explicit if explicit is not None else OutputFormat(config.format)


def _parse_rules(value: str | None, config: RepoConfig) -> list[str]:
    if value is None:
        return list(config.rules)
    return [name.strip() for name in value.split(",") if name.strip()]


def _print_structured(data: dict, output_format: OutputFormat) -> None:
    # Plain echo: rich markup must not touch structured output
    text = to_json(data) if output_format is OutputFormat.JSON else to_yaml(data)
    typer.echo(text.rstrip("\n"))


def _load_checked_contract(contract_path: Path) -> tuple[LoadedContract, Contract]:
    """Load, merge and structurally validate; exits 2 on any failure."""
    try:
        loaded = load_contract(contract_path)
    except ContractError as e:
        _fail(str(e))

    errors = validate(loaded.document)
    if errors:
        typer.echo(f"Error: {contract_path} is not a valid contract:", err=True)
        for error in errors:
            typer.echo(f"  - {error}", err=True)
        raise typer.Exit(EXIT_EXECUTION_FAILURE)
    return loaded, Contract.from_document(loaded.document)


def _open_remote(
    remote: str | None, config: RepoConfig, timeout: float
) -> tuple[GitHubRepository | None, str | None]:
    """Build the GitHub collaborator.

    Returns (repo, None) on success, or (None, reason) when it cannot be
    built. The reason is None when no credential is configured.
    """
    token = resolve_token(config)
    if not token:
        return None, None
    try:
        slug = resolve_repository(remote, Path.cwd())
    except RemoteError as e:
        return None, str(e)
    return GitHubRepository(slug, token, base_url=config.github.api_url, timeout=timeout), None


@cli.command(name="validate")
def validate_cmd(
    ctx: typer.Context,
    path: Path | None = typer.Argument(
        None,
        help="Contract file to validate (defaults to --config or contract.yml).",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Contract file path.",
    ),
    with_profile: bool = typer.Option(
        False,
        "--with-profile",
        "-p",
        help="Also validate the profile the contract names; a missing profile is an error.",
    ),
    output_format: OutputFormat | None = typer.Option(
        None,
        "--format",
        "-f",
        case_sensitive=False,
        help="Output format.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output; report through the exit code only.",
    ),
) -> None:
    """Validate contract structure (exit 0 valid, 1 invalid, 2 unreadable)."""
    repo_config = _load_config()
    target = path if path is not None else _contract_path(config, repo_config)
    fmt = _output_format(output_format, repo_config)

    reports: list[ValidationReport] = []
    try:
        reports.append(validate_file(target))
        if with_profile:
            loaded = load_contract(target, require_profile=True)
            if loaded.profile_path is not None:
                reports.append(validate_file(loaded.profile_path))
    except ContractError as e:
        _fail(str(e))

    if not quiet:
        console = _console(ctx)
        if fmt is OutputFormat.HUMAN:
            render_validation(console, reports)
        else:
            _print_structured(validation_to_dict(reports), fmt)

    raise typer.Exit(EXIT_OK if all(r.valid for r in reports) else EXIT_VIOLATION)


@cli.command()
def check(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Contract file path.",
    ),
    remote: str | None = typer.Option(
        None,
        "--remote",
        "-r",
        help="Check against a remote repository (owner/repo) only.",
    ),
    rules: str | None = typer.Option(
        None,
        "--rules",
        help="Comma-separated rules to evaluate (required_files, branch_protection).",
    ),
    output_format: OutputFormat | None = typer.Option(
        None,
        "--format",
        "-f",
        case_sensitive=False,
        help="Output format.",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        "-s",
        help="Treat warnings as failures.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output; report through the exit code only.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Remote API timeout in seconds.",
    ),
) -> None:
    """Check the repository against its contract.

    Exit codes: 0 compliant, 1 violations (or warnings with --strict),
    2 when a rule could not be evaluated.
    """
    repo_config = _load_config()
    contract_path = _contract_path(config, repo_config)
    fmt = _output_format(output_format, repo_config)
    strict = strict or repo_config.strict or strict_from_env()
    limit = timeout if timeout is not None else repo_config.github.timeout

    loaded, contract = _load_checked_contract(contract_path)
    repo, unavailable = _open_remote(remote, repo_config, limit)
    try:
        reconciliation = reconcile(
            contract,
            LocalFileLister(Path.cwd()),
            repo,
            _parse_rules(rules, repo_config),
            remote_only=remote is not None,
            timeout=limit,
            unavailable_reason=unavailable,
        )
    except ContractError as e:
        _fail(str(e))
    finally:
        if repo is not None:
            repo.close()

    report = build_report(reconciliation, loaded.advisories)
    if not quiet:
        console = _console(ctx)
        if fmt is OutputFormat.HUMAN:
            render_check(console, report)
        else:
            _print_structured(report.to_dict(), fmt)

    raise typer.Exit(exit_code(report, strict=strict))


@cli.command(name="diff")
def diff_cmd(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Contract file path.",
    ),
    remote: str | None = typer.Option(
        None,
        "--remote",
        "-r",
        help="Compare against a remote repository (owner/repo) only.",
    ),
    rules: str | None = typer.Option(
        None,
        "--rules",
        help="Comma-separated rules to compare.",
    ),
    output_format: OutputFormat | None = typer.Option(
        None,
        "--format",
        "-f",
        case_sensitive=False,
        help="Output format.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Remote API timeout in seconds.",
    ),
) -> None:
    """Show differences between the contract and actual state (exit 1 when any)."""
    repo_config = _load_config()
    contract_path = _contract_path(config, repo_config)
    fmt = _output_format(output_format, repo_config)
    limit = timeout if timeout is not None else repo_config.github.timeout

    loaded, contract = _load_checked_contract(contract_path)
    repo, unavailable = _open_remote(remote, repo_config, limit)
    try:
        report = diff(
            contract,
            LocalFileLister(Path.cwd()),
            repo,
            _parse_rules(rules, repo_config),
            remote_only=remote is not None,
            timeout=limit,
            unavailable_reason=unavailable,
        )
    except ContractError as e:
        _fail(str(e))
    finally:
        if repo is not None:
            repo.close()

    report.advisories.extend(loaded.advisories)
    console = _console(ctx)
    if fmt is OutputFormat.HUMAN:
        render_diff(console, report)
    else:
        _print_structured(diff_to_dict(report), fmt)

    if report.failures:
        raise typer.Exit(EXIT_EXECUTION_FAILURE)
    raise typer.Exit(EXIT_VIOLATION if report.diffs else EXIT_OK)


@cli.command()
def apply(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Contract file path.",
    ),
) -> None:
    """Apply the contract to the remote (not available)."""
    _ = config
    _fail("apply is not available: writing settings to the remote is not supported. Use 'contract diff' to review changes.")


@cli.command(name="init")
def init_cmd(
    ctx: typer.Context,
    output: Path = typer.Option(
        Path("contract.yml"),
        "--output",
        "-o",
        help="Where to write the contract.",
    ),
    profile: str | None = typer.Option(
        None,
        "--profile",
        "-p",
        help="Profile to reference and scaffold (rust, python, ...).",
    ),
    from_repo: bool = typer.Option(
        False,
        "--from-repo",
        help="List only files that already exist in the working tree.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing files.",
    ),
) -> None:
    """Write a starter contract."""
    try:
        outcome = init_contract_files(
            Path.cwd(),
            InitOptions(output_path=output, profile=profile, from_repo=from_repo, force=force),
        )
    except AlreadyExistsError as e:
        _fail(f"{e} (use --force to overwrite)", EXIT_VIOLATION)
    except OSError as e:
        _fail(str(e))

    console = _console(ctx)
    for created in outcome.created:
        console.print(f"[green]Created {created}[/green]")


@cli.command()
def schema() -> None:
    """Print the bundled contract JSON Schema."""
    typer.echo(get_schema_text("contract"), nl=False)


if __name__ == "__main__":
    cli()
