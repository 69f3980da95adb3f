from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Mapping, Optional
import json

import structlog
import typer

from licaudit.auditor import DEFAULT_TRIVIAL_MAX_ADDED_LINES, CommitAuditor
from licaudit.config import (
    AuditSection,
    anchored_path,
    as_non_negative_int,
    audit_defaults,
    licence_identifiers,
    merge_overrides,
)
from licaudit.exceptions import LicauditError
from licaudit.git_access import GitRepository, open_repository
from licaudit.licences import accepted_hash_for, build_accepted_hashes, resolve_licence_dir
from licaudit.model import AuditResult
from licaudit.observability import LOG_FORMATS, configure_logging
from licaudit.resolver import CoveredPersons, RetroactiveResolver
from licaudit.schema import audit_report
from licaudit.walker import walk_history

app = typer.Typer(
    add_completion=False,
    help="Prove that every commit on a branch carries an acceptable licence grant.",
)
log = structlog.get_logger(__name__)

OpenRepositoryFn = Callable[[Path], GitRepository]

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_FATAL = 2
DEFAULT_BRANCH = "HEAD"


@dataclass(frozen=True)
class AuditSettings:
    repository: Path
    branch: str
    licences: list[str]
    licence_path: Path | None
    trivial_max_added_lines: int
    report: Path | None


@dataclass(frozen=True)
class AuditRun:
    result: AuditResult
    accepted_hashes: frozenset[str]


def resolve_settings(
    *,
    repository: Path,
    branch: str | None,
    licences: list[str] | None,
    licence_path: Path | None,
    config: Path | None,
    trivial_max_added_lines: int | None = None,
    report: Path | None = None,
) -> AuditSettings:
    """Merge command-line values over the ``[audit]`` section of the config file."""
    defaults = audit_defaults(repository, config)
    cwd = Path.cwd()
    overrides: AuditSection = {
        "branch": branch,
        "licences": list(licences or []),
        "licence_path": anchored_path(licence_path, base=cwd),
        "trivial_max_added_lines": trivial_max_added_lines,
        "report": anchored_path(report, base=cwd),
    }
    merged = merge_overrides(overrides, defaults)
    return AuditSettings(
        repository=repository,
        branch=str(merged.get("branch") or DEFAULT_BRANCH),
        licences=licence_identifiers(merged.get("licences")),
        licence_path=anchored_path(merged.get("licence_path"), base=cwd),
        trivial_max_added_lines=as_non_negative_int(
            merged.get("trivial_max_added_lines"),
            key="trivial_max_added_lines",
            default=DEFAULT_TRIVIAL_MAX_ADDED_LINES,
        ),
        report=anchored_path(merged.get("report"), base=cwd),
    )


def run_audit(
    settings: AuditSettings,
    *,
    open_repository_fn: OpenRepositoryFn = open_repository,
) -> AuditRun:
    licence_dir = resolve_licence_dir(settings.licence_path, repo_root=settings.repository)
    accepted = build_accepted_hashes(settings.licences, licence_dir)
    if not accepted:
        log.warning("no_accepted_licences", repository=str(settings.repository))
    repository = open_repository_fn(settings.repository)
    start = repository.resolve_commit(settings.branch)
    resolver = RetroactiveResolver(accepted, CoveredPersons())
    auditor = CommitAuditor(
        resolver,
        repository,
        trivial_max_added_lines=settings.trivial_max_added_lines,
    )
    return AuditRun(result=walk_history(repository, start, auditor), accepted_hashes=accepted)


def write_report(path: Path, run: AuditRun) -> None:
    payload = audit_report(run.result, run.accepted_hashes).model_dump()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, sort_keys=False) + "\n", encoding="utf-8")


def render_findings(result: AuditResult, echo_fn: Callable[[str], None] = typer.echo) -> None:
    echo_fn(f"There were {len(result.findings)} errors:")
    for finding in result.findings:
        echo_fn(f"  {finding}")


def _context_open_repository(ctx: typer.Context) -> OpenRepositoryFn:
    obj = ctx.obj
    if isinstance(obj, Mapping):
        candidate = obj.get("open_repository")
        if callable(candidate):
            return candidate
    return open_repository


def _fatal(exc: LicauditError) -> typer.Exit:
    typer.secho(str(exc), err=True, fg=typer.colors.RED)
    return typer.Exit(code=EXIT_FATAL)


@app.callback()
def _main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Diagnostic log level (default: $LICAUDIT_LOG_LEVEL or WARNING).",
    ),
    log_format: str = typer.Option("console", "--log-format", help="console or json."),
) -> None:
    if log_format not in LOG_FORMATS:
        raise typer.BadParameter(f"--log-format must be one of {', '.join(LOG_FORMATS)}")
    configure_logging(level=log_level, fmt=log_format)


@app.command("audit")
def audit(
    ctx: typer.Context,
    repository: Path = typer.Argument(Path("."), help="Repository path."),
    branch: Optional[str] = typer.Option(
        None, "--branch", "-B", help="Revision to check (default: HEAD)."
    ),
    licences: Optional[List[str]] = typer.Option(
        None,
        "--licence",
        "-L",
        help="Allowed licence: a SHA256 hash or a name such as MIT (repeatable).",
    ),
    licence_path: Optional[Path] = typer.Option(
        None, "--licence-path", help="Directory containing COPYING.<NAME> licence files."
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to licaudit.toml."),
    trivial_max_added_lines: Optional[int] = typer.Option(
        None,
        "--trivial-max-added-lines",
        min=0,
        help="Commits adding at most this many lines are exempt (default: 3).",
    ),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report here."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print every commit's verdict."),
) -> None:
    """Audit the first-parent history of a branch for licence grants."""
    open_repository_fn = _context_open_repository(ctx)
    try:
        settings = resolve_settings(
            repository=repository,
            branch=branch,
            licences=licences,
            licence_path=licence_path,
            config=config,
            trivial_max_added_lines=trivial_max_added_lines,
            report=report,
        )
        run = run_audit(settings, open_repository_fn=open_repository_fn)
    except LicauditError as exc:
        raise _fatal(exc) from exc

    if verbose:
        for outcome in run.result.outcomes:
            typer.echo(f"{outcome.sha} {outcome.verdict.value} {outcome.author_name} <{outcome.author_email}>")
    if settings.report is not None:
        write_report(settings.report, run)
    if not run.result.ok:
        render_findings(run.result)
        raise typer.Exit(code=EXIT_FINDINGS)
    raise typer.Exit(code=EXIT_OK)


@app.command("hash")
def licence_hash(
    identifiers: List[str] = typer.Argument(..., help="Licence names or SHA256 hashes."),
    repository: Path = typer.Option(Path("."), "--repository", help="Repository path."),
    licence_path: Optional[Path] = typer.Option(
        None, "--licence-path", help="Directory containing COPYING.<NAME> licence files."
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to licaudit.toml."),
) -> None:
    """Print the hash a declaration must name for each licence."""
    try:
        settings = resolve_settings(
            repository=repository,
            branch=None,
            licences=None,
            licence_path=licence_path,
            config=config,
        )
        licence_dir = resolve_licence_dir(settings.licence_path, repo_root=repository)
        for identifier in identifiers:
            typer.echo(f"{accepted_hash_for(identifier, licence_dir)}  {identifier}")
    except LicauditError as exc:
        raise _fatal(exc) from exc


def main() -> None:
    app()
