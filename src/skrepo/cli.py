"""skrepo CLI — package, publish and install skills from the terminal.

Commands:
    init        Write the global config (repository settings)
    validate    Check a skill directory
    package     Build a .skill archive from a skill directory
    list        Show the skills defined in skills.json
    install     Install a skill (local repo -> remote repo -> GitHub)
    repo        Upload, download, install, delete and list repository skills
    local       Inspect or clear the local repository
    cache       Inspect or clear the skill cache
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .agent import parse_agent_flag, resolve_install_dirs
from .cache import SkillCache
from .config import Config, LocalRepositoryConfig, RepositoryConfig, RuntimeContext, write_global_config
from .errors import ConfigError, SkrepoError
from .install import extract_skill, install_from_file
from .local_storage import FilesystemStore
from .package import package_skill
from .repository import Repository
from .resolver import InstallSource, SkillResolver
from .validate import validate_skill

console = Console()


def _fail(action: str, exc: Exception) -> NoReturn:
    console.print(f"[red]{action} failed:[/red] {exc}")
    sys.exit(1)


def _remote_repository(ctx: RuntimeContext) -> Repository:
    if ctx.repository is None:
        raise ConfigError("No repository configured. Run 'skrepo init' or add one to skills.json.")
    return Repository.from_config(ctx.repository, ctx.home)


def _print_index(title: str, repo: Repository, skill: Optional[str] = None) -> None:
    index = repo.list(skill)
    if not index.skills:
        console.print("[dim]No skills in repository.[/dim]")
        return

    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Latest")
    table.add_column("Versions", style="green")
    table.add_column("Description")

    for entry in index.skills:
        versions = entry.sorted_versions()
        desc = entry.description
        table.add_row(
            entry.name,
            versions[0] if versions else "-",
            ", ".join(versions) or "-",
            desc[:60] + ("..." if len(desc) > 60 else ""),
        )

    console.print(table)


@click.group()
@click.version_option(__version__, prog_name="skrepo")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Path to skills.json (default: ./skills.json, then the global config).")
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """skrepo — versioned skill repository.

    Package skills, publish them to a local directory or an S3 bucket,
    and install them for your coding agents.
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )
    try:
        ctx.obj = RuntimeContext.from_environment(config_path)
    except ConfigError as exc:
        _fail("Config", exc)


@main.command()
@click.option("--bucket", default=None, help="S3 bucket holding the remote repository.")
@click.option("--region", default="us-east-1", show_default=True, help="S3 region.")
@click.option("--endpoint", default=None, help="S3-compatible endpoint URL.")
@click.option("--local-path", default=None, help="Local repository directory.")
@click.option("--cache", is_flag=True, help="Use the local directory as a cache for the bucket.")
@click.option("--force", is_flag=True, help="Overwrite an existing global config.")
@click.pass_obj
def init(
    ctx: RuntimeContext,
    bucket: Optional[str],
    region: str,
    endpoint: Optional[str],
    local_path: Optional[str],
    cache: bool,
    force: bool,
) -> None:
    """Write the global config with repository settings."""
    repository = RepositoryConfig(
        bucket_name=bucket,
        region=region,
        endpoint=endpoint,
        local=LocalRepositoryConfig(path=local_path, cache=cache),
    )
    try:
        path = write_global_config(ctx.home, Config(repository=repository), force=force)
    except ConfigError as exc:
        _fail("Init", exc)

    console.print(f"\n[green]Config written:[/green] {path}")
    console.print(f"  Local repository: {repository.local_repo_path(ctx.home)}")
    if bucket:
        mode = " (local cache enabled)" if repository.local_is_cache() else ""
        console.print(f"  Remote bucket:    s3://{bucket}{mode}")


@main.command()
@click.argument("skill_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
def validate(skill_dir: Path) -> None:
    """Check a skill directory's SKILL.md and layout."""
    result = validate_skill(skill_dir)

    for warning in result.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")
    for error in result.errors:
        console.print(f"[red]error:[/red] {error}")

    if not result.valid:
        console.print(f"\n[red]Invalid skill:[/red] {skill_dir}")
        sys.exit(1)
    console.print(f"[green]Valid skill:[/green] {skill_dir}")


@main.command()
@click.argument("skill_dir", type=click.Path(path_type=Path))
@click.option("--output", "-o", "output_dir", type=click.Path(path_type=Path),
              default=Path("dist"), show_default=True, help="Output directory.")
def package(skill_dir: Path, output_dir: Path) -> None:
    """Build a .skill archive from a skill directory."""
    try:
        result = package_skill(skill_dir, output_dir)
    except (OSError, ValueError) as exc:
        _fail("Package", exc)

    for warning in result.validation.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")
    console.print(f"\n[green]Packaged:[/green] {result.output_path}")
    console.print(f"  Files: {result.files_included}")


@main.command("list")
@click.pass_obj
def list_skills(ctx: RuntimeContext) -> None:
    """Show the skills defined in skills.json."""
    skills = ctx.config.skills
    if not skills:
        console.print("[dim]No skills configured.[/dim]")
        return

    table = Table(title="Configured Skills")
    table.add_column("Name", style="cyan")
    table.add_column("llms.txt URL", style="green")
    table.add_column("Description")

    for s in skills:
        desc = s.description[:60] + ("..." if len(s.description) > 60 else "")
        table.add_row(s.name, s.llms_txt_url or "-", desc)

    console.print(table)


@main.command()
@click.argument("name")
@click.option("--version", "version", default=None, help="Version to install (default: latest).")
@click.option("--local", "only_local", is_flag=True, help="Only use the local repository.")
@click.option("--remote", "only_remote", is_flag=True, help="Only use the remote repository.")
@click.option("--github", "only_github", is_flag=True, help="Only use GitHub releases.")
@click.option("--repo", "github_repo", default=None, help="GitHub owner/repo for release downloads.")
@click.option("--file", "skill_file", type=click.Path(path_type=Path), default=None,
              help="Install from a local .skill file instead.")
@click.option("--agent", default=None, help="claude, opencode, codex, kiro or all (default: detect).")
@click.option("--install-dir", type=click.Path(path_type=Path), default=None,
              help="Install into this directory, ignoring --agent.")
@click.option("--global", "global_", is_flag=True, help="Install into the user-level agent directories.")
@click.pass_obj
def install(
    ctx: RuntimeContext,
    name: str,
    version: Optional[str],
    only_local: bool,
    only_remote: bool,
    only_github: bool,
    github_repo: Optional[str],
    skill_file: Optional[Path],
    agent: Optional[str],
    install_dir: Optional[Path],
    global_: bool,
) -> None:
    """Install a skill, trying the local repo, then the remote repo, then GitHub."""
    pinned = [
        src for src, flag in (
            (InstallSource.LOCAL, only_local),
            (InstallSource.REMOTE, only_remote),
            (InstallSource.FALLBACK, only_github),
        ) if flag
    ]
    if len(pinned) > 1:
        _fail("Install", ValueError("--local, --remote and --github are mutually exclusive"))

    try:
        target = parse_agent_flag(agent)
    except ValueError as exc:
        _fail("Install", exc)
    dirs = resolve_install_dirs(target, install_dir, global_, ctx.project_root, ctx.user_home)

    try:
        if skill_file is not None:
            results = [install_from_file(skill_file, d) for d in dirs]
            origin = str(skill_file)
        else:
            resolver = SkillResolver.from_context(ctx, github_repo)
            resolved = resolver.resolve(name, version, only=pinned[0] if pinned else None)
            results = [extract_skill(resolved.data, d) for d in dirs]
            origin = f"{resolved.source.value} ({resolved.version})"
    except (SkrepoError, ValueError) as exc:
        _fail("Install", exc)

    for result in results:
        console.print(f"[green]Installed:[/green] {result.skill_name} -> {result.install_path}")
        console.print(f"  Files: {result.files_extracted}")
    console.print(f"  Source: {origin}")


# -- repo ---------------------------------------------------------------------


@main.group()
def repo() -> None:
    """Work with the configured skill repository."""


@repo.command("upload")
@click.argument("name")
@click.option("--version", "version", required=True, help="Version to publish.")
@click.option("--skill-file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="Packaged skill (default: dist/<name>.skill).")
@click.option("--changelog", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="CHANGELOG.md to publish alongside.")
@click.option("--source-dir", type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=None, help="Documentation source directory to archive.")
@click.option("--description", default=None, help="Index description (default: from skills.json).")
@click.option("--source-url", default=None, help="Documentation URL (default: from skills.json).")
@click.pass_obj
def repo_upload(
    ctx: RuntimeContext,
    name: str,
    version: str,
    skill_file: Optional[Path],
    changelog: Optional[Path],
    source_dir: Optional[Path],
    description: Optional[str],
    source_url: Optional[str],
) -> None:
    """Publish a packaged skill version."""
    known = ctx.config.find_skill(name)
    if description is None:
        description = known.description if known else ""
    if source_url is None:
        source_url = known.llms_txt_url if known else ""
    skill_file = skill_file or Path("dist") / f"{name}.skill"

    try:
        repository = _remote_repository(ctx)
        key = repository.upload_file(
            name, version, description, source_url, skill_file,
            changelog_file=changelog, source_dir=source_dir,
        )
    except (SkrepoError, FileNotFoundError) as exc:
        _fail("Upload", exc)

    console.print(f"[green]Uploaded:[/green] {name} v{version}")
    console.print(f"  Key: {repository.store.describe()}/{key}")


@repo.command("download")
@click.argument("name")
@click.option("--version", "version", default=None, help="Version (default: latest).")
@click.option("--output", "-o", "output_dir", type=click.Path(path_type=Path),
              default=Path("."), show_default=True, help="Output directory.")
@click.pass_obj
def repo_download(ctx: RuntimeContext, name: str, version: Optional[str], output_dir: Path) -> None:
    """Download a skill archive."""
    try:
        path, resolved = _remote_repository(ctx).download_to(name, version, output_dir)
    except SkrepoError as exc:
        _fail("Download", exc)
    console.print(f"[green]Downloaded:[/green] {name} v{resolved} -> {path}")


@repo.command("install")
@click.argument("name")
@click.option("--version", "version", default=None, help="Version (default: latest).")
@click.option("--install-dir", type=click.Path(path_type=Path), default=None,
              help="Install directory (default: .claude/skills).")
@click.pass_obj
def repo_install(ctx: RuntimeContext, name: str, version: Optional[str], install_dir: Optional[Path]) -> None:
    """Install a skill straight from the repository."""
    target = install_dir or ctx.project_root / ".claude" / "skills"
    try:
        result = _remote_repository(ctx).install(name, version, target)
    except (SkrepoError, ValueError) as exc:
        _fail("Install", exc)
    console.print(f"[green]Installed:[/green] {result.skill_name} -> {result.install_path}")


@repo.command("delete")
@click.argument("name")
@click.option("--version", "version", default=None, help="Delete only this version.")
@click.option("--yes", "-y", is_flag=True, help="Confirm the deletion.")
@click.pass_obj
def repo_delete(ctx: RuntimeContext, name: str, version: Optional[str], yes: bool) -> None:
    """Delete a skill version, or every version of a skill."""
    label = f"{name} v{version}" if version else name
    if not yes:
        target = label if version else f"{name} (all versions)"
        console.print(
            f"[yellow]This will permanently delete {target} from the repository.[/yellow] "
            "Use --yes to confirm."
        )
        sys.exit(1)

    try:
        existed = _remote_repository(ctx).delete(name, version)
    except SkrepoError as exc:
        _fail("Delete", exc)

    if existed:
        console.print(f"[green]Deleted:[/green] {label}")
    else:
        console.print(f"[yellow]Not in index:[/yellow] {label}")


@repo.command("list")
@click.option("--skill", default=None, help="Only show this skill.")
@click.pass_obj
def repo_list(ctx: RuntimeContext, skill: Optional[str]) -> None:
    """List skills in the repository."""
    try:
        _print_index("Repository Skills", _remote_repository(ctx), skill)
    except SkrepoError as exc:
        _fail("List", exc)


# -- local --------------------------------------------------------------------


@main.group()
def local() -> None:
    """Inspect the local repository."""


@local.command("list")
@click.pass_obj
def local_list(ctx: RuntimeContext) -> None:
    """List skills in the local repository."""
    path = ctx.local_repo_path()
    repository = Repository.local(path)
    try:
        if repository.list().skills:
            _print_index(f"Local Skills ({path})", repository)
            return
        # a cache directory has payloads but no index
        keys = [k for k in repository.store.list("skills/") if k.endswith(".skill")]
    except SkrepoError as exc:
        _fail("List", exc)

    if not keys:
        console.print(f"[dim]No skills in local repository ({path}).[/dim]")
        return
    console.print(f"\n[bold]Local repository skills[/bold] ({path})")
    for key in keys:
        console.print(f"  {key}")


@local.command("clear")
@click.option("--skill", default=None, help="Only clear this skill (default: all).")
@click.pass_obj
def local_clear(ctx: RuntimeContext, skill: Optional[str]) -> None:
    """Delete skills from the local repository."""
    repository = Repository.local(ctx.local_repo_path())
    leftovers = SkillCache(repository.store)
    try:
        indexed = [entry.name for entry in repository.list(skill).skills]
        for name in indexed:
            repository.delete(name)
        if skill is not None:
            leftovers.remove_all(skill)
        else:
            leftovers.clear()
    except SkrepoError as exc:
        _fail("Clear", exc)

    target = skill if skill is not None else "all skills"
    console.print(f"[green]Cleared:[/green] {target} from {ctx.local_repo_path()}")


# -- cache --------------------------------------------------------------------


@main.group()
def cache() -> None:
    """Inspect the skill cache."""


def _cache(ctx: RuntimeContext) -> SkillCache:
    if ctx.repository is None or not ctx.repository.local_is_cache():
        raise ConfigError(
            "Local repository is not a cache. Set repository.local.cache "
            "and a bucket_name to enable caching."
        )
    return SkillCache(FilesystemStore(ctx.local_repo_path()))


@cache.command("list")
@click.pass_obj
def cache_list(ctx: RuntimeContext) -> None:
    """List cached skill versions."""
    try:
        skill_cache = _cache(ctx)
        entries = skill_cache.list_cached()
    except SkrepoError as exc:
        _fail("List", exc)

    if not entries:
        console.print("[dim]Cache is empty.[/dim]")
        return

    table = Table(title="Cached Skills")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Source", style="green")
    table.add_column("Cached At")

    for name, version in entries:
        meta = skill_cache.metadata(name, version)
        table.add_row(name, version, meta.source if meta else "-", meta.cached_at if meta else "-")

    console.print(table)


@cache.command("clear")
@click.pass_obj
def cache_clear(ctx: RuntimeContext) -> None:
    """Remove every cached skill version."""
    try:
        count = _cache(ctx).clear()
    except SkrepoError as exc:
        _fail("Clear", exc)
    console.print(f"[green]Cleared:[/green] {count} cached version(s)")


if __name__ == "__main__":
    main()
