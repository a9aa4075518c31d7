"""CLI interface for sitepush."""

import logging
from typing import Any, NoReturn, Optional

import click

from . import __version__
from .cli_progress import UploadProgressDisplay
from .config import ConnectionConfig, load_connection_config
from .exceptions import SitePushConfigError
from .hasher import DEFAULT_CACHE_BUSTER_MARKER, ContentHasher
from .output import OutputFormatter
from .sync import DirectoryScanner, ManifestStatus, SyncEngine, SyncOperations
from .transport import SftpTransport
from .utils import format_size

logger = logging.getLogger(__name__)


def _fail(out: OutputFormatter, message: str) -> NoReturn:
    out.error(message)
    raise click.exceptions.Exit(1)


def _load_config(
    ctx: Any, out: OutputFormatter, input_dir: Optional[str]
) -> ConnectionConfig:
    try:
        return load_connection_config(
            input_dir=input_dir, env_file=ctx.obj.get("env_file")
        )
    except SitePushConfigError as e:
        _fail(out, f"Configuration error: {e}")


def _connect(
    out: OutputFormatter, transport: SftpTransport, config: ConnectionConfig
) -> None:
    if not transport.connect(config):
        _fail(out, "Failed to connect to SFTP server")
    out.info(f"Connected to {config.host} as {config.username}")


@click.group()
@click.option(
    "--env-file",
    "-e",
    type=click.Path(dir_okay=False),
    default=None,
    help="Read settings from this .env file (default: ./.env if present)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__, prog_name="sitepush")
@click.pass_context
def main(
    ctx: Any,
    env_file: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """sitepush - Publish a generated static site to an SFTP server."""
    # Store settings in context for subcommands to access
    ctx.ensure_object(dict)
    ctx.obj["env_file"] = env_file
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet, verbose=verbose)
    ctx.obj["verbose"] = verbose

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("sitepush").setLevel(logging.DEBUG)
        logging.getLogger("paramiko").setLevel(logging.INFO)
    else:
        # Set default logging level to WARNING to suppress debug/info messages
        logging.basicConfig(level=logging.WARNING)
        logging.getLogger("paramiko").setLevel(logging.WARNING)


@main.command()
@click.option(
    "--input",
    "-i",
    "input_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory to upload (default: OUTPUT_DIR from .env)",
)
@click.option(
    "--dry-run",
    "--test",
    "dry_run",
    is_flag=True,
    help="Connect and show what would be uploaded and deleted, without changes",
)
@click.option(
    "--secure-manifest/--no-secure-manifest",
    default=None,
    help="Deny web access to the manifest via .htaccess "
    "(default: SITEPUSH_SECURE_MANIFEST)",
)
@click.option(
    "--exclude",
    "-x",
    multiple=True,
    help="Glob pattern of local files to leave out (repeatable)",
)
@click.option("--no-progress", is_flag=True, help="Disable progress bar")
@click.pass_context
def upload(
    ctx: Any,
    input_dir: Optional[str],
    dry_run: bool,
    secure_manifest: Optional[bool],
    exclude: tuple[str, ...],
    no_progress: bool,
) -> None:
    """Upload the generated site and remove files deleted locally.

    Every local file is uploaded. Remote files recorded in the previous
    manifest that no longer exist locally are deleted first. The manifest is
    then rewritten with the current file list.

    Examples:
        sitepush upload                     # Publish OUTPUT_DIR
        sitepush upload -i public --dry-run # Preview the changes
        sitepush upload -x "*.map"          # Leave out source maps
    """
    out: OutputFormatter = ctx.obj["out"]
    config = _load_config(ctx, out, input_dir)
    if secure_manifest is None:
        secure_manifest = config.secure_manifest

    if dry_run:
        out.info("Running in TEST mode (Dry Run)")
    else:
        out.info("Starting SFTP upload...")

    transport = SftpTransport()
    try:
        _connect(out, transport, config)

        if dry_run:
            if not transport.file_exists(config.remote_path):
                out.info(
                    f"Remote directory {config.remote_path} does not exist yet "
                    "(would be created)"
                )
        elif not transport.ensure_remote_directory(config.remote_path):
            _fail(out, "Failed to create/verify remote directory")

        engine = SyncEngine(
            transport,
            out,
            manifest_name=config.manifest_name,
            ignore_patterns=list(exclude),
        )
        if dry_run or no_progress or out.quiet:
            result = engine.sync_site(
                config.input_dir,
                config.remote_path,
                dry_run=dry_run,
                secure_manifest=secure_manifest,
            )
        else:
            with UploadProgressDisplay(out.console) as display:
                result = engine.sync_site(
                    config.input_dir,
                    config.remote_path,
                    secure_manifest=secure_manifest,
                    progress_callback=display.update,
                )
    except ValueError as e:
        logger.error(f"Upload failed: {e}")
        _fail(out, f"Error: {e}")
    finally:
        transport.disconnect()

    if out.json_output:
        out.output_json(result.to_dict())

    if result.error_count > 0:
        ctx.exit(1)


@main.command()
@click.option(
    "--input",
    "-i",
    "input_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Local site directory (default: OUTPUT_DIR from .env)",
)
@click.pass_context
def check(ctx: Any, input_dir: Optional[str]) -> None:
    """Verify configuration and connectivity without changing anything.

    Connects to the server and reports whether the remote directory and the
    manifest exist.
    """
    out: OutputFormatter = ctx.obj["out"]
    config = _load_config(ctx, out, input_dir)

    local_files = DirectoryScanner().scan_local(config.input_dir)
    local_size = sum(f.size for f in local_files)

    transport = SftpTransport()
    try:
        _connect(out, transport, config)
        remote_exists = transport.file_exists(config.remote_path)
        if remote_exists:
            manifest = SyncOperations(transport).load_manifest(
                config.remote_path, config.manifest_name
            )
        else:
            manifest = None
    finally:
        transport.disconnect()

    if manifest is None:
        manifest_info = "n/a (remote directory missing)"
    elif manifest.status == ManifestStatus.LOADED:
        manifest_info = f"{len(manifest.paths)} file(s) recorded"
    else:
        manifest_info = manifest.status.value

    if out.json_output:
        out.output_json(
            {
                "config": config.to_dict(),
                "local_files": len(local_files),
                "local_size": local_size,
                "remote_directory_exists": remote_exists,
                "manifest_status": manifest.status.value if manifest else None,
                "manifest_entries": len(manifest.paths) if manifest else 0,
            }
        )
        return

    out.print_summary(
        "Connection Check",
        [
            ("Server", f"{config.username}@{config.host}:{config.port}"),
            ("Auth methods", ", ".join(config.auth_methods)),
            (
                "Local directory",
                f"{config.input_dir} "
                f"({len(local_files)} files, {format_size(local_size)})",
            ),
            (
                "Remote directory",
                f"{config.remote_path} "
                f"({'exists' if remote_exists else 'missing'})",
            ),
            ("Manifest", manifest_info),
        ],
    )


@main.command(name="hash")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False),
)
@click.option(
    "--marker",
    default=DEFAULT_CACHE_BUSTER_MARKER,
    show_default=True,
    help="Cache-busting parameter name to normalize in text files",
)
@click.pass_context
def hash_files(ctx: Any, files: tuple[str, ...], marker: str) -> None:
    """Print content hashes that ignore cache-busting tokens.

    Text files (html, css, js, ...) are hashed with every MARKER=<digits>
    token normalized, so rebuilding an unchanged site yields the same hashes.
    """
    out: OutputFormatter = ctx.obj["out"]
    hasher = ContentHasher(marker=marker)

    digests = {path: hasher.calculate_hash(path) for path in files}

    if out.json_output:
        out.output_json(digests)
    else:
        for path, digest in digests.items():
            click.echo(f"{digest or '-'}  {path}")

    unreadable = [path for path, digest in digests.items() if not digest]
    if unreadable:
        _fail(out, f"Could not read {len(unreadable)} file(s)")


if __name__ == "__main__":
    main()
