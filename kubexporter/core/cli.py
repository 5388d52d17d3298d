"""
CLI Module

Command line interface for kubexporter providing:
- export: export all cluster resources (default command)
- encrypt / decrypt: batch field encryption of exported files
- update-owner-references (uor): repair owner reference UIDs
"""

import functools
import signal
import sys
import threading
from typing import Dict, Optional, Tuple

import click

from kubexporter import __version__
from kubexporter.common.interactive import read_key
from kubexporter.common.logger import get_logger, set_log_level
from kubexporter.core.config import ExportConfig, load_config
from kubexporter.core.env import env
from kubexporter.core.errors import ConfigurationError, KubexporterError
from kubexporter.export.client import KubernetesClusterAPI
from kubexporter.export.exporter import Exporter
from kubexporter.model import KindFields, parse_field_path
from kubexporter.render import file_results_table, repair_table
from kubexporter.transform.encrypted import decrypt_files, encrypt_files
from kubexporter.uor import OwnerReferenceRepair

logger = get_logger(__name__)

DEFAULT_ENCRYPT_FIELDS = {'Secret': [['data'], ['stringData']]}


def handle_errors(func):
    """Print fatal errors as '❌ cause' and exit with status 1"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KubexporterError as e:
            click.echo(f"❌ {e}", err=True)
            sys.exit(1)
    return wrapper


def _configure_logging(quiet: bool, verbose: bool) -> None:
    if verbose:
        set_log_level('DEBUG', 'console')
    elif quiet:
        set_log_level('WARNING', 'console')


def _load(ctx: click.Context) -> ExportConfig:
    config = load_config(ctx.obj.get('config_path')).apply_overrides(
        quiet=ctx.obj.get('quiet'),
        verbose=ctx.obj.get('verbose'),
    )
    _configure_logging(config.quiet, config.verbose)
    return config


def _cluster(ctx: click.Context):
    return KubernetesClusterAPI(ctx.obj.get('kubeconfig'), ctx.obj.get('context'))


def _aes_key(option: Optional[str]) -> str:
    key = option or env.aes_key or read_key()
    if not key:
        raise ConfigurationError("no aesKey provided")
    return key


def parse_field_options(values: Tuple[str, ...]) -> KindFields:
    """Parse repeated 'kind=path.to.field' options"""
    fields: Dict[str, list] = {}
    for value in values:
        kind, sep, path = value.partition('=')
        if not sep or not kind or not path:
            raise ConfigurationError(f"invalid field {value!r}, expected kind=path.to.field")
        try:
            fields.setdefault(kind, []).append(parse_field_path(path))
        except ValueError as e:
            raise ConfigurationError(f"invalid field {value!r}: {e}") from e
    return KindFields(fields)


@click.group(invoke_without_command=True)
@click.option('--config', '-c', 'config_path', type=click.Path(dir_okay=False),
              help='Export config file (YAML)')
@click.option('--quiet', '-q', is_flag=True, default=False, help='Only print warnings and errors')
@click.option('--verbose', '-v', is_flag=True, default=False, help='Print debug output')
@click.option('--kubeconfig', type=click.Path(dir_okay=False), help='Path to the kubeconfig file')
@click.option('--context', 'kube_context', help='Kubeconfig context to use')
@click.version_option(__version__, prog_name='kubexporter')
@click.pass_context
def cli(ctx, config_path, quiet, verbose, kubeconfig, kube_context):
    """Export all resources of a Kubernetes cluster to local files."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        config_path=config_path,
        quiet=quiet or None,
        verbose=verbose or None,
        kubeconfig=kubeconfig,
        context=kube_context,
    )
    _configure_logging(quiet, verbose)
    if ctx.invoked_subcommand is None:
        ctx.invoke(export)


@cli.command()
@click.option('--namespace', '-n', help='Only export this namespace')
@click.option('--output', '-o', 'output_format', type=click.Choice(['yaml', 'json']),
              help='Output format')
@click.option('--target', '-t', help='Export target directory')
@click.option('--worker', '-w', type=int, help='Number of parallel workers')
@click.option('--as-lists', is_flag=True, default=None, help='Export one list file per kind and namespace')
@click.option('--archive', is_flag=True, default=None, help='Create a tar.gz archive of the export')
@click.option('--clear-target', is_flag=True, default=None, help='Delete the target before exporting')
@click.option('--summary/--no-summary', default=None, help='Print a summary table')
@click.option('--progress', type=click.Choice(['bar', 'simple', 'none']), help='Progress mode')
@click.pass_context
@handle_errors
def export(ctx, namespace=None, output_format=None, target=None, worker=None,
           as_lists=None, archive=None, clear_target=None, summary=None, progress=None):
    """Export all resources (default command)."""
    config = _load(ctx).apply_overrides(
        namespace=namespace,
        output_format=output_format,
        target=target,
        worker=worker,
        as_lists=True if as_lists else None,
        archive=True if archive else None,
        clear_target=True if clear_target else None,
        summary=summary,
        progress=progress,
    )
    exporter = Exporter(config, _cluster(ctx))

    cancel = threading.Event()

    def _cancel(signum, frame):
        if not cancel.is_set():
            logger.warning("Cancelling export, waiting for running workers ...")
        cancel.set()

    previous = signal.signal(signal.SIGINT, _cancel)
    try:
        exporter.export(cancel_event=cancel)
    finally:
        signal.signal(signal.SIGINT, previous)

    if cancel.is_set():
        raise KubexporterError("export cancelled")


@cli.command()
@click.argument('files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--aes-key', help='The encryption key (or set KUBEXPORTER_AES_KEY)')
@click.option('--field', 'fields', multiple=True, metavar='KIND=PATH',
              help='Field to encrypt, e.g. Secret=data (repeatable)')
@click.pass_context
@handle_errors
def encrypt(ctx, files, aes_key, fields):
    """Encrypt fields in exported resource files."""
    if fields:
        kind_fields = parse_field_options(fields)
    else:
        configured = load_config(ctx.obj.get('config_path')).encrypted.kind_fields
        kind_fields = configured or KindFields.from_config(DEFAULT_ENCRYPT_FIELDS)

    results = encrypt_files(_aes_key(aes_key), kind_fields, files)
    click.echo(file_results_table(results, 'Encrypted Fields'))


@cli.command()
@click.argument('files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--aes-key', help='The decryption key (or set KUBEXPORTER_AES_KEY)')
@handle_errors
def decrypt(files, aes_key):
    """Decrypt encrypted fields in exported resource files."""
    results = decrypt_files(_aes_key(aes_key), files)
    click.echo(file_results_table(results, 'Decrypted Fields'))


@cli.command('update-owner-references')
@click.option('--target', '-t', help='Export target directory')
@click.option('--output', '-o', 'output_format', type=click.Choice(['yaml', 'json']),
              help='Format of the exported files')
@click.pass_context
@handle_errors
def update_owner_references(ctx, target, output_format):
    """Update owner reference UIDs of exported files from the current cluster."""
    config = _load(ctx).apply_overrides(target=target, output_format=output_format).validate()
    repair = OwnerReferenceRepair(_cluster(ctx), config.target, config.extension)
    results = repair.run()
    if results:
        click.echo(repair_table(results))
    else:
        logger.info("No owner references to update")


cli.add_command(update_owner_references, name='uor')


def main():
    """Main CLI entry point"""
    cli(obj={})


if __name__ == '__main__':
    main()
