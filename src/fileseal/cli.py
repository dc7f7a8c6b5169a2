"""sealctl: sign files and verify integrity tokens."""

from __future__ import annotations

import logging
import os
import sys
import time
import traceback
from pathlib import Path

import click

from fileseal import __version__
from fileseal.config import SealConfig
from fileseal.errors import SealError
from fileseal.keys import (
    DEFAULT_KEY_SIZE,
    generate_keypair,
    load_private_key,
    load_public_key,
    private_key_to_pem,
    public_key_to_pem,
)


def handle_error(error: Exception, debug: bool) -> None:
    """Handle errors with structured output.

    Args:
        error: The exception that occurred
        debug: Whether to show full traceback
    """
    if debug:
        traceback.print_exc()
    else:
        click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def write_token(path: Path, token: bytes) -> None:
    """Write token bytes to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.write(token)


def write_private_key(path: Path, pem: bytes) -> None:
    """Write key material readable by the owner only, from the moment of creation."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        # O_CREAT's mode does not apply to a file that already existed
        os.fchmod(f.fileno(), 0o600)
        f.write(pem)


def resolve(value: str | None, fallback: str | None, message: str) -> str:
    """Prefer an explicit option, then the configured value."""
    result = value or fallback
    if not result:
        raise click.UsageError(message)
    return result


@click.group()
@click.version_option(version=__version__, prog_name="sealctl")
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True, path_type=Path),
              help='YAML configuration file (default: FILESEAL_* environment variables)')
@click.option('--debug', is_flag=True, help='Enable debug mode (show full tracebacks and debug logs)')
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, debug: bool):
    """File integrity token generator and verifier."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    try:
        ctx.obj['config'] = SealConfig.from_yaml(config_path) if config_path else SealConfig.from_env()
    except (ValueError, SealError) as e:
        handle_error(e, debug)


@cli.command()
@click.option('--in', '-i', 'in_path', required=True, help='Input file name')
@click.option('--out', '-o', 'out_path', type=click.Path(path_type=Path),
              help='Output file name (defaults to ".integrity")')
@click.option('--key', '-k', 'key_path', help='Path to PEM-encoded signing key file (PKCS8/RSA)')
@click.option('--issuer', help='Integrity file issuer')
@click.pass_context
def sign(ctx: click.Context, in_path: str, out_path: Path | None, key_path: str | None, issuer: str | None):
    """Generate an integrity token for a single file.

    Examples:
      sealctl sign --in app.bin --key private.pem --issuer build-server
      sealctl sign --in app.bin --out app.bin.integrity --key private.pem --issuer ci
    """
    debug = ctx.obj.get('debug', False)
    config: SealConfig = ctx.obj['config']

    try:
        start = time.perf_counter()
        issuer = resolve(issuer, config.issuer, "must specify a non-empty issuer name")
        key_path = resolve(key_path, config.signing_key_path,
                           "must specify a valid path to a PEM-encoded PKCS8/RSA private key file")
        out_path = out_path or Path(config.token_path)

        key = load_private_key(key_path)

        click.echo(f"Generating integrity file for {in_path}")
        token = config.signer().sign_file(issuer, in_path, key)
        write_token(out_path, token)

        click.echo(f"Finished generating {out_path} in {time.perf_counter() - start:.3f}s")
    except click.UsageError:
        raise
    except Exception as e:
        handle_error(e, debug)


@cli.command(name="sign-manifest")
@click.argument('paths', nargs=-1, required=True)
@click.option('--out', '-o', 'out_path', type=click.Path(path_type=Path),
              help='Output file name (defaults to ".integrity")')
@click.option('--key', '-k', 'key_path', help='Path to PEM-encoded signing key file (PKCS8/RSA)')
@click.option('--issuer', help='Integrity file issuer')
@click.pass_context
def sign_manifest(ctx: click.Context, paths: tuple[str, ...], out_path: Path | None,
                  key_path: str | None, issuer: str | None):
    """Generate a manifest token covering several files.

    Paths are recorded exactly as given; duplicates are dropped.

    Examples:
      sealctl sign-manifest a.txt b.txt --key private.pem --issuer ci --out MANIFEST.integrity
    """
    debug = ctx.obj.get('debug', False)
    config: SealConfig = ctx.obj['config']

    try:
        start = time.perf_counter()
        issuer = resolve(issuer, config.issuer, "must specify a non-empty issuer name")
        key_path = resolve(key_path, config.signing_key_path,
                           "must specify a valid path to a PEM-encoded PKCS8/RSA private key file")
        out_path = out_path or Path(config.token_path)

        key = load_private_key(key_path)

        click.echo(f"Generating manifest for {len(paths)} path(s)")
        token = config.signer().sign_manifest(issuer, list(paths), key)
        write_token(out_path, token)

        click.echo(f"Finished generating {out_path} in {time.perf_counter() - start:.3f}s")
    except click.UsageError:
        raise
    except Exception as e:
        handle_error(e, debug)


@cli.command()
@click.option('--in', '-i', 'in_path', required=True, help='File to verify')
@click.option('--token', '-t', 'token_path', help='Integrity token file (defaults to ".integrity")')
@click.option('--key', '-k', 'key_path', help='Path to PEM-encoded public key file')
@click.option('--issuer', help='Expected issuer')
@click.pass_context
def verify(ctx: click.Context, in_path: str, token_path: str | None, key_path: str | None, issuer: str | None):
    """Verify a file against its integrity token.

    Exits with status 1 if the token or the file fails verification.

    Examples:
      sealctl verify --in app.bin --key public.pem --issuer build-server
    """
    debug = ctx.obj.get('debug', False)
    config: SealConfig = ctx.obj['config']

    try:
        issuer = resolve(issuer, config.issuer, "must specify a non-empty issuer name")
        key_path = resolve(key_path, config.verify_key_path,
                           "must specify a valid path to a PEM-encoded public key file")
        token_path = token_path or config.token_path

        key = load_public_key(key_path)

        click.echo(f"Verifying {in_path} against {token_path}...")
        config.verifier().verify_file(issuer, in_path, token_path, key)
        click.echo("Verification Result: ✅ VALID")
    except click.UsageError:
        raise
    except SealError as e:
        click.echo("Verification Result: ❌ INVALID")
        handle_error(e, debug)
    except Exception as e:
        handle_error(e, debug)


@cli.command(name="verify-manifest")
@click.option('--token', '-t', 'token_path', help='Manifest token file (defaults to ".integrity")')
@click.option('--root', '-r', default='', help='Directory containing the token file')
@click.option('--key', '-k', 'key_path', help='Path to PEM-encoded public key file')
@click.option('--issuer', help='Expected issuer')
@click.pass_context
def verify_manifest(ctx: click.Context, token_path: str | None, root: str, key_path: str | None, issuer: str | None):
    """Verify every file recorded in a manifest token.

    Recorded paths are resolved against the current directory.

    Examples:
      sealctl verify-manifest --token MANIFEST.integrity --key public.pem --issuer ci
    """
    debug = ctx.obj.get('debug', False)
    config: SealConfig = ctx.obj['config']

    try:
        issuer = resolve(issuer, config.issuer, "must specify a non-empty issuer name")
        key_path = resolve(key_path, config.verify_key_path,
                           "must specify a valid path to a PEM-encoded public key file")
        token_path = token_path or config.token_path

        key = load_public_key(key_path)

        click.echo(f"Verifying manifest {Path(root) / token_path}...")
        config.verifier().verify_manifest(issuer, token_path, root, key)
        click.echo("Verification Result: ✅ VALID")
    except click.UsageError:
        raise
    except SealError as e:
        click.echo("Verification Result: ❌ INVALID")
        handle_error(e, debug)
    except Exception as e:
        handle_error(e, debug)


@cli.command()
@click.option('--private-out', required=True, type=click.Path(path_type=Path), help='Where to write the private key')
@click.option('--public-out', required=True, type=click.Path(path_type=Path), help='Where to write the public key')
@click.option('--bits', type=int, default=DEFAULT_KEY_SIZE, show_default=True, help='RSA modulus size')
@click.pass_context
def keygen(ctx: click.Context, private_out: Path, public_out: Path, bits: int):
    """Generate an RSA key pair in PEM format."""
    debug = ctx.obj.get('debug', False)

    try:
        private_key, public_key = generate_keypair(bits)

        private_out.parent.mkdir(parents=True, exist_ok=True)
        write_private_key(private_out, private_key_to_pem(private_key))

        public_out.parent.mkdir(parents=True, exist_ok=True)
        public_out.write_bytes(public_key_to_pem(public_key))

        click.echo(f"Private key: {private_out}")
        click.echo(f"Public key:  {public_out}")
    except Exception as e:
        handle_error(e, debug)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == '__main__':
    main()
