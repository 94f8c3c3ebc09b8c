# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the Systemique command-line interface."""

import argparse
import logging
import sys
from pathlib import Path
from urllib.parse import parse_qsl, urlsplit

from yachalk import chalk

from systemique.codecs.drawio import export_drawio, import_drawio
from systemique.codecs.errors import CodecError
from systemique.codecs.json_codec import Envelope, read_document, write_document
from systemique.codecs.share_link import PARAM_NAME, build_share_url, decode_share_payload, encode_share_payload
from systemique.logging_config import setup_logging
from systemique.model.registries import InterfaceTypeRegistry
from systemique.validation.checks import check_system
from systemique.validation.connection import validate_connection_attempt
from systemique.workspace.config import (
    CONFIG_FILE_NAME,
    Companions,
    WorkspaceConfig,
    WorkspaceConfigError,
    load_companions,
    load_workspace_config,
)

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the Systemique CLI."""
    parser = argparse.ArgumentParser(
        prog="systemique",
        description="Systemique - hierarchical block diagrams with typed interfaces",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Workspace configuration file (default: ./{CONFIG_FILE_NAME} if present)",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Check the consistency of a saved system",
        description="Report duplicate ids, dangling references and incompatible connections.",
    )
    check_parser.add_argument("file", help="System document (JSON)")

    # connect subcommand
    connect_parser = subparsers.add_parser(
        "connect",
        help="Check whether two interfaces may be connected",
        description="Run the connection checks for a proposed source and target interface.",
    )
    connect_parser.add_argument("file", help="System document (JSON)")
    connect_parser.add_argument("source_component", help="Id of the source component")
    connect_parser.add_argument("source_interface", help="Id of the source (output) interface")
    connect_parser.add_argument("target_component", help="Id of the target component")
    connect_parser.add_argument("target_interface", help="Id of the target (input) interface")

    # export-drawio subcommand
    export_parser = subparsers.add_parser(
        "export-drawio",
        help="Export a system to a draw.io diagram",
        description="Write the system as an uncompressed draw.io XML file.",
    )
    export_parser.add_argument("file", help="System document (JSON)")
    export_parser.add_argument("-o", "--output", help="Output path (default: FILE with .drawio suffix)")

    # import-drawio subcommand
    import_parser = subparsers.add_parser(
        "import-drawio",
        help="Import a system from a draw.io diagram",
        description="Read a draw.io diagram exported by Systemique and write a JSON document.",
    )
    import_parser.add_argument("file", help="draw.io file")
    import_parser.add_argument("-o", "--output", help="Output path (default: FILE with .json suffix)")
    import_parser.add_argument("--name", help="Name for the imported system (default: diagram name)")

    # share subcommand
    share_parser = subparsers.add_parser(
        "share",
        help="Encode a system as a share-link token",
        description="Print a compressed URL-safe token, or a full URL when --base-url is given.",
    )
    share_parser.add_argument("file", help="System document (JSON)")
    share_parser.add_argument("--base-url", help="Base URL to append the token to")

    # unshare subcommand
    unshare_parser = subparsers.add_parser(
        "unshare",
        help="Decode a share-link token or URL",
        description="Decode a share-link token (or a URL carrying one) into a JSON document.",
    )
    unshare_parser.add_argument("value", help="Token or share URL")
    unshare_parser.add_argument("-o", "--output", required=True, help="Output path for the JSON document")

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    try:
        config = _load_config(args)
    except WorkspaceConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    setup_logging(logging.DEBUG if args.verbose else (config.log_level or logging.WARNING))

    handlers = {
        "check": _cmd_check,
        "connect": _cmd_connect,
        "export-drawio": _cmd_export_drawio,
        "import-drawio": _cmd_import_drawio,
        "share": _cmd_share,
        "unshare": _cmd_unshare,
    }
    handler = handlers.get(args.command)
    if handler is None:
        return 0
    logger.debug("Running %r with config %s", args.command, config)
    try:
        return handler(args, config)
    except (CodecError, WorkspaceConfigError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _load_config(args: argparse.Namespace) -> WorkspaceConfig:
    if args.config is not None:
        return load_workspace_config(Path(args.config))
    default = Path.cwd() / CONFIG_FILE_NAME
    if default.exists():
        return load_workspace_config(default)
    return WorkspaceConfig()


def _config_root(args: argparse.Namespace) -> Path:
    return Path(args.config).resolve().parent if args.config is not None else Path.cwd()


def _companions_for(envelope: Envelope, args: argparse.Namespace, config: WorkspaceConfig) -> Companions:
    """Combine the workspace companions with those shipped in the document.

    Interface types and rules carried by the document take precedence over
    the workspace ones.
    """
    companions = load_companions(config, _config_root(args))
    if envelope.interface_types is not None:
        companions.types = InterfaceTypeRegistry(envelope.interface_types)
    if envelope.interface_rules is not None:
        companions.rules = envelope.interface_rules
    return companions


def _read_input(path_arg: str) -> Envelope | None:
    path = Path(path_arg)
    if not path.exists():
        print(f"Error: file '{path}' does not exist.", file=sys.stderr)
        return None
    return read_document(path)


def _cmd_check(args: argparse.Namespace, config: WorkspaceConfig) -> int:
    """Handle the check subcommand."""
    envelope = _read_input(args.file)
    if envelope is None:
        return 1
    companions = _companions_for(envelope, args, config)

    system = envelope.system
    print(
        f"Checking system '{system.name}' "
        f"({len(system.components)} component(s), {len(system.connections)} connection(s))..."
    )
    result = check_system(system, rules=companions.rules, matrix=companions.matrix, types=companions.types)
    for warning in result.warnings:
        print(chalk.yellow(f"Warning: {warning.message}"))
    for error in result.errors:
        print(chalk.red(f"Error: {error.message}"), file=sys.stderr)

    if result.has_errors:
        return 1

    print(chalk.green("No issues found."))
    return 0


def _cmd_connect(args: argparse.Namespace, config: WorkspaceConfig) -> int:
    """Handle the connect subcommand."""
    envelope = _read_input(args.file)
    if envelope is None:
        return 1
    companions = _companions_for(envelope, args, config)

    system = envelope.system
    source = system.get_component(args.source_component)
    target = system.get_component(args.target_component)
    if source is None or target is None:
        missing = args.source_component if source is None else args.target_component
        print(f"Error: component '{missing}' not found in system '{system.name}'.", file=sys.stderr)
        return 1

    result = validate_connection_attempt(
        source,
        args.source_interface,
        target,
        args.target_interface,
        rules=companions.rules,
        matrix=companions.matrix,
    )
    if not result.valid:
        print(chalk.red(f"Rejected: {result.reason}"))
        return 1
    print(chalk.green("Connection allowed."))
    return 0


def _cmd_export_drawio(args: argparse.Namespace, config: WorkspaceConfig) -> int:
    """Handle the export-drawio subcommand."""
    envelope = _read_input(args.file)
    if envelope is None:
        return 1
    output = Path(args.output) if args.output else Path(args.file).with_suffix(".drawio")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(export_drawio(envelope.system), encoding="utf-8")
    print(f"Exported '{envelope.system.name}' to '{output}'.")
    return 0


def _cmd_import_drawio(args: argparse.Namespace, config: WorkspaceConfig) -> int:
    """Handle the import-drawio subcommand."""
    path = Path(args.file)
    if not path.exists():
        print(f"Error: file '{path}' does not exist.", file=sys.stderr)
        return 1
    system = import_drawio(path.read_text(encoding="utf-8"))
    if args.name:
        system.name = args.name
    output = Path(args.output) if args.output else path.with_suffix(".json")
    write_document(Envelope(system=system), output)
    print(
        f"Imported '{system.name}' ({len(system.components)} component(s), "
        f"{len(system.connections)} connection(s)) to '{output}'."
    )
    return 0


def _cmd_share(args: argparse.Namespace, config: WorkspaceConfig) -> int:
    """Handle the share subcommand."""
    envelope = _read_input(args.file)
    if envelope is None:
        return 1
    token = encode_share_payload(envelope)
    print(build_share_url(args.base_url, token) if args.base_url else token)
    return 0


def _cmd_unshare(args: argparse.Namespace, config: WorkspaceConfig) -> int:
    """Handle the unshare subcommand."""
    value = args.value.strip()
    if "?" in value or "://" in value:
        value = dict(parse_qsl(urlsplit(value).query)).get(PARAM_NAME, "").strip()
        if not value:
            print(f"Error: URL has no '{PARAM_NAME}' parameter.", file=sys.stderr)
            return 1
    envelope = decode_share_payload(value)
    output = Path(args.output)
    write_document(envelope, output)
    print(f"Decoded '{envelope.system.name}' to '{output}'.")
    return 0
