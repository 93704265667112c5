"""
Stubdeck CLI

Command-line interface for serving Stubdeck projects headless.

Commands:
    serve       - Load a project file and serve its endpoints
    init        - Write an empty project file
    gen-cert    - Generate the ephemeral self-signed certificate

Examples:
    # Serve a project on its saved settings
    python stubdeck-cli.py serve project.json

    # Override port and serve over HTTPS with a throwaway certificate
    python stubdeck-cli.py serve project.json --port 8443 --tls --temp-cert

    # Create a new project
    python stubdeck-cli.py init project.json --name "Payments API"
"""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from .commands import Commands
from .common import AppConfig, setup_logging
from .errors import StubdeckError
from .models import ProjectData
from .project import read_project, write_project
from .state import AppState


def _load_config(args) -> AppConfig:
    if getattr(args, 'config', None):
        return AppConfig.from_yaml(args.config)
    return AppConfig()


def cmd_serve(args) -> int:
    """
    Serve a project until interrupted.

    Args:
        args: Parsed command-line arguments

    Returns:
        Process exit code
    """
    print("🎭 Stubdeck Mock Server")

    config = _load_config(args)
    setup_logging(config.log_level, verbose=args.verbose)
    state = AppState(config)
    commands = Commands(state)

    project = read_project(args.project)
    commands.set_project_state(project)
    settings = state.settings.get()

    port = args.port if args.port is not None else settings.port
    bind_addr = args.bind or settings.bind_addr
    enable_tls = args.tls or settings.enable_tls

    if args.temp_cert:
        tls_config = commands.generate_temp_certificate()
        print(f"🔐 Temporary certificate: {tls_config.cert_path}")

    print(f"   Project: {project.name}")
    print(f"   Endpoints loaded: {len(project.endpoints)}")

    message = commands.start_server(port, bind_addr, enable_tls)
    print(f"🚀 {message}")
    print("   Press Ctrl+C to stop")

    stop_event = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop_event.set())
    if hasattr(signal, 'SIGTERM'):
        signal.signal(signal.SIGTERM, lambda *_: stop_event.set())
    stop_event.wait()

    print()
    print(f"🛑 {commands.stop_server()}")
    state.shutdown()
    return 0


def cmd_init(args) -> int:
    data = ProjectData(name=args.name)
    path = write_project(args.project, data)
    print(f"✅ Created project '{args.name}' at {path}")
    return 0


def cmd_gen_cert(args) -> int:
    config = _load_config(args)
    # Keep the files: the user asked for them explicitly
    config.cleanup_on_exit = False
    state = AppState(config)
    tls_config = Commands(state).generate_temp_certificate()
    print(f"🔐 Certificate: {tls_config.cert_path}")
    print(f"🔑 Key:         {tls_config.key_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Stubdeck - runtime-defined HTTP mock server",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Serve a project file')
    serve.add_argument('project', help='Path to project JSON file')
    serve.add_argument('--port', type=int, default=None, help='Override project port')
    serve.add_argument('--bind', default=None, help='Override bind address')
    serve.add_argument('--tls', action='store_true', help='Serve HTTPS')
    serve.add_argument('--temp-cert', action='store_true',
                       help='Generate a self-signed localhost certificate before starting')
    serve.add_argument('--config', default=None, help='YAML configuration file')
    serve.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    serve.set_defaults(func=cmd_serve)

    init = subparsers.add_parser('init', help='Create an empty project file')
    init.add_argument('project', help='Path of the project file to create')
    init.add_argument('--name', default='Untitled', help='Project name')
    init.set_defaults(func=cmd_init)

    gen_cert = subparsers.add_parser('gen-cert', help='Generate ephemeral TLS certificate')
    gen_cert.add_argument('--config', default=None, help='YAML configuration file')
    gen_cert.set_defaults(func=cmd_gen_cert)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the Stubdeck CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except StubdeckError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
