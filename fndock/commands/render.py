"""Render command: print the Function manifests a deploy would submit."""

import logging
import sys

import yaml

from fndock.deploy import render
from fndock.service import load_service

logger = logging.getLogger(__name__)


def handle_render(args):
    """Handle the render command."""
    try:
        manifests = render(load_service(args.service_file))
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    logger.info(yaml.safe_dump_all(manifests, sort_keys=False).rstrip())


def register_render_command(subparsers):
    """Register the render subcommand."""
    parser = subparsers.add_parser("render", help="Print the manifests of a service without deploying")
    parser.add_argument("service_file", nargs="?", default="serverless.yml", help="Service file (default: serverless.yml)")
    parser.set_defaults(func=handle_render)
