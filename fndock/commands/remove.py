"""Remove command: delete the functions of a service and their ingress rule."""

import asyncio
import sys

from fndock.commands.deploy import load_inputs
from fndock.deploy import run_remove


def handle_remove(args):
    """Handle the remove command."""
    service, cluster = load_inputs(args)
    summary = asyncio.run(run_remove(cluster, service))
    if summary.failed:
        sys.exit(1)


def register_remove_command(subparsers):
    """Register the remove subcommand."""
    parser = subparsers.add_parser("remove", help="Remove the functions of a service")
    parser.add_argument("service_file", nargs="?", default="serverless.yml", help="Service file (default: serverless.yml)")
    parser.add_argument("--kubeconfig", default=None, help="Kubeconfig path (default: $KUBECONFIG or ~/.kube/config)")
    parser.set_defaults(func=handle_remove)
