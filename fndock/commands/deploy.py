"""Deploy command: reconcile every function of a service file with the cluster."""

import asyncio
import logging
import sys

import yaml

from fndock.cluster import Cluster, load_cluster_config
from fndock.deploy import DeployParams, run_deploy
from fndock.service import load_service

logger = logging.getLogger(__name__)


def load_inputs(args):
    """Load the service file and cluster config, exiting with a message on bad input."""
    try:
        service = load_service(args.service_file)
        cluster = Cluster(load_cluster_config(args.kubeconfig))
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    return service, cluster


def handle_deploy(args):
    """Handle the deploy command."""
    service, cluster = load_inputs(args)
    params = DeployParams(
        force=args.force,
        hostname=args.hostname,
    )
    summary = asyncio.run(run_deploy(cluster, service, params))
    if summary.failed:
        sys.exit(1)


def register_deploy_command(subparsers):
    """Register the deploy subcommand."""
    parser = subparsers.add_parser("deploy", help="Deploy the functions of a service")
    parser.add_argument("service_file", nargs="?", default="serverless.yml", help="Service file (default: serverless.yml)")
    parser.add_argument("--force", action="store_true", help="Overwrite functions that differ from the service file")
    parser.add_argument("--hostname", default=None, help="Host used for HTTP routes without an explicit hostname")
    parser.add_argument("--kubeconfig", default=None, help="Kubeconfig path (default: $KUBECONFIG or ~/.kube/config)")
    parser.set_defaults(func=handle_deploy)
