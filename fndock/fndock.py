#!/usr/bin/env python3
"""Function deploy tools: CLI entrypoint."""

import argparse

from fndock.commands.deploy import register_deploy_command
from fndock.commands.remove import register_remove_command
from fndock.commands.render import register_render_command
from fndock.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(description="Deploy functions to a Kubeless cluster")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show rollout progress details")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_deploy_command(subparsers)
    register_remove_command(subparsers)
    register_render_command(subparsers)

    args = parser.parse_args()
    setup_cli_logging(verbose=args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
