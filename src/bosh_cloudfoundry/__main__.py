"""CLI entrypoints for the Cloud Foundry plugin (bosh-cf prepare, create, show, change)."""

from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List, Optional

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from bosh_cloudfoundry import __version__
from bosh_cloudfoundry.core.config import Settings
from bosh_cloudfoundry.core.exceptions import CloudFoundryError, ConfigurationError
from bosh_cloudfoundry.deploy.manager import DeploymentOrchestrationFacade
from bosh_cloudfoundry.deploy.models import DeploymentOptions, DeploymentPlan, DeploymentRecord
from bosh_cloudfoundry.director.client import DirectorClient, ReleaseCommand, StemcellCommand
from bosh_cloudfoundry.manifest.rules import AttributeRules, DeploymentSize, Mutability
from bosh_cloudfoundry.utils.logging import setup_logging

logger = structlog.get_logger()

HELP_TEXT = """\
Cloud Foundry on BOSH

  bosh-cf prepare
      Upload the cf-release and stemcell to the director if they are missing.

  bosh-cf create --ip IP[,IP...] --dns DNS [--name NAME] [--common-password PASSWORD] [--size SIZE]
      Create a new Cloud Foundry deployment. Sizes: {sizes}.

  bosh-cf show [--name NAME] [--remote]
      Display the properties of a deployment.

  bosh-cf change [--name NAME] key=value [key=value ...]
      Change mutable properties and redeploy. Mutable: {mutable}.
"""


def cf_help() -> str:
    mutable = [key for key in AttributeRules.RULES if AttributeRules.classify(key) is Mutability.MUTABLE]
    return HELP_TEXT.format(
        sizes=", ".join(s.value for s in DeploymentSize),
        mutable=", ".join(mutable),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bosh-cf", description="Manage Cloud Foundry deployments on BOSH")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-n", "--non-interactive", action="store_true", help="Do not prompt for confirmation")
    parser.add_argument("--deployments-dir", help="Directory holding deployment manifests")
    parser.add_argument("--log-level", help="Log level (default INFO)")
    parser.add_argument("--log-format", choices=["json", "console"], help="Log output format")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("help", help="Show Cloud Foundry command help")
    sub.add_parser("prepare", help="Upload release and stemcell if missing")

    cmd_create = sub.add_parser("create", help="Create a Cloud Foundry deployment")
    cmd_create.add_argument("--name", help="Deployment name")
    cmd_create.add_argument("--ip", action="append", help="Public IP address(es), comma separated or repeated")
    cmd_create.add_argument("--dns", help="Base DNS name, e.g. mycloud.com")
    cmd_create.add_argument("--common-password", dest="common_password", help="Password shared by CF components")
    cmd_create.add_argument("--size", help="Deployment size")

    cmd_show = sub.add_parser("show", help="Show deployment properties")
    cmd_show.add_argument("--name", help="Deployment name")
    cmd_show.add_argument("--remote", action="store_true", help="Ask the director instead of the local manifest")

    cmd_change = sub.add_parser("change", help="Change mutable properties and redeploy")
    cmd_change.add_argument("--name", help="Deployment name")
    cmd_change.add_argument("assignments", nargs="*", metavar="key=value")

    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    overrides: Dict[str, Any] = {}
    if args.non_interactive:
        overrides["non_interactive"] = True
    if args.deployments_dir:
        overrides["deployments_dir"] = args.deployments_dir
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format
    try:
        return Settings(**overrides)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def build_deployer(settings: Settings, client: DirectorClient) -> DeploymentOrchestrationFacade:
    return DeploymentOrchestrationFacade(
        settings,
        director=client,
        release_cmd=ReleaseCommand(client),
        stemcell_cmd=StemcellCommand(client),
    )


def _split_ips(values: Optional[List[str]]) -> Optional[List[str]]:
    if not values:
        return None
    return [ip.strip() for value in values for ip in value.split(",") if ip.strip()]


def _confirmer(settings: Settings):
    if settings.non_interactive:
        return None

    def confirm(plan: DeploymentPlan) -> bool:
        print(f"Deployment: {plan.document.name}")
        for key, value in sorted(plan.changes.items()):
            if key == "common_password":
                value = "********"
            print(f"  {key}: {value}")
        try:
            answer = input("Deploy these changes? [yN] ")
        except EOFError:
            print()
            return False
        return answer.strip().lower() in ("y", "yes")

    return confirm


def _report(record: DeploymentRecord) -> None:
    if record.details.get("cancelled"):
        print("Cancelled")
        return
    for upload in record.uploads:
        print(f"Uploaded {upload}")
    if record.deployed:
        print(f"Deployed {record.deployment}")
    elif record.deployment:
        print(f"No changes to deploy for {record.deployment}")
    else:
        print("Director has the release and stemcell")


def run_command(args: argparse.Namespace, settings: Settings) -> int:
    if args.cmd in (None, "help"):
        print(cf_help())
        return 0

    with DirectorClient.from_settings(settings) as client:
        return _dispatch(args, build_deployer(settings, client), _confirmer(settings))


def _dispatch(args: argparse.Namespace, deployer: DeploymentOrchestrationFacade, confirm) -> int:
    if args.cmd == "prepare":
        _report(deployer.prepare())
    elif args.cmd == "create":
        options = DeploymentOptions(
            name=args.name,
            ip_addresses=_split_ips(args.ip),
            dns=args.dns,
            common_password=args.common_password,
            size=args.size,
        )
        _report(deployer.create(options, confirm=confirm))
    elif args.cmd == "show":
        properties = deployer.show_properties(name=args.name, remote=args.remote)
        print(yaml.safe_dump(properties, sort_keys=True, default_flow_style=False), end="")
    elif args.cmd == "change":
        _report(deployer.change_properties(*args.assignments, name=args.name, confirm=confirm))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
        setup_logging(settings.log_level, settings.log_format)
        return run_command(args, settings)
    except CloudFoundryError as e:
        logger.debug("Command failed", cmd=args.cmd, error_type=type(e).__name__)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
