"""pkgcost - installed size of a stored package and its npm dependencies.

    Returns:
        int: Exit code
"""
import json
import logging
import os
import sys

from args import parse_args
from cli_config import load_and_apply
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from errors import ConfigurationError, CostError, InvalidRequest, NetworkFailure, NotFound, RegistryLookupFailure
from registry.npm.client import NpmRegistryClient
from sizing.models import TraversalLimits
from sizing.policy import get_policy
from sizing.resolver import SizeResolver
from sizing.service import PackageCostService
from stores.local import FileMetadataStore, LocalArtifactStore

logger = logging.getLogger(__name__)


def build_service():
    """Wire the file stores, npm registry client and resolver from ``Constants``."""
    resolver = SizeResolver(
        metadata_store=FileMetadataStore(Constants.METADATA_INDEX),
        artifact_store=LocalArtifactStore(Constants.STORE_DIR),
        registry=NpmRegistryClient(Constants.REGISTRY_URL_NPM),
        limits=TraversalLimits.from_constants(),
        policy=get_policy(Constants.FAILURE_POLICY),
    )
    return PackageCostService(resolver)


def run_cost(args, service):
    """Run the ``cost`` command and return an exit code."""
    try:
        body = service.package_cost(args.PACKAGE_ID, args.INCLUDE_DEPENDENCIES)
    except InvalidRequest as e:
        logger.error("%s", e)
        return ExitCodes.INVALID_REQUEST.value
    except NotFound as e:
        logger.error("%s", e)
        return ExitCodes.NOT_FOUND.value
    except (NetworkFailure, RegistryLookupFailure) as e:
        logger.error("Registry unreachable: %s", e)
        return ExitCodes.CONNECTION_ERROR.value
    except CostError as e:
        logger.error("Cost computation failed: %s", e)
        return ExitCodes.UNEXPECTED_ERROR.value
    except Exception:  # pylint: disable=broad-exception-caught
        logger.exception("Unexpected error occurred.")
        return ExitCodes.UNEXPECTED_ERROR.value

    payload = json.dumps(body, indent=2)
    output = getattr(args, "OUTPUT", None)
    if output:
        try:
            with open(output, "w", encoding="utf-8") as file:
                file.write(payload + "\n")
        except OSError as e:
            logger.error("Could not write %s: %s", output, e)
            return ExitCodes.FILE_ERROR.value
        logger.info("Result written to: %s", output)
    else:
        print(payload)
    return ExitCodes.SUCCESS.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()

    try:
        load_and_apply(args)
    except ConfigurationError as e:
        configure_logging()
        logger.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    configure_logging(getattr(args, "LOG_FILE", None))
    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main", command=args.COMMAND)
        )

    service = build_service()
    if args.COMMAND == "serve":
        # Lazy import to avoid loading aiohttp for one-shot queries
        from cli_serve import run_server  # pylint: disable=import-outside-toplevel
        run_server(args, service)
        sys.exit(ExitCodes.SUCCESS.value)

    sys.exit(run_cost(args, service))


if __name__ == "__main__":
    main()
