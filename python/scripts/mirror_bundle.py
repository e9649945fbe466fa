#!/usr/bin/env python3
"""
Mirror the container images listed in an operator bundle.

Extracts the bundle image's ClusterServiceVersion, copies every image in
spec.relatedImages to the destination prefix with skopeo, then rebuilds the
bundle image so it references the mirrored images and pushes it under the
same prefix.

Usage examples:
  # Mirror one version of a bundle
  python mirror_bundle.py --version-filter 2.2.0 \\
    quay.io/openshift-cnv/container-native-virtualization-hco-bundle-registry:v2.2.0-181 quay.io/tiraboschi/

  # See what would be copied and pushed
  python mirror_bundle.py --dry-run quay.io/ns/bundle:v1 quay.io/dest/

  # Destination credentials from a Kubernetes pull secret
  python mirror_bundle.py --dest-auth-secret quay-push --namespace mirror quay.io/ns/bundle:v1 quay.io/dest/
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add parent directory to path for imports
_parent_dir = Path(__file__).parent.parent.absolute()
if str(_parent_dir) not in sys.path:
    sys.path.insert(0, str(_parent_dir))

from bundle_mirror.auth import resolve_dest_creds
from bundle_mirror.config_manager import RunOptions, config_manager
from bundle_mirror.error_utils import ActionableError
from bundle_mirror.health_checks import HealthChecker
from bundle_mirror.logging_utils import get_logger, log_exception, setup_logging
from bundle_mirror.mirror import BundleMirror

logger = get_logger(__name__)


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Mirror container images listed in an operator bundle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Positional arguments:
  SOURCE_BUNDLE_REGISTRY is used to extract the bundle files, to list the
  images in the bundle, and as the registry and namespace that are replaced
  with DEST_PREFIX.

  DEST_PREFIX replaces everything up to the last '/' in the pull URL of each
  image found in the ClusterServiceVersion files.

Example:
  mirror-bundle --version-filter 2.2.0 \\
    quay.io/openshift-cnv/container-native-virtualization-hco-bundle-registry:v2.2.0-181 \\
    quay.io/tiraboschi/
        """,
    )

    parser.add_argument(
        "bundle_image",
        metavar="SOURCE_BUNDLE_REGISTRY",
        help="Bundle image to mirror (e.g. quay.io/ns/bundle:v1)",
    )

    parser.add_argument(
        "dest_prefix",
        metavar="DEST_PREFIX",
        help="Destination registry and namespace prefix (e.g. quay.io/dest/)",
    )

    parser.add_argument(
        "-s",
        "--dest-secret",
        metavar="USERNAME[:PASSWORD]",
        help="Credentials for accessing the destination registry",
    )

    parser.add_argument(
        "--dest-auth-secret",
        metavar="NAME",
        help="Kubernetes dockerconfigjson secret holding destination credentials (ignored with --dest-secret)",
    )

    parser.add_argument(
        "--namespace",
        help="Namespace of --dest-auth-secret (default: from config)",
    )

    parser.add_argument(
        "--version-filter",
        default="",
        metavar="VERSION",
        help="Mirror just a specific version",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Run in debug mode",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the copy and push commands instead of running them",
    )

    args = parser.parse_args(argv)

    if not args.bundle_image.strip():
        parser.error("SOURCE_BUNDLE_REGISTRY was not specified")
    if not args.dest_prefix.strip():
        parser.error("DEST_PREFIX was not specified")

    return args


def main(argv=None):
    args = parse_arguments(argv)
    options = RunOptions(dry_run=args.dry_run, debug=args.debug, version_filter=args.version_filter)
    setup_logging(logging.DEBUG if options.debug else logging.INFO, config_manager.get_log_format())

    try:
        namespace = args.namespace or config_manager.get_kubernetes_namespace()

        checker = HealthChecker(config_manager)
        results = checker.run_all_checks(
            auth_secret=None if args.dest_secret else args.dest_auth_secret,
            namespace=namespace,
            dry_run=options.dry_run,
        )
        if not all(r.status for r in results):
            checker.print_health_report(results)
            logger.error("Preflight checks failed, aborting mirror")
            sys.exit(1)

        options = replace(
            options,
            dest_creds=resolve_dest_creds(args.dest_secret, args.dest_auth_secret, namespace, args.dest_prefix),
        )

        logger.info("=" * 60)
        if options.dry_run:
            logger.info("   BUNDLE MIRROR - DRY RUN MODE")
            logger.info("   Images will not be copied and the bundle will not be pushed.")
        else:
            logger.info("   BUNDLE MIRROR")
        logger.info("=" * 60)
        logger.info(f"Bundle image:       {args.bundle_image}")
        logger.info(f"Destination prefix: {args.dest_prefix}")
        if options.version_filter:
            logger.info(f"Version filter:     {options.version_filter}")
        logger.info("")

        dest_bundle = BundleMirror(config_manager).run(args.bundle_image, args.dest_prefix, options)

        action = "Would publish" if options.dry_run else "Published"
        logger.info(f"{action} bundle image {dest_bundle}")

    except ActionableError as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("\nMirror interrupted by user")
        sys.exit(1)
    except Exception as e:
        log_exception(logger, "Error in bundle mirror", exc_info=e)
        sys.exit(1)


if __name__ == "__main__":
    main()
