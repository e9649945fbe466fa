"""
Preflight checks run before a mirror starts.

This module verifies:
- The container engine and copy tool are installed
- The bundle build template exists
- The Kubernetes registry secret is readable (only when one is used)
"""

import os
import shutil
from dataclasses import dataclass
from typing import Dict, List, Optional

from bundle_mirror.logging_utils import get_logger


@dataclass
class HealthCheckResult:
    """Result of a health check"""

    name: str
    status: bool  # True if healthy, False if unhealthy
    message: str
    details: Optional[Dict] = None


class HealthChecker:
    """Performs preflight checks for a mirror run"""

    def __init__(self, config_manager):
        self.config_manager = config_manager
        self.logger = get_logger(self.__class__.__name__)

    def _check_executable(self, name: str, executable: str) -> HealthCheckResult:
        path = shutil.which(executable)
        if path:
            return HealthCheckResult(
                name=name,
                status=True,
                message=f"Found {executable}",
                details={"path": path},
            )
        return HealthCheckResult(
            name=name,
            status=False,
            message=f"'{executable}' was not found on PATH",
            details={"suggestions": [f"Install {executable}", "Override it in the tools section of config.yaml"]},
        )

    def check_container_engine(self) -> HealthCheckResult:
        return self._check_executable("container_engine", self.config_manager.get_container_engine())

    def check_copy_tool(self, dry_run: bool = False) -> HealthCheckResult:
        """Check the copy tool. A dry run only logs copy commands, so a missing tool is not fatal then."""
        result = self._check_executable("copy_tool", self.config_manager.get_copy_tool())
        if dry_run and not result.status:
            result.status = True
            result.message += " (not needed for a dry run)"
            self.logger.warning(result.message)
        return result

    def check_build_template(self) -> HealthCheckResult:
        """Check that the bundle build template exists and is readable"""
        template = self.config_manager.get_build_template()
        if template and os.path.isfile(template) and os.access(template, os.R_OK):
            return HealthCheckResult(
                name="build_template",
                status=True,
                message="Build template is readable",
                details={"path": template},
            )
        return HealthCheckResult(
            name="build_template",
            status=False,
            message=f"Build template not found or not readable: {template}",
            details={"path": template},
        )

    def check_kubernetes_access(self, secret_name: str, namespace: str) -> HealthCheckResult:
        """Check that the registry secret can be read from the Kubernetes API

        Returns:
            HealthCheckResult indicating Kubernetes access status
        """
        try:
            from bundle_mirror.auth import _get_kubernetes_core_client

            core_v1 = _get_kubernetes_core_client()
            core_v1.read_namespaced_secret(name=secret_name, namespace=namespace)

            return HealthCheckResult(
                name="kubernetes_access",
                status=True,
                message=f"Secret {secret_name} is readable",
                details={"namespace": namespace},
            )
        except ImportError:
            return HealthCheckResult(
                name="kubernetes_access",
                status=False,
                message="Kubernetes client not available (kubernetes package not installed)",
                details={},
            )
        except Exception as e:
            return HealthCheckResult(
                name="kubernetes_access",
                status=False,
                message=f"Failed to read secret {secret_name}: {e}",
                details={
                    "namespace": namespace,
                    "error": str(e),
                    "suggestions": [
                        "Verify Kubernetes cluster access (kubectl cluster-info)",
                        f"Verify the secret exists: kubectl get secret {secret_name} -n {namespace}",
                        "Check RBAC permissions to get secrets in the namespace",
                    ],
                },
            )

    def run_all_checks(
        self,
        auth_secret: Optional[str] = None,
        namespace: Optional[str] = None,
        dry_run: bool = False,
    ) -> List[HealthCheckResult]:
        """Run all preflight checks

        Args:
            auth_secret: Kubernetes secret holding destination credentials, if one is used
            namespace: Namespace of auth_secret (default: from config)
            dry_run: Whether the run only logs copy commands

        Returns:
            List of HealthCheckResult objects
        """
        results = [
            self.check_container_engine(),
            self.check_copy_tool(dry_run=dry_run),
            self.check_build_template(),
        ]

        if auth_secret:
            results.append(
                self.check_kubernetes_access(auth_secret, namespace or self.config_manager.get_kubernetes_namespace())
            )

        for result in results:
            if result.status:
                self.logger.debug(f"{result.name}: {result.message}")

        return results

    def print_health_report(self, results: List[HealthCheckResult]) -> bool:
        """Print a formatted health check report

        Args:
            results: List of HealthCheckResult objects

        Returns:
            True if all checks passed, False otherwise
        """
        print("\n" + "=" * 60)
        print("Preflight Check Report")
        print("=" * 60)

        all_healthy = True

        for result in results:
            status_icon = "✓" if result.status else "✗"
            status_text = "HEALTHY" if result.status else "UNHEALTHY"

            print(f"\n{status_icon} {result.name.upper().replace('_', ' ')}: {status_text}")
            print(f"   {result.message}")

            details = dict(result.details or {})
            details.pop("error", None)  # already part of the message
            suggestions = details.pop("suggestions", [])
            for key, value in details.items():
                print(f"   {key}: {value}")
            for suggestion in suggestions:
                print(f"   -> {suggestion}")

            if not result.status:
                all_healthy = False

        print("\n" + "=" * 60)

        if all_healthy:
            print("✓ All preflight checks passed")
        else:
            print("✗ Some preflight checks failed - please review the issues above")

        print("=" * 60 + "\n")

        return all_healthy
