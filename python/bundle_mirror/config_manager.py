#!/usr/bin/env python3
"""
Configuration Manager for the operator bundle mirror

This module handles loading and managing configuration from config.yaml
and environment variables, and defines the per-run options that are passed
explicitly through every step of a mirror run.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

DEFAULT_BUILD_TEMPLATE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates", "bundle.Dockerfile")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""


@dataclass(frozen=True)
class RunOptions:
    """Options for a single mirror run, taken from the command line."""

    dry_run: bool = False
    debug: bool = False
    dest_creds: Optional[str] = None
    version_filter: str = ""


class ConfigManager:
    """Manages configuration for the operator bundle mirror"""

    def __init__(self, config_file: str = None, validate: bool = True):
        """Initialize ConfigManager

        Args:
            config_file: Path to configuration YAML file (defaults to config.yaml or CONFIG_FILE env var)
            validate: If True, validate configuration on initialization
        """
        if config_file is None:
            config_file = os.environ.get("CONFIG_FILE", "config.yaml")
        self.config_file = config_file
        self.config = self._load_config()

        if validate:
            self.validate_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file with defaults"""
        default_config = {
            "tools": {"container_engine": "podman", "copy_tool": "skopeo"},
            "bundle": {
                "manifests_path": "/manifests",
                "csv_suffix": ".clusterserviceversion.yaml",
                "build_template": DEFAULT_BUILD_TEMPLATE,
                "scratch_prefix": "mr-",
            },
            "kubernetes": {"namespace": "default"},
            "logging": {"format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s"},
        }

        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, "r") as f:
                    user_config = yaml.safe_load(f) or {}
                return self._merge_config(default_config, user_config)
            else:
                logging.debug(f"Config file {self.config_file} not found, using defaults")
                return default_config
        except Exception as e:
            logging.error(f"Error loading config file: {e}")
            return default_config

    def _merge_config(self, default: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge user config with defaults"""
        result = default.copy()
        for key, value in user.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    # Tool configuration
    def get_container_engine(self) -> str:
        """Get container engine executable from environment or config"""
        return os.environ.get("CONTAINER_ENGINE") or self.config["tools"]["container_engine"]

    def get_copy_tool(self) -> str:
        """Get image copy tool executable from environment or config"""
        return os.environ.get("COPY_TOOL") or self.config["tools"]["copy_tool"]

    # Bundle configuration
    def get_manifests_path(self) -> str:
        """Get the manifests directory inside the bundle image"""
        return self.config["bundle"]["manifests_path"]

    def get_csv_suffix(self) -> str:
        return self.config["bundle"]["csv_suffix"]

    def get_build_template(self) -> str:
        """Get the build template used to repatch the bundle image"""
        return os.environ.get("BUILD_TEMPLATE") or self.config["bundle"]["build_template"]

    def get_scratch_prefix(self) -> str:
        return self.config["bundle"]["scratch_prefix"]

    # Kubernetes configuration
    def get_kubernetes_namespace(self) -> str:
        """Get namespace holding registry secrets from environment or config"""
        return os.environ.get("KUBERNETES_NAMESPACE") or self.config["kubernetes"]["namespace"]

    # Logging configuration
    def get_log_format(self) -> str:
        return self.config.get("logging", {}).get("format") or "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

    def validate_config(self) -> None:
        """Validate configuration values

        Raises:
            ConfigValidationError: If configuration is invalid
        """
        errors = []
        warnings = []

        for label, value in (
            ("tools.container_engine", self.get_container_engine()),
            ("tools.copy_tool", self.get_copy_tool()),
        ):
            if not value or not str(value).strip():
                errors.append(f"{label} is required and cannot be empty")

        manifests_path = self.get_manifests_path()
        if not manifests_path or not str(manifests_path).startswith("/"):
            errors.append(f"bundle.manifests_path must be an absolute path inside the image, got: {manifests_path}")

        csv_suffix = self.get_csv_suffix()
        if not csv_suffix or not str(csv_suffix).strip():
            errors.append("bundle.csv_suffix is required and cannot be empty")
        elif not str(csv_suffix).endswith((".yaml", ".yml")):
            warnings.append(f"bundle.csv_suffix '{csv_suffix}' does not look like a YAML file name")

        build_template = self.get_build_template()
        if not build_template or not os.path.isfile(build_template):
            errors.append(f"bundle.build_template must point at an existing file, got: {build_template}")

        scratch_prefix = self.get_scratch_prefix()
        if not scratch_prefix or "/" in str(scratch_prefix):
            errors.append(f"bundle.scratch_prefix must be a non-empty file name prefix, got: {scratch_prefix}")

        namespace = self.get_kubernetes_namespace()
        if not self._is_valid_k8s_name(namespace):
            errors.append(
                f"Namespace '{namespace}' is not a valid Kubernetes name (lowercase alphanumeric and hyphens only)"
            )

        # Log warnings
        for warning in warnings:
            logging.warning(f"Configuration warning: {warning}")

        # Raise error if there are validation errors
        if errors:
            error_msg = "Configuration validation failed:\n  " + "\n  ".join(errors)
            logging.error(error_msg)
            raise ConfigValidationError(error_msg)

    def _is_valid_k8s_name(self, name: str) -> bool:
        """Validate Kubernetes resource name format"""
        if not name:
            return False
        # Kubernetes names: lowercase alphanumeric and hyphens, max 253 chars
        pattern = r"^[a-z0-9]([a-z0-9\-]*[a-z0-9])?$"
        return bool(re.match(pattern, name)) and len(name) <= 253


# Global config manager instance
# Validation can be disabled by setting SKIP_CONFIG_VALIDATION=true environment variable
config_manager = ConfigManager(
    validate=os.environ.get("SKIP_CONFIG_VALIDATION", "").lower() not in ("true", "1", "yes")
)
