"""
Error message utilities for providing actionable guidance to users.

Every failure the mirror workflow can hit is raised as an ActionableError
carrying a category, suggested fixes and details. The first error aborts
the whole run.
"""

from typing import List, Optional, Dict, Any
from enum import Enum


class ErrorCategory(Enum):
    """Categories of errors for better error handling"""
    CONFIGURATION = "configuration"
    TOOL = "tool"
    EXTRACTION = "extraction"
    PARSE = "parse"
    COPY = "copy"
    BUILD = "build"
    PUBLISH = "publish"
    UNKNOWN = "unknown"


class ActionableError(Exception):
    """Exception with actionable guidance for users"""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN,
                 suggestions: Optional[List[str]] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize actionable error

        Args:
            message: Primary error message
            category: Error category for classification
            suggestions: List of suggested fixes
            details: Additional context information
        """
        self.message = message
        self.category = category
        self.suggestions = suggestions or []
        self.details = details or {}
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message with suggestions"""
        lines = [f"❌ {self.message}"]

        if self.suggestions:
            lines.append("\n💡 Suggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        if self.details:
            lines.append("\n📋 Additional details:")
            for key, value in self.details.items():
                lines.append(f"   {key}: {value}")

        return "\n".join(lines)


def _stderr_of(error: Exception) -> str:
    stderr = getattr(error, "stderr", None)
    return (stderr or "").strip()


def create_tool_error(tool: str, error: Exception) -> ActionableError:
    """Create actionable error for an external tool that could not be started"""
    return ActionableError(
        message=f"Could not run '{tool}'",
        category=ErrorCategory.TOOL,
        suggestions=[
            f"Install {tool} and make sure it is on PATH",
            "Override the executable in config.yaml (tools section) if it lives elsewhere",
        ],
        details={
            "tool": tool,
            "error_type": type(error).__name__,
            "error_message": str(error)
        }
    )


def create_extraction_error(image: str, path: str, error: Exception) -> ActionableError:
    """Create actionable error for failures extracting manifests from a bundle image"""
    stderr = _stderr_of(error)
    error_str = f"{error} {stderr}".lower()

    suggestions = [
        f"Verify the bundle image can be pulled: podman pull {image}",
        "Log in to the source registry (podman login) if it requires authentication",
        f"Verify the image contains the '{path}' directory",
    ]

    if "no such file" in error_str or "could not be found" in error_str:
        suggestions.insert(0, f"The image does not contain '{path}'; set bundle.manifests_path in config.yaml")

    if "unauthorized" in error_str or "authentication required" in error_str:
        suggestions.insert(0, "Source registry rejected the credentials")

    return ActionableError(
        message=f"Failed to extract {path} from bundle image {image}",
        category=ErrorCategory.EXTRACTION,
        suggestions=suggestions,
        details={
            "image": image,
            "path": path,
            "error_type": type(error).__name__,
            "error_message": stderr or str(error)
        }
    )


def create_manifest_error(csv_path: str, reason: str) -> ActionableError:
    """Create actionable error for a ClusterServiceVersion that cannot be read"""
    return ActionableError(
        message=f"Could not read related images from {csv_path}",
        category=ErrorCategory.PARSE,
        suggestions=[
            "Verify the file is valid YAML",
            "Verify the ClusterServiceVersion lists its images under spec.relatedImages[].image",
            "Use --version-filter to select a different ClusterServiceVersion",
        ],
        details={
            "file": csv_path,
            "reason": reason
        }
    )


def create_copy_error(source: str, destination: str, error: Exception) -> ActionableError:
    """Create actionable error for a failed image copy"""
    stderr = _stderr_of(error)
    error_str = f"{error} {stderr}".lower()

    suggestions = [
        "Check network connectivity to both registries",
        "Verify the destination namespace exists and accepts pushes",
        "Images copied before this failure remain in the destination registry",
    ]

    if "unauthorized" in error_str or "denied" in error_str or "401" in error_str or "403" in error_str:
        suggestions.insert(0, "Check the destination credentials passed with --dest-secret")
        suggestions.insert(1, "Check that the source image is pullable with the ambient credentials")

    if "manifest unknown" in error_str or "not found" in error_str or "404" in error_str:
        suggestions.insert(0, f"Verify the source image exists: skopeo inspect {source}")

    return ActionableError(
        message=f"Failed to copy {source} to {destination}",
        category=ErrorCategory.COPY,
        suggestions=suggestions,
        details={
            "source": source,
            "destination": destination,
            "error_type": type(error).__name__,
            "error_message": stderr or str(error)
        }
    )


def create_build_error(image: str, error: Exception) -> ActionableError:
    """Create actionable error for a failed bundle image build"""
    return ActionableError(
        message=f"Failed to build patched bundle image {image}",
        category=ErrorCategory.BUILD,
        suggestions=[
            "Verify the parent bundle image can be pulled",
            "Check the build template configured in bundle.build_template",
            "Re-run with --debug to see the full build output",
        ],
        details={
            "image": image,
            "error_type": type(error).__name__,
            "error_message": _stderr_of(error) or str(error)
        }
    )


def create_publish_error(image: str, error: Exception) -> ActionableError:
    """Create actionable error for a failed bundle image push"""
    return ActionableError(
        message=f"Failed to push bundle image {image}",
        category=ErrorCategory.PUBLISH,
        suggestions=[
            "Log in to the destination registry (podman login)",
            "Verify the destination namespace exists and accepts pushes",
        ],
        details={
            "image": image,
            "error_type": type(error).__name__,
            "error_message": _stderr_of(error) or str(error)
        }
    )


def create_config_error(field: str, value: Any, reason: str) -> ActionableError:
    """Create actionable error for configuration validation failures"""
    suggestions = [
        f"Check the '{field}' value in config.yaml",
        "Verify the value matches the expected format",
        "Check config-example.yaml for correct format",
    ]

    if "path" in field.lower() or "template" in field.lower():
        suggestions.insert(1, "Paths must point at existing files; container paths must be absolute")

    return ActionableError(
        message=f"Configuration error: Invalid value for '{field}'",
        category=ErrorCategory.CONFIGURATION,
        suggestions=suggestions,
        details={
            "field": field,
            "value": value,
            "reason": reason
        }
    )
