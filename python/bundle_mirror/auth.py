"""
Destination registry credential resolution.

Credentials are taken from the command line, or read from a Kubernetes
secret of type kubernetes.io/dockerconfigjson.
"""

import base64
import json
import logging
from typing import Optional, Tuple


def _load_kubernetes_config():
    """Helper function to load Kubernetes configuration.

    Tries in-cluster config first, then falls back to local kubeconfig.

    Raises:
        Exception if both methods fail
    """
    try:
        from kubernetes.config import load_incluster_config

        load_incluster_config()
    except Exception:
        from kubernetes.config import load_kube_config

        load_kube_config()


def _get_kubernetes_core_client():
    """Helper function to get Kubernetes CoreV1Api client.

    Raises:
        ImportError if kubernetes package is not available
    """
    from kubernetes import client as k8s_client

    _load_kubernetes_config()
    return k8s_client.CoreV1Api()


def registry_host(reference: str) -> str:
    """Return the registry of a reference, prefix or auths key as host[:port].

    Any URL scheme and path are dropped; the port is kept, so registries on
    the same host but different ports never share credentials.
    """
    for scheme in ("https://", "http://"):
        if reference.startswith(scheme):
            reference = reference[len(scheme):]
            break
    return reference.split("/")[0].lower()


def get_credentials_from_k8s_secret(
    secret_name: str,
    namespace: str,
    registry_url: str,
) -> Tuple[Optional[str], Optional[str]]:
    """Get Docker registry username and password from Kubernetes secret.

    Args:
        secret_name: Name of the secret to read.
        namespace: Kubernetes namespace containing the secret.
        registry_url: Registry URL or image prefix to match in the dockerconfigjson.

    Returns:
        Tuple of (username, password) - either or both may be None if not found
    """
    try:
        from kubernetes.client.rest import ApiException

        core_v1 = _get_kubernetes_core_client()

        logging.debug(f"Attempting to read {secret_name} secret from namespace {namespace}")

        try:
            secret = core_v1.read_namespaced_secret(name=secret_name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                logging.warning(f"Secret {secret_name} not found in namespace {namespace}")
            else:
                logging.warning(f"Error reading secret {secret_name}: {e}")
            return None, None

        if not secret.data or ".dockerconfigjson" not in secret.data:
            logging.warning(f"Secret {secret_name} does not contain .dockerconfigjson")
            return None, None

        dockerconfig_json = base64.b64decode(secret.data[".dockerconfigjson"]).decode("utf-8")
        dockerconfig = json.loads(dockerconfig_json)

        if "auths" not in dockerconfig:
            logging.warning(f"No 'auths' section in {secret_name} secret")
            return None, None

        wanted_host = registry_host(registry_url)
        for auth_url, auth_data in dockerconfig["auths"].items():
            # Entries may be keyed as host, host:port or https://host/v1/
            auth_host = registry_host(auth_url)
            if auth_host != wanted_host:
                continue

            username = auth_data.get("username")
            password = auth_data.get("password")

            if (not username or not password) and "auth" in auth_data:
                auth_decoded = base64.b64decode(auth_data["auth"]).decode("utf-8")
                if ":" in auth_decoded:
                    decoded_user, decoded_pass = auth_decoded.split(":", 1)
                    username = username or decoded_user
                    password = password or decoded_pass

            if username or password:
                logging.info(f"Found registry credentials for {wanted_host} in {secret_name} secret")
                return username, password

        logging.warning(f"No credentials for {wanted_host} found in {secret_name} secret")
        return None, None

    except ImportError:
        logging.warning("Kubernetes client not available, cannot read registry secret")
        return None, None
    except Exception as e:
        logging.warning(f"Could not read credentials from Kubernetes secret: {e}")
        return None, None


def resolve_dest_creds(
    dest_secret: Optional[str],
    auth_secret: Optional[str],
    namespace: str,
    dest_prefix: str,
) -> Optional[str]:
    """Return destination credentials in "user[:password]" form, or None.

    An explicit --dest-secret value always wins over a Kubernetes secret.
    """
    if dest_secret:
        return dest_secret
    if not auth_secret:
        return None

    username, password = get_credentials_from_k8s_secret(auth_secret, namespace, dest_prefix)
    if not username:
        logging.warning("Falling back to ambient credentials for the destination registry")
        return None
    return f"{username}:{password}" if password else username
