"""Client secret resolution from cloud secret managers.

A client secret given on the command line, in the config file or in
``AUTH0_CLIENT_SECRET`` may be a reference instead of the plaintext value:

  - "aws-secret://secret-name"         -> AWS Secrets Manager
  - "aws-secret://secret-name#key"     -> AWS Secrets Manager (JSON key)
  - "gcp-secret://project/secret/ver"  -> GCP Secret Manager
  - anything else                      -> returned as-is
"""

from __future__ import annotations

import json
import logging
import os

from scripts.user_import.errors import ConfigurationError

logger = logging.getLogger("user_import.secrets")

_AWS_PREFIX = "aws-secret://"
_GCP_PREFIX = "gcp-secret://"


def resolve_secret(value: str | None) -> str | None:
    """Resolve a secret reference to its plaintext value."""
    if not value:
        return value
    if value.startswith(_AWS_PREFIX):
        logger.debug("Resolving client secret from AWS Secrets Manager")
        return _resolve_aws_secret(value[len(_AWS_PREFIX):])
    if value.startswith(_GCP_PREFIX):
        logger.debug("Resolving client secret from GCP Secret Manager")
        return _resolve_gcp_secret(value[len(_GCP_PREFIX):])
    return value


def _resolve_aws_secret(ref: str) -> str:
    import boto3

    secret_name, _, json_key = ref.partition("#")
    region = os.environ.get("AWS_REGION", "us-east-1")
    client = boto3.client("secretsmanager", region_name=region)

    secret_string = client.get_secret_value(SecretId=secret_name)["SecretString"]
    if not json_key:
        return secret_string
    try:
        return str(json.loads(secret_string)[json_key])
    except (ValueError, KeyError) as exc:
        raise ConfigurationError(
            f"Secret {secret_name} has no JSON key {json_key}"
        ) from exc


def _resolve_gcp_secret(ref: str) -> str:
    """ref is a full ``projects/...`` resource name or a bare secret name."""
    if ref.startswith("projects/"):
        name = ref
    else:
        project = os.environ.get("GCP_PROJECT_ID", "")
        if not project:
            raise ConfigurationError(
                "Cannot resolve gcp-secret:// reference without GCP_PROJECT_ID"
            )
        name = f"projects/{project}/secrets/{ref}/versions/latest"

    from google.cloud import secretmanager

    client = secretmanager.SecretManagerServiceClient()
    response = client.access_secret_version(request={"name": name})
    return response.payload.data.decode("UTF-8")
