"""Pydantic models: ca, server_leaf, client_leaf issuance modes and the issuer config."""

import os
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from certgen.common.errors import UsageError

DEFAULT_ORG = "Boot2Docker"


class CAMode(BaseModel):
    """Generate a self-signed certificate authority."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["ca"] = "ca"


class ServerLeaf(BaseModel):
    """Server certificate signed by an existing CA; hosts become SANs."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["server"] = "server"
    hosts: tuple[str, ...]
    ca_cert_path: Path
    ca_key_path: Path


class ClientLeaf(BaseModel):
    """Client-auth certificate signed by an existing CA."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["client"] = "client"
    ca_cert_path: Path
    ca_key_path: Path


IssuanceMode = Annotated[Union[CAMode, ServerLeaf, ClientLeaf], Field(discriminator="kind")]


class IssuerConfig(BaseModel):
    """Everything one invocation needs, resolved once from the command line."""
    model_config = ConfigDict(frozen=True)

    organization: str = DEFAULT_ORG
    cert_path: Path
    key_path: Path
    overwrite: bool = False
    mode: IssuanceMode


def default_organization() -> str:
    """Organization used when --org is not given."""
    return os.getenv("CERTGEN_ORG", DEFAULT_ORG)


def split_hosts(host: Optional[str]) -> tuple[str, ...]:
    """Split a comma-separated --host value, dropping blank entries."""
    if not host:
        return ()
    return tuple(h.strip() for h in host.split(",") if h.strip())


def resolve_config(
    cert: Optional[str],
    key: Optional[str],
    host: Optional[str] = "",
    ca: Optional[str] = None,
    ca_key: Optional[str] = None,
    overwrite: bool = False,
    organization: Optional[str] = None,
) -> IssuerConfig:
    """
    Validate raw CLI values and decide the issuance mode.
    Raises UsageError for missing or mismatched parameters.
    """
    if not cert:
        raise UsageError("Missing required parameter: --cert")
    if not key:
        raise UsageError("Missing required parameter: --key")
    if bool(ca) != bool(ca_key):
        raise UsageError("Must provide both --ca and --ca-key")

    if not ca:
        mode = CAMode()
    else:
        hosts = split_hosts(host)
        if hosts:
            mode = ServerLeaf(hosts=hosts, ca_cert_path=ca, ca_key_path=ca_key)
        else:
            mode = ClientLeaf(ca_cert_path=ca, ca_key_path=ca_key)

    return IssuerConfig(
        organization=organization if organization is not None else default_organization(),
        cert_path=cert,
        key_path=key,
        overwrite=overwrite,
        mode=mode,
    )
