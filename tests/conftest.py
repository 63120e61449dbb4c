import pytest

from certgen.common.config import resolve_config
from certgen.issuer import issue


@pytest.fixture(scope="session")
def ca_files(tmp_path_factory):
    """A CA for O=TestOrg written once per session: (cert_path, key_path, cert, key)."""
    d = tmp_path_factory.mktemp("ca")
    cert_path, key_path = d / "ca.pem", d / "ca-key.pem"
    cert, key = issue(resolve_config(cert=str(cert_path), key=str(key_path), organization="TestOrg"))
    return cert_path, key_path, cert, key


@pytest.fixture
def leaf_config(tmp_path, ca_files):
    def make(host, **kwargs):
        return resolve_config(
            cert=str(tmp_path / "cert.pem"),
            key=str(tmp_path / "key.pem"),
            host=host,
            ca=str(ca_files[0]),
            ca_key=str(ca_files[1]),
            organization=kwargs.pop("organization", "TestOrg"),
            **kwargs,
        )
    return make
