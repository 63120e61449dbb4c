"""RSA key generation and PEM encoding of keys and certificates."""

from cryptography import x509
from cryptography.exceptions import InternalError
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed448, ed25519, rsa

from certgen.common.errors import EntropyError

RSA_BITS = 2048
PUBLIC_EXPONENT = 65537


def generate_rsa_key(key_size: int = RSA_BITS) -> rsa.RSAPrivateKey:
    """Generate a fresh RSA private key."""
    try:
        return rsa.generate_private_key(
            public_exponent=PUBLIC_EXPONENT,
            key_size=key_size,
        )
    except (OSError, ValueError, InternalError) as e:
        raise EntropyError(f"failed to generate RSA key: {e}") from e


def signature_hash_for(private_key):
    """Digest to sign with; EdDSA keys sign without a separate hash."""
    if isinstance(private_key, (ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey)):
        return None
    return hashes.SHA256()


def private_key_to_pem(private_key: rsa.RSAPrivateKey) -> bytes:
    """Encode as a PKCS#1 "RSA PRIVATE KEY" PEM block."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption()
    )


def certificate_to_pem(certificate: x509.Certificate) -> bytes:
    """Encode as a "CERTIFICATE" PEM block."""
    return certificate.public_bytes(serialization.Encoding.PEM)


def public_key_der(key) -> bytes:
    """SubjectPublicKeyInfo DER of a public or private key, for comparisons."""
    if hasattr(key, "public_key"):
        key = key.public_key()
    return key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    )
