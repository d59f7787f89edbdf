# Self-signed localhost certificate for an https://127.0.0.1 redirect URI
from __future__ import annotations
from datetime import datetime, timedelta, timezone
import ipaddress
import logging
from pathlib import Path
from typing import Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

log = logging.getLogger(__name__)

VALID_DAYS = 365 * 3


def build_dev_cert(valid_days: int = VALID_DAYS) -> Tuple[bytes, bytes]:
    """Return (cert_pem, key_pem) for CN=localhost with SANs for localhost and 127.0.0.1."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    subject = issuer = x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, "localhost"),
    ])
    san = x509.SubjectAlternativeName([
        x509.DNSName("localhost"),
        x509.IPAddress(ipaddress.IPv4Address("127.0.0.1")),
    ])

    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=valid_days))
        .add_extension(san, critical=False)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .sign(private_key=key, algorithm=hashes.SHA256())
    )

    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return cert_pem, key_pem


def write_dev_cert(cert_path: Path, key_path: Path) -> None:
    cert_pem, key_pem = build_dev_cert()
    cert_path = Path(cert_path)
    key_path = Path(key_path)
    cert_path.write_bytes(cert_pem)
    key_path.write_bytes(key_pem)
    log.info("Wrote %s and %s", cert_path, key_path)
