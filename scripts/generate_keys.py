"""
Generate the RSA-2048 keypair used to sign access tokens (RS256).

Writes keys/private.pem and keys/public.pem. Without these files the API
falls back to HS256 signing with SECRET_KEY.

Usage:
    python scripts/generate_keys.py [output_dir]
"""

import os
import sys
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


def generate_keys(output_dir: str = "keys", overwrite: bool = False) -> tuple[Path, Path]:
    """Write a fresh keypair as PEM files and return their paths."""
    keys_dir = Path(output_dir)
    keys_dir.mkdir(parents=True, exist_ok=True)
    private_path = keys_dir / "private.pem"
    public_path = keys_dir / "public.pem"

    if not overwrite and private_path.exists() and public_path.exists():
        print(f"Keys already present in {keys_dir.resolve()}, leaving them in place.")
        return private_path, public_path

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    private_path.write_bytes(private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ))
    # Owner-only: anyone holding this key can mint access tokens
    private_path.chmod(0o600)

    public_path.write_bytes(private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ))

    print("RSA keypair generated:")
    print(f"  Private key: {private_path.resolve()}")
    print(f"  Public key:  {public_path.resolve()}")
    return private_path, public_path


if __name__ == "__main__":
    project_root = Path(__file__).resolve().parent.parent
    os.chdir(project_root)
    generate_keys(sys.argv[1] if len(sys.argv) > 1 else "keys")
