"""Generate an RSA key pair for JWT signing/verification.

Run ``python -m task_app.keys [directory]`` to write ``dev.private.pem`` and
``dev.public.pem`` for local development, then point ``JWT_PRIVATE_KEY_PATH``
and ``JWT_PUBLIC_KEY_PATH`` at them.
"""

from __future__ import annotations

import sys
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

DEFAULT_KEYS_DIR = Path(__file__).resolve().parent.parent / "keys"


def generate_key_pair(key_size: int = 2048) -> tuple[str, str]:
    """Return a fresh ``(private_pem, public_pem)`` pair as strings."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    return private_pem, public_pem


def write_key_pair(keys_dir: Path = DEFAULT_KEYS_DIR) -> tuple[Path, Path] | None:
    """
    Write a key pair into *keys_dir* once.

    Returns:
        The two written paths, or ``None`` when both files already exist.

    Raises:
        SystemExit: If only one of the two files exists.
    """
    private_path = keys_dir / "dev.private.pem"
    public_path = keys_dir / "dev.public.pem"

    if private_path.exists() and public_path.exists():
        return None
    if private_path.exists() != public_path.exists():
        raise SystemExit(
            "Only one key file exists. Remove both key files and run this script again."
        )

    keys_dir.mkdir(parents=True, exist_ok=True)
    private_pem, public_pem = generate_key_pair()
    private_path.write_text(private_pem, encoding="utf-8")
    public_path.write_text(public_pem, encoding="utf-8")
    return private_path, public_path


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    keys_dir = Path(args[0]) if args else DEFAULT_KEYS_DIR
    written = write_key_pair(keys_dir)
    if written is None:
        print(f"Keys already exist in {keys_dir}, skipping")
    else:
        for path in written:
            print(f"Generated: {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
