#!/usr/bin/env python3
"""
Seal a PEM key (or any secret) into the encrypted secrets file.

The Epic Authenticator reads its private key, public key and admin token
through ``SecretsManager``. This helper encrypts a file's contents with the
Fernet master key and stores it under the given secret name, so operators do
not have to place key material in plain environment variables.

Example:
    EPIC_AUTH_MASTER_KEY=... python scripts/seal_secret.py \\
        --name epic-private-key --file private_key.pem --secrets-file secrets.json
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Optional

from shared.secrets_manager import SecretsManager


def seal(name: str, source: Path, secrets_file: str, master_key: Optional[str]) -> None:
    """Encrypt ``source`` and store it under ``name``."""
    value = source.read_text()
    if not value.strip():
        raise ValueError(f"{source} is empty")

    manager = SecretsManager(master_key=master_key, secrets_file=secrets_file)
    manager.set_secret(name, value)


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("--name", required=True, help="Secret name, e.g. epic-private-key")
    parser.add_argument("--file", required=True, type=Path, help="File whose contents become the secret")
    parser.add_argument(
        "--secrets-file",
        default=os.getenv("EPIC_AUTH_SECRETS_FILE", "secrets.json"),
        help="Encrypted secrets file (default: $EPIC_AUTH_SECRETS_FILE or secrets.json)",
    )
    parser.add_argument(
        "--master-key",
        default=os.getenv("EPIC_AUTH_MASTER_KEY"),
        help="Fernet master key (default: $EPIC_AUTH_MASTER_KEY)",
    )
    args = parser.parse_args(argv)

    if not args.master_key:
        parser.error("a master key is required (--master-key or EPIC_AUTH_MASTER_KEY)")

    try:
        seal(args.name, args.file, args.secrets_file, args.master_key)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(f"Sealed '{args.name}' into {args.secrets_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
