#!/usr/bin/env python3
"""
Print a fresh ENCRYPTION_KEY for stored AI provider keys.

Changing the key makes every stored provider key unreadable; users then
have to enter their keys again.
"""

import sys
from pathlib import Path

backend_dir = Path(__file__).parent.parent / "backend"
sys.path.insert(0, str(backend_dir))

from app.services.secret_cipher import generate_encryption_key  # noqa: E402


def main():
    key = generate_encryption_key()
    print("🔑 New encryption key (64 hex characters):")
    print()
    print(f"ENCRYPTION_KEY={key}")
    print()
    print("⚠️  Store it in backend/.env and keep it out of version control.")


if __name__ == "__main__":
    main()
