#!/usr/bin/env python3
"""
Environment validation script for DocVault.
Validates that all required environment variables are set correctly.
"""

import os
import re
import sys
from urllib.parse import urlparse

from dotenv import load_dotenv

OPTIONAL_VARS = [
    "POLICY_ENGINE_URL",
    "CORS_ORIGINS",
    "LOG_FILE",
]

HEX_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def validate_url(url_string: str) -> bool:
    """Validate URL format."""
    try:
        result = urlparse(url_string)
        return all([result.scheme, result.netloc])
    except ValueError:
        return False


def check_database_url(database_url: str) -> bool:
    """Check that the database URL names a host we can connect to."""
    try:
        parsed = urlparse(database_url.replace("postgresql+asyncpg://", "postgresql://"))
        return parsed.scheme == "postgresql" and bool(parsed.hostname)
    except ValueError:
        return False


REQUIRED_VARS = {
    "DATABASE_URL": {
        "required": True,
        "validate": lambda v: v.startswith(("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")),
        "error": "DATABASE_URL must start with postgresql://, postgresql+asyncpg:// or sqlite+aiosqlite://",
    },
    "SECRET_KEY": {
        "required": True,
        "validate": lambda v: len(v) >= 32 and v != "your-secret-key-here",
        "error": "SECRET_KEY must be at least 32 characters and not the default value",
    },
    "ENCRYPTION_KEY": {
        "required": True,
        "validate": lambda v: bool(HEX_KEY_RE.match(v.strip())),
        "error": "ENCRYPTION_KEY must be 64 hex characters (run scripts/generate_encryption_key.py)",
    },
    "POLICY_ENGINE_TOKEN": {
        "required": False,
        "validate": lambda v: len(v.strip()) > 0,
        "error": "POLICY_ENGINE_TOKEN is set but empty",
    },
}


def main():
    """Main validation function."""
    print("🔍 Validating Environment Configuration")
    print("=" * 50)
    print()

    env_file = os.path.join("backend", ".env")
    if os.path.exists(env_file):
        print(f"📄 Loading environment from {env_file}")
        load_dotenv(env_file)
    else:
        print(f"⚠️  {env_file} not found. Using system environment variables.")
    print()

    errors = []
    warnings = []

    print("Checking required environment variables...")
    for var_name, config in REQUIRED_VARS.items():
        value = os.getenv(var_name)

        if not value:
            if config["required"]:
                errors.append(f"❌ {var_name}: Not set (required)")
            continue

        if not config["validate"](value):
            errors.append(f"❌ {var_name}: {config['error']}")
        else:
            print(f"✅ {var_name}: Set and valid")

    print()

    print("Checking optional environment variables...")
    for var_name in OPTIONAL_VARS:
        value = os.getenv(var_name)
        if value:
            print(f"✅ {var_name}: Set")
        else:
            print(f"⚪ {var_name}: Not set (optional)")

    print()

    database_url = os.getenv("DATABASE_URL")
    if database_url and not database_url.startswith("sqlite"):
        if check_database_url(database_url):
            print("✅ Database URL format is valid")
        else:
            warnings.append("⚠️  Database URL format may be invalid")

    if os.getenv("POLICY_ENGINE_TOKEN"):
        engine_url = os.getenv("POLICY_ENGINE_URL", "https://cloudpdp.api.permit.io")
        if validate_url(engine_url):
            print(f"✅ Policy engine enabled at {engine_url}")
        else:
            errors.append("❌ POLICY_ENGINE_URL must be a valid HTTP/HTTPS URL")
    else:
        print("⚪ Policy engine disabled; local role hierarchy only")

    print()

    print("=" * 50)
    if errors:
        print("❌ Validation failed with the following errors:")
        for error in errors:
            print(f"  {error}")
        print()
        return 1

    if warnings:
        print("⚠️  Validation passed with warnings:")
        for warning in warnings:
            print(f"  {warning}")
        print()

    print("✅ Environment validation passed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
