#!/usr/bin/env python3
"""
Run the payment service test suite, optionally a single group:

    ./run_tests.py [ogone|adapters|api]
"""

import subprocess
import sys
from pathlib import Path

GROUPS = {
    "ogone": [
        "tests/test_ogone_requests.py",
        "tests/test_ogone_signing.py",
        "tests/test_ogone_response.py",
    ],
    "adapters": ["tests/test_adapters.py", "tests/test_adapter_contract.py"],
    "api": ["tests/test_main.py", "tests/test_config.py"],
}


def main():
    pytest_args = [sys.executable, "-m", "pytest", "-v", "--tb=short", "--cov=app"]

    if len(sys.argv) > 1:
        group = sys.argv[1].lower()
        if group not in GROUPS:
            print(f"Unknown test group: {group} (available: {', '.join(GROUPS)})")
            return 1
        pytest_args.extend(GROUPS[group])

    return subprocess.run(pytest_args, cwd=Path(__file__).parent).returncode


if __name__ == "__main__":
    sys.exit(main())
