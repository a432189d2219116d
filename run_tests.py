#!/usr/bin/env python3
"""Test runner for the git configuration adapter."""

import sys
import subprocess
from pathlib import Path


def run_test(test_file: str, description: str) -> bool:
    """Run a single test file and return success status."""
    print(f"\n{'='*60}")
    print(f"Running: {description}")
    print(f"File: {test_file}")
    print('='*60)

    result = subprocess.run([sys.executable, test_file], capture_output=False, text=True)

    success = result.returncode == 0
    print(f"\n{'✅ PASSED' if success else '❌ FAILED'}: {description}")
    return success


def main():
    """Run every test suite."""
    print("Git Configuration Adapter Test Suite")
    print("="*60)

    tests = [
        ("test_resolver.py", "Adapter Input Resolution"),
        ("test_repository_sync.py", "Repository Synchronization"),
        ("test_adapter.py", "Adapter, Loaders and Error Responses"),
    ]

    results = []
    for test_file, description in tests:
        if Path(test_file).exists():
            success = run_test(test_file, description)
            results.append((test_file, description, success))
        else:
            print(f"⚠️  Test file not found: {test_file}")
            results.append((test_file, description, False))

    print(f"\n{'='*60}")
    print("TEST SUITE SUMMARY")
    print("="*60)

    passed = 0
    for test_file, description, success in results:
        status = "✅ PASS" if success else "❌ FAIL"
        print(f"{status} {description}")
        if success:
            passed += 1

    print(f"\nResults: {passed}/{len(results)} tests passed")
    return passed == len(results)


if __name__ == "__main__":
    try:
        success = main()
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\nTest suite interrupted by user")
        sys.exit(1)
