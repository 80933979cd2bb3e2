#!/usr/bin/env python3
"""
Corpus test runner for the jtemplate command line.

Runs ``python -m jtemplate`` on every template in tests/cases for each
binding that has a sidecar file, and verifies the exit code:
- 0: Success (no errors, no warnings)
- 1: Success with warnings
- 2: Specialization failed with errors

Templates with a ``.ok`` sidecar must also print exactly its contents.

Usage:
    python tests/run_tests.py
    python tests/run_tests.py --verbose
    python tests/run_tests.py --help
"""

import argparse
import subprocess
import sys
import json
import time
from pathlib import Path
from concurrent.futures import ThreadPoolExecutor, as_completed
from tqdm import tqdm


def get_expected_exit_code(test_file: Path) -> int:
    """Determine expected exit code based on filename convention.

    Convention:
    - test_*.java: expect 0 (success, no warnings)
    - test_warn_*.java: expect 1 (success with warnings)
    - test_err_*.java: expect 2 (specialization failed)
    """
    test_name = test_file.name
    if test_name.startswith("test_warn_"):
        return 1
    elif test_name.startswith("test_err_"):
        return 2
    return 0


def find_cases(cases_dir: Path) -> list[tuple[Path, str, Path]]:
    """(template, binding, sidecar) for every sidecar next to a template."""
    cases = []
    for template in sorted(cases_dir.glob("test_*.java")):
        for sidecar in sorted(cases_dir.glob(f"{template.stem}.*")):
            if sidecar.suffix in (".ok", ".err"):
                binding = sidecar.name[len(template.stem) + 1:-len(sidecar.suffix)]
                cases.append((template, binding, sidecar))
    return cases


def run_single_test(template: Path, binding: str, sidecar: Path,
                    project_root: Path) -> tuple[str, bool, int, int, str]:
    """Run one template/binding pair and return results."""
    test_name = f"{template.name} [{binding}]"
    expected_exit_code = get_expected_exit_code(template)

    ktype, _, vtype = binding.partition("-")
    cmd = [sys.executable, "-m", "jtemplate", str(template), "--ktype", ktype]
    if vtype:
        cmd += ["--vtype", vtype]

    try:
        result = subprocess.run(
            cmd,
            cwd=project_root,
            capture_output=True,
            text=True,
            timeout=30
        )

        actual_exit_code = result.returncode
        passed = actual_exit_code == expected_exit_code

        output = ""
        if sidecar.suffix == ".ok":
            expected = sidecar.read_text(encoding="utf-8")
            if result.stdout != expected:
                passed = False
                output += f"OUTPUT MISMATCH:\n{result.stdout}\n"
        else:
            for code in sidecar.read_text(encoding="utf-8").split():
                if code not in result.stderr:
                    passed = False
                    output += f"MISSING DIAGNOSTIC: {code}\n"

        if result.stderr:
            output += f"STDERR:\n{result.stderr}\n"

        return test_name, passed, expected_exit_code, actual_exit_code, output

    except subprocess.TimeoutExpired:
        return test_name, False, expected_exit_code, -1, "TEST TIMEOUT"
    except OSError as e:
        return test_name, False, expected_exit_code, -1, f"TEST ERROR: {e}"


def main():
    parser = argparse.ArgumentParser(description="Run jtemplate corpus tests")
    parser.add_argument("-v", "--verbose", action="store_true",
                       help="Show detailed output for each test")
    parser.add_argument("-j", "--jobs", type=int, default=4,
                       help="Number of parallel test jobs (default: 4)")
    parser.add_argument("--filter", type=str,
                       help="Only run tests matching this pattern")
    parser.add_argument("--json", action="store_true",
                       help="Output results in JSON format")

    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    cases_dir = project_root / "tests" / "cases"

    cases = find_cases(cases_dir)
    if args.filter:
        cases = [c for c in cases if args.filter in c[0].name]

    if not cases:
        if not args.json:
            print("No test files found!")
        return 1

    if not args.json:
        print(f"Running {len(cases)} tests with {args.jobs} parallel jobs...")
        print()

    start_time = time.time()

    results = []
    show_progress = not args.json and not args.verbose
    with ThreadPoolExecutor(max_workers=args.jobs) as executor:
        futures = {executor.submit(run_single_test, *c, project_root): c for c in cases}
        if show_progress:
            pbar = tqdm(total=len(cases), desc="Running tests", unit="test",
                       bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]")
        for future in as_completed(futures):
            results.append(future.result())
            if show_progress:
                pbar.update(1)
        if show_progress:
            pbar.close()

    end_time = time.time()
    results.sort()

    passed_tests = []
    failed_tests = []

    for test_name, passed, expected, actual, output in results:
        if passed:
            passed_tests.append(test_name)
            if args.verbose and not args.json:
                print(f"✓ {test_name} (expected: {expected}, actual: {actual})")
        else:
            failed_tests.append((test_name, expected, actual, output))
            if not args.json:
                print(f"✗ {test_name} (expected: {expected}, actual: {actual})")
                if args.verbose and output:
                    print(f"  Output: {output}")

    if args.json:
        json_output = {
            "total_tests": len(results),
            "passed": len(passed_tests),
            "failed": len(failed_tests),
            "duration_seconds": round(end_time - start_time, 2),
            "failed_tests": [
                {
                    "name": test_name,
                    "expected_exit_code": expected,
                    "actual_exit_code": actual
                }
                for test_name, expected, actual, output in failed_tests
            ]
        }
        print(json.dumps(json_output, indent=2))
        return 1 if failed_tests else 0

    print()
    print(f"Test Results ({end_time - start_time:.2f}s):")
    print(f"  Passed: {len(passed_tests)}")
    print(f"  Failed: {len(failed_tests)}")
    print(f"  Total:  {len(results)}")

    if failed_tests:
        print()
        print("Failed tests:")
        for test_name, expected, actual, output in failed_tests:
            print(f"  {test_name}: expected {expected}, got {actual}")
        return 1

    print()
    print("All tests passed! ✓")
    return 0

if __name__ == "__main__":
    sys.exit(main())
