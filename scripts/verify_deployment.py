#!/usr/bin/env python3
"""Deployment smoke test: liveness, readiness, and the public meeting view.

Usage:
    python scripts/verify_deployment.py --backend-url https://crm.example.com
    python scripts/verify_deployment.py --backend-url https://crm.example.com --meeting-id <uuid>

Exit code 0 if all checks pass, 1 if any fail.
"""

import argparse
import sys
from typing import Tuple

import httpx

TIMEOUT = 15.0


def check_liveness(url: str) -> Tuple[bool, str]:
    """Verify /health returns HTTP 200."""
    health_url = url.rstrip("/") + "/health"
    try:
        response = httpx.get(health_url, timeout=TIMEOUT, follow_redirects=True)
        if response.status_code == 200:
            return True, "HTTP 200"
        return False, f"HTTP {response.status_code}"
    except httpx.TimeoutException:
        return False, "Request timed out"
    except httpx.ConnectError as exc:
        return False, f"Connection failed: {exc}"
    except httpx.HTTPError as exc:
        return False, f"HTTP error: {exc}"


def check_readiness(url: str) -> Tuple[bool, str]:
    """Verify /health/ready returns HTTP 200 with ready status."""
    ready_url = url.rstrip("/") + "/health/ready"
    try:
        response = httpx.get(ready_url, timeout=TIMEOUT, follow_redirects=True)
        try:
            data = response.json()
        except ValueError:
            return False, f"HTTP {response.status_code}, response is not valid JSON"

        if response.status_code == 200 and data.get("status") == "ready":
            return True, "All checks healthy"

        checks = data.get("checks", {})
        failed = [name for name, value in checks.items() if value == "error"]
        if failed:
            return False, f"Degraded: {', '.join(failed)}"
        return False, f"HTTP {response.status_code}, status: {data.get('status', 'unknown')}"

    except httpx.TimeoutException:
        return False, "Request timed out"
    except httpx.ConnectError as exc:
        return False, f"Connection failed: {exc}"
    except httpx.HTTPError as exc:
        return False, f"HTTP error: {exc}"


def check_meeting_view(url: str, meeting_id: str) -> Tuple[bool, str]:
    """Verify the public view endpoint serves a known meeting."""
    view_url = url.rstrip("/") + f"/api/meeting/view/{meeting_id}"
    try:
        response = httpx.get(view_url, timeout=TIMEOUT, follow_redirects=True)
        if response.status_code != 200:
            return False, f"HTTP {response.status_code}"
        data = response.json()
        if data.get("id") != meeting_id:
            return False, "Response id does not match"
        return True, f"createdByName={data.get('createdByName')!r}"
    except ValueError:
        return False, "Response is not valid JSON"
    except httpx.TimeoutException:
        return False, "Request timed out"
    except httpx.ConnectError as exc:
        return False, f"Connection failed: {exc}"
    except httpx.HTTPError as exc:
        return False, f"HTTP error: {exc}"


def print_results(results: list) -> None:
    """Print a formatted table of check results."""
    header = f"{'CHECK':<25} {'STATUS':<10} {'DETAIL'}"
    separator = "-" * 70
    print()
    print(separator)
    print(header)
    print(separator)
    for name, passed, detail in results:
        status = "PASS" if passed else "FAIL"
        print(f"{name:<25} {status:<10} {detail}")
    print(separator)
    print()


def main() -> None:
    parser = argparse.ArgumentParser(description="Verify a CRM meetings deployment")
    parser.add_argument("--backend-url", required=True, help="Base URL of the API")
    parser.add_argument(
        "--meeting-id",
        default=None,
        help="Existing meeting id to fetch through the public view endpoint",
    )
    args = parser.parse_args()

    results = []

    passed, detail = check_liveness(args.backend_url)
    results.append(("Liveness", passed, detail))

    passed, detail = check_readiness(args.backend_url)
    results.append(("Readiness", passed, detail))

    if args.meeting_id:
        passed, detail = check_meeting_view(args.backend_url, args.meeting_id)
        results.append(("Meeting view", passed, detail))

    print_results(results)

    all_passed = all(passed for _, passed, _ in results)
    if all_passed:
        print("All checks passed.")
    else:
        print("Some checks FAILED.")

    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
