"""Delete all test-mode saved customers through the admin endpoint."""

import argparse
import json

import httpx


def main() -> None:
    """CLI entrypoint for the test-data purge."""

    parser = argparse.ArgumentParser(description="Delete all Stripe test customer data from the gateway.")
    parser.add_argument("--gateway-url", default="http://localhost:8000")
    parser.add_argument("--api-key", required=True)
    parser.add_argument("--yes", action="store_true", help="Confirm the deletion; it cannot be undone")
    args = parser.parse_args()

    if not args.yes:
        raise SystemExit("This deletes every saved test customer. Re-run with --yes to confirm.")

    resp = httpx.delete(
        f"{args.gateway_url}/admin/test-data",
        params={"confirm": "yes"},
        headers={"x-api-key": args.api_key},
        timeout=10.0,
    )
    resp.raise_for_status()
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
