"""Fetch one order's status, notes and payment meta from the gateway."""

import argparse
import json

import httpx


def main() -> None:
    parser = argparse.ArgumentParser(description="Print an order's payment state.")
    parser.add_argument("order_id", type=int)
    parser.add_argument("--gateway-url", default="http://localhost:8000")
    parser.add_argument("--api-key", required=True)
    args = parser.parse_args()

    resp = httpx.get(
        f"{args.gateway_url}/orders/{args.order_id}",
        headers={"x-api-key": args.api_key},
        timeout=10.0,
    )
    if resp.status_code == 404:
        raise SystemExit(f"order {args.order_id} not found")
    resp.raise_for_status()
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
