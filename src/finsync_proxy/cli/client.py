"""CLI to exercise a running FinSync proxy.

Usage:
  finsync-cli health
  finsync-cli login alice@example.com s3cret
  finsync-cli quote AAPL
  finsync-cli quotes AAPL MSFT --token <jwt>
  finsync-cli profit-loss --token <jwt>
  finsync-cli holding put AAPL --quantity 10 --average-price 150 --token <jwt>

The token can also be supplied through the FINSYNC_TOKEN environment variable.
"""
import argparse
import json
import os
import sys

import httpx


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def _auth(args: argparse.Namespace) -> dict[str, str]:
    token = args.token or os.environ.get("FINSYNC_TOKEN")
    return {"Authorization": f"Bearer {token}"} if token else {}


def cmd_health(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_login(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.post("/user/login", json={"email": args.email, "password": args.password})
    r.raise_for_status()
    data = r.json()
    print_json(data)
    print(f"\nexport FINSYNC_TOKEN={data['token']}", file=sys.stderr)
    return 0


def cmd_register(client: httpx.Client, args: argparse.Namespace) -> int:
    body = {"name": args.name, "email": args.email, "password": args.password}
    r = client.post("/user/new", json=body)
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_quote(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/quote", params={"symbol": args.symbol}, headers=_auth(args))
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_quotes(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/quotes", params={"symbols": ",".join(args.symbols)}, headers=_auth(args))
    r.raise_for_status()
    data = r.json()
    print(f"Got {len(data)}/{len(args.symbols)} quotes")
    print_json(data)
    return 0


def cmd_profit_loss(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/profit-loss", headers=_auth(args))
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_predict(client: httpx.Client, args: argparse.Namespace) -> int:
    params = dict(pair.split("=", 1) for pair in args.params)
    r = client.get("/predict", params=params, headers=_auth(args))
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_holding_list(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/portfolio/holdings", headers=_auth(args))
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_holding_put(client: httpx.Client, args: argparse.Namespace) -> int:
    body = {"quantity": args.quantity, "average_price": args.average_price}
    if args.name:
        body["name"] = args.name
    r = client.put(f"/portfolio/holdings/{args.symbol}", json=body, headers=_auth(args))
    r.raise_for_status()
    print_json(r.json())
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Exercise the FinSync proxy routes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8001",
        help="Proxy base URL (default: http://localhost:8001)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Request timeout in seconds (default: 30)",
    )
    parser.add_argument("--token", default=None, help="Identity token (default: $FINSYNC_TOKEN)")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command")

    subparsers.add_parser("health", help="GET / health check")

    p = subparsers.add_parser("login", help="POST /user/login")
    p.add_argument("email")
    p.add_argument("password")

    p = subparsers.add_parser("register", help="POST /user/new")
    p.add_argument("name")
    p.add_argument("email")
    p.add_argument("password")

    p = subparsers.add_parser("quote", help="GET /quote?symbol=")
    p.add_argument("symbol", help="Ticker (e.g. AAPL)")

    p = subparsers.add_parser("quotes", help="GET /quotes?symbols=")
    p.add_argument("symbols", nargs="+", help="Tickers (e.g. AAPL MSFT)")

    subparsers.add_parser("profit-loss", help="GET /profit-loss")

    p = subparsers.add_parser("predict", help="GET /predict")
    p.add_argument("params", nargs="*", help="Query params as KEY=VALUE (e.g. Age=32)")

    holding = subparsers.add_parser("holding", help="Portfolio holdings (/portfolio/holdings)")
    holding_sub = holding.add_subparsers(dest="holding_cmd", required=True)
    holding_sub.add_parser("list", help="GET /portfolio/holdings")
    p = holding_sub.add_parser("put", help="PUT /portfolio/holdings/{symbol}")
    p.add_argument("symbol")
    p.add_argument("--quantity", type=float, required=True)
    p.add_argument("--average-price", type=float, required=True)
    p.add_argument("--name", default=None)

    args = parser.parse_args()
    base_url = args.base_url.rstrip("/")

    handlers = {
        "health": cmd_health,
        "login": cmd_login,
        "register": cmd_register,
        "quote": cmd_quote,
        "quotes": cmd_quotes,
        "profit-loss": cmd_profit_loss,
        "predict": cmd_predict,
        "holding": {"list": cmd_holding_list, "put": cmd_holding_put},
    }
    handler = handlers[args.command]
    if isinstance(handler, dict):
        handler = handler[args.holding_cmd]

    try:
        with httpx.Client(base_url=base_url, timeout=args.timeout) as client:
            return handler(client, args)
    except httpx.HTTPStatusError as e:
        print(f"HTTP error: {e.response.status_code}", file=sys.stderr)
        if e.response.content:
            try:
                print_json(e.response.json())
            except ValueError:
                print(e.response.text, file=sys.stderr)
        return 1
    except httpx.RequestError as e:
        print(f"Request error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
