import argparse
import logging
import sys

from .config import ClientConfig
from .errors import HttpReqError
from .httpreq import HttpClient
from .transport import AddressFamily


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="httpreq", description="Send a single HTTP/1.1 request and print the response.")

    parser.add_argument("url", help="The target URL (e.g., http://127.0.0.1:8080/path).")

    parser.add_argument("-X", "--method", type=str, default="GET", help="Request method.")
    parser.add_argument("-d", "--data", type=str, default="", help="Request body, sent as-is.")
    parser.add_argument("-H", "--header", action="append", default=[], dest="headers", help="Extra 'Name: value' header; may be repeated.")
    parser.add_argument("--timeout", type=float, default=None, help="Overall deadline in seconds (default: HTTPREQ_TIMEOUT or none).")
    parser.add_argument("-6", "--ipv6", action="store_true", help="Resolve the host to an IPv6 address.")

    parser.add_argument("-i", "--include", action="store_true", help="Print the status line and headers before the body.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ClientConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    family = AddressFamily.V6 if args.ipv6 else None
    client = HttpClient(args.url, family=family, config=config)

    try:
        response = client.send(args.method.upper(), args.data, args.headers, args.timeout)
    except HttpReqError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.include:
        sys.stdout.write(f"HTTP/1.1 {response.status}\r\n")
        for line in response.headers:
            sys.stdout.write(f"{line}\r\n")
        sys.stdout.write("\r\n")
        sys.stdout.flush()

    sys.stdout.buffer.write(response.body)
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
