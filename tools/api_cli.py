#!/usr/bin/env python3
"""
Command-line helper for invoking the Fastly ACL dashboard API.

Usage examples:

python tools/api_cli.py list-services --base-url http://localhost:8100

python tools/api_cli.py upload \
    --base-url http://localhost:8100 \
    --service-id SU1Z0isxPaozGVKXdv0eY \
    --acl-id 6tUXdegLTf5BCig0zGFrU3 \
    --file blocklist.txt \
    --comment "Weekly blocklist"
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Dict, Optional

import requests


class ApiClient:
    def __init__(self, base_url: str, timeout: int = 30, proxy: Optional[str] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._proxies: Optional[Dict[str, str]] = {"http": proxy, "https": proxy} if proxy else None

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"}
        headers.update(kwargs.pop("headers", None) or {})
        return requests.request(
            method,
            url,
            headers=headers,
            timeout=self.timeout,
            proxies=self._proxies,
            **kwargs,
        )

    def health(self) -> requests.Response:
        return self.request("GET", "/health")

    def list_services(self) -> requests.Response:
        return self.request("GET", "/fastly/services")

    def list_versions(self, service_id: str) -> requests.Response:
        return self.request("GET", f"/fastly/service/{service_id}/version")

    def list_acls(self, service_id: str, version_id: str) -> requests.Response:
        return self.request("GET", f"/fastly/service/{service_id}/version/{version_id}/acl")

    def upload(self, service_id: str, acl_id: str, path: Path, comment: Optional[str]) -> requests.Response:
        data = {"serviceId": service_id, "aclId": acl_id}
        if comment:
            data["comment"] = comment
        with path.open("rb") as fh:
            files = {"file": (path.name, fh, "text/plain")}
            return self.request("POST", "/fastly/upload", data=data, files=files)


def print_response(resp: requests.Response) -> None:
    print(f"Status: {resp.status_code}")
    content = resp.text.strip()
    if content:
        try:
            print(json.dumps(resp.json(), indent=2, ensure_ascii=False))
        except ValueError:
            print(content)
    if not resp.ok:
        raise SystemExit(1)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--base-url", required=True, help="Base URL for the API (e.g. http://localhost:8100)")
    parser.add_argument("--timeout", type=int, default=300, help="HTTP timeout in seconds (default: 300)")
    parser.add_argument("--proxy", default=os.getenv("HTTPS_PROXY"), help="Optional HTTP(S) proxy URL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fastly ACL dashboard API helper CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    health = sub.add_parser("health", help="Health check")
    add_common_arguments(health)

    services = sub.add_parser("list-services", help="List Fastly services")
    add_common_arguments(services)

    versions = sub.add_parser("list-versions", help="List versions of a service")
    versions.add_argument("--service-id", required=True)
    add_common_arguments(versions)

    acls = sub.add_parser("list-acls", help="List ACLs of a service version")
    acls.add_argument("--service-id", required=True)
    acls.add_argument("--version-id", required=True)
    add_common_arguments(acls)

    upload = sub.add_parser("upload", help="Bulk-upload a file of IPs/CIDRs into an ACL")
    upload.add_argument("--service-id", required=True)
    upload.add_argument("--acl-id", required=True)
    upload.add_argument("--file", required=True, help="Text file, one IP or CIDR per line")
    upload.add_argument("--comment", help="Comment stored with each entry")
    add_common_arguments(upload)

    return parser


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    client = ApiClient(args.base_url, timeout=args.timeout, proxy=args.proxy)

    try:
        if args.command == "health":
            resp = client.health()
        elif args.command == "list-services":
            resp = client.list_services()
        elif args.command == "list-versions":
            resp = client.list_versions(args.service_id)
        elif args.command == "list-acls":
            resp = client.list_acls(args.service_id, args.version_id)
        elif args.command == "upload":
            path = Path(args.file)
            if not path.is_file():
                parser.error(f"--file {args.file} does not exist")
            resp = client.upload(args.service_id, args.acl_id, path, args.comment)
        else:
            parser.error(f"Unknown command {args.command}")
            return
    except requests.RequestException as exc:
        print(f"HTTP request failed: {exc}", file=sys.stderr)
        sys.exit(1)

    print_response(resp)


if __name__ == "__main__":
    main()
