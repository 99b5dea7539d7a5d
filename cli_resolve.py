"""Terminal client that reuses the in-process resolution logic."""
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from localstock.backend_proxy import BackendProxyAdapter
from localstock.cache import InMemoryCache
from localstock.config import settings
from localstock.guards import GuardConfig
from localstock.models import ResolveRequest
from localstock.repository import InMemoryRepository
from localstock.resolver import Resolver
from localstock.sample_data import seed_sample_data

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
RESET = "\033[0m"


def build_resolver(use_backend: bool = True) -> Resolver:
    repository = InMemoryRepository()
    seed_sample_data(repository)
    backend = BackendProxyAdapter.from_settings(settings) if use_backend else None
    return Resolver(
        repository,
        InMemoryCache(settings.cache_ttl_seconds),
        backend=backend,
        guard_config=GuardConfig.from_settings(settings),
    )


def eta_color(minutes: int) -> str:
    if minutes <= 120:
        return GREEN
    if minutes <= 240:
        return YELLOW
    return RED


def pretty_print_response(label: str, payload: dict) -> None:
    offers = payload.get("offers", [])
    status = f"{GREEN}eligible{RESET}" if payload.get("eligible") else f"{RED}not eligible{RESET}"
    print(f"Product: {label} | {status} | offers: {len(offers)} | cached: {payload.get('cached')}")
    for idx, offer in enumerate(offers, start=1):
        color = eta_color(int(offer.get("etaMinutes", 0)))
        print(
            f"  {idx:02d}. {offer.get('availabilityType'):<8} | {color}{offer.get('eta')}{RESET} | "
            f"{offer.get('price')} | {offer.get('storeName')} ({offer.get('distance')})"
        )


def request_from_args(args: argparse.Namespace) -> ResolveRequest:
    identifiers = {
        name: getattr(args, name)
        for name in ("gtin", "upc", "ean", "asin", "sku")
        if getattr(args, name)
    }
    return ResolveRequest(
        identifiers=identifiers,
        platform=args.platform,
        url=args.url or "",
        zip=args.zip,
    )


def batch_mode(resolver: Resolver, file_path: Path) -> int:
    with file_path.open("r", encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                request = ResolveRequest.model_validate(json.loads(line))
            except (json.JSONDecodeError, ValidationError) as exc:
                print(f"{RED}line {line_no}: invalid request: {exc}{RESET}")
                return 2
            response = asyncio.run(resolver.resolve(request))
            pretty_print_response(request.url, response)
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Resolve a product against local store offers")
    for name in ("gtin", "upc", "ean", "asin", "sku"):
        parser.add_argument(f"--{name}", help=f"{name.upper()} identifier")
    parser.add_argument("--platform", default="amazon", help="Marketplace the product came from")
    parser.add_argument("--url", help="Product page URL")
    parser.add_argument("--zip", help="Shopper ZIP code")
    parser.add_argument("--batch", type=Path, help="File with one JSON resolve request per line")
    parser.add_argument("--no-backend", action="store_true", help="Skip the upstream inventory fallback")
    args = parser.parse_args(list(argv) if argv is not None else None)

    resolver = build_resolver(use_backend=not args.no_backend)
    if args.batch:
        return batch_mode(resolver, args.batch)

    try:
        request = request_from_args(args)
    except ValidationError as exc:
        print(f"{RED}invalid request: {exc}{RESET}")
        return 2
    if not request.identifiers.present():
        parser.print_usage()
        print(f"{RED}at least one identifier is required{RESET}")
        return 2
    response = asyncio.run(resolver.resolve(request))
    pretty_print_response(request.url or "-", response)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
