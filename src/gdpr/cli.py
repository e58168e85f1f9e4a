"""
Command-line permission checks.

Evaluates GDPR permissions for an OpenRTB bid request against a list of
bidders and prints the decisions as JSON. Bidders are given as
``core`` or ``core:alias``.
"""

import argparse
import json
import sys
from typing import Any, Callable, Iterable

import yaml

from src.gdpr.config.enforcement import TCF2Config, load_tcf2_config
from src.gdpr.config.host_config import GDPRHostConfig, load_host_config
from src.gdpr.context import RequestContext
from src.gdpr.errors import PermissionsError
from src.gdpr.logging import LogContext
from src.gdpr.permissions.engine import Permissions, new_permissions
from src.gdpr.vendorlist.fetcher import RedisVendorListCache, VendorListFetcher


def _checked(check: Callable[[], Any], errors: list[str]) -> Any:
    """Run a check, falling back to the error's conservative result."""
    try:
        return check()
    except PermissionsError as e:
        errors.append(str(e))
        return e.fallback


def parse_bidder(value: str) -> tuple[str, str]:
    """Split ``core:alias``; a bare name is its own alias."""
    core, _, alias = value.partition(":")
    return core, alias or core


def evaluate_request(
    permissions: Permissions,
    ctx: RequestContext,
    bidders: Iterable[str],
) -> dict[str, Any]:
    """
    Run every permission check for a request.

    Failed checks report their fallback value and the error message.
    """
    errors: list[str] = []
    result: dict[str, Any] = {
        "gdpr_signal": ctx.gdpr_signal.name,
        "host_cookies_allowed": _checked(lambda: permissions.host_cookies_allowed(ctx), errors),
        "bidders": {},
    }

    for bidder in bidders:
        core, alias = parse_bidder(bidder)
        sync_allowed = _checked(lambda: permissions.bidder_sync_allowed(ctx, core), errors)
        activities = _checked(
            lambda: permissions.auction_activities_allowed(ctx, core, alias), errors
        )
        result["bidders"][alias] = {"sync_allowed": sync_allowed, **activities.to_dict()}

    result["errors"] = errors
    return result


def build_tcf2_config(tcf2_path: str | None, account_path: str | None) -> TCF2Config:
    """Load the host TCF2 config and layer account overrides on top."""
    config = load_tcf2_config(tcf2_path)
    if account_path:
        with open(account_path) as f:
            account = yaml.safe_load(f) or {}
        config = config.with_account_overrides(account.get("tcf2", account))
    return config


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check GDPR permissions for a bid request")
    parser.add_argument("request", help="OpenRTB bid request JSON file")
    parser.add_argument(
        "--bidder", action="append", required=True,
        help="Bidder as core or core:alias (repeatable)",
    )
    parser.add_argument("--host-config", help="Host GDPR settings YAML")
    parser.add_argument("--tcf2-config", help="TCF2 enforcement YAML")
    parser.add_argument("--account-config", help="Account TCF2 overrides YAML")
    parser.add_argument("--redis-url", help="Share vendor lists through Redis")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    args = parser.parse_args(argv)

    if args.host_config:
        host_config = load_host_config(args.host_config)
    else:
        host_config = GDPRHostConfig.from_dict({})
    tcf2_config = build_tcf2_config(args.tcf2_config, args.account_config)

    cache = RedisVendorListCache(args.redis_url) if args.redis_url else None
    fetcher = VendorListFetcher(
        url_template=host_config.vendor_list_url,
        timeout=host_config.vendor_list_timeout,
        cache=cache,
    )
    if host_config.vendor_list_preload:
        fetcher.preload(host_config.vendor_list_preload)

    permissions = new_permissions(host_config, tcf2_config, fetcher)

    with open(args.request) as f:
        request = json.load(f)

    try:
        ctx = RequestContext.from_openrtb(request, host_config.default_value, args.timeout)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with LogContext(
        request_id=request.get("id"), publisher_id=ctx.publisher_id, consent=ctx.consent
    ):
        result = evaluate_request(permissions, ctx, args.bidder)

    print(json.dumps(result, indent=2))
    return 0
