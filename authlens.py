#! /usr/bin/env python3

# authlens.py
import argparse
import asyncio
import logging
import sys

from modules import report
from modules.errors import AnalysisError
from modules.orchestrator import make_analyzer
from modules.profile import DEFAULT_PROFILE, SenderProfile


async def process_domains(domains, analyzer, concurrency=10):
    """Analyze several domains with controlled concurrency.

    Returns (results, failures) where failures pairs a domain with its error.
    """
    semaphore = asyncio.Semaphore(concurrency)

    async def analyze_with_semaphore(domain):
        async with semaphore:
            return await analyzer.analyze(domain)

    tasks = [analyze_with_semaphore(d) for d in domains]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)

    results = []
    failures = []
    for domain, outcome in zip(domains, outcomes):
        if isinstance(outcome, AnalysisError):
            logging.error("Failed to analyze %s: %s", domain, outcome)
            failures.append((domain, outcome))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            results.append(outcome)
    return results, failures


def build_profile(args):
    return SenderProfile(
        name=args.sender,
        spf_include=args.include,
        dkim_selector=args.selector,
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="AuthLens: Email authentication diagnostics. "
        "Resolves SPF, DKIM and DMARC records for a domain, detects common "
        "misconfigurations and prints a ticket-ready report."
    )

    # --- Mode selection ---
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Launch the JSON/text HTTP API server",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for the web server (default: 8080, used with --serve)",
    )

    # --- Domain selection (not required if --serve) ---
    group = parser.add_mutually_exclusive_group(required=False)
    group.add_argument("-d", type=str, help="Single domain to analyze.")
    group.add_argument(
        "-iL", type=str, help="File containing a list of domains to analyze."
    )
    parser.add_argument(
        "-o",
        type=str,
        choices=["stdout", "report", "json"],
        default="stdout",
        help="Output format: stdout (colored summary), report (plain-text ticket report) "
        "or json (default: stdout).",
    )
    parser.add_argument(
        "-c",
        "--concurrency",
        type=int,
        default=10,
        help="Maximum concurrent domain analyses (default: 10)",
    )

    # --- Sender profile and resolver ---
    parser.add_argument(
        "--sender",
        default=DEFAULT_PROFILE.name,
        help=f"Display name of the sending service (default: {DEFAULT_PROFILE.name})",
    )
    parser.add_argument(
        "--include",
        default=DEFAULT_PROFILE.spf_include,
        help=f"SPF include domain of the sending service (default: {DEFAULT_PROFILE.spf_include})",
    )
    parser.add_argument(
        "--selector",
        default=DEFAULT_PROFILE.dkim_selector,
        help=f"DKIM selector of the sending service (default: {DEFAULT_PROFILE.dkim_selector})",
    )
    parser.add_argument(
        "--resolver",
        default=None,
        help="DNS-over-HTTPS JSON endpoint (default: https://dns.google/resolve)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Timeout in seconds for each DNS-over-HTTPS request (default: 10)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose/debug logging output",
    )

    args = parser.parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    profile = build_profile(args)

    # --- Web server mode ---
    if args.serve:
        import uvicorn
        from api.app import create_app

        print("\n🛡️  AuthLens API")
        print(f"   http://localhost:{args.port}")
        print(f"   API docs: http://localhost:{args.port}/docs\n")
        web_app = create_app(make_analyzer(args.resolver, args.timeout, profile))
        uvicorn.run(web_app, host="0.0.0.0", port=args.port, log_level="info")
        return 0

    # --- CLI mode (requires -d or -iL) ---
    if not args.d and not args.iL:
        parser.error("CLI mode requires -d or -iL (or use --serve for API mode)")

    if args.d:
        domains = [args.d]
    else:
        with open(args.iL, "r") as file:
            domains = [line.strip() for line in file if line.strip()]

    analyzer = make_analyzer(args.resolver, args.timeout, profile)
    results, failures = asyncio.run(
        process_domains(domains, analyzer, concurrency=args.concurrency)
    )

    if args.o == "json":
        report.output_json(results)
    elif args.o == "report":
        for result in results:
            print(report.render_report(result))
    else:
        for result in results:
            report.printer(result)

    for domain, error in failures:
        print(f"Error: {domain}: {error}", file=sys.stderr)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
