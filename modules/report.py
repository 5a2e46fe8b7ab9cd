# modules/report.py

import json
import logging

from colorama import init, Fore, Style

# Initialize colorama
init()

logger = logging.getLogger("authlens.report")

REPORT_HEADER = "=== EMAIL AUTHENTICATION ANALYSIS ==="
REPORT_FOOTER = "=== END OF REPORT ==="
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


def output_message(symbol, message, level="info"):
    """Generic function to print messages with different colors and symbols based on the level."""
    colors = {
        "good": Fore.GREEN + Style.BRIGHT,
        "warning": Fore.YELLOW + Style.BRIGHT,
        "bad": Fore.RED + Style.BRIGHT,
        "indifferent": Fore.BLUE + Style.BRIGHT,
        "error": Fore.RED + Style.BRIGHT + "!!! ",
        "info": Fore.WHITE + Style.BRIGHT,
    }
    color = colors.get(level, Fore.WHITE + Style.BRIGHT)
    print(color + f"{symbol} {message}" + Style.RESET_ALL)


def _bullets(title, items):
    if not items:
        return []
    return ["", f"{title}:"] + [f"  • {item}" for item in items]


def _indented(text):
    return ["", "Recommendation:"] + [f"  {line}" for line in text.splitlines()]


def _spf_section(spf):
    name = spf.profile.name
    lines = ["--- SPF RECORDS ---"]
    if not spf.exists:
        lines.append("Status: ❌ Not Found")
        lines.append(f"Action: Customer needs to add an SPF record with {name} authorization.")
        lines.append(f"Recommended value: {spf.starter_record}")
        return lines

    lines.append(f"Status: {'❌ Issues Found' if spf.errors else '✓ Found'}")
    lines.append("")
    lines.append("Current SPF Record(s):")
    for info in spf.per_record:
        if spf.has_multiple:
            lines.append(f"  Record {info.index}: {info.record}")
        else:
            lines.append(f"  {info.record}")

    lines.append("")
    if spf.has_target:
        lines.append(f"{name} Authorization: ✓ Authorized ({spf.profile.include_term} present)")
    elif not spf.has_multiple:
        lines.append(f"{name} Authorization: ❌ NOT authorized (missing {spf.profile.include_term})")
    else:
        lines.append(f"{name} Authorization: ❌ None of the records authorize {name}")

    if spf.total_lookups is not None:
        lines.append(f"DNS lookups in record: {spf.total_lookups} (limit 10)")

    lines.extend(_bullets("Errors", spf.errors))
    lines.extend(_bullets("Warnings", spf.warnings))
    if spf.recommendation:
        lines.extend(_indented(spf.recommendation))
    return lines


def _dkim_section(dkim):
    lines = [f"--- DKIM RECORDS ({dkim.profile.name} Selector: {dkim.host}) ---"]
    if dkim.exists:
        lines.append(f"Status: {'❌ Issues Found' if dkim.errors else '✓ Found'}")
        lines.append(f"Location: {dkim.location}")
        if dkim.is_indirection:
            lines.append(f"CNAME Target: {dkim.indirection_target}")
        lines.append(f"Record: {dkim.record}")
        if dkim.key_bits:
            lines.append(f"Key: ~{dkim.key_bits}-bit {dkim.key_type}")
    elif dkim.provider:
        lines.append(f"Status: ❌ Points to {dkim.provider}")
        lines.append(f"Checked: {dkim.location}")
        lines.append(f"CNAME Target: {dkim.indirection_target}")
    elif dkim.is_indirection:
        lines.append("Status: ❌ CNAME Target Has No Key")
        lines.append(f"Checked: {dkim.location}")
        lines.append(f"CNAME Target: {dkim.indirection_target}")
    elif dkim.is_duplicated:
        lines.append("Status: ❌ Domain Duplication Issue")
        lines.append(f"Checked {dkim.location} - No record found")
        lines.append(f"Tested {dkim.duplicated_location} - Record found")
    else:
        lines.append("Status: ❌ Not Found")
        lines.append(f"Checked: {dkim.location}")

    lines.extend(_bullets("Errors", dkim.errors))
    if dkim.recommendation:
        lines.extend(_indented(dkim.recommendation))
    return lines


def _dmarc_section(dmarc):
    lines = ["--- DMARC RECORDS ---"]
    if dmarc.has_multiple:
        lines.append("Status: ❌ Multiple Records")
        for index, record in enumerate(dmarc.records, 1):
            lines.append(f"  Record {index}: {record}")
    elif dmarc.exists:
        lines.append(f"Status: {'❌ Issues Found' if dmarc.errors else '✓ Found'}")
        if dmarc.policy:
            lines.append(f"Policy: p={dmarc.policy}")
        lines.append(f"Record: {dmarc.record}")
    else:
        lines.append("Status: ❌ Not Found (Highly Recommended)")

    lines.extend(_bullets("Errors", dmarc.errors))
    if dmarc.recommendation:
        lines.extend(_indented(dmarc.recommendation))
    return lines


def render_report(result):
    """Plain-text report for support tickets. Formats the result, nothing more."""
    lines = [
        REPORT_HEADER,
        f"Domain: {result.domain}",
        f"Analyzed: {result.timestamp.strftime(TIMESTAMP_FORMAT)}",
        "",
    ]
    lines.extend(_spf_section(result.spf))
    lines.append("")
    lines.extend(_dkim_section(result.dkim))
    lines.append("")
    lines.extend(_dmarc_section(result.dmarc))
    lines.append("")
    lines.append(REPORT_FOOTER)
    return "\n".join(lines) + "\n"


def output_json(results):
    """Output results as JSON to stdout."""
    print(json.dumps([r.to_dict() for r in results], indent=2, default=str))


def printer(result):
    """Prints a colored console summary of one analysis."""
    spf, dkim, dmarc = result.spf, result.dkim, result.dmarc
    name = spf.profile.name

    output_message("[*]", f"Domain: {result.domain}", "indifferent")

    if not spf.exists:
        output_message("[?]", "No SPF record found.", "warning")
    else:
        for record in spf.records:
            output_message("[*]", f"SPF record: {record}", "info")
        if spf.has_target:
            output_message("[+]", f"{name} is authorized in SPF.", "good")
        else:
            output_message("[-]", f"{name} is not authorized in SPF.", "bad")
        if spf.total_lookups is not None:
            output_message("[*]", f"SPF DNS lookup count: {spf.total_lookups}", "info")

    if dkim.exists:
        output_message("[+]", f"DKIM record found at {dkim.location}", "good")
    else:
        output_message("[-]", f"No valid DKIM record at {dkim.location}", "bad")

    if dmarc.exists and not dmarc.has_multiple:
        output_message("[*]", f"DMARC record: {dmarc.record}", "info")
        output_message(
            "[*]", f"Found DMARC policy: {dmarc.policy}" if dmarc.policy else "No DMARC policy found.", "info"
        )
    elif not dmarc.exists:
        output_message("[?]", "No DMARC record found.", "warning")

    for message in spf.errors + dkim.errors + dmarc.errors:
        output_message("[!]", message, "error")
    for message in spf.warnings:
        output_message("[?]", message, "warning")

    print()  # Padding
