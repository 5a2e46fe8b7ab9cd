# modules/records.py

"""
Small parsers for the TXT record formats the analyzers look at.

SPF term list (RFC 7208 section 4.6.1):

    record    = version *( 1*SP term )
    term      = modifier / mechanism
    modifier  = name "=" value
    mechanism = [ qualifier ] name [ ":" argument ] [ cidr ]
    qualifier = "+" / "-" / "~" / "?"

Tag list used by DKIM and DMARC (RFC 6376 section 3.2, RFC 7489 section 6.4):

    tag-list  = tag *( ";" tag ) [ ";" ]
    tag       = name "=" value
"""

import re
from dataclasses import dataclass

import dns.exception
import dns.name

SPF_VERSION = "v=spf1"
DMARC_VERSION = "v=DMARC1"
QUALIFIERS = "+-~?"

_QUOTED_CHUNK = re.compile(r'"((?:[^"\\]|\\.)*)"')
_ESCAPE = re.compile(r"\\(\d{3}|.)")
_QUOTED_SEQUENCE = re.compile(r'^\s*(?:"(?:[^"\\]|\\.)*"\s*)+$')
_MODIFIER_NAME = re.compile(r"^[a-zA-Z][a-zA-Z0-9_.-]*$")


@dataclass(frozen=True)
class SPFTerm:
    """One mechanism or modifier of an SPF record."""

    text: str
    name: str
    qualifier: str = ""
    argument: str | None = None
    cidr: str | None = None
    is_modifier: bool = False

    @property
    def effective_qualifier(self):
        return self.qualifier or "+"


def _unescape(match):
    # RFC 1035 \DDD is a decimal octet, any other \X is X itself
    escaped = match.group(1)
    if len(escaped) == 3:
        return chr(int(escaped))
    return escaped


def unwrap_txt(data):
    """Return the text of a TXT answer without its surrounding quotes.

    Long records come back as several quoted strings ("a" "b"); those are
    joined without a separator.
    """
    if data is None:
        return ""
    text = data.strip()
    if _QUOTED_SEQUENCE.match(text):
        chunks = _QUOTED_CHUNK.findall(text)
        return "".join(_ESCAPE.sub(_unescape, c) for c in chunks)
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    return text


def is_spf(text):
    """True when text is an SPF version 1 record."""
    head = text.strip()[: len(SPF_VERSION) + 1]
    return head.lower() == SPF_VERSION or head.lower() == SPF_VERSION + " "


def is_dmarc(text):
    return text.strip().startswith(DMARC_VERSION)


def parse_spf_term(token):
    """Parse a single whitespace-delimited SPF term."""
    if "=" in token:
        name, _, value = token.partition("=")
        # "exists:%{i}=x" is a mechanism, "redirect=x" a modifier
        if _MODIFIER_NAME.match(name):
            return SPFTerm(text=token, name=name.lower(), argument=value, is_modifier=True)

    qualifier = ""
    body = token
    if body and body[0] in QUALIFIERS:
        qualifier, body = body[0], body[1:]

    name = body
    argument = None
    cidr = None
    colon = body.find(":")
    slash = body.find("/")
    if colon != -1 and (slash == -1 or colon < slash):
        name, argument = body[:colon], body[colon + 1:]
    elif slash != -1:
        name, cidr = body[:slash], body[slash:]

    name = name.lower()
    # ip4/ip6 keep the prefix length inside the argument
    if argument is not None and name in ("a", "mx") and "/" in argument:
        argument, _, rest = argument.partition("/")
        cidr = "/" + rest

    return SPFTerm(text=token, name=name, qualifier=qualifier, argument=argument, cidr=cidr)


def parse_spf(record):
    """Return the list of terms of an SPF record, version token excluded."""
    tokens = record.split()
    if tokens and tokens[0].lower() == SPF_VERSION:
        tokens = tokens[1:]
    return [parse_spf_term(t) for t in tokens]


def parse_tags(record):
    """Parse a tag=value list into an ordered dict with lowercased names."""
    tags = {}
    if not record:
        return tags
    for segment in record.split(";"):
        if "=" not in segment:
            continue
        name, _, value = segment.partition("=")
        name = name.strip().lower()
        if not name or name in tags:
            continue
        tags[name] = value.strip()
    return tags


def same_name(first, second):
    """Compare two DNS names, ignoring case and the trailing root dot."""
    try:
        return dns.name.from_text(first) == dns.name.from_text(second)
    except dns.exception.DNSException:
        return first.lower().rstrip(".") == second.lower().rstrip(".")
