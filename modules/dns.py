# modules/dns.py

import logging
from dataclasses import dataclass

import dns.rdatatype
import requests

logger = logging.getLogger("authlens.dns")

DEFAULT_DOH_URL = "https://dns.google/resolve"
DEFAULT_TIMEOUT = 10


@dataclass(frozen=True)
class DNSAnswer:
    """One resource record from a resolver answer section."""

    name: str
    record_type: str
    ttl: int
    data: str

    def to_dict(self):
        return {
            "name": self.name,
            "type": self.record_type,
            "ttl": self.ttl,
            "data": self.data,
        }


class DoHResolver:
    """Single-query DNS-over-HTTPS client using the JSON API.

    A lookup never raises. Transport errors, malformed bodies and a
    non-zero resolver status all return an empty list, so an absent record
    and a failed lookup look the same to callers.

    Without an explicit session every lookup is a standalone requests.get,
    so one resolver can be shared by the analyzer threads.
    """

    def __init__(self, base_url=None, timeout=DEFAULT_TIMEOUT, session=None):
        self.base_url = base_url or DEFAULT_DOH_URL
        self.timeout = timeout
        self.session = session

    def lookup(self, name, record_type="TXT"):
        """Returns the answer records for name/record_type, or []."""
        params = {"name": name, "type": record_type}
        headers = {"accept": "application/dns-json"}
        try:
            logger.debug("Querying %s %s via %s", name, record_type, self.base_url)
            http = self.session or requests
            response = http.get(
                self.base_url, params=params, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.Timeout:
            logger.warning("DoH query timeout for %s %s", name, record_type)
            return []
        except requests.exceptions.RequestException as e:
            logger.warning("DoH request failed for %s %s: %s", name, record_type, e)
            return []
        except ValueError as e:
            logger.warning("DoH response for %s %s is not JSON: %s", name, record_type, e)
            return []

        try:
            return self._parse_answers(name, record_type, body)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Malformed DoH answer for %s %s: %s", name, record_type, e)
            return []

    def _parse_answers(self, name, record_type, body):
        status = body.get("Status")
        if status != 0:
            logger.debug("DoH status %s for %s %s", status, name, record_type)
            return []

        answers = []
        for record in body.get("Answer") or []:
            answers.append(
                DNSAnswer(
                    name=record["name"],
                    record_type=dns.rdatatype.to_text(int(record["type"])),
                    ttl=int(record.get("TTL", 0)),
                    data=str(record["data"]),
                )
            )
        logger.debug("DoH returned %d answers for %s %s", len(answers), name, record_type)
        return answers

    def __call__(self, name, record_type="TXT"):
        return self.lookup(name, record_type)

    def __str__(self):
        return f"DoH Resolver: {self.base_url} (timeout {self.timeout}s)"
