# modules/dmarc.py

import logging

from .records import is_dmarc, parse_tags, unwrap_txt

logger = logging.getLogger("authlens.dmarc")

STARTER_HOST = "_dmarc"
STARTER_RECORD = "v=DMARC1; p=none;"


class DMARC:
    """DMARC analysis of the TXT answers published at _dmarc.<domain>."""

    def __init__(self, answers, domain=None):
        self.domain = domain
        self.records = self.get_dmarc_records(answers)
        self.exists = bool(self.records)
        self.has_multiple = len(self.records) > 1
        self.record = self.records[0] if len(self.records) == 1 else None
        self.policy = None
        self.tags = {}
        self.recommendation = None
        self.errors = []

        if self.has_multiple:
            self.errors.append(
                f"CRITICAL: Multiple DMARC records detected ({len(self.records)}). Receivers treat "
                "this as if no DMARC record exists. The records must be consolidated manually into "
                "a single record; choose the policy deliberately before deleting any of them."
            )
            self.recommendation = (
                f"Review all {len(self.records)} records with the domain owner, keep one record "
                "with the intended policy and reporting addresses, and delete the rest."
            )
        elif self.record:
            self.tags = parse_tags(self.record)
            self.policy = self.get_dmarc_policy()
            if self.policy is None:
                self.errors.append(
                    "DMARC record has no policy (p=) tag. Receivers ignore a DMARC record "
                    "without a policy."
                )
                self.recommendation = f'Add a policy tag, for example: "{STARTER_RECORD}"'
        else:
            self.errors.append(
                "No DMARC record found. DMARC is highly recommended: all major mailbox providers "
                "(Gmail, Yahoo, etc.) now require it for senders of 5,000+ emails per day."
            )
            self.recommendation = (
                "Add a starter DMARC record:\n"
                f"  Host: {STARTER_HOST}\n"
                f"  Value: {STARTER_RECORD}\n"
                "Start with p=none to monitor only; it can be made stricter later."
            )

    def get_dmarc_records(self, answers):
        """Returns the DMARC strings among the TXT answers, in resolver order."""
        records = []
        for answer in answers:
            if answer.record_type != "TXT":
                continue
            text = unwrap_txt(answer.data)
            if is_dmarc(text):
                records.append(text)
        logger.debug("Found %d DMARC records for %s", len(records), self.domain)
        return records

    def get_dmarc_policy(self):
        """Returns the policy value from a DMARC record."""
        policy = self.tags.get("p")
        return policy or None

    def to_dict(self):
        return {
            "exists": self.exists,
            "record": self.record,
            "records": list(self.records),
            "has_multiple": self.has_multiple,
            "policy": self.policy,
            "tags": dict(self.tags),
            "recommendation": self.recommendation,
            "errors": list(self.errors),
        }

    def __str__(self):
        return (
            f"DMARC Record: {self.record}\n"
            f"Policy: {self.policy}\n"
            f"Multiple Records: {self.has_multiple}"
        )


def analyze_dmarc(answers, domain=None):
    """Analyze the TXT answers of _dmarc.<domain>."""
    return DMARC(answers, domain)
