# modules/spf.py

import logging
from dataclasses import dataclass

from .profile import DEFAULT_PROFILE
from .records import is_spf, parse_spf, parse_spf_term, unwrap_txt

logger = logging.getLogger("authlens.spf")

# Mechanisms that cost one DNS lookup each when the record is evaluated
LOOKUP_MECHANISMS = ("include", "a", "mx", "ptr", "exists")
LOOKUP_LIMIT = 10
HIGH_LOOKUP_THRESHOLD = 8
MODERATE_LOOKUP_THRESHOLD = 5

MERGE_MECHANISMS = ("include", "a", "mx", "ip4", "ip6")
RECOMMENDED_ALL = "~all"


@dataclass(frozen=True)
class SPFRecordInfo:
    """Classification of one SPF record among the published set."""

    record: str
    index: int
    has_target_include: bool
    is_target_only: bool

    def to_dict(self):
        return {
            "record": self.record,
            "index": self.index,
            "has_target_include": self.has_target_include,
            "is_target_only": self.is_target_only,
        }


def has_include(terms, include_domain):
    target = include_domain.lower().rstrip(".")
    return any(
        t.name == "include" and not t.is_modifier and (t.argument or "").lower().rstrip(".") == target
        for t in terms
    )


def find_all_mechanism(terms):
    """Returns the text of the last 'all' mechanism, or None."""
    found = None
    for term in terms:
        if term.name == "all" and not term.is_modifier:
            found = term.text
    return found


def count_lookups(record):
    """Returns a per-mechanism count of lookup-costing terms in record."""
    counts = dict.fromkeys(LOOKUP_MECHANISMS, 0)
    for term in parse_spf(record):
        if not term.is_modifier and term.name in counts:
            counts[term.name] += 1
    return counts


def format_breakdown(counts):
    parts = [f"{counts['include']} includes", f"{counts['a']} a", f"{counts['mx']} mx"]
    if counts["ptr"]:
        parts.append(f"{counts['ptr']} ptr")
    if counts["exists"]:
        parts.append(f"{counts['exists']} exists")
    return ", ".join(parts)


class SPF:
    """SPF analysis of the TXT answers published at a domain apex."""

    def __init__(self, answers, profile=None):
        self.profile = profile or DEFAULT_PROFILE
        self.records = []
        self.per_record = []
        self.exists = False
        self.has_target = False
        self.has_multiple = False
        self.all_mechanism = None
        self.lookup_counts = None
        self.total_lookups = None
        self.recommendation = None
        self.errors = []
        self.warnings = []

        self.records = self.get_spf_records(answers)
        self.exists = bool(self.records)
        if not self.exists:
            logger.debug("No SPF record among %d answers", len(answers))
            return

        self.has_multiple = len(self.records) > 1
        self.per_record = self.classify_records()
        self.has_target = any(info.has_target_include for info in self.per_record)

        if self.has_multiple:
            self.errors.append(
                f"Multiple SPF records detected ({len(self.records)}). "
                "Only one is allowed; this invalidates all of them."
            )
            self.recommendation = self.get_consolidation_advice()
        else:
            self.check_terminator()
            self.check_lookup_budget()
            if not self.has_target:
                self.recommendation = self.get_authorization_advice()

    def get_spf_records(self, answers):
        """Returns the SPF strings among the TXT answers, in resolver order."""
        records = []
        for answer in answers:
            if answer.record_type != "TXT":
                continue
            text = unwrap_txt(answer.data)
            if is_spf(text):
                records.append(text)
        logger.debug("Found %d SPF records", len(records))
        return records

    def classify_records(self):
        infos = []
        for index, record in enumerate(self.records, 1):
            terms = parse_spf(record)
            has_target = has_include(terms, self.profile.spf_include)
            target_only = (
                has_target
                and len(terms) == 2
                and terms[0].name == "include"
                and terms[1].name == "all"
            )
            infos.append(SPFRecordInfo(record, index, has_target, target_only))
        return infos

    def check_terminator(self):
        self.all_mechanism = find_all_mechanism(parse_spf(self.records[0]))
        if self.all_mechanism is None:
            self.warnings.append(
                'SPF record is missing a terminator (like ~all or -all). We recommend adding "~all" '
                "at the end for soft fail protection."
            )
        elif self.all_mechanism.lower() != RECOMMENDED_ALL:
            self.warnings.append(
                f'SPF uses "{self.all_mechanism}" terminator. While this works, we recommend '
                '"~all" as it\'s safer for most use cases.'
            )

    def check_lookup_budget(self):
        self.lookup_counts = count_lookups(self.records[0])
        self.total_lookups = sum(self.lookup_counts.values())
        breakdown = format_breakdown(self.lookup_counts)

        if self.total_lookups > HIGH_LOOKUP_THRESHOLD:
            self.warnings.append(
                f"High DNS lookup count detected ({self.total_lookups} total lookups: {breakdown}). "
                f"SPF has a {LOOKUP_LIMIT} lookup limit. Some includes may contain nested lookups, "
                "so this could go over. If more services need to be added, consider SPF flattening."
            )
        elif self.total_lookups > MODERATE_LOOKUP_THRESHOLD:
            self.warnings.append(
                f"Moderate DNS lookup count ({self.total_lookups} lookups: {breakdown}). Still within "
                f"the limit of {LOOKUP_LIMIT}, but some includes may have nested lookups. "
                "Monitor if adding more services."
            )
        logger.debug("SPF lookup count %d (%s)", self.total_lookups, breakdown)

    def get_consolidation_advice(self):
        """Recommendation for a domain publishing several SPF records."""
        for info in self.per_record:
            if info.has_target_include and not info.is_target_only:
                others = [str(i.index) for i in self.per_record if i.index != info.index]
                return (
                    f"Keep record {info.index} and delete record(s) {', '.join(others)}. "
                    f"Record {info.index} preserves existing services while adding "
                    f"{self.profile.name} authorization:\n  {info.record}"
                )

        tokens = []
        for record in self.records:
            for term in parse_spf(record):
                if not term.is_modifier and term.name in MERGE_MECHANISMS:
                    tokens.append(term.text)
        merged = " ".join(["v=spf1"] + tokens + [RECOMMENDED_ALL])
        return (
            "Merge all mechanisms into ONE record and delete the others:\n"
            f"  {merged}"
        )

    def get_authorization_advice(self):
        """Recommendation for a single record that does not authorize the sender."""
        record = self.records[0]
        include = self.profile.include_term
        tokens = record.split()
        for position in range(len(tokens) - 1, 0, -1):
            if parse_spf_term(tokens[position]).name == "all":
                tokens.insert(position, include)
                break
        else:
            tokens.extend([include, RECOMMENDED_ALL])
        return (
            f'Add "{include}" to the existing SPF record.\n'
            f"Recommended updated record:\n  {' '.join(tokens)}"
        )

    @property
    def starter_record(self):
        return f"v=spf1 {self.profile.include_term} {RECOMMENDED_ALL}"

    def to_dict(self):
        return {
            "exists": self.exists,
            "records": list(self.records),
            "per_record": [info.to_dict() for info in self.per_record],
            "has_target": self.has_target,
            "has_multiple": self.has_multiple,
            "all_mechanism": self.all_mechanism,
            "lookup_counts": self.lookup_counts,
            "total_lookups": self.total_lookups,
            "recommendation": self.recommendation,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }

    def __str__(self):
        return (
            f"SPF Records: {self.records}\n"
            f"Target Authorized: {self.has_target}\n"
            f"All Mechanism: {self.all_mechanism}\n"
            f"DNS Lookup Count: {self.total_lookups}"
        )


def analyze_spf(answers, profile=None):
    """Analyze the TXT answers of a domain apex."""
    return SPF(answers, profile)
