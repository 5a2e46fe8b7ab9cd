# modules/dkim.py

import base64
import binascii
import logging

from .profile import DEFAULT_PROFILE
from .records import parse_tags, same_name, unwrap_txt

logger = logging.getLogger("authlens.dkim")


def is_key_record(text):
    """A DKIM key record carries v=DKIM1 or a p= tag."""
    tags = parse_tags(text)
    return tags.get("v") == "DKIM1" or "p" in tags


def estimate_key_bits(public_key):
    """Rough RSA modulus size from the DER length of a base64 public key."""
    try:
        key_bytes = base64.b64decode(public_key.replace(" ", ""), validate=True)
    except (binascii.Error, ValueError):
        logger.debug("Could not decode DKIM public key")
        return None
    key_len = len(key_bytes)
    if key_len <= 0:
        return None
    elif key_len <= 100:
        return 512
    elif key_len <= 170:
        return 1024
    elif key_len <= 300:
        return 2048
    elif key_len <= 550:
        return 4096
    return key_len * 8


class DKIM:
    """DKIM analysis of the sender's selector at a domain.

    ``probe(name, record_type)`` issues further lookups: the TXT record at a
    CNAME target and the doubled-domain name a DNS manager may have created.
    Probes run one after another since each depends on the previous result.
    """

    def __init__(self, selector_answers, probe, domain, profile=None):
        self.profile = profile or DEFAULT_PROFILE
        self.domain = domain
        self.selector = self.profile.dkim_selector
        self.host = self.profile.dkim_host
        self.location = f"{self.host}.{domain}"
        self.record = None
        self.is_indirection = False
        self.indirection_target = None
        self.provider = None
        self.is_duplicated = False
        self.duplicated_location = None
        self.key_type = None
        self.key_bits = None
        self.recommendation = None
        self.errors = []

        self._resolve(selector_answers, probe)
        if self.record is not None:
            self._analyze_key()

    @property
    def exists(self):
        return self.record is not None

    def _resolve(self, answers, probe):
        cname = next((a for a in answers if a.record_type == "CNAME"), None)
        # without a CNAME every TXT answer belongs to the queried name
        owner = self.location if cname is not None else None
        self.record = self._find_key_record(answers, owner)
        if self.record is not None:
            logger.debug("Direct DKIM record found at %s", self.location)
            return

        if cname is not None:
            self._follow_cname(cname, probe)
            return

        self._check_duplication(probe)

    def _follow_cname(self, cname, probe):
        self.is_indirection = True
        self.indirection_target = unwrap_txt(cname.data).rstrip(".")
        logger.debug("DKIM CNAME found: %s -> %s", self.location, self.indirection_target)

        self.provider = self.profile.match_provider(self.indirection_target)
        if self.provider:
            self.errors.append(
                f'DKIM selector "{self.host}" is a CNAME pointing to {self.provider} '
                f"({self.indirection_target}). This is not a valid {self.profile.name} DKIM record. "
                f"The customer must replace this CNAME with the values from the {self.profile.name} "
                f"dashboard to switch providers."
            )
            self.recommendation = (
                f"Delete the CNAME at {self.host} and create the DKIM record shown in the "
                f"{self.profile.name} dashboard. {self.provider} will stop signing for this selector."
            )
            return

        target_answers = self._probe(probe, self.indirection_target)
        self.record = self._find_key_record(target_answers, None)
        if self.record is None:
            self.errors.append(
                f'DKIM selector "{self.host}" is a CNAME to {self.indirection_target}, but no DKIM '
                "key was found at that target. Check the CNAME value against the dashboard."
            )
            self.recommendation = (
                f"Verify that the CNAME target for {self.host} matches the value in the "
                f"{self.profile.name} dashboard exactly."
            )

    def _check_duplication(self, probe):
        candidate = f"{self.location}.{self.domain}"
        answers = self._probe(probe, candidate)
        if any(a.record_type == "TXT" for a in answers):
            self.is_duplicated = True
            self.duplicated_location = candidate
            self.errors.append(
                f"DKIM record found at wrong location: {candidate}. The DNS manager auto-appended "
                f'the domain. Delete the record and recreate it using only "{self.host}" as the host value.'
            )
            self.recommendation = (
                "Edit the DKIM record's host field and change it from "
                f'"{self.location}" to just "{self.host}". Most DNS managers append the domain '
                "automatically, so only the selector part should be entered."
            )
            logger.debug("DKIM record found at duplicated name %s", candidate)
        else:
            self.errors.append(
                f'No DKIM record found for selector "{self.host}". If you recently added it, '
                "wait 5-30 minutes for DNS propagation."
            )
            self.recommendation = (
                f"Add the DKIM record from the {self.profile.name} dashboard with host "
                f'"{self.host}". If it was added recently, wait for DNS propagation and re-check.'
            )

    def _probe(self, probe, name, record_type="TXT"):
        try:
            return probe(name, record_type) or []
        except Exception as e:
            logger.debug("DKIM probe for %s %s failed: %s", name, record_type, e)
            return []

    def _find_key_record(self, answers, name):
        for answer in answers:
            if answer.record_type != "TXT":
                continue
            if name is not None and not same_name(answer.name, name):
                continue
            text = unwrap_txt(answer.data)
            if is_key_record(text):
                return text
        return None

    def _analyze_key(self):
        """Parse the key record for key type and approximate size."""
        tags = parse_tags(self.record)
        self.key_type = tags.get("k", "rsa").lower()  # Default per RFC 6376
        public_key = tags.get("p")
        if public_key == "":
            self.errors.append(
                f"DKIM key at {self.indirection_target or self.location} is revoked (empty p= tag). "
                f"Publish the current key from the {self.profile.name} dashboard."
            )
            return
        if public_key and self.key_type == "rsa":
            self.key_bits = estimate_key_bits(public_key)

    def to_dict(self):
        return {
            "exists": self.exists,
            "location": self.location,
            "record": self.record,
            "is_indirection": self.is_indirection,
            "indirection_target": self.indirection_target,
            "provider": self.provider,
            "is_duplicated": self.is_duplicated,
            "duplicated_location": self.duplicated_location,
            "key_type": self.key_type,
            "key_bits": self.key_bits,
            "recommendation": self.recommendation,
            "errors": list(self.errors),
        }

    def __str__(self):
        if not self.exists:
            return f"No DKIM record found at {self.location}"
        strength = f" ({self.key_bits}-bit {self.key_type})" if self.key_bits else ""
        return f"DKIM Record at {self.location}{strength}: {self.record}"


def analyze_dkim(selector_answers, probe, domain, profile=None):
    """Analyze the answers for the sender's DKIM selector at domain."""
    return DKIM(selector_answers, probe, domain, profile)
