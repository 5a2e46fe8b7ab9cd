# modules/orchestrator.py

"""
Runs one email-authentication analysis for a domain.

The SPF, DKIM and DMARC checks share no state, so they run concurrently in
the default thread pool. Callers see either a complete AnalysisResult or an
AnalysisError; partial results are never returned.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .dkim import DKIM, analyze_dkim
from .dmarc import DMARC, analyze_dmarc
from .dns import DoHResolver
from .errors import AnalysisError, AnalysisFailed, AnalysisInProgress, InvalidInput
from .profile import DEFAULT_PROFILE, SenderProfile
from .spf import SPF, analyze_spf

logger = logging.getLogger("authlens.orchestrator")

_SCHEME = re.compile(r"^https?://")


def normalize_domain(domain):
    """Lowercase, drop an http(s):// prefix, a trailing slash and a root dot."""
    clean = (domain or "").strip().lower()
    clean = _SCHEME.sub("", clean)
    if clean.endswith("/"):
        clean = clean[:-1]
    if clean.endswith("."):
        clean = clean[:-1]
    return clean


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one completed analysis call."""

    spf: SPF
    dkim: DKIM
    dmarc: DMARC
    domain: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def error_count(self):
        return len(self.spf.errors) + len(self.dkim.errors) + len(self.dmarc.errors)

    def to_dict(self):
        return {
            "domain": self.domain,
            "timestamp": self.timestamp.isoformat(),
            "spf": self.spf.to_dict(),
            "dkim": self.dkim.to_dict(),
            "dmarc": self.dmarc.to_dict(),
        }


class EmailAuthAnalyzer:
    """Sequences the resolver lookups and the three record analyzers."""

    def __init__(self, resolver=None, profile=None):
        self.resolver = resolver or DoHResolver()
        self.profile = profile or DEFAULT_PROFILE

    def check_spf(self, domain):
        return analyze_spf(self.resolver.lookup(domain, "TXT"), self.profile)

    def check_dkim(self, domain):
        location = f"{self.profile.dkim_host}.{domain}"
        answers = self.resolver.lookup(location, "TXT")
        return analyze_dkim(answers, self.resolver.lookup, domain, self.profile)

    def check_dmarc(self, domain):
        return analyze_dmarc(self.resolver.lookup(f"_dmarc.{domain}", "TXT"), domain)

    async def analyze(self, domain):
        """Analyze SPF, DKIM and DMARC for domain.

        Raises InvalidInput for an empty domain before any lookup, and
        AnalysisFailed when anything other than a lookup goes wrong.
        """
        clean = normalize_domain(domain)
        if not clean:
            raise InvalidInput("Please enter a domain name")

        logger.debug("Analyzing %s for %s", clean, self.profile.name)
        loop = asyncio.get_event_loop()
        try:
            spf, dkim, dmarc = await asyncio.gather(
                loop.run_in_executor(None, self.check_spf, clean),
                loop.run_in_executor(None, self.check_dkim, clean),
                loop.run_in_executor(None, self.check_dmarc, clean),
            )
            result = AnalysisResult(spf=spf, dkim=dkim, dmarc=dmarc, domain=clean)
        except Exception as e:
            logger.error("Analysis failed for %s: %s", clean, e)
            raise AnalysisFailed("Failed to perform DNS lookup. Please try again.") from e

        logger.debug("Analysis of %s finished with %d errors", clean, result.error_count)
        return result


class AnalysisSession:
    """Caller-visible state of the analyses started from one session.

    Each submit() takes the next request generation. Its outcome is
    committed only if no newer request was started meanwhile; older
    outcomes are dropped. With ``reject_while_busy`` a submit() during an
    in-flight request raises AnalysisInProgress instead.

    The CLI and the HTTP API call EmailAuthAnalyzer.analyze directly, since
    their requests are independent. A session is for callers that embed the
    analyzer behind a single input, such as an interactive form, where only
    the latest request should reach the screen.
    """

    def __init__(self, analyzer=None, reject_while_busy=True):
        self.analyzer = analyzer or EmailAuthAnalyzer()
        self.reject_while_busy = reject_while_busy
        self.generation = 0
        self.loading = False
        self.result = None
        self.error = None

    async def submit(self, domain):
        """Start an analysis; returns the result if it was committed."""
        if self.reject_while_busy and self.loading:
            raise AnalysisInProgress("An analysis is already running")

        self.generation += 1
        generation = self.generation
        self.loading = True
        self.result = None
        self.error = None

        try:
            result = await self.analyzer.analyze(domain)
        except AnalysisError as e:
            self._commit(generation, error=e)
            return None
        except BaseException:
            # cancelled or crashed: nothing is in flight for this request any more
            if generation == self.generation:
                self.loading = False
            raise
        return result if self._commit(generation, result=result) else None

    def _commit(self, generation, result=None, error=None):
        if generation != self.generation:
            logger.debug("Discarding stale analysis (request %d, latest %d)", generation, self.generation)
            return False
        self.result = result
        self.error = error
        self.loading = False
        return True


def make_analyzer(base_url=None, timeout=None, profile=None):
    """Build an analyzer from the command-line / API settings."""
    resolver_args = {"base_url": base_url}
    if timeout:
        resolver_args["timeout"] = timeout
    return EmailAuthAnalyzer(DoHResolver(**resolver_args), profile or SenderProfile())
