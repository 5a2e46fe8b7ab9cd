# modules/profile.py

"""The sending service an analysis is run on behalf of."""

from dataclasses import dataclass, field

# Substring of a DKIM CNAME target -> provider display name
KNOWN_PROVIDERS = {
    "sendgrid": "SendGrid",
    "mailchimp": "Mailchimp",
    "mcsv.net": "Mailchimp",
    "mandrillapp": "Mandrill",
    "mailgun": "Mailgun",
    "amazonses": "Amazon SES",
    "sparkpost": "SparkPost",
    "postmarkapp": "Postmark",
    "sendinblue": "Brevo",
    "brevo": "Brevo",
    "mailjet": "Mailjet",
    "klaviyo": "Klaviyo",
    "hubspot": "HubSpot",
    "constantcontact": "Constant Contact",
    "activecampaign": "ActiveCampaign",
    "campaignmonitor": "Campaign Monitor",
    "createsend": "Campaign Monitor",
    "zoho": "Zoho",
}


@dataclass(frozen=True)
class SenderProfile:
    """Identifies the service whose authorization is checked."""

    name: str = "Moosend"
    spf_include: str = "spfa.mailendo.com"
    dkim_selector: str = "ms"
    providers: dict = field(default_factory=lambda: dict(KNOWN_PROVIDERS))

    @property
    def include_term(self):
        return f"include:{self.spf_include}"

    @property
    def dkim_host(self):
        return f"{self.dkim_selector}._domainkey"

    def match_provider(self, hostname):
        """Return the display name of the foreign provider behind hostname, if any."""
        host = hostname.lower()
        for needle, provider in self.providers.items():
            if needle.lower() in host and provider.lower() != self.name.lower():
                return provider
        return None


DEFAULT_PROFILE = SenderProfile()
