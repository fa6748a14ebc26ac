"""Identity, origin and price labels carried by mirror issues"""

from dataclasses import dataclass
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from devpool_sync.services.issue import Issue

IDENTITY_PREFIX = "id: "
ORIGIN_PREFIX = "Partner: "
PRICE_PREFIX = "Pricing: "
LEGACY_PRICE_MARKER = "Price:"
PRICE_MARKER = "Pricing:"
DEFAULT_PRICE_LABEL = "Pricing: not set"


class MalformedUrlError(ValueError):
    """Raised when a URL does not point at a repository (or issue)."""


@dataclass(frozen=True)
class RepoRef:
    owner: str
    repo: str
    issue_number: Optional[int] = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def identity_label(partner_issue_id: str) -> str:
    """Label joining a mirror issue to its partner issue."""
    return f"{IDENTITY_PREFIX}{partner_issue_id}"


def origin_label(owner: str, repo: str) -> str:
    """Label naming the partner repository an issue came from."""
    return f"{ORIGIN_PREFIX}{owner}/{repo}"


def find_price_label(labels: Iterable[str]) -> Optional[str]:
    """Return the first price-like label, normalized to the `Pricing:` prefix."""
    for name in labels or []:
        if not isinstance(name, str):
            continue
        if LEGACY_PRICE_MARKER in name or PRICE_MARKER in name:
            # The upstream bot strips manually added "Price:" labels, so mirrors
            # always carry "Pricing:".
            return name.replace("Price", "Pricing", 1)
    return None


def price_label(issue: Issue) -> str:
    """Price label of an issue, or "Pricing: not set" when it has none."""
    return find_price_label(issue.labels) or DEFAULT_PRICE_LABEL


@dataclass(frozen=True)
class MirrorMetadata:
    """Structured form of the labels written onto a mirror issue."""

    partner_id: str
    partner_owner: str
    partner_repo: str
    price_label: str = DEFAULT_PRICE_LABEL

    @classmethod
    def for_partner_issue(cls, issue: Issue, owner: str, repo: str) -> "MirrorMetadata":
        return cls(
            partner_id=issue.id,
            partner_owner=owner,
            partner_repo=repo,
            price_label=price_label(issue),
        )

    @classmethod
    def from_labels(cls, labels: Iterable[str]) -> Optional["MirrorMetadata"]:
        """Parse metadata back out of label names; None without an identity label."""
        partner_id = None
        owner = repo = ""
        for name in labels or []:
            if not isinstance(name, str):
                continue
            if partner_id is None and name.startswith(IDENTITY_PREFIX):
                partner_id = name[len(IDENTITY_PREFIX):]
            elif not owner and name.startswith(ORIGIN_PREFIX):
                owner, _, repo = name[len(ORIGIN_PREFIX):].partition("/")
        if not partner_id:
            return None
        return cls(
            partner_id=partner_id,
            partner_owner=owner,
            partner_repo=repo,
            price_label=find_price_label(labels) or DEFAULT_PRICE_LABEL,
        )

    @property
    def price_text(self) -> str:
        """Amount part of the price label ("not set" when unpriced)."""
        return self.price_label.split(":", 1)[1].strip()

    def to_labels(self) -> List[str]:
        return [
            self.price_label,
            origin_label(self.partner_owner, self.partner_repo),
            identity_label(self.partner_id),
        ]


def mirror_labels(partner_issue: Issue, owner: str, repo: str) -> List[str]:
    """Exact label set written onto the mirror of `partner_issue`."""
    return MirrorMetadata.for_partner_issue(partner_issue, owner, repo).to_labels()


def parse_repo_url(url: str) -> RepoRef:
    """Extract owner, repo and optional issue number from a repository URL.

    Accepts `https://<host>/<owner>/<repo>[/issues/<number>]`.
    """
    if not url:
        raise MalformedUrlError("empty URL")
    parsed = urlparse(url.strip())
    if not parsed.scheme or not parsed.netloc:
        raise MalformedUrlError(f"not an absolute URL: {url!r}")
    parts = parsed.path.split("/")
    owner = parts[1] if len(parts) > 1 else ""
    repo = parts[2] if len(parts) > 2 else ""
    if not owner or not repo:
        raise MalformedUrlError(f"URL does not name a repository: {url!r}")

    issue_number = None
    if len(parts) > 4 and parts[4]:
        try:
            issue_number = int(parts[4])
        except ValueError:
            raise MalformedUrlError(f"invalid issue number in {url!r}")
    return RepoRef(owner=owner, repo=repo, issue_number=issue_number)
