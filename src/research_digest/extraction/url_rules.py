"""URL pre-filter and fetch URL normalization."""

from urllib.parse import urlsplit, urlunsplit

# Paywalled sites and pages needing authentication
PAYWALLED_PATTERNS = (
    "oreilly.com/library/view/",
    "nytimes.com/",
    "wsj.com/",
    "ft.com/content/",
    "economist.com/",
)

# Documentation viewers rendered by JavaScript only
SCRIPT_RENDERED_PATTERNS = ("ibm.com/docs/",)

VIDEO_PATTERNS = ("youtube.com", "youtu.be", "vimeo.com", "tiktok.com", "twitch.tv")

SOCIAL_PATTERNS = ("twitter.com", "x.com", "facebook.com", "instagram.com", "linkedin.com/posts/")

SLIDE_DECK_PATTERNS = ("slideshare.net", "slides.com", "prezi.com", "speakerdeck.com")

# Binary payloads the HTML structurer can not read
BINARY_EXTENSIONS = (
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".tar", ".gz", ".7z",
    ".mp3", ".mp4", ".avi", ".mov", ".wmv",
    ".jpg", ".jpeg", ".png", ".gif", ".bmp",
    ".exe", ".dmg", ".iso",
)

SKIP_PATTERNS = PAYWALLED_PATTERNS + SCRIPT_RENDERED_PATTERNS + VIDEO_PATTERNS + SOCIAL_PATTERNS + SLIDE_DECK_PATTERNS

# Hosts rewritten to a mirror that serves full server-side markup
MIRROR_HOSTS = {
    "reddit.com": "old.reddit.com",
    "www.reddit.com": "old.reddit.com",
}


def has_binary_extension(url: str) -> bool:
    """True when the URL path ends with a known non-HTML file extension."""
    path = urlsplit(url).path.lower()
    return path.endswith(BINARY_EXTENSIONS)


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def should_skip_url(url: str) -> bool:
    """True for URLs known to yield no extractable article text."""
    if has_binary_extension(url):
        return True

    parts = urlsplit(url.lower())
    host = parts.hostname or ""
    path = parts.path or "/"

    # Medium member-only posts
    if _host_matches(host, "medium.com") and "/p/" in path:
        return True

    for pattern in SKIP_PATTERNS:
        domain, _, prefix = pattern.partition("/")
        if _host_matches(host, domain) and path.startswith("/" + prefix):
            return True
    return False


def resolve_fetch_url(url: str) -> str:
    """Rewrite the URL to the mirror that should be downloaded instead."""
    parts = urlsplit(url)
    mirror = MIRROR_HOSTS.get(parts.netloc.lower())
    if mirror is None:
        return url
    return urlunsplit(parts._replace(netloc=mirror))
