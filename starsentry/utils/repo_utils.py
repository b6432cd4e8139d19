"""Parsing of repository references."""

import re
from typing import Tuple
from urllib.parse import urlparse

_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def parse_owner_repo(owner_repo: str) -> Tuple[str, str]:
    """
    Split "owner/repo" or a github.com URL into (owner, repo).

    Raises:
        ValueError: If the reference is not a GitHub repository
    """
    value = (owner_repo or "").strip()
    if value.startswith(("http://", "https://")) or value.startswith("github.com/"):
        if not value.startswith("http"):
            value = f"https://{value}"
        parsed_url = urlparse(value)
        if parsed_url.netloc.lower() not in ("github.com", "www.github.com"):
            raise ValueError(f"Not a GitHub URL: {owner_repo}")
        path_parts = [p for p in parsed_url.path.split("/") if p]
        if len(path_parts) < 2:
            raise ValueError(f"Invalid GitHub URL structure: {owner_repo}")
        owner, repo = path_parts[0], path_parts[1]
    else:
        parts = value.strip("/").split("/")
        if len(parts) != 2:
            raise ValueError(
                f"Invalid repository format: {owner_repo!r}. Use 'owner/repo' or a full GitHub URL."
            )
        owner, repo = parts

    if repo.endswith(".git"):
        repo = repo[:-4]  # Remove .git suffix
    if not owner or not repo or not _NAME_RE.match(owner) or not _NAME_RE.match(repo):
        raise ValueError(f"Invalid repository reference: {owner_repo!r}")
    return owner, repo
