"""Wiki-link and hashtag extraction."""

import re

# Pattern for [[link]] syntax - captures content between double brackets.
# Unbalanced brackets simply fail to match.
LINK_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")

# Hashtags: '#' at content start or after whitespace, followed by a word.
# Rejects markdown headers ('## Title') and in-word hashes ('foo#bar').
TAG_PATTERN = re.compile(r"(?:^|(?<=\s))#([A-Za-z0-9_-]+)")


def extract_wiki_links(content: str) -> list[str]:
    """Extract wiki-link texts from markdown content.

    Link texts are returned exactly as written (not normalized), deduplicated,
    in first-seen order.

    Args:
        content: Markdown content to extract links from.

    Returns:
        List of unique raw link texts.
    """
    seen: set[str] = set()
    links: list[str] = []

    for link in LINK_PATTERN.findall(content):
        if link not in seen:
            seen.add(link)
            links.append(link)

    return links


def extract_tags(content: str) -> list[str]:
    """Extract hashtags from markdown content.

    Args:
        content: Markdown content to extract tags from.

    Returns:
        List of unique lower-cased tags, in first-seen order.
    """
    seen: set[str] = set()
    tags: list[str] = []

    for match in TAG_PATTERN.finditer(content):
        tag = match.group(1).lower()
        if tag not in seen:
            seen.add(tag)
            tags.append(tag)

    return tags
