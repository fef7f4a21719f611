"""
Ghost Markdown to Zola Markdown converter

This module holds the text rewriting applied to each post on its way
from the Ghost database to a Zola content file: internal image links,
Ghost's placeholder footnotes, slugs, and the TOML datetime literals
of the front matter.
"""

import itertools
import re
import uuid

from slugify import slugify

# ](/content/images/2020/01/file.jpg) - must start right after "](" so
# that external URLs with the same path are left alone
INTERNAL_LINK_RE: re.Pattern[str] = re.compile(
    r"\]\(/content/images/(\d{4}/\d{2}/[^)]+)\)",
    re.IGNORECASE,
)

# Footnotes that already carry a number: [^3]
NUMBERED_FOOTNOTE_RE: re.Pattern[str] = re.compile(r"\[\^(\d+)\]")

# Ghost writes every footnote as [^n]; definitions start a line with [^n]:
PLACEHOLDER_DEFINITION_RE: re.Pattern[str] = re.compile(r"^\[\^n\]:", re.MULTILINE)
PLACEHOLDER_REFERENCE_RE: re.Pattern[str] = re.compile(r"\[\^n\](?!:)")

# TOML serializers quote datetimes; Zola wants native datetime literals
TOML_DATE_RE: re.Pattern[str] = re.compile(
    r'^(date|updated) = "([^"\n]*)"$',
    re.MULTILINE,
)

SLUG_MAX_LENGTH: int = 150
DEFAULT_IMAGE_URL_PREFIX: str = "/blog"


class ContentConverter:
    """
    Converter from Ghost post data to Zola post data

    All methods are pure and stateless; the compiled patterns above are
    shared by every call.
    """

    @staticmethod
    def rewrite_internal_links(content: str, url_prefix: str = DEFAULT_IMAGE_URL_PREFIX) -> str:
        """
        Point Ghost upload links at the mirrored images

        Ghost serves uploads from /content/images/yyyy/mm/file. After
        extraction the same files live at yyyy/mm/file under the Zola
        section, so the /content/images portion is replaced by the
        section's URL prefix.

        Args:
            content: Raw Ghost markdown
            url_prefix: URL under which the Zola section is published

        Returns:
            Markdown with internal image links rewritten
        """
        prefix: str = url_prefix.rstrip("/")
        return INTERNAL_LINK_RE.sub(lambda m: f"]({prefix}/{m.group(1)})", content)

    @staticmethod
    def reify_footnotes(content: str) -> str:
        """
        Give Ghost's placeholder footnotes real numbers

        Ghost lets authors write every footnote as [^n], both where it is
        referenced and where it is defined. Zola needs distinct numbers.
        Numbering starts above the largest footnote number already in
        the document and follows order of appearance, separately for
        definitions and references. Definitions and references are
        therefore only paired correctly when they appear in the same
        relative order.

        Args:
            content: Markdown possibly containing [^n] markers

        Returns:
            Markdown with every [^n] replaced by a numbered footnote
        """
        highest: int = max(
            (int(m.group(1)) for m in NUMBERED_FOOTNOTE_RE.finditer(content)),
            default=0,
        )

        definitions = itertools.count(highest + 1)
        content = PLACEHOLDER_DEFINITION_RE.sub(lambda _: f"[^{next(definitions)}]:", content)

        references = itertools.count(highest + 1)
        return PLACEHOLDER_REFERENCE_RE.sub(lambda _: f"[^{next(references)}]", content)

    @staticmethod
    def derive_slug(title: str, slug: str) -> str:
        """
        Construct a safe slug for a post

        - an explicit slug is used as-is
        - otherwise one is built from the title
        - unless that yields nothing, in which case a uuid4 is used

        Args:
            title: Post title
            slug: Slug stored in Ghost, possibly empty

        Returns:
            Non-empty slug
        """
        if slug:
            return slug
        if title:
            derived: str = slugify(title, max_length=SLUG_MAX_LENGTH)
            if derived:
                return derived
        return str(uuid.uuid4())

    @staticmethod
    def fix_toml_dates(toml_text: str) -> str:
        """
        Turn quoted date/updated values into TOML datetime literals

        Only whole `date = "..."` and `updated = "..."` lines are
        touched; every other quoted string is left as it was.

        Args:
            toml_text: Serialized front matter

        Returns:
            Front matter with native datetime literals
        """
        return TOML_DATE_RE.sub(r"\1 = \2", toml_text)
