# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Blog posts written in Markdown with YAML front matter.

A post starts with a front matter block delimited by `---` lines:

    ---
    title: Redirecting to /dev/stdout considered harmful
    author: Jane Doe
    date: 2024-03-12
    slug: dev-stdout-truncation
    categories: [linux]
    tags: [bash, redirection]
    ---

    Markdown body with fenced code blocks ...

Front matter values are kept as loaded so that invalid values can be
reported by `fdq_lib.posts.PostChecker`.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Self

import yaml

from fdq_lib.core.common import load_yaml_loader
from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError, FDQParseError
from fdq_lib.core.logger import get_logger

logger = get_logger(__name__)

SafeLoader: type[yaml.SafeLoader] = load_yaml_loader()

_FRONT_MATTER_DELIMITER = "---"

# opening fence of a code block: up to 3 spaces, 3+ backticks or tildes, info string
_FENCE_PATTERN = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})\s*(?P<info>[^`]*?)\s*$")


@dataclass(frozen=True)
class CodeBlock:
    """
    A fenced code block embedded in a post.
    """

    # Language of the block as given after the opening fence (empty if none)
    lang: str

    # Content of the block
    code: str

    # Line of the post on which the block starts (1-based)
    line: int = 0


@dataclass
class Post:
    """
    A blog post with its front matter.
    """

    # Path to the post file
    path: Path

    # Markdown body following the front matter
    body: str = ""

    # Front matter of the post with normalized keys
    metadata: dict[str, object] = field(default_factory=dict)

    # Line on which the body starts (1-based)
    body_line: int = 1

    @property
    def title(self) -> object:
        return self.metadata.get("title")

    @property
    def author(self) -> object:
        return self.metadata.get("author")

    @property
    def date(self) -> object:
        return self.metadata.get("date")

    @property
    def slug(self) -> object:
        return self.metadata.get("slug")

    @property
    def categories(self) -> object:
        return self.metadata.get("categories")

    @property
    def tags(self) -> object:
        return self.metadata.get("tags")

    @classmethod
    def fromFile(cls, path: Path) -> Self:
        """
        Load a post from a Markdown file.

        Args:
            path (Path): Path to the post.

        Returns:
            Post: The loaded post. A post without front matter has empty metadata.

        Raises:
            FDQError: If the file cannot be read.
            FDQParseError: If the front matter is unterminated or is not a valid YAML mapping.
        """
        try:
            text = path.read_text()
        except UnicodeDecodeError as e:
            raise FDQError(f"Post '{path}' is not a text file.") from e
        except OSError as e:
            raise FDQError(f"Could not read post '{path}': {e.strerror}.") from e

        return cls.fromString(text, path)

    @classmethod
    def fromString(cls, text: str, path: Path) -> Self:
        """
        Create a post from the content of a Markdown file.

        Raises:
            FDQParseError: If the front matter is unterminated or is not a valid YAML mapping.
        """
        lines = text.splitlines(keepends=True)
        if not lines or lines[0].strip() != _FRONT_MATTER_DELIMITER:
            logger.debug(f"Post '{path}' has no front matter.")
            return cls(path=path, body=text)

        try:
            end = next(
                i
                for i, line in enumerate(lines[1:], start=1)
                if line.strip() == _FRONT_MATTER_DELIMITER
            )
        except StopIteration:
            raise FDQParseError(f"Front matter of post '{path}' is not terminated.")

        # explicitly tagged values are still converted and may be invalid
        try:
            metadata = yaml.load("".join(lines[1:end]), Loader=SafeLoader) or {}
        except (yaml.YAMLError, ValueError) as e:
            raise FDQParseError(
                f"Could not parse front matter of post '{path}': {e}."
            ) from e

        if not isinstance(metadata, dict):
            raise FDQParseError(f"Front matter of post '{path}' is not a mapping.")

        return cls(
            path=path,
            body="".join(lines[end + 1 :]),
            metadata={str(k).strip().lower(): v for k, v in metadata.items()},
            body_line=end + 2,
        )

    def getDate(self) -> datetime | None:
        """
        Return the publication date of the post or None if it is not set.

        Raises:
            FDQError: If the date does not match any of `CFG.date_formats.post`.
        """
        value = self.date
        if value is None:
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)

        for fmt in CFG.date_formats.post:
            try:
                return datetime.strptime(str(value).strip(), fmt)
            except ValueError:
                continue

        raise FDQError(f"Could not parse date '{value}'.")

    def codeBlocks(self, lang: str | None = None) -> list[CodeBlock]:
        """
        Return the fenced code blocks of the post body.

        Args:
            lang (str | None): Return only blocks in this language (case-insensitive).

        Returns:
            list[CodeBlock]: Code blocks in the order they appear.
        """
        blocks = []
        lines = self.body.splitlines()

        i = 0
        while i < len(lines):
            if not (match := _FENCE_PATTERN.match(lines[i])):
                i += 1
                continue

            fence = match.group("fence")
            info = match.group("info").split()
            start = i

            # the closing fence uses the same character and is at least as long
            closing = re.compile(rf"^ {{0,3}}{re.escape(fence[0])}{{{len(fence)},}}\s*$")
            i += 1
            content = []
            while i < len(lines) and not closing.match(lines[i]):
                content.append(lines[i])
                i += 1

            blocks.append(
                CodeBlock(
                    lang=info[0].lower() if info else "",
                    code="\n".join(content) + ("\n" if content else ""),
                    line=self.body_line + start,
                )
            )
            # skip the closing fence
            i += 1

        if lang is None:
            return blocks
        return [block for block in blocks if block.lang == lang.lower()]
