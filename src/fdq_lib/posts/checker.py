# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import re
from dataclasses import dataclass, field
from pathlib import Path

from fdq_lib.core.config import CFG
from fdq_lib.core.error import FDQError
from fdq_lib.core.logger import get_logger
from fdq_lib.properties.post import Post

logger = get_logger(__name__)


@dataclass
class PostReport:
    """
    Result of checking a single post.
    """

    # Path to the checked post
    path: Path

    # The post, if it could be loaded
    post: Post | None = None

    # Problems found in the post
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


class PostChecker:
    """
    Checks the front matter of posts.

    The checker remembers the slugs of all posts it has checked and reports
    a post whose slug has already been used by a previously checked post.
    """

    def __init__(self):
        self._slugs: dict[str, Path] = {}
        self._slug_pattern = re.compile(CFG.posts.slug_pattern)

    def check(self, post: Post) -> PostReport:
        """
        Check the post and return the problems found.

        Args:
            post (Post): The post to check.

        Returns:
            PostReport: Report listing the problems (empty if the post is valid).
        """
        problems = []

        if not post.metadata:
            problems.append("missing front matter")

        for name in CFG.posts.required_fields:
            value = post.metadata.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                problems.append(f"missing required field '{name}'")

        try:
            post.getDate()
        except FDQError:
            problems.append(f"unparsable date '{post.date}'")

        if post.slug is not None:
            problems.extend(self._checkSlug(post))

        for name in CFG.posts.list_fields:
            value = post.metadata.get(name)
            if value is not None and not isinstance(value, list):
                problems.append(f"field '{name}' is not a list")

        for problem in problems:
            logger.debug(f"{post.path}: {problem}.")

        return PostReport(path=post.path, post=post, problems=problems)

    def _checkSlug(self, post: Post) -> list[str]:
        slug = str(post.slug)
        problems = []

        if not self._slug_pattern.match(slug):
            problems.append(f"slug '{slug}' is not lowercase-hyphenated")

        if (previous := self._slugs.get(slug)) is not None:
            problems.append(f"slug '{slug}' is already used by '{previous}'")
        else:
            self._slugs[slug] = post.path

        return problems
