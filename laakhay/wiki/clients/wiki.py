"""High-level Wiki client.

This wraps a WikiSession, an ActionExecutor and a ChunkedUploadManager and
exposes a developer-friendly API for bots and scripts:

- ``open``/``close`` lifecycle with optional login
- write actions (edit, delete, move, upload, ...) returning typed replies
- read helpers returning plain Python values keyed by the caller's titles

Notes:
- Every read is a thin call into QueryCursor or the batch helpers; use
  those directly for queries not covered here.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from ..core.config import WikiConfig
from ..core.exceptions import AuthenticationError, ValidationError
from ..models.image_info import ImageInfo
from ..models.query_reply import records_of
from ..models.reply import ActionReply
from ..runtime import templates
from ..runtime.batch import fetch_continued_prop, fetch_list, fetch_prop, values_of
from ..runtime.cursor import QueryCursor
from ..runtime.rest.executor import EDIT_POLICY, ActionExecutor, RetryPolicy
from ..runtime.rest.session import WikiSession
from ..upload.manager import ChunkedUploadManager

logger = logging.getLogger(__name__)


def _in_namespace(title: str, namespace: str) -> str:
    prefix, sep, _ = title.partition(":")
    if sep and prefix.strip().lower() == namespace.lower():
        return title
    return f"{namespace}:{title}"


def _namespace_filter(namespaces: Iterable[int] | None) -> str | None:
    if not namespaces:
        return None
    return "|".join(str(ns) for ns in namespaces)


def _without_namespace(title: str, namespace: str) -> str:
    prefix, sep, rest = title.partition(":")
    if sep and prefix.strip().lower() == namespace.lower():
        return rest.strip()
    return title


def _api_timestamp(moment: datetime) -> str:
    """ISO 8601 in UTC, as the API expects; naive values are taken as local time."""
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class Wiki:
    """Client for one MediaWiki site."""

    def __init__(
        self,
        session: WikiSession,
        *,
        executor: ActionExecutor | None = None,
        uploader: ChunkedUploadManager | None = None,
        edit_policy: RetryPolicy = EDIT_POLICY,
    ) -> None:
        self.session = session
        self.executor = executor or ActionExecutor(session)
        self.uploader = uploader or ChunkedUploadManager(session, self.executor)
        self.edit_policy = edit_policy

    @classmethod
    async def open(
        cls,
        config: WikiConfig | None = None,
        *,
        domain: str | None = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Wiki:
        """Create a client, logging in when credentials are given.

        Args:
            config: Wiki configuration; defaults to English Wikipedia
            domain: Shortcut for ``WikiConfig.for_domain(domain)``
            username: User to log in as
            password: Password for ``username``

        Raises:
            AuthenticationError: If the login was rejected
        """
        if config is None:
            config = WikiConfig.for_domain(domain) if domain else WikiConfig()
        session = WikiSession(config)
        wiki = cls(session)
        if username is not None and password is not None:
            if not await session.login(username, password):
                await session.close()
                raise AuthenticationError(
                    f"Failed to login as {username}", username=username, host=config.hostname
                )
        else:
            await session.refresh_login_status()
        return wiki

    async def close(self) -> None:
        await self.session.close()

    async def __aenter__(self) -> Wiki:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __str__(self) -> str:
        return str(self.session)

    # ----------------------
    # Session
    # ----------------------
    async def login(self, username: str, password: str) -> bool:
        return await self.session.login(username, password)

    def whoami(self) -> str:
        return self.session.whoami()

    async def derive(self, domain: str) -> Wiki | None:
        """Client for another wiki sharing this login, or None when anonymous."""
        child = await self.session.derive(domain)
        if child is None:
            return None
        return Wiki(child, edit_policy=self.edit_policy)

    # ----------------------
    # Writes
    # ----------------------
    def _edit_fields(self, title: str, summary: str, **fields: str) -> dict[str, str]:
        out = {"title": title, "summary": summary, **fields}
        if self.session.is_bot:
            out["bot"] = ""
        return out

    async def edit(self, title: str, text: str, summary: str = "") -> ActionReply:
        """Replace the text of ``title``. Protected pages are not retried."""
        logger.info("Editing %s", title, extra={"wiki": self.session.log_label})
        return await self.executor.execute_with_policy(
            "edit", fields=self._edit_fields(title, summary, text=text), policy=self.edit_policy
        )

    async def add_text(self, title: str, text: str, summary: str = "", *, append: bool = True) -> ActionReply:
        """Append (or prepend) ``text`` to ``title``."""
        logger.info("Adding text to %s", title, extra={"wiki": self.session.log_label})
        key = "appendtext" if append else "prependtext"
        return await self.executor.post_action(
            "edit", fields=self._edit_fields(title, summary, **{key: text}), apply_token=True
        )

    async def delete(self, title: str, reason: str = "") -> ActionReply:
        logger.info("Deleting %s", title, extra={"wiki": self.session.log_label})
        return await self.executor.post_action(
            "delete", fields={"title": title, "reason": reason}, apply_token=True
        )

    async def undelete(self, title: str, reason: str = "") -> ActionReply:
        logger.info("Restoring %s", title, extra={"wiki": self.session.log_label})
        return await self.executor.post_action(
            "undelete", fields={"title": title, "reason": reason}, apply_token=True
        )

    async def move(
        self,
        title: str,
        new_title: str,
        reason: str = "",
        *,
        move_talk: bool = False,
        move_subpages: bool = False,
        suppress_redirect: bool = False,
    ) -> ActionReply:
        logger.info("Moving %s to %s", title, new_title, extra={"wiki": self.session.log_label})
        fields = {"from": title, "to": new_title, "reason": reason}
        if move_talk:
            fields["movetalk"] = "1"
        if move_subpages:
            fields["movesubpages"] = "1"
        if suppress_redirect:
            fields["noredirect"] = "1"
        return await self.executor.post_action("move", fields=fields, apply_token=True)

    async def purge(self, *titles: str) -> ActionReply:
        logger.info("Purging %s", list(titles), extra={"wiki": self.session.log_label})
        return await self.executor.post_action("purge", fields={"titles": "|".join(titles)})

    async def upload(
        self, path: str | os.PathLike[str], title: str, text: str = "", comment: str = ""
    ) -> ActionReply:
        """Upload a local file in chunks. Overwrites existing files."""
        return await self.uploader.upload(path, title, text, comment)

    async def upload_by_url(self, url: str, title: str, text: str = "", comment: str = "") -> ActionReply:
        """Have the server fetch ``url``; it must be on the wiki's upload whitelist."""
        logger.info("Uploading %s to %s", url, title, extra={"wiki": self.session.log_label})
        fields = {
            "filename": title,
            "text": text,
            "comment": comment,
            "ignorewarnings": "true",
            "url": url,
        }
        return await self.executor.post_action("upload", fields=fields, apply_token=True)

    # ----------------------
    # Lists
    # ----------------------
    async def _titles(self, cursor: QueryCursor, list_key: str) -> list[str]:
        out: list[str] = []
        async for reply in cursor:
            out.extend(str(e["title"]) for e in reply.list_comp(list_key) if "title" in e)
        return out

    async def category_members(self, title: str, namespaces: Iterable[int] | None = None) -> list[str]:
        """Titles of all members of a category (``Category:`` prefix optional)."""
        cursor = QueryCursor(self.session, templates.CATEGORY_MEMBERS)
        cursor.set("cmtitle", _in_namespace(title, "Category"))
        ns = _namespace_filter(namespaces)
        if ns is not None:
            cursor.set("cmnamespace", ns)
        return await self._titles(cursor, "categorymembers")

    async def all_pages(
        self,
        prefix: str | None = None,
        *,
        redirects_only: bool = False,
        protected_only: bool = False,
        cap: int = -1,
        namespace: int | None = None,
    ) -> list[str]:
        """Titles from ``list=allpages``, optionally capped at ``cap`` results."""
        cursor = QueryCursor(self.session, templates.ALL_PAGES, total_cap=cap)
        if prefix is not None:
            cursor.set("apprefix", prefix)
        if namespace is not None:
            cursor.set("apnamespace", str(namespace))
        if redirects_only:
            cursor.set("apfilterredir", "redirects")
        if protected_only:
            cursor.set("apprtype", "edit|move|upload")
        return await self._titles(cursor, "allpages")

    async def user_contribs(
        self,
        user: str,
        *,
        cap: int = -1,
        older_first: bool = False,
        created_only: bool = False,
        namespaces: Iterable[int] | None = None,
    ) -> list[dict[str, Any]]:
        """Contribution records (title, revid, timestamp, comment, ...) of ``user``."""
        cursor = QueryCursor(self.session, templates.USER_CONTRIBS, total_cap=cap).set("ucuser", user)
        if older_first:
            cursor.set("ucdir", "newer")
        if created_only:
            cursor.set("ucshow", "new")
        ns = _namespace_filter(namespaces)
        if ns is not None:
            cursor.set("ucnamespace", ns)
        out: list[dict[str, Any]] = []
        async for reply in cursor:
            out.extend(reply.list_comp("usercontribs"))
        return out

    async def allowed_file_exts(self) -> list[str]:
        reply = await QueryCursor(self.session, templates.ALLOWED_FILE_EXTS).advance()
        return [str(e["ext"]) for e in reply.list_comp("fileextensions") if "ext" in e]

    async def prefix_index(self, prefix: str, namespaces: Iterable[int] | None = None) -> list[str]:
        """Titles starting with ``prefix``, as ranked by the search backend."""
        cursor = QueryCursor(self.session, templates.PREFIX_SEARCH).set("pssearch", prefix)
        ns = _namespace_filter(namespaces)
        if ns is not None:
            cursor.set("psnamespace", ns)
        return await self._titles(cursor, "prefixsearch")

    async def search(self, query: str, cap: int = -1, namespaces: Iterable[int] | None = None) -> list[str]:
        """Titles matching a full-text search, all namespaces unless filtered."""
        cursor = QueryCursor(self.session, templates.SEARCH, total_cap=cap).set("srsearch", query)
        ns = _namespace_filter(namespaces)
        if ns is not None:
            cursor.set("srnamespace", ns)
        return await self._titles(cursor, "search")

    async def user_uploads(self, user: str) -> list[str]:
        """Files uploaded by ``user`` (``User:`` prefix optional)."""
        cursor = QueryCursor(self.session, templates.USER_UPLOADS)
        cursor.set("aiuser", _without_namespace(user, "User"))
        return await self._titles(cursor, "allimages")

    async def logs(
        self,
        title: str | None = None,
        user: str | None = None,
        log_type: str | None = None,
        cap: int = -1,
    ) -> list[dict[str, Any]]:
        """Log entries, newest first, optionally filtered by page, performer and type."""
        cursor = QueryCursor(self.session, templates.LOG_EVENTS, total_cap=cap)
        if title is not None:
            cursor.set("letitle", title)
        if user is not None:
            cursor.set("leuser", _without_namespace(user, "User"))
        if log_type is not None:
            cursor.set("letype", log_type)
        out: list[dict[str, Any]] = []
        async for reply in cursor:
            out.extend(reply.list_comp("logevents"))
        return out

    async def recent_changes(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[dict[str, Any]]:
        """Recent edits, page creations and log actions between ``start`` and ``end``.

        Without ``start`` the last 30 seconds are returned. Without ``end``
        everything since ``start`` is returned.

        Raises:
            ValidationError: If ``end`` is before ``start``
        """
        if start is None:
            end = datetime.now(UTC)
            start = end - timedelta(seconds=30)
        elif end is not None and end < start:
            raise ValidationError("end is before start, cannot proceed")

        # The API lists newest first, so its rcstart is the later bound
        cursor = QueryCursor(self.session, templates.RECENT_CHANGES).set("rcend", _api_timestamp(start))
        if end is not None:
            cursor.set("rcstart", _api_timestamp(end))
        out: list[dict[str, Any]] = []
        async for reply in cursor:
            out.extend(reply.list_comp("recentchanges"))
        return out

    # ----------------------
    # Per-page properties
    # ----------------------
    async def page_text(self, title: str) -> str:
        """Wikitext of ``title``; empty if the page does not exist."""
        revisions = (await fetch_prop(self.session, [title], templates.PAGE_TEXT)).get(title)
        if not isinstance(revisions, list) or not revisions or not isinstance(revisions[0], dict):
            return ""
        return str(revisions[0].get("*", ""))

    async def exists(self, title: str) -> bool:
        """True if the server reports ``title`` without a ``missing`` marker."""
        reply = await QueryCursor(self.session, templates.EXISTS).set("titles", title).advance()
        reported = reply.prop_comp("title", "missing")
        return title in reported and reported[title] is None

    async def categories_on_page(self, title: str) -> list[str]:
        found = await fetch_continued_prop(self.session, [title], templates.PAGE_CATEGORIES)
        return values_of(found, "title").get(title, [])

    async def links_on_page(self, title: str, namespaces: Iterable[int] | None = None) -> list[str]:
        ns = _namespace_filter(namespaces)
        extra = {"plnamespace": ns} if ns is not None else None
        found = await fetch_continued_prop(self.session, [title], templates.LINKS_ON_PAGE, extra=extra)
        return values_of(found, "title").get(title, [])

    async def templates_on_page(self, title: str) -> list[str]:
        found = await fetch_continued_prop(self.session, [title], templates.TEMPLATES)
        return values_of(found, "title").get(title, [])

    async def images_on_page(self, title: str) -> list[str]:
        found = await fetch_continued_prop(self.session, [title], templates.IMAGES)
        return values_of(found, "title").get(title, [])

    async def external_links(self, title: str) -> list[str]:
        found = await fetch_continued_prop(self.session, [title], templates.EXT_LINKS)
        return values_of(found, "*").get(title, [])

    async def what_links_here(self, title: str, *, redirects: bool = False) -> list[str]:
        """Pages linking to ``title``; with ``redirects`` only the redirects to it."""
        extra = {"lhshow": "redirect" if redirects else "!redirect"}
        found = await fetch_continued_prop(self.session, [title], templates.LINKS_HERE, extra=extra)
        return values_of(found, "title").get(title, [])

    async def what_transcludes_here(self, title: str, namespaces: Iterable[int] | None = None) -> list[str]:
        ns = _namespace_filter(namespaces)
        extra = {"tinamespace": ns} if ns is not None else None
        found = await fetch_continued_prop(self.session, [title], templates.TRANSCLUDED_IN, extra=extra)
        return values_of(found, "title").get(title, [])

    async def file_usage(self, title: str) -> list[str]:
        """Local pages embedding a file (``File:`` prefix optional)."""
        title = _in_namespace(title, "File")
        found = await fetch_continued_prop(self.session, [title], templates.FILE_USAGE)
        return values_of(found, "title").get(title, [])

    async def duplicates_of(self, title: str, *, local_only: bool = False) -> list[str]:
        """Files whose content is identical to ``title``, as ``File:`` titles."""
        title = _in_namespace(title, "File")
        extra = {"dflocalonly": ""} if local_only else None
        found = await fetch_continued_prop(self.session, [title], templates.DUPLICATE_FILES, extra=extra)
        names = values_of(found, "name").get(title, [])
        return [_in_namespace(str(n).replace("_", " "), "File") for n in names if n is not None]

    async def revisions(
        self,
        title: str,
        cap: int = -1,
        *,
        older_first: bool = False,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Revisions of ``title``, newest first unless ``older_first``.

        ``start`` and ``end`` bound the revisions by timestamp and are only
        applied together, with ``start`` before ``end``.
        """
        cursor = QueryCursor(self.session, templates.REVISIONS, total_cap=cap).set("titles", title)
        if older_first:
            cursor.set("rvdir", "newer")
        if start is not None and end is not None and start < end:
            # rvstart is the bound the listing begins at, the later one by default
            first, last = (start, end) if older_first else (end, start)
            cursor.set("rvstart", _api_timestamp(first))
            cursor.set("rvend", _api_timestamp(last))
        out: list[dict[str, Any]] = []
        async for reply in cursor:
            out.extend(records_of(reply.prop_comp("title", "revisions").get(title)))
        return out

    async def category_size(self, title: str) -> int:
        title = _in_namespace(title, "Category")
        info = (await fetch_prop(self.session, [title], templates.CATEGORY_INFO)).get(title)
        if not isinstance(info, dict):
            return 0
        return int(info.get("size", 0))

    async def resolve_redirects(self, titles: Iterable[str]) -> dict[str, str]:
        """Map every title to its redirect target, or to itself if it is not a redirect."""
        titles = list(titles)
        out = {t: t for t in titles}
        for entry in await fetch_list(self.session, titles, templates.RESOLVE_REDIRECT, "titles", "redirects"):
            if "from" in entry and "to" in entry:
                out[str(entry["from"])] = str(entry["to"])
        return out

    async def image_info(self, title: str) -> list[ImageInfo]:
        """Revisions of a file, newest first."""
        title = _in_namespace(title, "File")
        found = await fetch_continued_prop(self.session, [title], templates.IMAGE_INFO)
        infos = [ImageInfo.model_validate(record) for record in found.get(title, [])]
        return sorted(infos, key=lambda i: i.timestamp.timestamp() if i.timestamp else 0.0, reverse=True)

    async def user_rights(self, users: Iterable[str]) -> dict[str, list[str] | None]:
        """Groups each user belongs to; None for IPs and unknown users."""
        out: dict[str, list[str] | None] = {}
        for entry in await fetch_list(self.session, users, templates.USER_RIGHTS, "ususers"):
            if "name" not in entry:
                continue
            groups = entry.get("groups")
            out[str(entry["name"])] = [str(g) for g in groups] if isinstance(groups, list) else None
        return out
