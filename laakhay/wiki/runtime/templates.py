"""Query parameter templates.

A template is the fixed parameter skeleton of one ``action=query`` module:
its default fields, the name of its limit parameter (if it pages) and the
key its results live under. Fields whose value is ``None`` are placeholders
the caller must fill in before the query can be sent.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class ParamTemplate:
    """Immutable description of a query module.

    Attributes:
        fields: Default fields; ``None`` values are placeholders
        limit_key: Query parameter carrying the page size (None if not paged)
        result_key: Key under ``query`` (or ``query.pages[*]``) holding results
    """

    fields: Mapping[str, str | None] = field(default_factory=dict)
    limit_key: str | None = None
    result_key: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def placeholders(self) -> list[str]:
        """Names of the fields the caller must bind."""
        return [k for k, v in self.fields.items() if v is None]

    def defaults(self) -> dict[str, str | None]:
        """Fresh copy of the default fields, with the limit set to ``max``."""
        out = dict(self.fields)
        if self.limit_key is not None:
            out[self.limit_key] = "max"
        return out


ALLOWED_FILE_EXTS = ParamTemplate({"meta": "siteinfo", "siprop": "fileextensions"}, None, "fileextensions")
ALL_PAGES = ParamTemplate({"list": "allpages"}, "aplimit", "allpages")
CATEGORY_INFO = ParamTemplate({"prop": "categoryinfo", "titles": None}, None, "categoryinfo")
CATEGORY_MEMBERS = ParamTemplate(
    {"list": "categorymembers", "cmtitle": None}, "cmlimit", "categorymembers"
)
DUPLICATE_FILES = ParamTemplate({"prop": "duplicatefiles", "titles": None}, "dflimit", "duplicatefiles")
EXISTS = ParamTemplate({"prop": "pageprops", "ppprop": "missing", "titles": None}, None, "missing")
EXT_LINKS = ParamTemplate(
    {"prop": "extlinks", "elexpandurl": "1", "titles": None}, "ellimit", "extlinks"
)
FILE_USAGE = ParamTemplate({"prop": "fileusage", "titles": None}, "fulimit", "fileusage")
IMAGE_INFO = ParamTemplate(
    {
        "prop": "imageinfo",
        "iiprop": "canonicaltitle|url|size|sha1|mime|user|timestamp|comment",
        "titles": None,
    },
    "iilimit",
    "imageinfo",
)
IMAGES = ParamTemplate({"prop": "images", "titles": None}, "imlimit", "images")
LINKS_HERE = ParamTemplate(
    {"prop": "linkshere", "lhprop": "title", "lhshow": None, "titles": None}, "lhlimit", "linkshere"
)
LINKS_ON_PAGE = ParamTemplate({"prop": "links", "titles": None}, "pllimit", "links")
LOG_EVENTS = ParamTemplate({"list": "logevents"}, "lelimit", "logevents")
PAGE_CATEGORIES = ParamTemplate({"prop": "categories", "titles": None}, "cllimit", "categories")
PAGE_TEXT = ParamTemplate({"prop": "revisions", "rvprop": "content", "titles": None}, None, "revisions")
PREFIX_SEARCH = ParamTemplate({"list": "prefixsearch"}, "pslimit", "prefixsearch")
RECENT_CHANGES = ParamTemplate(
    {"list": "recentchanges", "rcprop": "title|timestamp|user|comment", "rctype": "edit|new|log"},
    "rclimit",
    "recentchanges",
)
RESOLVE_REDIRECT = ParamTemplate({"redirects": "", "titles": None}, None, "redirects")
REVISIONS = ParamTemplate(
    {"prop": "revisions", "rvprop": "comment|content|ids|timestamp|user", "titles": None},
    "rvlimit",
    "revisions",
)
SEARCH = ParamTemplate(
    {"list": "search", "srprop": "", "srnamespace": "*", "srsearch": None}, "srlimit", "search"
)
TEMPLATES = ParamTemplate({"prop": "templates", "tiprop": "title", "titles": None}, "tllimit", "templates")
TOKENS_CSRF = ParamTemplate({"meta": "tokens", "type": "csrf"}, None, "tokens")
TOKENS_LOGIN = ParamTemplate({"meta": "tokens", "type": "login"}, None, "tokens")
TRANSCLUDED_IN = ParamTemplate(
    {"prop": "transcludedin", "tiprop": "title", "titles": None}, "tilimit", "transcludedin"
)
USER_CONTRIBS = ParamTemplate({"list": "usercontribs", "ucuser": None}, "uclimit", "usercontribs")
USER_INFO = ParamTemplate({"meta": "userinfo"}, None, "userinfo")
USER_RIGHTS = ParamTemplate({"list": "users", "usprop": "groups", "ususers": None}, None, "users")
USER_UPLOADS = ParamTemplate(
    {"list": "allimages", "aisort": "timestamp", "aiuser": None}, "ailimit", "allimages"
)
