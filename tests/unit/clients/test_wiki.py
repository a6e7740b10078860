"""Unit tests for the Wiki client."""

from datetime import UTC, datetime

import aiohttp
import pytest

from laakhay.wiki import AuthenticationError, ValidationError, Wiki
from laakhay.wiki.clients import wiki as wiki_module
from laakhay.wiki.runtime.rest import WikiSession

EDIT_OK = {"edit": {"result": "Success"}}


@pytest.fixture
def wiki(session):
    session.token = "tok"
    return Wiki(session)


def pages(**entities):
    return {"query": {"pages": {str(i): e for i, e in enumerate(entities.values())}}}


class TestOpen:
    """Test client construction."""

    @pytest.fixture
    def patched_session(self, monkeypatch, fake_http):
        def build(config):
            return WikiSession(config, http=fake_http)

        monkeypatch.setattr(wiki_module, "WikiSession", build)

    @pytest.mark.asyncio
    async def test_login(self, patched_session, fake_http, replies):
        fake_http.queue(*replies.login_script("Bot"))
        wiki = await Wiki.open(domain="test.wikipedia.org", username="Bot", password="pw")
        assert wiki.whoami() == "Bot"
        assert str(wiki) == "[Bot @ test.wikipedia.org]"

    @pytest.mark.asyncio
    async def test_failed_login_raises(self, patched_session, fake_http, replies):
        fake_http.queue(replies.tokens(logintoken="l"), {"login": {"result": "Failed"}})
        with pytest.raises(AuthenticationError) as exc_info:
            await Wiki.open(username="Bot", password="bad")
        assert exc_info.value.username == "Bot"
        assert exc_info.value.host == "en.wikipedia.org"
        assert fake_http.closed

    @pytest.mark.asyncio
    async def test_anonymous(self, patched_session, fake_http, replies):
        fake_http.queue(replies.userinfo(None), replies.tokens(csrftoken="+\\"))
        wiki = await Wiki.open()
        assert wiki.whoami() == "<Anonymous>"
        assert await wiki.derive("commons.wikimedia.org") is None


class TestWrites:
    """Test write actions."""

    @pytest.mark.asyncio
    async def test_edit(self, wiki, session, fake_http):
        session.is_bot = True
        fake_http.queue(EDIT_OK)
        reply = await wiki.edit("Page", "text", "summary")

        assert reply.is_success
        form = fake_http.calls[0].form
        assert form["title"] == "Page"
        assert form["text"] == "text"
        assert form["summary"] == "summary"
        assert form["bot"] == ""
        assert form["token"] == "tok"

    @pytest.mark.asyncio
    async def test_edit_protected_not_retried(self, wiki, fake_http):
        fake_http.queue({"error": {"code": "protectedpage", "info": "protected"}})
        reply = await wiki.edit("Main Page", "x")
        assert reply.error_code == "protectedpage"
        assert len(fake_http.calls) == 1

    @pytest.mark.asyncio
    async def test_add_text_prepend(self, wiki, fake_http):
        fake_http.queue(EDIT_OK)
        await wiki.add_text("Page", "{{notice}}", append=False)
        form = fake_http.calls[0].form
        assert form["prependtext"] == "{{notice}}"
        assert "appendtext" not in form
        assert "bot" not in form

    @pytest.mark.asyncio
    async def test_delete_and_undelete(self, wiki, fake_http):
        fake_http.queue({"delete": {"title": "P"}}, {"undelete": {"title": "P"}})
        assert (await wiki.delete("P", "spam")).is_success
        assert (await wiki.undelete("P", "oops")).is_success
        assert [c.params["action"] for c in fake_http.calls] == ["delete", "undelete"]
        assert fake_http.calls[0].form["reason"] == "spam"

    @pytest.mark.asyncio
    async def test_move_flags(self, wiki, fake_http):
        fake_http.queue({"move": {"from": "A", "to": "B"}})
        await wiki.move("A", "B", "rename", move_talk=True, suppress_redirect=True)
        form = fake_http.calls[0].form
        assert (form["from"], form["to"], form["reason"]) == ("A", "B", "rename")
        assert form["movetalk"] == "1"
        assert form["noredirect"] == "1"
        assert "movesubpages" not in form

    @pytest.mark.asyncio
    async def test_purge(self, wiki, fake_http):
        fake_http.queue({"purge": [{"title": "A", "purged": ""}]})
        await wiki.purge("A", "B")
        form = fake_http.calls[0].form
        assert form["titles"] == "A|B"
        assert "token" not in form

    @pytest.mark.asyncio
    async def test_upload_by_url(self, wiki, fake_http):
        fake_http.queue({"upload": {"result": "Success"}})
        await wiki.upload_by_url("https://example.org/a.png", "A.png", "desc", "sum")
        form = fake_http.calls[0].form
        assert form["url"] == "https://example.org/a.png"
        assert form["filename"] == "A.png"
        assert form["ignorewarnings"] == "true"
        assert form["token"] == "tok"

    @pytest.mark.asyncio
    async def test_upload(self, wiki, fake_http, tmp_path):
        path = tmp_path / "a.png"
        path.write_bytes(b"png")
        fake_http.queue({"upload": {"filekey": "k"}}, {"upload": {"result": "Success"}})
        assert (await wiki.upload(path, "File:A.png")).is_success


class TestLists:
    """Test list reads."""

    @pytest.mark.asyncio
    async def test_category_members(self, wiki, fake_http):
        fake_http.queue(
            {"continue": {"cmcontinue": "x"}, "query": {"categorymembers": [{"title": "A"}]}},
            {"query": {"categorymembers": [{"title": "B"}]}},
        )
        assert await wiki.category_members("Birds", namespaces=[0, 14]) == ["A", "B"]
        params = fake_http.calls[0].params
        assert params["cmtitle"] == "Category:Birds"
        assert params["cmnamespace"] == "0|14"

    @pytest.mark.asyncio
    async def test_all_pages_cap(self, wiki, fake_http):
        fake_http.queue({"continue": {"apcontinue": "B"}, "query": {"allpages": [{"title": "A"}]}})
        result = await wiki.all_pages("A", cap=1, redirects_only=True)
        assert result == ["A"]
        params = fake_http.calls[0].params
        assert params["aplimit"] == "1"
        assert params["apprefix"] == "A"
        assert params["apfilterredir"] == "redirects"

    @pytest.mark.asyncio
    async def test_user_contribs(self, wiki, fake_http):
        fake_http.queue({"query": {"usercontribs": [{"title": "P", "revid": 5}]}})
        result = await wiki.user_contribs("Bot", older_first=True, created_only=True)
        assert result == [{"title": "P", "revid": 5}]
        params = fake_http.calls[0].params
        assert params["ucuser"] == "Bot"
        assert params["ucdir"] == "newer"
        assert params["ucshow"] == "new"

    @pytest.mark.asyncio
    async def test_allowed_file_exts(self, wiki, fake_http):
        fake_http.queue({"query": {"fileextensions": [{"ext": "png"}, {"ext": "jpg"}]}})
        assert await wiki.allowed_file_exts() == ["png", "jpg"]

    @pytest.mark.asyncio
    async def test_prefix_index(self, wiki, fake_http):
        fake_http.queue({"query": {"prefixsearch": [{"ns": 0, "title": "Foo"}, {"ns": 0, "title": "Foobar"}]}})
        assert await wiki.prefix_index("Foo", namespaces=[0]) == ["Foo", "Foobar"]
        params = fake_http.calls[0].params
        assert params["pssearch"] == "Foo"
        assert params["psnamespace"] == "0"
        assert params["pslimit"] == "max"

    @pytest.mark.asyncio
    async def test_search(self, wiki, fake_http):
        fake_http.queue({"continue": {"sroffset": "3"}, "query": {"search": [{"title": "A"}, {"title": "B"}]}})
        assert await wiki.search("birds", cap=2) == ["A", "B"]
        params = fake_http.calls[0].params
        assert params["srsearch"] == "birds"
        assert params["srlimit"] == "2"
        assert params["srnamespace"] == "*"
        assert len(fake_http.calls) == 1

    @pytest.mark.asyncio
    async def test_search_namespaces(self, wiki, fake_http):
        fake_http.queue({"query": {"search": []}})
        assert await wiki.search("birds", namespaces=[0, 6]) == []
        assert fake_http.calls[0].params["srnamespace"] == "0|6"

    @pytest.mark.asyncio
    async def test_user_uploads(self, wiki, fake_http):
        fake_http.queue({"query": {"allimages": [{"name": "A.png", "title": "File:A.png"}]}})
        assert await wiki.user_uploads("User:Bot") == ["File:A.png"]
        params = fake_http.calls[0].params
        assert params["aiuser"] == "Bot"
        assert params["aisort"] == "timestamp"

    @pytest.mark.asyncio
    async def test_logs(self, wiki, fake_http):
        entry = {"type": "delete", "action": "delete", "title": "P", "user": "Admin"}
        fake_http.queue({"query": {"logevents": [entry]}})
        assert await wiki.logs(title="P", user="User:Admin", log_type="delete") == [entry]
        params = fake_http.calls[0].params
        assert params["letitle"] == "P"
        assert params["leuser"] == "Admin"
        assert params["letype"] == "delete"

    @pytest.mark.asyncio
    async def test_logs_unfiltered(self, wiki, fake_http):
        fake_http.queue({"query": {"logevents": []}})
        await wiki.logs()
        assert not {"letitle", "leuser", "letype"} & set(fake_http.calls[0].params)

    @pytest.mark.asyncio
    async def test_recent_changes_window(self, wiki, fake_http):
        change = {"type": "edit", "title": "P", "user": "U"}
        fake_http.queue({"query": {"recentchanges": [change]}})
        start = datetime(2024, 1, 1, tzinfo=UTC)
        end = datetime(2024, 1, 2, 12, 30, tzinfo=UTC)

        assert await wiki.recent_changes(start, end) == [change]
        params = fake_http.calls[0].params
        assert params["rcend"] == "2024-01-01T00:00:00Z"
        assert params["rcstart"] == "2024-01-02T12:30:00Z"

    @pytest.mark.asyncio
    async def test_recent_changes_defaults_to_last_seconds(self, wiki, fake_http):
        fake_http.queue({"query": {"recentchanges": []}})
        await wiki.recent_changes()
        params = fake_http.calls[0].params
        assert "rcstart" in params
        assert "rcend" in params

    @pytest.mark.asyncio
    async def test_recent_changes_rejects_reversed_window(self, wiki, fake_http):
        with pytest.raises(ValidationError):
            await wiki.recent_changes(datetime(2024, 2, 1, tzinfo=UTC), datetime(2024, 1, 1, tzinfo=UTC))
        assert fake_http.calls == []


class TestPageProperties:
    """Test per-page reads."""

    @pytest.mark.asyncio
    async def test_page_text(self, wiki, fake_http):
        fake_http.queue(pages(a={"title": "P", "revisions": [{"*": "Hello"}]}))
        assert await wiki.page_text("P") == "Hello"

    @pytest.mark.asyncio
    async def test_page_text_missing(self, wiki, fake_http):
        fake_http.queue(pages(a={"title": "P", "missing": ""}))
        assert await wiki.page_text("P") == ""

    @pytest.mark.asyncio
    async def test_exists(self, wiki, fake_http):
        fake_http.queue(pages(a={"title": "P", "pageid": 1}), pages(a={"title": "Q", "missing": ""}))
        assert await wiki.exists("P")
        assert not await wiki.exists("Q")

    @pytest.mark.asyncio
    async def test_exists_transport_failure(self, wiki, fake_http):
        fake_http.queue(aiohttp.ClientConnectionError("down"))
        assert not await wiki.exists("P")

    @pytest.mark.asyncio
    async def test_exists_normalized_title(self, wiki, fake_http):
        fake_http.queue(
            {
                "query": {
                    "normalized": [{"from": "main page", "to": "Main page"}],
                    "pages": {"1": {"title": "Main page", "pageid": 1}},
                }
            }
        )
        assert await wiki.exists("main page")

    @pytest.mark.asyncio
    async def test_categories_on_page(self, wiki, fake_http):
        fake_http.queue(pages(a={"title": "P", "categories": [{"title": "Category:X"}]}))
        assert await wiki.categories_on_page("P") == ["Category:X"]

    @pytest.mark.asyncio
    async def test_links_and_templates(self, wiki, fake_http):
        fake_http.queue(
            pages(a={"title": "P", "links": [{"title": "L"}]}),
            pages(a={"title": "P", "templates": [{"title": "Template:T"}]}),
        )
        assert await wiki.links_on_page("P", namespaces=[0]) == ["L"]
        assert fake_http.calls[0].params["plnamespace"] == "0"
        assert await wiki.templates_on_page("P") == ["Template:T"]

    @pytest.mark.asyncio
    async def test_category_size(self, wiki, fake_http):
        fake_http.queue(
            pages(a={"title": "Category:Birds", "categoryinfo": {"size": 12, "pages": 10}}),
            pages(a={"title": "Category:None", "missing": ""}),
        )
        assert await wiki.category_size("Birds") == 12
        assert await wiki.category_size("Category:None") == 0

    @pytest.mark.asyncio
    async def test_resolve_redirects(self, wiki, fake_http):
        fake_http.queue({"query": {"redirects": [{"from": "UK", "to": "United Kingdom"}]}})
        result = await wiki.resolve_redirects(["UK", "France"])
        assert result == {"UK": "United Kingdom", "France": "France"}

    @pytest.mark.asyncio
    async def test_image_info_newest_first(self, wiki, fake_http):
        fake_http.queue(
            pages(
                a={
                    "title": "File:A.png",
                    "imageinfo": [
                        {"timestamp": "2020-01-01T00:00:00Z", "user": "Old", "size": 1},
                        {"timestamp": "2024-01-01T00:00:00Z", "user": "New", "size": 2},
                    ],
                }
            )
        )
        infos = await wiki.image_info("A.png")
        assert [i.user for i in infos] == ["New", "Old"]
        assert infos[0].timestamp == datetime(2024, 1, 1, tzinfo=UTC)
        assert fake_http.calls[0].params["titles"] == "File:A.png"

    @pytest.mark.asyncio
    async def test_user_rights(self, wiki, fake_http):
        fake_http.queue(
            {"query": {"users": [{"name": "Bot", "groups": ["bot", "user"]}, {"name": "1.2.3.4", "invalid": ""}]}}
        )
        result = await wiki.user_rights(["Bot", "1.2.3.4"])
        assert result == {"Bot": ["bot", "user"], "1.2.3.4": None}


class TestLinkTables:
    """Test reads over link, file and revision tables."""

    @pytest.mark.asyncio
    async def test_images_on_page(self, wiki, fake_http):
        fake_http.queue(pages(a={"title": "P", "images": [{"ns": 6, "title": "File:A.png"}]}))
        assert await wiki.images_on_page("P") == ["File:A.png"]
        assert fake_http.calls[0].params["prop"] == "images"

    @pytest.mark.asyncio
    async def test_external_links(self, wiki, fake_http):
        fake_http.queue(pages(a={"title": "P", "extlinks": [{"*": "https://example.org/"}]}))
        assert await wiki.external_links("P") == ["https://example.org/"]

    @pytest.mark.asyncio
    async def test_what_links_here(self, wiki, fake_http):
        fake_http.queue(
            pages(a={"title": "P", "linkshere": [{"title": "A"}]}),
            pages(a={"title": "P", "linkshere": [{"title": "R"}]}),
        )
        assert await wiki.what_links_here("P") == ["A"]
        assert await wiki.what_links_here("P", redirects=True) == ["R"]
        assert fake_http.calls[0].params["lhshow"] == "!redirect"
        assert fake_http.calls[1].params["lhshow"] == "redirect"

    @pytest.mark.asyncio
    async def test_what_transcludes_here(self, wiki, fake_http):
        fake_http.queue(
            {
                "continue": {"ticontinue": "9", "continue": "||"},
                "query": {"pages": {"1": {"title": "Template:T", "transcludedin": [{"title": "A"}]}}},
            },
            {"query": {"pages": {"1": {"title": "Template:T", "transcludedin": [{"title": "B"}]}}}},
        )
        assert await wiki.what_transcludes_here("Template:T", namespaces=[0]) == ["A", "B"]
        assert fake_http.calls[0].params["tinamespace"] == "0"
        assert fake_http.calls[1].params["ticontinue"] == "9"

    @pytest.mark.asyncio
    async def test_file_usage(self, wiki, fake_http):
        fake_http.queue(pages(a={"title": "File:A.png", "fileusage": [{"title": "P"}]}))
        assert await wiki.file_usage("A.png") == ["P"]
        assert fake_http.calls[0].params["titles"] == "File:A.png"

    @pytest.mark.asyncio
    async def test_duplicates_of(self, wiki, fake_http):
        fake_http.queue(
            pages(a={"title": "File:A.png", "duplicatefiles": [{"name": "Copy_of_A.png", "shared": ""}]})
        )
        assert await wiki.duplicates_of("File:A.png", local_only=True) == ["File:Copy of A.png"]
        assert fake_http.calls[0].params["dflocalonly"] == ""

    @pytest.mark.asyncio
    async def test_duplicates_of_failed_query(self, wiki, fake_http):
        fake_http.queue(aiohttp.ClientConnectionError("down"))
        assert await wiki.duplicates_of("A.png") == []

    @pytest.mark.asyncio
    async def test_revisions_follow_continuation(self, wiki, fake_http):
        fake_http.queue(
            {
                "continue": {"rvcontinue": "20240101|5", "continue": "||"},
                "query": {"pages": {"1": {"title": "P", "revisions": [{"revid": 6, "user": "B"}]}}},
            },
            {"query": {"pages": {"1": {"title": "P", "revisions": [{"revid": 5, "user": "A"}]}}}},
        )
        revisions = await wiki.revisions("P")
        assert [r["revid"] for r in revisions] == [6, 5]
        assert "rvdir" not in fake_http.calls[0].params

    @pytest.mark.asyncio
    async def test_revisions_window_newest_first(self, wiki, fake_http):
        fake_http.queue(pages(a={"title": "P", "revisions": []}))
        start = datetime(2024, 1, 1, tzinfo=UTC)
        end = datetime(2024, 6, 1, tzinfo=UTC)
        await wiki.revisions("P", start=start, end=end)
        params = fake_http.calls[0].params
        assert params["rvstart"] == "2024-06-01T00:00:00Z"
        assert params["rvend"] == "2024-01-01T00:00:00Z"

    @pytest.mark.asyncio
    async def test_revisions_window_older_first(self, wiki, fake_http):
        fake_http.queue(pages(a={"title": "P", "revisions": []}))
        start = datetime(2024, 1, 1, tzinfo=UTC)
        end = datetime(2024, 6, 1, tzinfo=UTC)
        await wiki.revisions("P", cap=10, older_first=True, start=start, end=end)
        params = fake_http.calls[0].params
        assert params["rvdir"] == "newer"
        assert params["rvstart"] == "2024-01-01T00:00:00Z"
        assert params["rvend"] == "2024-06-01T00:00:00Z"
        assert params["rvlimit"] == "10"
