"""Shared session context for one wiki.

Architecture:
    A WikiSession is the explicit context object every query, action and
    upload is run against. It owns the state shared by all operations of one
    logical login:
    - the HTTP client (connection pool and cookie jar)
    - the cached CSRF token and the logged-in user name
    - the credentials used to re-authenticate when the token expires
    - the registry of sibling sessions derived for other hosts

    ``request()`` is the token-aware primitive. Queries, actions and chunk
    uploads all go through it, so expired-token recovery lives in one place.

Design Decisions:
    - Token refresh is a critical section guarded by an ``asyncio.Lock``.
      A task that saw a stale token re-checks the token once it holds the
      lock, so concurrent ``badtoken`` failures coalesce into one login.
    - Re-authentication is only attempted for requests that carried a token;
      login traffic itself never does, so login cannot recurse into itself.
    - Derived sessions copy only the ``centralauth`` cookies of the parent
      host at creation time and are independent afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from ...core.config import ANONYMOUS_TOKEN, BADTOKEN, WikiConfig
from ...models.reply import error_code_of
from .. import templates
from ..cursor import QueryCursor
from .executor import ActionExecutor
from .http_client import FilePart, HTTPClient

logger = logging.getLogger(__name__)


class WikiSession:
    """Authentication and transport context shared by all operations on a wiki."""

    def __init__(
        self,
        config: WikiConfig | None = None,
        *,
        http: HTTPClient | None = None,
        registry: dict[str, WikiSession] | None = None,
    ) -> None:
        """Initialize session.

        Args:
            config: Wiki configuration (defaults to English Wikipedia)
            http: HTTP client to use; built from ``config`` when omitted
            registry: Host -> session map shared with derived sessions
        """
        self.config = config or WikiConfig()
        self.http = http or HTTPClient(
            self.config.api_endpoint,
            user_agent=self.config.user_agent,
            timeout=self.config.timeout,
        )
        self.token = ANONYMOUS_TOKEN
        self.username: str | None = None
        self.is_bot = False
        self._credentials: tuple[str, str] | None = None
        self._auth_lock = asyncio.Lock()
        self._derive_lock = asyncio.Lock()
        self._registry: dict[str, WikiSession] = registry if registry is not None else {}

    @property
    def hostname(self) -> str:
        return self.config.hostname

    @property
    def log_label(self) -> str | None:
        """``[user @ host]`` for structured logs, or None if prefixing is off."""
        return str(self) if self.config.prefix_logs else None

    @property
    def has_credentials(self) -> bool:
        return self._credentials is not None

    def whoami(self) -> str:
        return self.username if self.username is not None else "<Anonymous>"

    def __str__(self) -> str:
        return f"[{self.whoami()} @ {self.hostname}]"

    # ------------------------------------------------------------------ #
    # Request primitive
    # ------------------------------------------------------------------ #

    async def request(
        self,
        params: dict[str, str],
        *,
        form: dict[str, str] | None = None,
        post: bool = False,
        token_key: str | None = None,
        file: FilePart | None = None,
    ) -> Any:
        """Send one request, re-authenticating once if the token has expired.

        Args:
            params: URL parameters (not URL-encoded)
            form: Form fields for POST
            post: POST instead of GET
            token_key: Field to inject the cached token under (form for POST,
                URL for GET). No token is sent when None.
            file: Binary part for multipart uploads (implies POST)

        Returns:
            Decoded JSON body of the last attempt

        Raises:
            aiohttp.ClientError, asyncio.TimeoutError, ValueError: transport
                faults; callers convert them into null replies
        """
        params = dict(params)
        form = dict(form or {})
        post = post or file is not None
        target = form if post else params

        token = self.token
        if token_key is not None:
            target[token_key] = token

        response = await self._send(params, form, post, file)
        if (
            token_key is not None
            and self._credentials is not None
            and error_code_of(response) == BADTOKEN
        ):
            logger.warning(
                "Bad token on request, re-authenticating",
                extra={"wiki": self.log_label, "action": params.get("action")},
            )
            await self.reauthenticate(token)
            target[token_key] = self.token
            # Only one attempt after refreshing the login
            response = await self._send(params, form, post, file)
        return response

    async def _send(
        self,
        params: dict[str, str],
        form: dict[str, str],
        post: bool,
        file: FilePart | None,
    ) -> Any:
        if post:
            return await self.http.post(params, form, file)
        return await self.http.get(params)

    # ------------------------------------------------------------------ #
    # Authentication
    # ------------------------------------------------------------------ #

    async def login(self, username: str, password: str) -> bool:
        """Log in; does nothing and returns True if already logged in.

        Returns:
            True if the session is logged in afterwards
        """
        async with self._auth_lock:
            return await self._login_locked(username, password)

    async def reauthenticate(self, stale_token: str) -> None:
        """Log in again with the stored credentials unless another task already did.

        Args:
            stale_token: The token the caller's failed request was sent with
        """
        async with self._auth_lock:
            if self.token != stale_token:
                logger.debug("Token already refreshed by another task", extra={"wiki": self.log_label})
                return
            if self._credentials is None:
                return
            username, password = self._credentials
            previous = self.username
            self.username = None
            if not await self._login_locked(username, password):
                logger.error("Re-authentication as %s failed", username, extra={"wiki": self.log_label})
                self.username = previous

    async def _login_locked(self, username: str, password: str) -> bool:
        if self.username is not None:
            return True

        logger.info("Try login for %s", username, extra={"wiki": self.log_label})
        login_token = await self._fetch_token(templates.TOKENS_LOGIN, "logintoken")
        if login_token is None:
            logger.error("Could not retrieve a login token", extra={"wiki": self.log_label})
            return False

        reply = await ActionExecutor(self).post_action(
            "login",
            fields={"lgname": username, "lgpassword": password, "lgtoken": login_token},
        )
        if not reply.is_success:
            logger.error("Error while logging in as %s", username, extra={"wiki": self.log_label})
            return False
        payload = reply.success_json()
        if not isinstance(payload, dict) or payload.get("result") != "Success":
            logger.error(
                "Login as %s rejected: %s",
                username,
                payload.get("reason", payload.get("result")) if isinstance(payload, dict) else payload,
                extra={"wiki": self.log_label},
            )
            return False

        self._credentials = (username, password)
        await self.refresh_login_status()
        logger.info("Logged in as %s", username, extra={"wiki": self.log_label})
        return True

    async def refresh_login_status(self) -> None:
        """Refresh user name, CSRF token and bot flag from the server."""
        info = (await QueryCursor(self, templates.USER_INFO).advance()).meta_comp("userinfo")
        name = info.get("name") if isinstance(info, dict) else None
        self.username = None if name is None or "anon" in info else str(name)
        self.token = await self._fetch_token(templates.TOKENS_CSRF, "csrftoken") or ANONYMOUS_TOKEN
        self._registry[self.hostname] = self
        self.is_bot = False
        if self.username is not None:
            self.is_bot = "bot" in await self._user_groups(self.username)

    async def _fetch_token(self, template: templates.ParamTemplate, key: str) -> str | None:
        tokens = (await QueryCursor(self, template).advance()).meta_comp("tokens")
        value = tokens.get(key) if isinstance(tokens, dict) else None
        return str(value) if value is not None else None

    async def _user_groups(self, username: str) -> list[str]:
        cursor = QueryCursor(self, templates.USER_RIGHTS).set("ususers", username)
        for user in (await cursor.advance()).list_comp("users"):
            if user.get("name") == username:
                return [str(g) for g in user.get("groups", [])]
        return []

    # ------------------------------------------------------------------ #
    # Derived sessions
    # ------------------------------------------------------------------ #

    async def derive(self, domain: str) -> WikiSession | None:
        """Get a session for another host sharing this login (``centralauth``).

        Args:
            domain: Host of the other wiki, e.g. ``commons.wikimedia.org``

        Returns:
            The registered session for ``domain``, a newly derived one, or
            None if this session is not logged in
        """
        if self.username is None:
            return None
        async with self._derive_lock:
            if domain in self._registry:
                return self._registry[domain]

            logger.debug("Get wiki for %s @ %s", self.whoami(), domain, extra={"wiki": self.log_label})
            config = self.config.retarget(domain)
            jar = aiohttp.CookieJar(unsafe=True)
            shared = {
                name: value
                for name, value in self.http.cookies_for(self.hostname).items()
                if "centralauth" in name
            }
            if shared:
                jar.update_cookies(shared, response_url=config.url)
            child = WikiSession(
                config,
                http=HTTPClient(
                    config.api_endpoint,
                    user_agent=config.user_agent,
                    timeout=config.timeout,
                    cookie_jar=jar,
                ),
                registry=self._registry,
            )
            await child.refresh_login_status()
            return child

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http.close()

    async def __aenter__(self) -> WikiSession:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
