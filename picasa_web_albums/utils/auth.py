"""Authentication for the Picasa Web Albums API.

Two login flows are supported: a direct password login (ClientLogin) and a
redirect-token login (AuthSub) where the user signs in on the provider's page
and comes back with a single-use token.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from urllib.parse import quote_plus, urlencode

from picasa_web_albums.api.errors import classify
from picasa_web_albums.api.transport import (
    FORM_CONTENT_TYPE,
    RawHttpResponse,
    Transport,
    parse_response_value,
)
from picasa_web_albums.config import ClientConfig
from picasa_web_albums.models import (
    CaptchaRequiredError,
    FailedAuthorizationError,
    InvalidCredentialsError,
    PicasaError,
    RequestFailedError,
    TransportError,
)

logger = logging.getLogger(__name__)

CLIENT_LOGIN_PATH = "/accounts/ClientLogin"
AUTHSUB_REQUEST_PATH = "/accounts/AuthSubRequest"
AUTHSUB_SESSION_TOKEN_PATH = "/accounts/AuthSubSessionToken"
AUTHSUB_TOKEN_INFO_PATH = "/accounts/AuthSubTokenInfo"
AUTHSUB_REVOKE_TOKEN_PATH = "/accounts/AuthSubRevokeToken"


class AuthMethod(str, Enum):
    """How the current token was obtained."""
    PASSWORD = "password"
    REDIRECT = "redirect"


_HEADER_PREFIXES = {
    AuthMethod.PASSWORD: "GoogleLogin auth=",
    AuthMethod.REDIRECT: "AuthSub token=",
}


def format_auth_header(token: str, method: AuthMethod) -> str:
    """Return the Authorization header line for a token."""
    return f"Authorization: {_HEADER_PREFIXES[method]}{token}\r\n"


@dataclass(frozen=True)
class AuthSession:
    """An active token and the flow that produced it."""
    token: str
    method: AuthMethod
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not self.token:
            raise ValueError("An auth session needs a non-empty token")


class AuthManager:
    """Holds the current token and runs the two login flows."""

    def __init__(self, config: Optional[ClientConfig] = None, transport: Optional[Transport] = None):
        """Initialize an unauthenticated manager.

        Args:
            config: Client configuration (login host, service, source)
            transport: Raw transport used for login requests
        """
        self.config = config or ClientConfig()
        self.transport = transport or Transport(self.config.timeout)
        self.identity: Optional[str] = None
        self._session: Optional[AuthSession] = None

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        """Whether a token is held. No network check is made."""
        return self._session is not None

    def set_session(self, token: str, method: AuthMethod) -> AuthSession:
        """Use a token obtained earlier, e.g. restored from disk."""
        self._session = AuthSession(token=token, method=AuthMethod(method))
        return self._session

    def clear(self) -> None:
        """Forget the current token locally."""
        self._session = None
        self.identity = None

    def build_auth_header(self) -> str:
        """Return the ``Authorization`` header line for the current token.

        Raises:
            FailedAuthorizationError: If no one is logged in
        """
        if self._session is None:
            raise FailedAuthorizationError("Not authenticated.")
        return format_auth_header(self._session.token, self._session.method)

    def _login_request(
        self, path: str, header: Optional[str] = None, body: Optional[str] = None, verb: str = "GET"
    ) -> RawHttpResponse:
        return self.transport.send(
            self.config.login_host,
            path,
            body,
            verb,
            [header] if header else None,
            FORM_CONTENT_TYPE,
            use_tls=True,
            port=443,
        )

    def login_with_password(
        self,
        identity: str,
        secret: str,
        captcha_token: Optional[str] = None,
        captcha_response: Optional[str] = None,
        source: Optional[str] = None,
        service: Optional[str] = None,
    ) -> str:
        """Log in with an email address and password.

        Args:
            identity: Email address of the account
            secret: Password
            captcha_token: Token of a CAPTCHA challenge being answered
            captcha_response: The letters the user read from the CAPTCHA image
            source: Application name sent to the login server
            service: Service name, ``lh2`` for Picasa Web Albums

        Returns:
            The auth token

        Raises:
            CaptchaRequiredError: If the server wants a CAPTCHA answered first
            InvalidCredentialsError: If the username or password was rejected
            ApiError: For any other failure
        """
        logger.info("Authenticating for %s", identity)
        fields = {
            "Email": identity,
            "Passwd": secret,
            "service": service or self.config.service,
            "source": source or self.config.source_for(identity),
        }
        if captcha_token is not None and captcha_response is not None:
            fields["logintoken"] = captcha_token
            fields["logincaptcha"] = captcha_response

        try:
            response = self._login_request(CLIENT_LOGIN_PATH, body=urlencode(fields), verb="POST")
        except RequestFailedError as e:
            text = e.response_text()
            error_value = parse_response_value(text, "Error")
            if error_value == "CaptchaRequired":
                raise CaptchaRequiredError(
                    "A CAPTCHA is required.",
                    parse_response_value(text, "Url"),
                    identity,
                    secret,
                    parse_response_value(text, "CaptchaToken"),
                    parse_response_value(text, "CaptchaUrl"),
                    e.response,
                ) from e
            if error_value == "BadAuthentication":
                raise InvalidCredentialsError(
                    "Username or password was invalid.", e.response, e.url
                ) from e
            raise classify(e.response, e.detail, e.url) from e

        token = parse_response_value(response.text, "Auth")
        if not token:
            raise FailedAuthorizationError(
                "The login server did not return a token.", response.raw, CLIENT_LOGIN_PATH
            )
        self.set_session(token, AuthMethod.PASSWORD)
        self.identity = identity
        return token

    def login_with_captcha(self, challenge: CaptchaRequiredError, answer: str) -> str:
        """Retry a password login that was interrupted by a CAPTCHA."""
        return self.login_with_password(
            challenge.identity, challenge.secret, challenge.captcha_token, answer
        )

    def begin_redirect_login(self, callback_url: str, allow_session_upgrade: bool = True) -> str:
        """Return the URL the user must be sent to in order to sign in.

        No request is made. The provider redirects back to ``callback_url``
        with a single-use ``token`` parameter.
        """
        session = 1 if allow_session_upgrade else 0
        return (
            f"https://{self.config.login_host}{AUTHSUB_REQUEST_PATH}"
            f"?next={quote_plus(callback_url)}"
            f"&scope={quote_plus(self.config.feed_url)}"
            f"&session={session}"
        )

    def complete_redirect_login(self, single_use_token: str) -> str:
        """Exchange a single-use token for a session token and keep it.

        The single-use token itself is never stored. On failure the current
        state is left as it was.

        Returns:
            The session token

        Raises:
            FailedAuthorizationError: If the exchange fails
        """
        if not single_use_token or single_use_token == "null":
            raise FailedAuthorizationError("No token was supplied.")

        header = format_auth_header(single_use_token, AuthMethod.REDIRECT)
        try:
            response = self._login_request(AUTHSUB_SESSION_TOKEN_PATH, header)
        except RequestFailedError as e:
            error = classify(e.response, e.detail, e.url)
            raise FailedAuthorizationError(error.message, e.response, e.url) from error
        except TransportError as e:
            raise FailedAuthorizationError(e.message, None, AUTHSUB_SESSION_TOKEN_PATH) from e

        session_token = parse_response_value(response.text, "Token")
        if not session_token:
            raise FailedAuthorizationError(
                "The token exchange did not return a session token.",
                response.raw,
                AUTHSUB_SESSION_TOKEN_PATH,
            )
        self.set_session(session_token, AuthMethod.REDIRECT)
        return session_token

    def check_valid(self) -> bool:
        """Check whether the current token is still accepted.

        Password tokens cannot be checked remotely and are reported valid
        whenever one is held.
        """
        if self._session is None:
            return False
        if self._session.method is AuthMethod.PASSWORD:
            return True
        try:
            self._login_request(AUTHSUB_TOKEN_INFO_PATH, self.build_auth_header())
        except PicasaError as e:
            logger.debug("Token is not valid: %s", e.message)
            return False
        return True

    def revoke(self) -> None:
        """Invalidate a redirect-login session token on the server.

        Local state is only cleared once the server accepted the revocation.

        Raises:
            FailedAuthorizationError: If not logged in, or logged in by password
            ApiError: If the server refused the revocation
        """
        if self._session is None:
            raise FailedAuthorizationError("Not authenticated.")
        if self._session.method is AuthMethod.PASSWORD:
            raise FailedAuthorizationError(
                "Revocation is only available for redirect-login sessions."
            )
        try:
            self._login_request(AUTHSUB_REVOKE_TOKEN_PATH, self.build_auth_header())
        except RequestFailedError as e:
            raise classify(e.response, e.detail, e.url) from e
        self.clear()

    def save_session(self, token_path: str) -> None:
        """Write the current session to a JSON file.

        Args:
            token_path: Path to token.json file
        """
        if self._session is None:
            raise FailedAuthorizationError("Not authenticated.")
        data = {
            "token": self._session.token,
            "method": self._session.method.value,
            "created_at": self._session.created_at.isoformat(),
        }
        with open(token_path, "w", encoding="utf-8") as token_file:
            json.dump(data, token_file)

    def load_session(self, token_path: str) -> bool:
        """Restore a session saved by save_session.

        Args:
            token_path: Path to token.json file

        Returns:
            True if a session was restored
        """
        if not os.path.exists(token_path):
            return False
        with open(token_path, "r", encoding="utf-8") as token_file:
            data = json.load(token_file)
        if not data.get("token"):
            return False

        created_at = data.get("created_at")
        self._session = AuthSession(
            token=data["token"],
            method=AuthMethod(data.get("method")),
            created_at=(
                datetime.fromisoformat(created_at) if created_at else datetime.now(timezone.utc)
            ),
        )
        return True
