"""Command line interface for the Picasa Web Albums client."""

import argparse
import getpass
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from tabulate import tabulate

from picasa_web_albums.cache.cache_manager import get_default_cache
from picasa_web_albums.client import PicasaClient
from picasa_web_albums.config import DEFAULT_CACHE_DIR, DEFAULT_CACHE_EXPIRE, ClientConfig
from picasa_web_albums.models import (
    Album,
    CaptchaRequiredError,
    Comment,
    Image,
    PicasaError,
    Tag,
    Visibility,
)
from picasa_web_albums.utils.auth import AuthManager, AuthMethod
from picasa_web_albums.utils.file_utils import get_upload_metadata, is_uploadable

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_FILE = "token.json"


def album_row(album: Album) -> Dict[str, Any]:
    return {
        "id": album.id_number,
        "title": album.title,
        "photos": album.num_photos,
        "rights": album.rights,
        "updated": album.updated,
    }


def image_row(image: Image) -> Dict[str, Any]:
    return {
        "id": image.id_number,
        "title": image.title,
        "album": image.album_id,
        "size": f"{image.width}x{image.height}" if image.width else None,
        "tags": ", ".join(image.tags or []),
    }


def tag_row(tag: Tag) -> Dict[str, Any]:
    return {"tag": tag.title, "weight": tag.weight}


def comment_row(comment: Comment) -> Dict[str, Any]:
    return {
        "id": comment.id_number,
        "photo": comment.photo_id,
        "author": comment.author.name,
        "content": comment.content,
    }


class AlbumBrowser:
    """Runs CLI commands against a client and prints the results."""

    def __init__(self, client: PicasaClient, token_file: str = DEFAULT_TOKEN_FILE):
        """Initialize the browser."""
        self.client = client
        self.token_file = token_file

    @property
    def auth(self) -> AuthManager:
        return self.client.auth

    def _print_table(self, title: str, rows: List[Dict[str, Any]], noun: str) -> None:
        if rows:
            print(f"\n{title}:")
            print(tabulate(rows, headers="keys", tablefmt="psql"))
            print(f"\nFound {len(rows)} {noun}")
        else:
            print(f"No {noun} found")

    def print_albums(self, username: str, visibility: str, max_results: Optional[int] = None) -> None:
        account = self.client.get_albums_by_username(
            username, max_results=max_results, visibility=visibility
        )
        self._print_table(f"Albums of {username}", [album_row(a) for a in account.albums], "albums")

    def print_images(
        self,
        username: Optional[str],
        keywords: Optional[str] = None,
        tags: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> None:
        collection = self.client.get_images(
            username, max_results=max_results, keywords=keywords, tags=tags
        )
        self._print_table("Images", [image_row(i) for i in collection.images], "images")
        if collection.total_results is not None:
            print(f"Total results: {collection.total_results}")

    def print_album(self, username: str, album_id: str) -> None:
        album = self.client.get_album_by_id(username, album_id)
        print(tabulate([album_row(album)], headers="keys", tablefmt="psql"))
        self._print_table("Images", [image_row(i) for i in album.images or []], "images")

    def print_tags(self, username: str, album_id: Optional[str] = None) -> None:
        tags = self.client.get_tags_by_username(username, album_id)
        self._print_table("Tags", [tag_row(t) for t in tags], "tags")

    def print_comments(self, username: str, album_id: Optional[str] = None) -> None:
        comments = self.client.get_comments_by_username(username, album_id)
        self._print_table("Comments", [comment_row(c) for c in comments], "comments")

    def print_contacts(self, username: str) -> None:
        contacts = self.client.get_contacts_by_username(username)
        rows = [{"user": c.username, "nickname": c.nickname, "name": c.name} for c in contacts]
        self._print_table(f"Contacts of {username}", rows, "contacts")

    def login(self, email: Optional[str], password: Optional[str], token: Optional[str]) -> None:
        """Log in by password, or by exchanging a single-use redirect token."""
        if token:
            self.auth.complete_redirect_login(token)
        else:
            if not email:
                raise ValueError("An email address is required for a password login")
            password = password or getpass.getpass("Password: ")
            try:
                self.auth.login_with_password(email, password)
            except CaptchaRequiredError as challenge:
                print(f"A CAPTCHA must be solved first: {challenge.captcha_url}")
                answer = input("Letters shown in the image: ")
                self.auth.login_with_captcha(challenge, answer)
        self.auth.save_session(self.token_file)
        print(f"Logged in, session saved to {self.token_file}")

    def print_login_url(self, next_url: str) -> None:
        print(self.auth.begin_redirect_login(next_url))

    def logout(self) -> None:
        """Revoke a redirect session and forget the saved token."""
        session = self.auth.session
        if session is not None and session.method is AuthMethod.REDIRECT:
            self.auth.revoke()
        else:
            self.auth.clear()
        if os.path.exists(self.token_file):
            os.remove(self.token_file)
        print("Logged out")

    def upload(
        self,
        username: str,
        album_id: str,
        file_path: str,
        title: Optional[str] = None,
        summary: str = "",
        keywords: str = "",
    ) -> None:
        if not is_uploadable(file_path):
            logger.warning("%s does not look like a supported image", file_path)
        metadata = get_upload_metadata(file_path)
        if metadata is not None:
            print(tabulate([vars(metadata)], headers="keys", tablefmt="psql"))
        image = self.client.post_image(
            username, album_id, file_path, title=title, summary=summary, keywords=keywords
        )
        print(f"Uploaded image {image.id_number}: {image.web_link}")

    def clear_cache(self) -> None:
        if self.client.cache is not None and self.client.cache.clear():
            print("Cache cleared")
        else:
            print("Cache could not be cleared completely")


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Picasa Web Albums client")

    # Global arguments
    parser.add_argument("--verbose", action="store_true", help="Log requests and cache activity")
    parser.add_argument("--token-file", default=DEFAULT_TOKEN_FILE, help="Saved session file")
    parser.add_argument("--cache-dir", default=DEFAULT_CACHE_DIR, help="Response cache directory")
    parser.add_argument(
        "--cache-expire",
        type=int,
        default=DEFAULT_CACHE_EXPIRE,
        help="Seconds a cached response stays fresh",
    )
    parser.add_argument("--no-cache", action="store_true", help="Do not use the response cache")
    parser.add_argument(
        "--insecure", action="store_true", help="Talk to the feed host over plain HTTP"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands", required=True)

    albums_parser = subparsers.add_parser("albums", help="List the albums of a user")
    albums_parser.add_argument("username")
    albums_parser.add_argument(
        "--visibility", choices=[v.value for v in Visibility], default=Visibility.PUBLIC.value
    )
    albums_parser.add_argument("--max-results", type=int)

    images_parser = subparsers.add_parser("images", help="Search photos")
    images_parser.add_argument("--username", help="Only photos of this user")
    images_parser.add_argument("--keywords", help="Full text search terms")
    images_parser.add_argument("--tags", help="Comma-separated tags")
    images_parser.add_argument("--max-results", type=int)

    album_parser = subparsers.add_parser("album", help="Show one album and its photos")
    album_parser.add_argument("username")
    album_parser.add_argument("album_id")

    tags_parser = subparsers.add_parser("tags", help="List the tags of a user")
    tags_parser.add_argument("username")
    tags_parser.add_argument("--album-id")

    comments_parser = subparsers.add_parser("comments", help="List the comments of a user")
    comments_parser.add_argument("username")
    comments_parser.add_argument("--album-id")

    contacts_parser = subparsers.add_parser("contacts", help="List the contacts of a user")
    contacts_parser.add_argument("username")

    login_parser = subparsers.add_parser("login", help="Log in and save the session")
    login_parser.add_argument("--email", help="Account email for a password login")
    login_parser.add_argument("--password", help="Password, prompted for when omitted")
    login_parser.add_argument("--token", help="Single-use token from a redirect login")

    login_url_parser = subparsers.add_parser("login-url", help="Print the redirect login URL")
    login_url_parser.add_argument("next_url", help="URL the provider sends the user back to")

    subparsers.add_parser("logout", help="Revoke and forget the saved session")

    upload_parser = subparsers.add_parser("upload", help="Upload a photo to an album")
    upload_parser.add_argument("username")
    upload_parser.add_argument("album_id")
    upload_parser.add_argument("file_path")
    upload_parser.add_argument("--title")
    upload_parser.add_argument("--summary", default="")
    upload_parser.add_argument("--keywords", default="")

    subparsers.add_parser("clear-cache", help="Delete every cached response")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the Picasa Web Albums CLI."""
    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = ClientConfig(
        secure=not args.insecure, cache_dir=args.cache_dir, cache_expire=args.cache_expire
    )
    cache = get_default_cache(config.cache_dir, config.cache_expire, enabled=not args.no_cache)
    auth = AuthManager(config)
    browser = AlbumBrowser(PicasaClient(config, auth, cache), args.token_file)

    try:
        auth.load_session(args.token_file)
        if args.command == "albums":
            browser.print_albums(args.username, args.visibility, args.max_results)
        elif args.command == "images":
            browser.print_images(args.username, args.keywords, args.tags, args.max_results)
        elif args.command == "album":
            browser.print_album(args.username, args.album_id)
        elif args.command == "tags":
            browser.print_tags(args.username, args.album_id)
        elif args.command == "comments":
            browser.print_comments(args.username, args.album_id)
        elif args.command == "contacts":
            browser.print_contacts(args.username)
        elif args.command == "login":
            browser.login(args.email, args.password, args.token)
        elif args.command == "login-url":
            browser.print_login_url(args.next_url)
        elif args.command == "logout":
            browser.logout()
        elif args.command == "upload":
            browser.upload(
                args.username, args.album_id, args.file_path, args.title, args.summary, args.keywords
            )
        elif args.command == "clear-cache":
            browser.clear_cache()
    except (PicasaError, ValueError) as e:
        logger.error("%s failed: %s", args.command, str(e))
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
