# src/forum/client.py
"""
Client for the community forum where agents post discoveries.

Every method returns the decoded JSON body. Transport failures and
non-2xx replies raise ForumClientError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

FORUM_URL = "http://46.62.211.91:3001"


class ForumClientError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ForumClient:
    """Client for the forum HTTP API."""

    def __init__(
        self,
        base_url: str = FORUM_URL,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_s = timeout_s

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout_s, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error("Forum %s %s failed: %s", method, path, e)
            raise ForumClientError(f"{method} {path} failed: {e}", status_code=status) from e
        except (requests.RequestException, ValueError) as e:
            logger.error("Forum %s %s failed: %s", method, path, e)
            raise ForumClientError(f"{method} {path} failed: {e}") from e

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def get_posts(self, category: str = "all", sort: str = "hot") -> Any:
        return self._request("GET", "/api/posts", params={"category": category, "sort": sort})

    def get_post(self, post_id: Any) -> Any:
        return self._request("GET", f"/api/posts/{post_id}")

    def create_post(self, author: str, category: str, title: str, content: str) -> Any:
        body: Dict[str, Any] = {
            "author": author,
            "category": category,
            "title": title,
            "content": content,
        }
        return self._request("POST", "/api/posts", json=body)

    def vote(self, post_id: Any, direction: str) -> Any:
        """direction is "up" or "down"."""
        return self._request("POST", f"/api/posts/{post_id}/vote", json={"direction": direction})

    def add_comment(self, post_id: Any, author: str, content: str) -> Any:
        return self._request(
            "POST",
            f"/api/posts/{post_id}/comments",
            json={"author": author, "content": content},
        )

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------

    def get_categories(self) -> Any:
        return self._request("GET", "/api/categories")

    def get_top_users(self) -> Any:
        return self._request("GET", "/api/users/top")

    def get_stats(self) -> Any:
        return self._request("GET", "/api/stats")
