"""Backfill Project Gutenberg ids from the Gutendex catalogue API."""

import logging
import time
from typing import Optional

import httpx
from sqlalchemy.orm import Session

import models
from config import settings

logger = logging.getLogger(__name__)


def gutenberg_read_url(gutenberg_id: str) -> str:
    return f"https://www.gutenberg.org/cache/epub/{gutenberg_id}/pg{gutenberg_id}-images.html"


def find_gutenberg_id(client: httpx.Client, title: str, author: str) -> Optional[str]:
    """Return the Gutenberg id of the best Gutendex match, or None.

    Only the first search result is considered, and only when its title
    contains ours (case-insensitively).
    """
    try:
        response = client.get("/books", params={"search": f"{title} {author}"})
    except httpx.RequestError as exc:
        logger.error("Gutendex search failed for %r: %s", title, exc)
        return None

    if response.status_code != 200:
        logger.warning("Gutendex returned %s for %r", response.status_code, title)
        return None

    results = response.json().get("results") or []
    if not results:
        return None

    match = results[0]
    if title.lower() in str(match.get("title", "")).lower():
        return str(match["id"])
    return None


def sync_gutendex(db: Session, client: httpx.Client, delay: float = 0.0) -> int:
    """Look up every book without a gutenberg_id; returns how many were updated."""
    books = db.query(models.Book).filter(models.Book.gutenberg_id.is_(None)).order_by(models.Book.id).all()
    logger.info("Found %s books to check", len(books))

    updated = 0
    for index, book in enumerate(books):
        if index and delay:
            time.sleep(delay)

        gutenberg_id = find_gutenberg_id(client, book.title, book.author)
        if not gutenberg_id:
            logger.info("No match for %r by %s", book.title, book.author)
            continue

        book.gutenberg_id = gutenberg_id
        book.read_url = gutenberg_read_url(gutenberg_id)
        db.commit()
        updated += 1
        logger.info("Matched %r to Gutenberg id %s", book.title, gutenberg_id)

    return updated


def build_client() -> httpx.Client:
    return httpx.Client(base_url=settings.GUTENDEX_URL, timeout=20, follow_redirects=True)
