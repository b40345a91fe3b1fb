"""
Scraper for the current rector of each académie on education.gouv.fr.

Produces the recteurs.json list whose successive versions are the
snapshots merged by the history build.
"""

import random
import re
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from bs4 import BeautifulSoup

from .errors import UpstreamUnavailable
from .logger import get_logger
from .retry import RetryError, exponential_backoff

logger = get_logger()

INDEX_URL = "https://www.education.gouv.fr/les-regions-academiques-academies-et-services-departementaux-de-l-education-nationale-6557"
BASE_URL = "https://www.education.gouv.fr"

ACADEMIES = [
    "Aix-Marseille", "Amiens", "Besançon", "Bordeaux", "Clermont-Ferrand",
    "Corse", "Créteil", "Dijon", "Grenoble", "Guadeloupe", "Guyane",
    "La Réunion", "Lille", "Limoges", "Lyon", "Martinique", "Mayotte",
    "Montpellier", "Nancy-Metz", "Nantes", "Nice", "Normandie",
    "Nouvelle-Calédonie", "Orléans-Tours", "Paris", "Poitiers",
    "Polynésie Française", "Reims", "Rennes",
    "Saint-Pierre et Miquelon (Services de l’EN)", "Strasbourg",
    "Toulouse", "Versailles", "Wallis et Futuna",
]

# "M. Prénom Nom, recteur de ..." / "Mme Prénom Nom, rectrice de ..."
RECTOR_REGEX = re.compile(r"\b(M\.|Mme)\s+([^,]+),")

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "fr-FR,fr;q=0.9,en-US;q=0.8,en;q=0.7",
    "Referer": "https://www.google.com/",
}
REQUEST_TIMEOUT = 30

MIN_PAUSE = 2.0
MAX_PAUSE = 5.0


@exponential_backoff(max_retries=2, base_delay=2.0, exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError))
def _fetch_with_retry(url: str):
    """Fetch URL with automatic retry on transient errors."""
    return requests.get(url, headers=HEADERS, timeout=REQUEST_TIMEOUT)


def _fetch_html(url: str) -> str:
    resp = _fetch_with_retry(url)
    resp.raise_for_status()
    return resp.text


def _collapse(text: str) -> str:
    return " ".join(text.split())


def find_academy_links(index_html: str, academies: Optional[List[str]] = None) -> List[Dict[str, str]]:
    """Links of the index page whose text is a known académie, hrefs made absolute."""
    wanted = set(academies or ACADEMIES)
    soup = BeautifulSoup(index_html, "html.parser")
    links = []
    for a in soup.find_all("a", href=True):
        text = _collapse(a.get_text())
        if text not in wanted:
            continue
        href = a["href"]
        if not href.startswith("http"):
            href = BASE_URL + href
        links.append({"name": text, "url": href})
    return links


def extract_rector(page_html: str) -> Optional[Tuple[str, str]]:
    """Return (genre, nom) of the first "M./Mme Name," mention in the page body."""
    soup = BeautifulSoup(page_html, "html.parser")
    body = soup.body or soup
    match = RECTOR_REGEX.search(_collapse(body.get_text(" ")))
    if not match:
        return None
    return match.group(1), match.group(2).strip()


def scrape(
    fetch: Callable[[str], str] = _fetch_html,
    sleep: Callable[[float], None] = time.sleep,
    academies: Optional[List[str]] = None,
) -> List[Dict[str, Any]]:
    """
    Scrape the rector of every académie.

    Args:
        fetch: Function returning the HTML of a URL
        sleep: Function used for the pause between pages
        academies: Académie labels to look for on the index page

    Returns:
        One record per académie link; failed pages carry an "error" key

    Raises:
        UpstreamUnavailable: If the index page cannot be read
    """
    logger.info(f"Scraping index: {INDEX_URL}")
    try:
        index_html = fetch(INDEX_URL)
    except (RetryError, requests.exceptions.RequestException) as e:
        logger.error("Cannot read index page", url=INDEX_URL, error=str(e))
        raise UpstreamUnavailable(f"Cannot read index page: {e}") from e

    links = find_academy_links(index_html, academies)
    logger.info(f"Index fetched: {len(links)} links found.")

    results: List[Dict[str, Any]] = []
    for item in links:
        logger.info(f"Processing {item['name']}...")
        # One page every few seconds
        sleep(random.uniform(MIN_PAUSE, MAX_PAUSE))
        logger.record_api_call()
        try:
            page_html = fetch(item["url"])
        except (RetryError, requests.exceptions.RequestException) as e:
            logger.record_error(type(e).__name__)
            logger.error(f"Error on {item['name']}", url=item["url"], error=str(e))
            results.append({
                "academie": item["name"],
                "error": f"Erreur accès ({e})",
                "url": item["url"],
            })
            continue

        found = extract_rector(page_html)
        updated_at = datetime.now().isoformat()
        if found:
            genre, nom = found
            logger.info(f"Found: {genre} {nom}")
            results.append({
                "academie": item["name"],
                "genre": genre,
                "nom": nom,
                "url": item["url"],
                "updated_at": updated_at,
            })
        else:
            logger.warning("Name not found", academie=item["name"], url=item["url"])
            results.append({
                "academie": item["name"],
                "error": "Non trouvé",
                "url": item["url"],
                "updated_at": updated_at,
            })

    return results
