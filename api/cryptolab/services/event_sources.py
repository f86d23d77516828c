"""Curated catalogue of external cryptography events and the import into the events table."""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from ..models.event import Event
from ..models.fields import to_naive_utc
from . import audit_service

logger = logging.getLogger(__name__)

IACR = "International Association for Cryptologic Research"

EXTERNAL_SOURCES: Dict[str, List[Dict[str, Any]]] = {
    "iacr": [
        {
            "title": "Eurocrypt 2025",
            "description": "The 44th Annual International Conference on the Theory and Applications of Cryptographic Techniques",
            "start_date": "2025-05-15T09:00:00Z",
            "end_date": "2025-05-19T18:00:00Z",
            "location": "Vienna, Austria",
            "url": "https://eurocrypt.iacr.org/2025/",
            "category": "conference",
            "organizer_name": IACR,
            "image_url": "https://iacr.org/logo/logo-iacr.png",
        },
        {
            "title": "Crypto 2025",
            "description": "The 45th Annual International Cryptology Conference",
            "start_date": "2025-08-18T09:00:00Z",
            "end_date": "2025-08-22T18:00:00Z",
            "location": "Santa Barbara, USA",
            "url": "https://crypto.iacr.org/2025/",
            "category": "conference",
            "organizer_name": IACR,
            "image_url": "https://iacr.org/logo/logo-iacr.png",
        },
        {
            "title": "Asiacrypt 2024",
            "description": "The 30th Annual International Conference on the Theory and Application of Cryptology and Information Security",
            "start_date": "2024-12-01T09:00:00Z",
            "end_date": "2024-12-05T18:00:00Z",
            "location": "Tokyo, Japan",
            "url": "https://asiacrypt.iacr.org/2024/",
            "category": "conference",
            "organizer_name": IACR,
            "image_url": "https://iacr.org/logo/logo-iacr.png",
        },
        {
            "title": "CHES 2024: Cryptographic Hardware and Embedded Systems",
            "description": "Workshop on Cryptographic Hardware and Embedded Systems focusing on the design and analysis of cryptographic hardware and software implementations",
            "start_date": "2024-09-09T09:00:00Z",
            "end_date": "2024-09-12T18:00:00Z",
            "location": "Brussels, Belgium",
            "url": "https://ches.iacr.org/2024/",
            "category": "cryptographic hardware workshop",
            "organizer_name": IACR,
            "image_url": "https://iacr.org/logo/logo-iacr.png",
        },
    ],
    "cryptologyconference": [
        {
            "title": "International Conference on Post-Quantum Cryptography (PQCrypto)",
            "description": "Conference focusing on cryptographic systems that can resist attacks by quantum computers",
            "start_date": "2024-09-25",
            "end_date": "2024-09-27",
            "location": "Zurich, Switzerland",
            "url": "https://pqcrypto2024.org",
            "category": "conference",
            "organizer_name": "ETH Zurich",
        },
        {
            "title": "Workshop on Cryptographic Protocols and Zero-Knowledge Proofs",
            "description": "Intensive workshop on latest advancements in zero-knowledge proofs and their applications in privacy-preserving protocols",
            "start_date": "2024-11-12",
            "end_date": "2024-11-14",
            "location": "London, UK",
            "url": "https://zk-workshop.org",
            "category": "crypto workshop",
            "organizer_name": "University College London",
        },
        {
            "title": "Applied Cryptanalysis Summer School",
            "description": "Hands-on training in modern cryptanalytic techniques for graduate students and industry professionals",
            "start_date": "2025-06-15",
            "end_date": "2025-06-20",
            "location": "Paris, France",
            "url": "https://applied-crypto-school.fr",
            "category": "cryptanalysis tutorial",
            "organizer_name": "CNRS & Sorbonne University",
        },
    ],
    "defcon": [
        {
            "title": "DEF CON 33",
            "description": "One of the world's largest and most notable hacker conventions, with significant focus on cryptography and security",
            "start_date": "2025-08-07T09:00:00Z",
            "end_date": "2025-08-10T18:00:00Z",
            "location": "Las Vegas, USA",
            "url": "https://defcon.org",
            "category": "conference",
            "organizer_name": "DEFCON",
            "image_url": "https://defcon.org/images/defcon-logo.png",
        },
        {
            "title": "DEFCON Cryptography Village",
            "description": "Specialized track at DEFCON focused on cryptographic research, challenges, and applications",
            "start_date": "2025-08-07T10:00:00Z",
            "end_date": "2025-08-10T17:00:00Z",
            "location": "Las Vegas, USA",
            "url": "https://cryptovillage.org",
            "category": "crypto challenge",
            "organizer_name": "DEFCON Crypto Village",
            "image_url": "https://cryptovillage.org/logo.png",
        },
    ],
}

# Checked in order; the first keyword found wins
CATEGORY_KEYWORDS = (
    (("workshop", "tutorial"), "workshop"),
    (("hackathon", "challenge"), "hackathon"),
    (("webinar", "online"), "webinar"),
    (("lecture", "talk"), "lecture"),
    (("meetup", "gathering"), "meetup"),
)


class UnknownSourceError(ValueError):
    pass


def map_category(category: str, source: str) -> str:
    """Normalise a source's free-text category into one of the dashboard's event types"""
    category = (category or "").lower()
    if any(word in category for word in ("crypt", "secur", "cipher")):
        for keywords, event_type in CATEGORY_KEYWORDS:
            if any(keyword in category for keyword in keywords):
                return event_type
        return "conference"
    if category == "workshop":
        return "workshop"
    return "conference"


def _parse_datetime(value: str) -> datetime:
    return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def convert_event(raw: Dict[str, Any], source: str) -> Dict[str, Any]:
    start = _parse_datetime(raw["start_date"])
    end = _parse_datetime(raw["end_date"]) if raw.get("end_date") else start + timedelta(days=1)
    return {
        "title": raw.get("title") or "Untitled Event",
        "description": raw.get("description") or "No description available",
        "startDate": start,
        "endDate": end,
        "location": raw.get("location") or "Online",
        "organizerName": raw.get("organizer_name") or source,
        "eventType": map_category(raw.get("category", "conference"), source),
        "imageUrl": raw.get("image_url") or None,
        "url": raw.get("url"),
        "source": source,
    }


def fetch_external_events(source: Optional[str] = None) -> List[Dict[str, Any]]:
    """Events of one source, or of every source when `source` is empty"""
    if source and source not in EXTERNAL_SOURCES:
        raise UnknownSourceError(f"Unknown event source: {source}")
    sources = [source] if source else list(EXTERNAL_SOURCES)
    return [convert_event(raw, name) for name in sources for raw in EXTERNAL_SOURCES[name]]


def import_external_events(db: Session, source: Optional[str], user_id: int) -> Tuple[int, int]:
    """
    Insert catalogue events that are not already stored.

    An event is a duplicate when an event with the same title and start date
    exists. Inserts and the IMPORT audit entry share one transaction; the
    caller commits.
    """
    added = skipped = 0
    for data in fetch_external_events(source):
        exists = (
            db.query(Event.id)
            .filter(Event.title == data["title"], Event.startDate == data["startDate"])
            .first()
        )
        if exists:
            skipped += 1
            continue
        db.add(Event(**data, status="approved", created_by=user_id))
        db.flush()
        added += 1

    audit_service.record(
        db,
        user_id,
        "IMPORT",
        "event",
        new_value={"source": source or "all", "added": added, "skipped": skipped},
        details=f"Imported {added} events, skipped {skipped}",
    )
    logger.info(f"Event import from {source or 'all sources'}: {added} added, {skipped} skipped")
    return added, skipped
