"""
Views for read operations - separate from command/write path.
Following Cosmic Python pattern: views never mutate and hold no cached results.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List

from bloodconnect.domain.model import BLOOD_GROUPS
from bloodconnect.domain.search import DonorFilter, search
from bloodconnect.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


def contact_links(phone: str) -> Dict[str, str]:
    """Call link with the number as entered, WhatsApp link with digits only."""
    return {
        "call": f"tel:{phone}",
        "whatsapp": f"https://wa.me/{re.sub(r'[^0-9]', '', phone or '')}",
    }


def time_ago(iso: str, now: datetime = None) -> str:
    """Coarse age of a timestamp: minutes below an hour, hours below a day, then days."""
    now = now or datetime.now(timezone.utc)
    try:
        then = datetime.fromisoformat(iso.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return ""
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    mins = max(0, int((now - then).total_seconds() // 60))
    if mins < 60:
        return f"{mins}m ago"
    hrs = mins // 60
    if hrs < 24:
        return f"{hrs}h ago"
    return f"{hrs // 24}d ago"


def search_donors(
    uow: AbstractUnitOfWork,
    query: str = "",
    blood: str = "",
    city: str = "",
) -> List[Dict[str, Any]]:
    """
    Search the donor directory.

    Recomputed from the current collection on every call.

    Returns:
        Matching donors, newest first, each with its contact links
    """
    donor_filter = DonorFilter(query=query or "", blood=blood or "", city=city or "")
    with uow:
        results = [
            {
                **donor.to_dict(),
                "contact": contact_links(donor.phone),
                "registered": time_ago(donor.created_at),
            }
            for donor in search(uow.donors.get().donors, donor_filter)
        ]
    logger.debug(f"search {donor_filter} matched {len(results)} donors")
    return results


def list_requests(uow: AbstractUnitOfWork) -> List[Dict[str, Any]]:
    with uow:
        return [
            {
                **request.to_dict(),
                "contact": contact_links(request.phone),
                "posted": time_ago(request.created_at),
            }
            for request in uow.requests.get().requests
        ]


def summary(uow: AbstractUnitOfWork) -> Dict[str, int]:
    """Headline counts for the home view."""
    with uow:
        donors = uow.donors.get().donors
        requests = uow.requests.get().requests
        return {
            "donors": len(donors),
            "requests": len(requests),
            "open_requests": sum(1 for r in requests if not r.fulfilled),
            "blood_groups": len(BLOOD_GROUPS),
        }
