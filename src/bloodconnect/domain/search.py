"""Donor directory filtering."""

from dataclasses import dataclass
from typing import Iterable, List

from bloodconnect.domain.model import Donor


@dataclass(frozen=True)
class DonorFilter:
    """Search form state. An empty string leaves that field unconstrained."""
    query: str = ""
    blood: str = ""
    city: str = ""


def matches(donor: Donor, donor_filter: DonorFilter) -> bool:
    if donor_filter.blood and donor.blood != donor_filter.blood:
        return False
    if donor_filter.city and (
        not donor.city or donor_filter.city.lower() not in donor.city.lower()
    ):
        return False
    if donor_filter.query:
        # Name is compared case-insensitively, phone as stored.
        query = donor_filter.query.lower()
        return bool(
            (donor.name and query in donor.name.lower())
            or (donor.phone and query in donor.phone)
        )
    return True


def search(donors: Iterable[Donor], donor_filter: DonorFilter) -> List[Donor]:
    """
    Filter donors by blood group, city and a name/phone query.

    Blood group must match exactly, city is a case-insensitive substring
    match, and the query has to appear in the name or the phone number.
    Collection order is preserved.
    """
    return [donor for donor in donors if matches(donor, donor_filter)]
