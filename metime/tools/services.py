"""Service catalog with prices (DKK), durations and descriptions."""

import logging
from typing import Iterable, Optional

from metime.schemas.schedule_schema import Service

logger = logging.getLogger(__name__)

SERVICE_CATALOG: dict[str, Service] = {
    service.id: service
    for service in [
        Service(id="quick-fix-polish", name="Quick Fix Polish", duration_minutes=15,
                price=150, emoji="💅", description="Quick polish refresh"),
        Service(id="gel-manicure", name="Gel Manicure", duration_minutes=45,
                price=450, emoji="✨", description="Long-lasting gel manicure"),
        Service(id="spa-pedicure", name="Spa Pedicure", duration_minutes=60,
                price=550, emoji="🦶", description="Relaxing spa pedicure"),
        Service(id="nail-art", name="Nail Art", duration_minutes=30,
                price=250, emoji="🎨", description="Creative nail designs"),
        Service(id="polish-change", name="Polish Change", duration_minutes=20,
                price=200, emoji="💖", description="Quick polish change"),
        Service(id="gel-removal", name="Gel Removal", duration_minutes=15,
                price=100, emoji="🧼", description="Safe gel removal"),
    ]
}

SERVICE_ALIASES: dict[str, str] = {
    "polish": "quick-fix-polish", "refresh": "quick-fix-polish",
    "manicure": "gel-manicure", "gel nails": "gel-manicure",
    "pedicure": "spa-pedicure", "feet": "spa-pedicure",
    "art": "nail-art", "design": "nail-art",
    "change": "polish-change", "new colour": "polish-change", "new color": "polish-change",
    "removal": "gel-removal", "remove gel": "gel-removal",
}


def get_all_services() -> list[Service]:
    """Return the whole catalog in display order."""
    return list(SERVICE_CATALOG.values())


def get_service(service_id: str) -> Optional[Service]:
    """Get a service by its catalog id."""
    return SERVICE_CATALOG.get(service_id.strip().lower())


def resolve_services(service_ids: Iterable[str]) -> list[Service]:
    """Map catalog ids to services, preserving order.

    Raises:
        KeyError: if any id is not in the catalog.
    """
    services = []
    for service_id in service_ids:
        service = get_service(service_id)
        if service is None:
            raise KeyError(f"Unknown service: {service_id}")
        services.append(service)
    return services


def match_service(query: str) -> Optional[str]:
    """Match a free-text query to a service id. Returns None if no match."""
    normalized = query.lower().strip()
    if not normalized:
        return None
    for sid, service in SERVICE_CATALOG.items():
        if normalized in (sid, service.name.lower()):
            return sid
    for alias, service_id in SERVICE_ALIASES.items():
        if alias in normalized:
            return service_id
    logger.debug("No service matched query '%s'", query)
    return None
