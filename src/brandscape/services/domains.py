"""DNS-based domain availability screening."""

import asyncio
import socket
from typing import Dict, Iterable, Optional

from ..models.brand import DomainStatus
from ..utils.logging import get_logger
from ..utils.text import domain_base

logger = get_logger(__name__)

# Resolver errors that mean "no such name" rather than "lookup failed"
_NOT_FOUND_CODES = {
    code for code in (
        getattr(socket, "EAI_NONAME", None),
        getattr(socket, "EAI_NODATA", None),
    ) if code is not None
}


class DomainResolver:
    """Resolves a hostname with the system resolver."""

    async def resolve(self, domain: str) -> None:
        """Raise ``socket.gaierror`` when the name does not resolve."""
        loop = asyncio.get_running_loop()
        await loop.getaddrinfo(domain, None)


def status_for_error(error: Exception) -> DomainStatus:
    if isinstance(error, socket.gaierror) and error.errno in _NOT_FOUND_CODES:
        return DomainStatus.AVAILABLE
    return DomainStatus.UNKNOWN


class DomainChecker:
    """Maps a business name to availability of ``<base>.<tld>`` for each configured TLD.

    A resolving name is taken, a "no such name" answer is available, and any other
    failure (timeouts, resolver errors) is unknown.
    """

    def __init__(self, resolver: Optional[DomainResolver] = None, tlds: Iterable[str] = ("com", "co.uk", "uk")):
        self.resolver = resolver or DomainResolver()
        self.tlds = list(tlds)

    async def check_domain(self, domain: str) -> DomainStatus:
        try:
            await self.resolver.resolve(domain)
        except Exception as e:
            status = status_for_error(e)
            if status is DomainStatus.UNKNOWN:
                logger.warning("Domain lookup failed", domain=domain, error=str(e))
            return status
        return DomainStatus.TAKEN

    async def check_domains(self, name: str) -> Dict[str, DomainStatus]:
        """
        Check every TLD for a name concurrently.

        Args:
            name: Business name; ``&`` is spelled "and" and punctuation is dropped

        Returns:
            Dict[str, DomainStatus]: Keyed by full domain, e.g. ``{"acmeyarns.com": DomainStatus.TAKEN}``;
            empty when the name has no alphanumeric characters
        """
        base = domain_base(name)
        if not base:
            return {}
        domains = [f"{base}.{tld}" for tld in self.tlds]
        statuses = await asyncio.gather(*(self.check_domain(d) for d in domains))
        result = dict(zip(domains, statuses))
        logger.info("Domain check complete", name=name, results={d: s.value for d, s in result.items()})
        return result
