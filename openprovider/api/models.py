"""
Typed representations of OpenProvider DNS zones and records
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RecordType(str, Enum):
    """DNS record types supported by OpenProvider zones"""

    A = "A"
    AAAA = "AAAA"
    CAA = "CAA"
    CNAME = "CNAME"
    MX = "MX"
    SPF = "SPF"
    SRV = "SRV"
    TXT = "TXT"
    NS = "NS"
    TLSA = "TLSA"
    SSHFP = "SSHFP"
    SOA = "SOA"


class Record(BaseModel):
    """
    A single DNS record inside a zone.

    Records are immutable snapshots: derive an updated record with
    ``record.replace(value="93.184.216.34")``. ``prio`` is only meaningful
    for MX and SRV records.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", use_enum_values=False)

    type: RecordType
    name: str
    value: str
    ttl: int = Field(ge=0)
    prio: Optional[int] = None
    creation_date: Optional[str] = None
    modification_date: Optional[str] = None
    ip: Optional[str] = None

    def replace(self, **changes: Any) -> "Record":
        """Return a copy of this record with the given fields changed."""
        return self.model_validate({**self.model_dump(), **changes})

    def to_payload(self) -> Dict[str, Any]:
        """Serialize the fields OpenProvider matches and stores on update."""
        payload: Dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "value": self.value,
            "ttl": self.ttl,
        }
        if self.prio is not None:
            payload["prio"] = self.prio
        return payload


class ZoneSummary(BaseModel):
    """A DNS zone as returned by the zone listing"""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    name: str
    type: Optional[str] = None
    active: bool = True
    creation_date: Optional[str] = None
    modification_date: Optional[str] = None
    is_deleted: bool = False
    is_shadow: bool = False
    is_spamexperts_enabled: bool = False
    provider: Optional[str] = None
    reseller_id: Optional[int] = None
    ip: Optional[str] = None


class ZoneDetail(ZoneSummary):
    """The DNS configuration of a single domain, optionally with its records"""

    dnskey: Optional[str] = None
    premium_dns: Optional[Dict[str, Any]] = None
    records: Optional[List[Record]] = None
