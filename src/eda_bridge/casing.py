"""Field name case conversion between attribute names and API keys.

Attribute names are snake_case (``vlan_id``); the EDA API speaks lowerCamelCase
with upper-cased networking acronyms (``vlanID``, ``poolIPv4``).

|------------------|---------------|
| to_lower_camel   |               |
|------------------|---------------|
| "api_version1"   | "apiVersion1" |
| "__lag"          | "lag"         |
| "_members"       | "members"     |
| "pool_ipv4"      | "poolIPv4"    |
| "vlan_id"        | "vlanID"      |
|------------------|---------------|
| to_separated     |               |
|------------------|---------------|
| "apiVersion1"    | "api_version1"|
| "__lag"          | "__lag"       |
| "_MemberS"       | "_member_s"   |
| "poolIPv4"       | "pool_ipv4"   |
| "vlanID"         | "vlan_id"     |
|------------------|---------------|

The two directions are not inverses for names with adjacent acronyms
("ip_mtu_dn" -> "ipMTUDN" -> "ip_mtudn"). The override tables cover the
known conflicts.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

ACRONYMS: dict[str, str] = {
    "arp": "ARP",
    "arpnd": "ARPND",
    "as": "AS",
    "asn": "ASN",
    "asvpn": "ASVPN",
    "bgp": "BGP",
    "dhcp": "DHCP",
    "dn": "DN",
    "ecmp": "ECMP",
    "evpn": "EVPN",
    "fib": "FIB",
    "fqdn": "FQDN",
    "icmp": "ICMP",
    "id": "ID",
    "ip": "IP",
    "ipv4": "IPv4",
    "ipv6": "IPv6",
    "irb": "IRB",
    "l2cp": "L2CP",
    "ldap": "LDAP",
    "mac": "MAC",
    "mtu": "MTU",
    "nd": "ND",
    "pdu": "PDU",
    "pfc": "PFC",
    "rr": "RR",
    "safi": "SAFI",
    "tls": "TLS",
    "uri": "URI",
    "url": "URL",
    "vlan": "VLAN",
    "vpn": "VPN",
}

# snake_case name -> API key, checked before any splitting
SNAKE_TO_CAMEL_NAMES: dict[str, str] = {
    "external_id": "externalId",
    "label_selector": "label-selector",
    "vcsa_tls_verify": "vcsaTlsVerify",
}

# API key -> snake_case name, checked before the regex split
CAMEL_TO_SNAKE_NAMES: dict[str, str] = {}

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


class CaseConverter:
    """Stateless snake_case / lowerCamelCase translator.

    Args:
        acronyms: Lower-cased segment -> replacement spelling
        snake_to_camel: Literal overrides for to_lower_camel
        camel_to_snake: Literal overrides for to_separated
        separator: Segment separator of attribute names
    """

    def __init__(
        self,
        acronyms: Mapping[str, str] | None = None,
        snake_to_camel: Mapping[str, str] | None = None,
        camel_to_snake: Mapping[str, str] | None = None,
        separator: str = "_",
    ) -> None:
        if not separator:
            raise ValueError("separator must not be empty")
        self.acronyms = {k.lower(): v for k, v in (ACRONYMS if acronyms is None else acronyms).items()}
        self.snake_to_camel = dict(SNAKE_TO_CAMEL_NAMES if snake_to_camel is None else snake_to_camel)
        self.camel_to_snake = dict(CAMEL_TO_SNAKE_NAMES if camel_to_snake is None else camel_to_snake)
        self.separator = separator

    def to_lower_camel(self, name: str) -> str:
        """Convert a separated name to lowerCamelCase."""
        if name == "":
            return ""
        if name in self.snake_to_camel:
            return self.snake_to_camel[name]

        result: list[str] = []
        for i, part in enumerate(name.split(self.separator)):
            # "_members": the empty leading part is dropped
            if part == "":
                continue
            lower = part.lower()
            if lower in self.acronyms:
                result.append(self.acronyms[lower])
            elif i > 0:
                result.append(lower[0].upper() + lower[1:])
            else:
                result.append(lower)

        if result:
            result[0] = result[0].lower()
        return "".join(result)

    def to_separated(self, name: str) -> str:
        """Convert a lowerCamelCase name to its separated form."""
        if name == "":
            return ""
        if name in self.camel_to_snake:
            return self.camel_to_snake[name]
        return _CAMEL_BOUNDARY.sub(rf"\1{self.separator}\2", name).lower()


DEFAULT_CONVERTER = CaseConverter()


def to_lower_camel(name: str) -> str:
    return DEFAULT_CONVERTER.to_lower_camel(name)


def to_separated(name: str) -> str:
    return DEFAULT_CONVERTER.to_separated(name)
