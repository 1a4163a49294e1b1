"""
IP address anonymization.

IPv4 keeps the first three octets (192.168.1.123 -> 192.168.1.0).
IPv6 keeps the first 48 bits (three groups) and drops the remaining 80
(2001:db8:85a3::8a2e:370:7334 -> 2001:db8:85a3::).

Malformed input is returned unchanged rather than rejected.
"""
from typing import List

IPV6_GROUPS = 8
IPV6_KEPT_GROUPS = 3
ZERO_GROUP = "0000"


def anonymize_ip(ip: str) -> str:
    """
    Anonymize an IPv4 or IPv6 address.

    The transform is one-way and idempotent:
    ``anonymize_ip(anonymize_ip(x)) == anonymize_ip(x)``.

    >>> anonymize_ip("192.168.1.123")
    '192.168.1.0'
    >>> anonymize_ip("::1")
    '0000:0000:0000::'
    """
    if ":" in ip:
        return _anonymize_ipv6(ip)
    return _anonymize_ipv4(ip)


def _anonymize_ipv4(ip: str) -> str:
    parts = ip.split(".")
    if len(parts) != 4:
        return ip
    parts[3] = "0"
    return ".".join(parts)


def _anonymize_ipv6(ip: str) -> str:
    groups = expand_ipv6(ip)
    if len(groups) != IPV6_GROUPS:
        return ip
    return ":".join(groups[:IPV6_KEPT_GROUPS]) + "::"


def expand_ipv6(ip: str) -> List[str]:
    """
    Expand ``::`` compression into explicit ``0000`` groups.

    Groups written in the input are kept as written; only the groups
    elided by ``::`` (or left empty) are filled with ``0000``. Returns the
    list of groups so callers can check the count, since malformed input
    can expand to more or fewer than eight.
    """
    if ip == "::":
        return [ZERO_GROUP] * IPV6_GROUPS

    halves = ip.split("::")
    if len(halves) == 1:
        groups = ip.split(":")
    elif len(halves) == 2:
        left = halves[0].split(":") if halves[0] else []
        right = halves[1].split(":") if halves[1] else []
        missing = IPV6_GROUPS - len(left) - len(right)
        if missing < 1:
            return left + right + [ZERO_GROUP]
        groups = left + [ZERO_GROUP] * missing + right
    else:
        # more than one "::" is never valid
        return []

    return [group or ZERO_GROUP for group in groups]
