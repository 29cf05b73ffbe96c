"""Stock scalar SQL functions: IPv4 conversion and polygon literals."""

import logging

from litekit.store.driver import FuncReg

logger = logging.getLogger(__name__)


def iptoa(ip: int) -> str:
    """Dotted quad for an integer IPv4 address."""
    return ".".join(str((ip >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def atoip(ip: str) -> int:
    """Integer form of a dotted quad, -1 unless there are exactly four octets.

    Unparseable octets count as 0.
    """
    octets = str(ip).split(".")
    if len(octets) != 4:
        return -1
    value = 0
    for octet in octets:
        try:
            n = int(octet)
        except ValueError:
            n = 0
        value = (value << 8) + n
    return value


def polygon(*pts) -> str:
    """Quoted JSON-ish polygon literal from flat lat, lon, lat, lon... arguments.

    Floats are written with six decimals, integers as-is. Stops at the first
    argument that is neither.
    """
    parts = []
    f_lat = 0.0
    i_lat = 0
    for i, pt in enumerate(pts):
        logger.debug(f"polygon {i} ({type(pt).__name__}): {pt}")
        if isinstance(pt, float):
            if i % 2:
                parts.append(f"[{f_lat:.6f},{pt:.6f}]")
            else:
                f_lat = pt
        elif isinstance(pt, int) and not isinstance(pt, bool):
            if i % 2:
                parts.append(f"[{i_lat},{pt}]")
            else:
                i_lat = pt
        else:
            break
    return "'[" + ",".join(parts) + "]'"


IP_FUNCS = [
    FuncReg("iptoa", iptoa, True),
    FuncReg("atoip", atoip, True),
    FuncReg("polygon", polygon, True),
]
