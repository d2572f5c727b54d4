"""
Per-transport probe sessions and echo servers.
"""

from .icmp import IcmpSession, SystemPinger
from .tcp import TcpEchoServer, TcpSession
from .udp import UdpEchoServer, UdpSession

__all__ = [
    "IcmpSession",
    "SystemPinger",
    "TcpEchoServer",
    "TcpSession",
    "UdpEchoServer",
    "UdpSession",
]
