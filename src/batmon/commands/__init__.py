"""
batmon Commands Layer

UI-independent operations shared by the CLI runner and embedding hosts.

Usage:
    from batmon.commands import batctl

    result = batctl.get_originators()
    if result:
        for entry in result.data['originators']:
            print(entry['originator'], entry['quality'])
"""

from .base import CommandResult, ResultStatus
from . import batctl

__all__ = [
    'batctl',
    'CommandResult',
    'ResultStatus',
]
