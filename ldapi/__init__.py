''' __init__.py
Python LDAP Wrapper Module
'''

__title__ = 'ldapi'
__version__ = '0.1'

from .client import (
    Ldapi,
    SearchResult,
    UNCONNECTED,
    CONNECTED,
    BOUND,
    SEARCH_OK,
    SEARCH_EMPTY,
    SEARCH_ERROR,
)
from .entries import (
    RawEntry,
    bin_to_guid,
    get_entries,
    planify,
)
