''' client.py

Wraps a python-ldap connection: connect, bind and search against a
directory server, returning search results through entries.planify().
'''

import ldap
import logging

from .entries import get_entries, planify

# Organization a new Ldapi instance queries against.
DEFAULT_ORGANIZATION = 'system'

LDAP_PROTOCOL_VERSION = ldap.VERSION3

# Connection states.
UNCONNECTED = 'unconnected'
CONNECTED = 'connected'
BOUND = 'bound'

# SearchResult statuses.
SEARCH_OK = 'ok'
SEARCH_EMPTY = 'empty'
SEARCH_ERROR = 'error'


class SearchResult(object):
    '''
    Outcome of Ldapi.search_result().

    `status` is one of SEARCH_OK, SEARCH_EMPTY or SEARCH_ERROR. On
    SEARCH_OK `entries` holds the planified entries, otherwise it is an
    empty list and `reason` says what happened.
    '''

    def __init__(self, status, entries=None, reason=None):
        self.status = status
        self.entries = entries if entries is not None else []
        self.reason = reason

    def __bool__(self):
        return self.status == SEARCH_OK

    def __repr__(self):
        return 'SearchResult(%r, %d entries, reason=%r)' % (
            self.status, len(self.entries), self.reason)


class Ldapi(object):
    '''
    Holds one connection to an LDAP server and its bind state.
    '''

    def __init__(self, server, timeout=10):
        self.server = server
        self.timeout = timeout
        self.organization = DEFAULT_ORGANIZATION
        self.connection = None
        self._bind = {
            'state': False,
            'user': '',
            'password': '',
            'secure': False,
        }

    def get_server(self):
        return self.server

    def get_connection(self):
        '''
        Returns the underlying python-ldap connection, or None.
        '''
        return self.connection

    def get_organization(self):
        return self.organization

    def set_organization(self, organization):
        '''
        Sets the organization to query against. Returns self.
        '''
        self.organization = organization
        return self

    @property
    def state(self):
        if self.is_bound():
            return BOUND
        if self.is_connected():
            return CONNECTED
        return UNCONNECTED

    def connect(self):
        '''
        Initializes the connection to the LDAP server.

        No network traffic happens here; python-ldap only opens the
        socket on the first operation. Returns True if the server URI
        was accepted.
        '''
        log = logging.getLogger('Ldapi connect')
        if not self.server:
            return False

        # A previous handle is unbound before it is replaced.
        if self.is_connected():
            self.close()

        try:
            self.connection = ldap.initialize(self.server)
            self.connection.set_option(
                ldap.OPT_PROTOCOL_VERSION, LDAP_PROTOCOL_VERSION)
            # MSAD hands referrals to the client without passing our
            # credentials along, so they are never followed.
            self.connection.set_option(ldap.OPT_REFERRALS, 0)
            self.connection.set_option(
                ldap.OPT_NETWORK_TIMEOUT, self.timeout)
        except ldap.LDAPError as excep:
            log.info('Failed to initialize %s: %s', self.server, excep)
            self.connection = None
            return False

        log.debug('Initialized connection to %s', self.server)
        return True

    def _start_tls(self):
        '''
        Attempts StartTLS on the current connection.
        A failure is logged and reported as False, never raised.
        '''
        log = logging.getLogger('Ldapi _start_tls')
        try:
            self.connection.start_tls_s()
        except ldap.LDAPError as excep:
            log.debug('StartTLS failed on %s: %s', self.server, excep)
            return False
        return True

    def bind(self, user_or_dn, password):
        '''
        Binds the connection to the given user.

        Connects first if needed. StartTLS is attempted before binding;
        its outcome is recorded in the bind state but does not stop the
        bind. Returns True if the connection ends up bound.
        '''
        log = logging.getLogger('Ldapi bind')
        if self.is_connected():
            self._bind['user'] = user_or_dn
            self._bind['password'] = password
            self._bind['secure'] = self._start_tls()

            try:
                self.connection.simple_bind_s(user_or_dn, password)
                self._bind['state'] = True
                log.debug('Bound to %s as %s', self.server, user_or_dn)
            except ldap.LDAPError as excep:
                log.info('Failed on LDAP bind as %s: %s', user_or_dn, excep)
                self._bind['state'] = False
        elif self.connect():
            return self.bind(user_or_dn, password)

        return self.is_bound()

    def is_connected(self):
        return self.connection is not None

    def is_bound(self):
        return self._bind['state']

    def is_secure(self):
        '''
        Returns whether StartTLS succeeded on the last bind.
        '''
        return self._bind['secure']

    def search_result(self, expression, tree=None):
        '''
        Searches the subtree under `tree` with the filter `expression`.

        Returns a SearchResult telling apart matching entries, no matches
        and the reason a search could not run.
        '''
        log = logging.getLogger('Ldapi search')
        if not self.is_connected():
            return SearchResult(SEARCH_ERROR, reason='not connected')
        if not self.is_bound():
            return SearchResult(SEARCH_ERROR, reason='not bound')
        if not tree:
            return SearchResult(SEARCH_ERROR, reason='no search base')

        log.debug('Search on %s for %s', tree, expression)
        try:
            results = self.connection.search_s(
                tree, ldap.SCOPE_SUBTREE, expression)
        except ldap.LDAPError as excep:
            log.warning('Search on %s for %s failed: %s',
                        tree, expression, excep)
            return SearchResult(SEARCH_ERROR, reason=str(excep))

        entries = get_entries(results)
        if not entries:
            return SearchResult(SEARCH_EMPTY, reason='no entries')

        return SearchResult(SEARCH_OK, planify(entries))

    def search(self, expression, tree=None):
        '''
        Executes a search and returns the planified entries if anything
        matched. Returns False otherwise, whatever the cause.
        '''
        result = self.search_result(expression, tree)
        if not result:
            return False
        return result.entries

    def close(self):
        '''
        Terminates the connection to the LDAP server.
        '''
        log = logging.getLogger('Ldapi close')
        if self.connection is not None:
            try:
                self.connection.unbind_s()
            except ldap.LDAPError as excep:
                log.info('Failed on LDAP unbind: %s', excep)
        self.connection = None
        self._bind['state'] = False
        self._bind['secure'] = False
        self._bind['user'] = ''
        self._bind['password'] = ''
