''' entries.py

Reshapes directory search results into plain nested structures and
decodes the binary identifier attributes (objectGUID / objectSID) that
Active Directory returns as 'Octet String' values.
'''

import uuid

# Attributes whose single value is returned as [raw, decoded] pair.
# The names are compared as-is; get_entries() lower-cases them first.
IDENTIFIER_ATTRIBUTES = ('objectguid', 'objectsid')

_GUID_LENGTH = 16


class RawEntry(object):
    '''
    One directory entry as returned by a search.

    `attributes` is an ordered mapping of attribute name to the list of
    raw values; `names` gives the positional order of those attributes.
    '''

    def __init__(self, dn, attributes):
        self.dn = dn
        self.attributes = attributes

    @property
    def names(self):
        return list(self.attributes)

    def __repr__(self):
        return 'RawEntry(%r, %r)' % (self.dn, self.attributes)


def get_entries(results):
    '''
    Builds the list of RawEntry out of python-ldap search results.

    `results` is the list of (dn, attrs) tuples from `search_s()`.
    Search references come back with a dn of None and are skipped.
    Attribute names are lower-cased, in their original order.
    '''
    entries = []
    for dist_name, result_dict in results:
        if dist_name is None:
            continue
        attributes = {}
        for name, values in result_dict.items():
            attributes[name.lower()] = list(values)
        entries.append(RawEntry(dist_name, attributes))
    return entries


def bin_to_guid(binary_guid):
    '''
    Converts a binary GUID to its string form,
    e.g. '12345678-9ABC-DEF0-1122-334455667788'.

    The first three fields are little-endian, the last eight bytes are
    read as-is. Short input is padded with zero bytes and anything past
    16 bytes is ignored, so an empty value decodes to the all-zero GUID.
    '''
    if not binary_guid:
        binary_guid = b''
    elif isinstance(binary_guid, str):
        binary_guid = binary_guid.encode('utf-8', 'surrogatepass')
    blob = bytes(binary_guid[:_GUID_LENGTH]).ljust(_GUID_LENGTH, b'\x00')
    return str(uuid.UUID(bytes_le=blob)).upper()


def _text(value):
    '''
    Decodes a text value; binary values stay bytes.
    '''
    if isinstance(value, bytes):
        try:
            return value.decode('utf-8')
        except UnicodeDecodeError:
            return value
    return value


def planify(entries):
    '''
    Organizes a list of RawEntry into a list of
    {'data': {...}, 'keys': [...]} dicts.

    'keys' is the ordered list of attribute names. 'data' maps each
    attribute (and 'dn') to:
      - a list of values, when the attribute has more than one;
      - [raw, guid string], for a single valued identifier attribute;
      - the single value otherwise, or '' when there is none.
    '''
    items = []

    for entry in entries:
        keys = entry.names
        details = {'dn': entry.dn}

        for name, values in entry.attributes.items():
            if len(values) > 1:
                details[name] = [_text(value) for value in values]
            elif name in IDENTIFIER_ATTRIBUTES:
                raw = values[0] if values else ''
                details[name] = [raw, bin_to_guid(raw)]
            else:
                details[name] = _text(values[0]) if values else ''

        items.append({
            'data': details,
            'keys': keys,
        })

    return items
