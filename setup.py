from setuptools import setup

setup(name = 'ldapi',
      version = '0.1',
      package_dir = { 'ldapi': 'ldapi' },
      packages = [ 'ldapi' ],
      install_requires = [ 'python-ldap' ],
      extras_require = { 'test': [ 'mock', 'pytest' ] },
      keywords = [ 'ldap', 'active directory' ],
      description = 'ldapi wraps LDAP connect, bind and search calls' \
                    ' and flattens search results into plain dicts.',
)
