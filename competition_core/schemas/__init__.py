"""
Competition core schema definitions

The ``bases`` module contains the schemas sent to and received from
clients for users, competitions and authentication. The ``wcif`` module
contains the subset of the WCA Competition Interchange Format (WCIF)
that is used to exchange the events of a competition, where any field
uses camelCase aliases on the wire while the Python attributes use
snake_case. The ``errors`` module contains the shared error model.

This package also contains the ``config`` module, but it's not
exported by default, since it's currently only used internally.
"""

from .bases import *
from .errors import *
from .wcif import *
