"""
Daybook
-------

Daily task lists, reusable lists and journals stored as nested, ordered
collections of typed references.

Subpackages:
    - core: exceptions, logging, validation, paths
    - database: ORM models, entity managers, session management, CLI
    - services: subtree copy, permanent sections, day migration,
      defer/undefer, recurrence
"""
__version__ = "1.0.0"
