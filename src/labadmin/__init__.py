"""
labadmin - administrative backend for the EMS lab scheduling program.

Provides the bulk record operations workflow used by program admins:
filtered previews, bulk status/cohort updates, deletes and exports over
the roster and scheduling tables, with an operation history that supports
rolling back reversible changes.
"""

__version__ = "0.1.0"
__author__ = "PMI Tools Team"
__license__ = "MIT"

__all__ = ["__version__"]
