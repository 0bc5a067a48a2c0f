"""chartbridge: commands subpackage
---------------------------------------------------------
CLI commands exposed by the ``chartbridge`` tool. They load chart definitions
from spec files and run them through the same codec, pivot and lint code the
host pipeline uses, so a chart can be checked before it ships.

Public API
----------
``charts`` : ``encode``, ``check``, ``pivot`` and ``types`` commands
"""
