"""
Railway-Oriented Programming (ROP) helpers.

Explicit, composable error handling — no exceptions in the export logic.

    from icinga_config_export.railway import Result, ErrorCode

    result = (
        api.list_packages()
        .flat_map(lambda packages: export_all(packages))
        .map(lambda summary: summary.bundles_written)
    )
"""

from icinga_config_export.railway.assertions import ResultAssertions
from icinga_config_export.railway.failure import ErrorCode, FailureDescription
from icinga_config_export.railway.result import Failure, Result, Success

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ResultAssertions",
]
