"""
SQL terminator analyzers. An analyzer is picked by name when the shell
starts (or with the \\analyzer command).
"""

from enum import StrEnum

from sqshell.analyzers.base import ANSIAnalyzer, NullAnalyzer, SQLAnalyzer
from sqshell.analyzers.plsql import PLSQLAnalyzer
from sqshell.analyzers.snowflake import SnowflakeAnalyzer
from sqshell.analyzers.tsql import TSQLAnalyzer
from sqshell.errors import UnknownAnalyzerError

__all__ = [
    "ANSIAnalyzer",
    "AnalyzerName",
    "NullAnalyzer",
    "PLSQLAnalyzer",
    "SQLAnalyzer",
    "SnowflakeAnalyzer",
    "TSQLAnalyzer",
    "get_analyzer",
]


class AnalyzerName(StrEnum):
    """
    Names under which the analyzers can be selected.
    """

    ANSI = "ansi"
    NULL = "null"
    SNOWFLAKE = "snowflake"
    TSQL = "tsql"
    PLSQL = "plsql"


ANALYZERS: dict[AnalyzerName, type[SQLAnalyzer]] = {
    AnalyzerName.ANSI: ANSIAnalyzer,
    AnalyzerName.NULL: NullAnalyzer,
    AnalyzerName.SNOWFLAKE: SnowflakeAnalyzer,
    AnalyzerName.TSQL: TSQLAnalyzer,
    AnalyzerName.PLSQL: PLSQLAnalyzer,
}


def get_analyzer(name: str) -> SQLAnalyzer:
    """
    Create an analyzer by name. Matching is case-blind.

    :param name: one of the AnalyzerName values

    :raises: UnknownAnalyzerError if there's no such analyzer
    """
    try:
        key = AnalyzerName(name.strip().lower())
    except ValueError:
        # pylint: disable=raise-missing-from
        valid = ", ".join(n.value for n in AnalyzerName)
        raise UnknownAnalyzerError(f'Unknown analyzer "{name}". Valid analyzers: {valid}')

    return ANALYZERS[key]()
