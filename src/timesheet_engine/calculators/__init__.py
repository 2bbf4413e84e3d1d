"""Weekly aggregation and totals calculation."""

from timesheet_engine.calculators.aggregator import aggregate, filter_rows, matches_search_query
from timesheet_engine.calculators.totals import (
    compute_totals,
    format_decimal,
    quantize_money,
    sum_totals,
)
from timesheet_engine.calculators.types import (
    AggregationRow,
    FrozenSnapshot,
    TimeEntryRecord,
    Totals,
)
from timesheet_engine.calculators.week_resolver import (
    WeekWindow,
    day_index_mon_sat,
    format_iso_week,
    resolve_week,
    start_of_iso_week,
)
from timesheet_engine.calculators.week_state import (
    DraftWeek,
    PaidWeek,
    SubmittedWeek,
    WeekState,
    week_state_for,
)

__all__ = [
    "aggregate",
    "filter_rows",
    "matches_search_query",
    "compute_totals",
    "format_decimal",
    "quantize_money",
    "sum_totals",
    "AggregationRow",
    "FrozenSnapshot",
    "TimeEntryRecord",
    "Totals",
    "WeekWindow",
    "day_index_mon_sat",
    "format_iso_week",
    "resolve_week",
    "start_of_iso_week",
    "DraftWeek",
    "PaidWeek",
    "SubmittedWeek",
    "WeekState",
    "week_state_for",
]
